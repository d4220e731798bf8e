"""Document -> file map: regenerate metadata, structure, and content YAML"""

import math
from decimal import Decimal
from typing import Any

import yaml

from cardbox.core.models import ComponentConfig, Document
from cardbox.core.paths import METADATA_PATH, STRUCTURE_PATH, content_path


class _BlockDumper(yaml.SafeDumper):
    """SafeDumper that indents sequences under their parent key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False):
        return super().increase_indent(flow, False)


def _represent_str(dumper: yaml.SafeDumper, data: str):
    # Multi-line text stays on one line as an escaped double-quoted scalar.
    if "\n" in data:
        return dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"')
    return dumper.represent_str(data)


def _represent_float(dumper: yaml.SafeDumper, data: float):
    # Positional notation only; exponent forms would read back as strings.
    if not math.isfinite(data):
        return dumper.represent_float(data)
    text = format(Decimal(repr(data)), "f")
    if "." not in text:
        text += ".0"
    return dumper.represent_scalar("tag:yaml.org,2002:float", text)


_BlockDumper.add_representer(str, _represent_str)
_BlockDumper.add_representer(float, _represent_float)


def dump_yaml(data: dict[str, Any]) -> str:
    """Serialize to block-style YAML the structured-text parser can read back."""
    return yaml.dump(
        data,
        Dumper=_BlockDumper,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=float("inf"),
    )


def _metadata_fields(document: Document) -> dict[str, Any]:
    meta = document.metadata
    fields = {
        "chips_standards_version": meta.format_version,
        "card_id": meta.id,
        "name": meta.name,
        "version": meta.version,
        "created_at": meta.created_at,
        "modified_at": meta.modified_at,
        "theme_id": meta.theme_id,
        "tags": meta.tags,
        "description": meta.description,
    }
    return {k: v for k, v in fields.items() if v is not None}


def _structure_fields(document: Document) -> dict[str, Any]:
    fields: dict[str, Any] = {"structure": [{"id": c.id, "type": c.type} for c in document.components]}
    if document.layout is not None:
        layout: dict[str, Any] = {"type": document.layout.type}
        if document.layout.params is not None:
            layout["params"] = document.layout.params
        fields["layout"] = layout
    return fields


def _content_fields(config: ComponentConfig) -> dict[str, Any]:
    fields: dict[str, Any] = {"type": config.type}
    if config.name is not None:
        fields["name"] = config.name
    fields["data"] = config.config
    return fields


def document_to_files(document: Document) -> dict[str, bytes]:
    """Rebuild the container file map for an in-memory document.

    Generated files come first in container order (metadata, structure, one
    content file per configured component in structure order); any raw files
    the document carries under other paths follow, sorted by path.
    """
    files: dict[str, bytes] = {
        METADATA_PATH: dump_yaml(_metadata_fields(document)).encode("utf-8"),
        STRUCTURE_PATH: dump_yaml(_structure_fields(document)).encode("utf-8"),
    }
    for ref in document.components:
        config = document.configs.get(ref.id)
        path = content_path(ref.id)
        if config is not None and path not in files:
            files[path] = dump_yaml(_content_fields(config)).encode("utf-8")

    raw_files = document.raw_files or {}
    for path in sorted(raw_files):
        files.setdefault(path, raw_files[path])
    return files
