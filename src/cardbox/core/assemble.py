"""Document assembly: file map -> validated Document plus ordered warnings"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional, Union

from cardbox.core.container import extract_report
from cardbox.core.models import (
    AssemblyOptions,
    AssemblyResult,
    ComponentConfig,
    ComponentReference,
    Document,
    DocumentMetadata,
    Layout,
)
from cardbox.core.paths import METADATA_PATH, STRUCTURE_PATH, content_path
from cardbox.core.synthesize import document_to_files
from cardbox.core.text import parse_bytes
from cardbox.errors import (
    ComponentLoadError,
    CorruptEntryError,
    InvalidSourceError,
    MissingMetadataError,
    MissingStructureError,
    TextFormatError,
)


logger = logging.getLogger(__name__)

Source = Union[Mapping[str, bytes], bytes, bytearray, memoryview, Document]

DEFAULT_VERSION = "1.0.0"
RESERVED_CONTENT_KEYS = ("type", "name")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _first(raw: dict[str, Any], *keys: str) -> Any:
    """Return the value of the first key present with a non-null value."""
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _as_text(value: Any) -> str:
    """Render a parsed scalar back to text (booleans as true/false)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_blank(value: Any) -> bool:
    return value is None or value is False or not _as_text(value).strip()


def _load_files(source: Source, warnings: list[str]) -> dict[str, bytes]:
    """Normalize any accepted source shape to a path -> bytes map."""
    if isinstance(source, Document):
        return document_to_files(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        files, errors = extract_report(source)
        for err in errors:
            if isinstance(err, CorruptEntryError):
                warnings.append(f"Container entry unreadable, treated as empty: {err}")
            else:
                warnings.append(f"Container entry skipped: {err}")
        return files
    if isinstance(source, Mapping):
        return {str(path): bytes(data) for path, data in source.items()}
    raise InvalidSourceError(
        f"Invalid source: expected a file map, container bytes, or Document, got {type(source).__name__}",
        warnings,
    )


def parse_metadata(files: Mapping[str, bytes], warnings: Optional[list[str]] = None) -> DocumentMetadata:
    """Parse .card/metadata.yaml; id (card_id or id) and name are required, the rest defaulted."""
    data = files.get(METADATA_PATH)
    if data is None:
        raise MissingMetadataError(f"{METADATA_PATH} not found", warnings)
    try:
        raw = parse_bytes(data)
    except TextFormatError as e:
        raise MissingMetadataError(f"{METADATA_PATH} parse failed: {e}", warnings) from e

    card_id = _first(raw, "card_id", "id")
    name = raw.get("name")
    if _is_blank(card_id) or _is_blank(name):
        raise MissingMetadataError(
            f"{METADATA_PATH} missing required fields: card_id (or id), name", warnings
        )

    now = _now()
    theme = _first(raw, "theme_id", "theme")
    tags = raw.get("tags")
    description = raw.get("description")
    return DocumentMetadata(
        id=_as_text(card_id),
        name=_as_text(name),
        format_version=_as_text(
            _first(raw, "chips_standards_version", "chip_standards_version") or DEFAULT_VERSION
        ),
        version=_as_text(_first(raw, "version") or DEFAULT_VERSION),
        created_at=_as_text(_first(raw, "created_at") or now),
        modified_at=_as_text(_first(raw, "modified_at") or now),
        theme_id=_as_text(theme) if theme else None,
        tags=[_as_text(t) for t in tags] if isinstance(tags, list) else None,
        description=_as_text(description) if description else None,
    )


def parse_structure(
    files: Mapping[str, bytes],
    warnings: Optional[list[str]] = None,
    ) -> tuple[list[ComponentReference], Optional[Layout]]:
    """Parse .card/structure.yaml into ordered component references and an optional layout."""
    data = files.get(STRUCTURE_PATH)
    if data is None:
        raise MissingStructureError(f"{STRUCTURE_PATH} not found", warnings)
    try:
        raw = parse_bytes(data)
    except TextFormatError as e:
        raise MissingStructureError(f"{STRUCTURE_PATH} parse failed: {e}", warnings) from e

    components = []
    items = raw.get("structure")
    if isinstance(items, list):
        for item in items:
            # Entries without a string id carry nothing addressable.
            if isinstance(item, dict) and isinstance(item.get("id"), str):
                kind = item.get("type")
                components.append(ComponentReference(
                    id=item["id"],
                    type=_as_text(kind) if kind is not None else "",
                ))

    layout = None
    raw_layout = raw.get("layout")
    if isinstance(raw_layout, dict):
        params = raw_layout.get("params")
        layout = Layout(
            type=_as_text(_first(raw_layout, "type") or "vertical"),
            params=params if isinstance(params, dict) else None,
        )
    return components, layout


def normalize_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Resolve both authoring shapes to one config mapping: nested `data`, else the flattened fields."""
    data = raw.get("data")
    if isinstance(data, dict):
        return data
    return {k: v for k, v in raw.items() if k not in RESERVED_CONTENT_KEYS}


def load_component(files: Mapping[str, bytes], component_id: str) -> ComponentConfig:
    """Load content/<id>.yaml; raises ComponentLoadError when it is missing, untyped, or unparseable."""
    path = content_path(component_id)
    data = files.get(path)
    if data is None:
        raise ComponentLoadError(component_id, f"Component config not found: {path}")
    try:
        raw = parse_bytes(data)
    except TextFormatError as e:
        raise ComponentLoadError(component_id, f"Component config parse failed ({component_id}): {e}") from e

    kind = raw.get("type")
    kind = kind.strip() if isinstance(kind, str) else ""
    if not kind:
        raise ComponentLoadError(component_id, f"Component config missing type field: {path}")

    name = raw.get("name")
    return ComponentConfig(
        id=component_id,
        type=kind,
        name=_as_text(name) if name else None,
        config=normalize_config(raw),
    )


def assemble(source: Source, options: Optional[AssemblyOptions] = None) -> AssemblyResult:
    """Assemble a Document from a file map, container bytes, or an in-memory Document.

    Missing or unreadable metadata/structure files abort with an AssemblyError
    subclass. A component that fails to load becomes a warning and is left out
    of `configs`, unless options.strict is set, in which case the first such
    failure raises ComponentLoadError. Every raised AssemblyError carries the
    warnings gathered up to that point.
    """
    options = options or AssemblyOptions()
    warnings: list[str] = []

    files = _load_files(source, warnings)
    metadata = parse_metadata(files, warnings)
    components, layout = parse_structure(files, warnings)

    configs: dict[str, ComponentConfig] = {}
    seen: set[str] = set()
    for ref in components:
        if ref.id in seen:
            continue
        seen.add(ref.id)
        try:
            configs[ref.id] = load_component(files, ref.id)
        except ComponentLoadError as e:
            logger.warning("Component %s skipped: %s", ref.id, e.reason)
            warnings.append(e.reason)
            if options.strict:
                e.warnings = list(warnings)
                raise

    logger.debug(
        "Assembled card %s: %d component(s), %d config(s), %d warning(s)",
        metadata.id, len(components), len(configs), len(warnings),
    )
    document = Document(
        metadata=metadata,
        components=components,
        configs=configs,
        layout=layout,
        raw_files=files if options.keep_raw_files else None,
    )
    return AssemblyResult(document=document, warnings=warnings)
