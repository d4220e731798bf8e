"""Data models for container entries and the assembled document"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class CompressionMethod(IntEnum):
    """ZIP compression methods the container reader understands."""
    stored = 0
    deflate = 8


@dataclass(frozen=True)
class ArchiveEntry:
    """One central-directory record; lives only while a container is scanned."""
    path:                str
    compression_method:  int            # CompressionMethod value, or an unsupported raw method
    compressed_size:     int
    uncompressed_size:   int
    local_header_offset: int

    @property
    def is_directory(self) -> bool:
        return self.path.endswith("/")


class DocumentMetadata(BaseModel):
    """Document-level metadata read from .card/metadata.yaml."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    format_version: str = "1.0.0"
    version: str = "1.0.0"
    created_at: str
    modified_at: str
    theme_id: Optional[str] = None
    tags: Optional[list[str]] = None
    description: Optional[str] = None


class ComponentReference(BaseModel):
    """An {id, type} entry of the structure manifest; list order is render order."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: str


class Layout(BaseModel):
    """Optional layout hint declared next to the structure list."""
    model_config = ConfigDict(frozen=True)

    type: str = "vertical"
    params: Optional[dict[str, Any]] = None


class ComponentConfig(BaseModel):
    """A component's type tag plus its normalized configuration mapping."""
    model_config = ConfigDict(frozen=True)

    id: str
    type: str = Field(..., min_length=1)
    name: Optional[str] = None
    config: dict[str, Any] = Field(default_factory=dict)


class Document(BaseModel):
    """The assembled card; derive edited copies with model_copy(update=...).

    Freezing is shallow: the document and every nested model reject attribute
    assignment, but the `configs`, `config`, `params`, and `raw_files` dicts are
    plain dicts and can still be mutated in place.
    """
    model_config = ConfigDict(frozen=True)

    metadata: DocumentMetadata
    components: list[ComponentReference] = Field(default_factory=list)
    configs: dict[str, ComponentConfig] = Field(default_factory=dict)
    layout: Optional[Layout] = None
    raw_files: Optional[dict[str, bytes]] = None


class AssemblyOptions(BaseModel):
    strict: bool = False            # first component failure aborts assembly
    keep_raw_files: bool = False    # attach the extracted file map to the document


class AssemblyResult(BaseModel):
    """A successfully assembled document and the non-fatal warnings met on the way."""
    document: Document
    warnings: list[str] = Field(default_factory=list)
