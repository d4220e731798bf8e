"""cardbox: decode and assemble card document containers"""

from cardbox.core.assemble import assemble
from cardbox.core.models import (
    AssemblyOptions,
    AssemblyResult,
    ComponentConfig,
    ComponentReference,
    Document,
    DocumentMetadata,
    Layout,
)
from cardbox.core.pipeline import (
    decode_file,
    decode_from_bytes,
    decode_from_document,
    decode_from_file_map,
    encode_document,
    write_file,
)
from cardbox.errors import (
    AssemblyError,
    CardboxError,
    ComponentLoadError,
    ContainerError,
    CorruptEntryError,
    InvalidSourceError,
    MalformedEOCDError,
    MissingMetadataError,
    MissingStructureError,
    TextFormatError,
    UnsupportedEntryError,
)

__all__ = [
    "AssemblyError",
    "AssemblyOptions",
    "AssemblyResult",
    "CardboxError",
    "ComponentConfig",
    "ComponentLoadError",
    "ComponentReference",
    "ContainerError",
    "CorruptEntryError",
    "Document",
    "DocumentMetadata",
    "InvalidSourceError",
    "Layout",
    "MalformedEOCDError",
    "MissingMetadataError",
    "MissingStructureError",
    "TextFormatError",
    "UnsupportedEntryError",
    "assemble",
    "decode_file",
    "decode_from_bytes",
    "decode_from_document",
    "decode_from_file_map",
    "encode_document",
    "write_file",
]
