"""Public decode/encode entry points, one per accepted source shape"""

from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from cardbox.core.assemble import assemble
from cardbox.core.encode import encode_document
from cardbox.core.models import AssemblyOptions, AssemblyResult, Document

__all__ = [
    "decode_file",
    "decode_from_bytes",
    "decode_from_document",
    "decode_from_file_map",
    "encode_document",
    "write_file",
]


def decode_from_bytes(data: bytes, options: Optional[AssemblyOptions] = None) -> AssemblyResult:
    """Decode raw container bytes. Raises MalformedEOCDError if the archive is unrecognisable."""
    return assemble(bytes(data), options)


def decode_from_file_map(files: Mapping[str, bytes], options: Optional[AssemblyOptions] = None) -> AssemblyResult:
    """Decode an already-extracted path -> bytes map (e.g. an unpacked card on disk)."""
    return assemble(files, options)


def decode_from_document(document: Document, options: Optional[AssemblyOptions] = None) -> AssemblyResult:
    """Re-validate an in-memory document by regenerating its files and assembling them."""
    return assemble(document, options)


def decode_file(path: Path, options: Optional[AssemblyOptions] = None) -> AssemblyResult:
    """Read a .card file from disk and decode it."""
    return decode_from_bytes(Path(path).read_bytes(), options)


def read_dir(root: Path) -> dict[str, bytes]:
    """Collect every file under an unpacked card directory as a POSIX-path -> bytes map."""
    root = Path(root)
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def write_file(document: Document, path: Path) -> Path:
    """Encode a document as a stored container and write it to path."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_document(document))
    return path
