"""Write a Document back to a stored (zero-compression) card container"""

import io
import zipfile
from collections.abc import Mapping

from cardbox.core.models import Document
from cardbox.core.synthesize import document_to_files


def pack_files(files: Mapping[str, bytes]) -> bytes:
    """Build a ZIP_STORED container from a path -> bytes map, preserving map order."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_STORED) as archive:
        for path, data in files.items():
            archive.writestr(path, data)
    return buffer.getvalue()


def encode_document(document: Document) -> bytes:
    """Serialize a document: metadata, structure, content files, then sorted raw files."""
    return pack_files(document_to_files(document))
