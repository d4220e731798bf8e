"""ZIP container reading: EOCD lookup, central-directory walk, and entry extraction

Only the subset cards use is honoured: single disk, no ZIP64, no encryption,
stored (0) or raw deflate (8) entries. Anything else degrades per entry rather
than failing the whole container.
"""

import logging
import struct
import zlib

from cardbox.core.models import ArchiveEntry, CompressionMethod
from cardbox.errors import (
    ContainerError,
    CorruptEntryError,
    MalformedEOCDError,
    UnsupportedEntryError,
)


logger = logging.getLogger(__name__)

EOCD_SIGNATURE = 0x06054B50
CENTRAL_SIGNATURE = 0x02014B50

EOCD_SIZE = 22
CENTRAL_HEADER_SIZE = 46
LOCAL_HEADER_SIZE = 30
MAX_COMMENT_SIZE = 0xFFFF


def find_eocd(data: bytes) -> int:
    """Return the offset of the End-of-Central-Directory record, scanning backward from the tail."""
    last = len(data) - EOCD_SIZE
    if last < 0:
        raise MalformedEOCDError(f"Container too small ({len(data)} bytes) to hold an EOCD record")
    stop = max(0, last - MAX_COMMENT_SIZE)
    for offset in range(last, stop - 1, -1):
        if struct.unpack_from("<I", data, offset)[0] == EOCD_SIGNATURE:
            return offset
    raise MalformedEOCDError("End-of-Central-Directory signature not found")


def scan_entries(data: bytes) -> list[ArchiveEntry]:
    """Walk the central directory and return its file entries (directories skipped).

    The walk stops quietly at the first record with a bad signature or one that
    runs past the buffer; entries read before that point are kept.
    """
    eocd = find_eocd(data)
    entry_count = struct.unpack_from("<H", data, eocd + 10)[0]
    offset = struct.unpack_from("<I", data, eocd + 16)[0]

    entries: list[ArchiveEntry] = []
    for _ in range(entry_count):
        try:
            (signature,) = struct.unpack_from("<I", data, offset)
            (method,) = struct.unpack_from("<H", data, offset + 10)
            compressed, uncompressed = struct.unpack_from("<II", data, offset + 20)
            name_len, extra_len, comment_len = struct.unpack_from("<HHH", data, offset + 28)
            (local_offset,) = struct.unpack_from("<I", data, offset + 42)
        except struct.error:
            logger.debug("Central directory truncated at offset %d", offset)
            break
        if signature != CENTRAL_SIGNATURE:
            logger.debug("Central directory ended early at offset %d", offset)
            break

        name_start = offset + CENTRAL_HEADER_SIZE
        path = bytes(data[name_start:name_start + name_len]).decode("utf-8", errors="replace")
        entry = ArchiveEntry(
            path=path,
            compression_method=method,
            compressed_size=compressed,
            uncompressed_size=uncompressed,
            local_header_offset=local_offset,
        )
        if not entry.is_directory:
            entries.append(entry)

        offset += CENTRAL_HEADER_SIZE + name_len + extra_len + comment_len

    return entries


def _data_start(data: bytes, entry: ArchiveEntry) -> int:
    """Resolve where an entry's bytes begin; local extra length may differ from the central one."""
    try:
        name_len, extra_len = struct.unpack_from("<HH", data, entry.local_header_offset + 26)
    except struct.error as e:
        raise UnsupportedEntryError(entry.path, f"local header out of range ({e})") from e
    return entry.local_header_offset + LOCAL_HEADER_SIZE + name_len + extra_len


def _inflate_raw(payload: bytes) -> bytes:
    """Decompress a raw deflate stream (no zlib header or checksum)."""
    inflater = zlib.decompressobj(-zlib.MAX_WBITS)
    out = inflater.decompress(payload) + inflater.flush()
    if not inflater.eof:
        raise zlib.error("incomplete deflate stream")
    return out


def read_entry(data: bytes, entry: ArchiveEntry) -> bytes:
    """Return one entry's decoded content, or raise a per-entry ContainerError."""
    start = _data_start(data, entry)
    if entry.compression_method == CompressionMethod.stored:
        return bytes(data[start:start + entry.uncompressed_size])
    if entry.compression_method == CompressionMethod.deflate:
        try:
            return _inflate_raw(bytes(data[start:start + entry.compressed_size]))
        except zlib.error as e:
            raise CorruptEntryError(entry.path, f"deflate failed: {e}") from e
    raise UnsupportedEntryError(entry.path, f"unsupported compression method {entry.compression_method}")


def read_entries(data: bytes) -> list[tuple[str, bytes | ContainerError]]:
    """Decode every file entry, pairing each path with its bytes or the error that degraded it."""
    results: list[tuple[str, bytes | ContainerError]] = []
    for entry in scan_entries(data):
        try:
            content = read_entry(data, entry)
        except ContainerError as e:
            logger.warning("Container entry degraded: %s", e)
            results.append((entry.path, e))
            continue
        logger.debug("Read %s (%d bytes)", entry.path, len(content))
        results.append((entry.path, content))
    return results


def extract_report(data: bytes) -> tuple[dict[str, bytes], list[ContainerError]]:
    """Extract all file entries, returning the file map plus every per-entry error.

    A deflate entry that fails to decompress maps to b"" so its path stays
    visible; entries with unsupported methods or unreadable headers are left out.
    """
    files: dict[str, bytes] = {}
    errors: list[ContainerError] = []
    for path, result in read_entries(data):
        if isinstance(result, ContainerError):
            errors.append(result)
            if isinstance(result, CorruptEntryError):
                files[path] = b""
        else:
            files[path] = result
    return files, errors


def extract(data: bytes) -> dict[str, bytes]:
    """Extract all file entries into a path -> bytes map (see extract_report)."""
    files, _ = extract_report(data)
    return files
