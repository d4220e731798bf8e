"""Root test configuration: card file maps and container builders shared across suites"""

import io
import struct
import zipfile

import pytest


SAMPLE_METADATA = """\
chips_standards_version: 1.0.0
card_id: a1B2c3D4e5
name: Test Card
created_at: 2026-01-01T00:00:00Z
modified_at: 2026-01-02T00:00:00Z
tags: [demo, sample]
"""

SAMPLE_STRUCTURE = """\
structure:
  - id: rt01
    type: RichTextCard
  - id: img01
    type: ImageCard
layout:
  type: vertical
"""

SAMPLE_CONTENT = {
    "rt01": "type: RichTextCard\ndata:\n  content_text: \"<p>Hello</p>\"\n  toolbar: true\n",
    "img01": "type: ImageCard\nname: Cover\nimage_file: cover.png\nfit_mode: contain\n",
}


def _sample_files() -> dict[str, bytes]:
    files = {
        ".card/metadata.yaml": SAMPLE_METADATA.encode(),
        ".card/structure.yaml": SAMPLE_STRUCTURE.encode(),
    }
    for cid, text in SAMPLE_CONTENT.items():
        files[f"content/{cid}.yaml"] = text.encode()
    return files


def _build_container(files: dict[str, bytes], compression: int = zipfile.ZIP_STORED, comment: bytes = b"") -> bytes:
    """Write files (in dict order) to an in-memory ZIP using the standard library."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=compression) as archive:
        for path, data in files.items():
            archive.writestr(path, data)
        archive.comment = comment
    return buffer.getvalue()


def _central_offset(data: bytes, name: str) -> int:
    """Locate the central-directory header for a member name."""
    encoded = name.encode()
    offset = data.find(b"PK\x01\x02")
    while offset != -1:
        name_len = struct.unpack_from("<H", data, offset + 28)[0]
        if data[offset + 46:offset + 46 + name_len] == encoded:
            return offset
        offset = data.find(b"PK\x01\x02", offset + 4)
    raise KeyError(name)


def _set_method(data: bytes, name: str, method: int) -> bytes:
    """Rewrite the central-directory compression method of one member."""
    patched = bytearray(data)
    struct.pack_into("<H", patched, _central_offset(data, name) + 10, method)
    return bytes(patched)


def _corrupt_member(data: bytes, name: str) -> bytes:
    """Overwrite a member's payload with bytes that are not a valid deflate stream."""
    info = zipfile.ZipFile(io.BytesIO(data)).getinfo(name)
    name_len, extra_len = struct.unpack_from("<HH", data, info.header_offset + 26)
    start = info.header_offset + 30 + name_len + extra_len
    patched = bytearray(data)
    patched[start:start + info.compress_size] = b"\xff" * info.compress_size
    return bytes(patched)


@pytest.fixture(name="card_files")
def card_files_fixture():
    """A valid two-component card as a path -> bytes map."""
    return _sample_files()


@pytest.fixture(name="card_bytes")
def card_bytes_fixture(card_files):
    """The sample card as a stored container."""
    return _build_container(card_files)


@pytest.fixture(name="make_container")
def make_container_fixture():
    return _build_container


@pytest.fixture(name="set_method")
def set_method_fixture():
    return _set_method


@pytest.fixture(name="corrupt_member")
def corrupt_member_fixture():
    return _corrupt_member
