"""Integration tests for the decode/encode pipeline.

Each test drives the public entry points end to end against the shared sample
card (see tests/conftest.py): a RichTextCard written in the data-wrapped
shape and an ImageCard written in the flattened shape.

    .card/metadata.yaml     card_id a1B2c3D4e5, name "Test Card", tags [demo, sample]
    .card/structure.yaml    rt01 (RichTextCard), img01 (ImageCard), layout vertical
    content/rt01.yaml       data: {content_text, toolbar}
    content/img01.yaml      name: Cover, image_file, fit_mode
"""

import io
import zipfile

import pytest

from cardbox.core.models import AssemblyOptions
from cardbox.core.pipeline import (
    decode_file,
    decode_from_bytes,
    decode_from_document,
    decode_from_file_map,
    encode_document,
    read_dir,
    write_file,
)
from cardbox.errors import MalformedEOCDError


def _content(result):
    """Compare documents on everything but the optional raw file map."""
    return result.document.model_dump(exclude={"raw_files"})


def test_decode_from_bytes_matches_file_map(card_files, card_bytes):
    assert _content(decode_from_bytes(card_bytes)) == _content(decode_from_file_map(card_files))


def test_deflate_container_decodes_like_stored(card_files, make_container):
    stored = decode_from_bytes(make_container(card_files))
    deflated = decode_from_bytes(make_container(card_files, compression=zipfile.ZIP_DEFLATED))
    assert _content(deflated) == _content(stored)
    assert deflated.warnings == []


def test_container_member_order_does_not_matter(card_files, make_container):
    """Components follow structure.yaml even when content files come first in the archive."""
    reordered = dict(reversed(list(card_files.items())))
    result = decode_from_bytes(make_container(reordered))
    assert [c.id for c in result.document.components] == ["rt01", "img01"]
    assert list(result.document.configs) == ["rt01", "img01"]


def test_unsupported_entry_becomes_warning(card_files, make_container, set_method):
    data = set_method(make_container(card_files), "content/rt01.yaml", 12)
    result = decode_from_bytes(data)
    assert list(result.document.configs) == ["img01"]
    assert result.warnings[0].startswith("Container entry skipped: content/rt01.yaml")
    assert result.warnings[1] == "Component config not found: content/rt01.yaml"


def test_garbage_bytes_raise_malformed_eocd():
    with pytest.raises(MalformedEOCDError):
        decode_from_bytes(b"definitely not a card")


def test_encode_then_decode_preserves_document(card_bytes):
    first = decode_from_bytes(card_bytes)
    second = decode_from_bytes(encode_document(first.document))
    assert _content(second) == _content(first)
    assert second.warnings == []


def test_encoded_container_is_stored(card_bytes):
    data = encode_document(decode_from_bytes(card_bytes).document)
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        assert {i.compress_type for i in archive.infolist()} == {zipfile.ZIP_STORED}
        assert archive.namelist()[:2] == [".card/metadata.yaml", ".card/structure.yaml"]


def test_encode_is_idempotent(card_bytes):
    """Decoding and re-encoding an encoded card changes nothing."""
    once = encode_document(decode_from_bytes(card_bytes).document)
    twice = encode_document(decode_from_bytes(once).document)
    assert _content(decode_from_bytes(once)) == _content(decode_from_bytes(twice))


def test_raw_files_carried_through_encode(card_files):
    files = dict(card_files, **{"assets/cover.png": b"\x89PNG\r\n"})
    options = AssemblyOptions(keep_raw_files=True)
    doc = decode_from_file_map(files, options).document
    again = decode_from_bytes(encode_document(doc), options).document
    assert again.raw_files["assets/cover.png"] == b"\x89PNG\r\n"


def test_decode_from_document(card_files):
    doc = decode_from_file_map(card_files).document
    result = decode_from_document(doc)
    assert result.document.model_dump() == doc.model_dump()
    assert result.warnings == []


def test_write_file_then_decode_file(tmp_path, card_files):
    doc = decode_from_file_map(card_files).document
    path = write_file(doc, tmp_path / "out" / "sample.card")
    assert path.exists()
    assert decode_file(path).document.model_dump() == doc.model_dump()


def test_read_dir_collects_posix_paths(tmp_path, card_files):
    for name, data in card_files.items():
        target = tmp_path / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    files = read_dir(tmp_path)
    assert files == dict(sorted(card_files.items()))
    assert decode_from_file_map(files).document.metadata.id == "a1B2c3D4e5"
