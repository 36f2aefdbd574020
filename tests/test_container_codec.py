import io
import struct
import zipfile

import pytest

from knote.codecs import decode, encode, pack, unpack
from knote.errors import CorruptedContainer
from knote.models import Attachment


def make_zip(entries: dict) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return buffer.getvalue()


def with_compression_method(data: bytes, method: int) -> bytes:
    """Rewrite the compression method of the first entry in both headers."""
    patched = bytearray(data)
    struct.pack_into("<H", patched, patched.find(b"PK\x03\x04") + 8, method)
    struct.pack_into("<H", patched, patched.find(b"PK\x01\x02") + 10, method)
    return bytes(patched)


def test_pack_layout():
    data = pack("body", [Attachment("photo.png", b"\x89PNG"), Attachment("a.pdf", b"%PDF")])
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert sorted(zf.namelist()) == ["attachments/a.pdf", "attachments/photo.png", "note.txt"]
        assert zf.read("note.txt") == b"body"
        assert zf.read("attachments/photo.png") == b"\x89PNG"


def test_pack_encodes_body_with_chosen_encoding():
    data = pack("coração", [], "latin-1")
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert zf.read("note.txt") == "coração".encode("latin-1")


def test_pack_flattens_attachment_paths():
    data = pack("", [Attachment("../../etc/passwd", b"x"), Attachment("C:\\tmp\\img.jpg", b"y")])
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        assert sorted(zf.namelist()) == ["attachments/img.jpg", "attachments/passwd", "note.txt"]


@pytest.mark.parametrize("encoding", ["utf8", "utf-16", "cp1252"])
def test_round_trip(encoding):
    text = "Lista:\n- leite\n- ovos\n- pão de açúcar"
    attachments = [
        Attachment("photo.png", bytes(range(256))),
        Attachment("notes.txt", b"plain"),
        Attachment("empty.bin", b""),
    ]

    body, unpacked = unpack(pack(text, attachments, encoding))

    assert body == decode(encode(text, encoding))
    assert {a.name: a.data for a in unpacked} == {a.name: a.data for a in attachments}


def test_unpack_falls_back_to_first_text_entry():
    data = make_zip({
        "docs/": b"",
        "docs/body.txt": b"the body",
        "other.md": b"second text",
    })
    text, attachments = unpack(data)
    assert text == "the body"
    assert attachments == []


def test_unpack_fallback_body_may_come_from_attachment_entry():
    data = make_zip({
        "image.png": b"\x89PNG",
        "attachments/readme.txt": b"body from first txt entry",
    })
    text, attachments = unpack(data)
    assert text == "body from first txt entry"
    assert attachments == [Attachment("readme.txt", b"body from first txt entry")]


def test_unpack_unsupported_compression_is_corrupted():
    data = with_compression_method(make_zip({"note.txt": b"hi"}), 97)
    with pytest.raises(CorruptedContainer):
        unpack(data)


def test_unpack_without_text_yields_empty_text():
    text, attachments = unpack(make_zip({"image.png": b"\x89PNG"}))
    assert text == ""
    assert attachments == []


def test_unpack_flattens_nested_attachment_entries():
    data = make_zip({
        "note.txt": b"hi",
        "attachments/": b"",
        "attachments/2024/march/photo.png": b"img",
    })
    text, attachments = unpack(data)
    assert text == "hi"
    assert attachments == [Attachment("photo.png", b"img")]


@pytest.mark.parametrize("data", [b"", b"definitely not a zip", b"PK\x03\x04broken"])
def test_unpack_rejects_corrupt_archives(data):
    with pytest.raises(CorruptedContainer):
        unpack(data)
