"""Pack and unpack ``.knote`` archives (note body + attachments)."""

import io
import zipfile
import zlib
from typing import Iterable

from knote.codecs.text import decode, encode
from knote.config import DEFAULT_ENCODING
from knote.errors import CorruptedContainer
from knote.models import Attachment
from knote.utils.formats import flatten_name, is_text_entry

NOTE_ENTRY = "note.txt"
ATTACHMENTS_PREFIX = "attachments/"


def pack(text: str, attachments: Iterable[Attachment], encoding: str = DEFAULT_ENCODING) -> bytes:
    """Build a container holding ``text`` and every attachment.

    Args:
        text: Note body
        attachments: Payloads to bundle; only the last path segment of each
            name is kept, and a later duplicate replaces an earlier one
        encoding: Encoding for the body

    Returns:
        The archive bytes

    Raises:
        InvalidEncoding: If ``encoding`` is unknown.
    """
    body = encode(text, encoding)

    entries: dict[str, bytes] = {}
    for attachment in attachments:
        name = flatten_name(attachment.name) or "attachment"
        entries[name] = attachment.data

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(NOTE_ENTRY, body)
        for name, data in entries.items():
            zf.writestr(ATTACHMENTS_PREFIX + name, data)
    return buffer.getvalue()


def unpack(data: bytes) -> tuple[str, list[Attachment]]:
    """Read the body and attachments out of a container.

    The canonical ``note.txt`` entry is preferred; archives built elsewhere
    fall back to their first plain-text entry, and to empty text if there
    is none.

    Raises:
        CorruptedContainer: If the archive cannot be read.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data), "r") as zf:
            infos = [info for info in zf.infolist() if not info.is_dir()]
            names = {info.filename for info in infos}

            if NOTE_ENTRY in names:
                text = decode(zf.read(NOTE_ENTRY))
            else:
                text = ""
                for info in infos:
                    if is_text_entry(info.filename):
                        text = decode(zf.read(info.filename))
                        break

            attachments = []
            for info in infos:
                if not info.filename.startswith(ATTACHMENTS_PREFIX):
                    continue
                name = flatten_name(info.filename)
                if not name:
                    continue
                attachments.append(Attachment(name=name, data=zf.read(info.filename)))
    except (
        zipfile.BadZipFile,
        zipfile.LargeZipFile,
        zlib.error,
        EOFError,
        NotImplementedError,
        RuntimeError,
        ValueError,
    ) as e:
        raise CorruptedContainer(f"Unreadable container: {e}")

    return text, attachments
