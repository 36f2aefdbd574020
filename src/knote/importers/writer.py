"""Write a note to a local file."""

from pathlib import Path
from typing import Sequence

from knote.codecs import encode, pack
from knote.config import DEFAULT_ENCODING
from knote.models import Attachment


def write_note_file(
    path: Path | str,
    text: str,
    attachments: Sequence[Attachment] = (),
    encoding: str = DEFAULT_ENCODING,
) -> Path:
    """Save a note locally.

    A ``.txt`` target gets the encoded text only (attachments are dropped);
    any other target gets a container.

    Returns:
        The path written
    """
    target = Path(path)
    if target.suffix.lower() == ".txt":
        data = encode(text, encoding)
    else:
        data = pack(text, attachments, encoding)
    target.write_bytes(data)
    return target
