"""Container vs plain-text classification and note file naming.

Every read and write path decides how a note is stored through this module.
"""

import re
from enum import Enum
from pathlib import PurePosixPath
from typing import Optional, Sequence

CONTAINER_EXTENSION = ".knote"
TEXT_EXTENSION = ".txt"

CONTAINER_CONTENT_TYPE = "application/zip"
TEXT_CONTENT_TYPE = "text/plain"

# Extensions and content types that mark a file as an archive
CONTAINER_EXTENSIONS = {CONTAINER_EXTENSION, ".zip"}
CONTAINER_CONTENT_TYPES = {
    CONTAINER_CONTENT_TYPE,
    "application/x-zip-compressed",
    "application/x-zip",
}

# Bodies found inside foreign archives
TEXT_EXTENSIONS = (".txt", ".text", ".md")

_UNSAFE_TITLE_CHARS = re.compile(r"[^A-Za-z0-9\-_. ]")


class NoteFormat(str, Enum):
    CONTAINER = "container"
    PLAIN_TEXT = "plain-text"

    @property
    def extension(self) -> str:
        return CONTAINER_EXTENSION if self is NoteFormat.CONTAINER else TEXT_EXTENSION

    @property
    def content_type(self) -> str:
        return CONTAINER_CONTENT_TYPE if self is NoteFormat.CONTAINER else TEXT_CONTENT_TYPE


def classify(name: str, content_type: Optional[str] = None) -> NoteFormat:
    """Decide how a stored file must be read.

    Both the extension and the content type are checked, since a store may
    drop or normalize content-type metadata.

    Args:
        name: Remote or local file name
        content_type: Declared content type, if any

    Returns:
        NoteFormat.CONTAINER or NoteFormat.PLAIN_TEXT
    """
    if PurePosixPath(name or "").suffix.lower() in CONTAINER_EXTENSIONS:
        return NoteFormat.CONTAINER
    if content_type and content_type.split(";")[0].strip().lower() in CONTAINER_CONTENT_TYPES:
        return NoteFormat.CONTAINER
    return NoteFormat.PLAIN_TEXT


def representation_for(attachments: Sequence) -> NoteFormat:
    """Notes with attachments are stored as containers, others as plain text."""
    return NoteFormat.CONTAINER if attachments else NoteFormat.PLAIN_TEXT


def is_text_entry(name: str) -> bool:
    return name.lower().endswith(TEXT_EXTENSIONS)


def safe_title(title: Optional[str]) -> str:
    """Replace characters outside ``[A-Za-z0-9-_. ]`` with underscores."""
    if not title:
        return "note"
    return _UNSAFE_TITLE_CHARS.sub("_", title)


def note_file_name(title: Optional[str], fmt: NoteFormat, seq: Optional[int] = None) -> str:
    """Build the stored file name, e.g. ``0001 - Groceries.txt``.

    Args:
        title: Note title as typed by the user
        fmt: Storage representation (selects the extension)
        seq: Sequence number to prefix, zero-padded to four digits
    """
    base = safe_title(title)
    if seq is not None:
        base = f"{seq:04d} - {base}"
    return base + fmt.extension


def flatten_name(name: str) -> str:
    """Keep only the final path segment of an attachment name."""
    return name.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
