"""Importer for plain-text note files."""

from pathlib import Path

from knote.codecs import decode
from knote.models import Attachment
from knote.utils.formats import NoteFormat, classify, is_text_entry


class TextImporter:
    """Importer for ``.txt`` (and other plain-text) files of any encoding."""

    source_type = "txt"

    def can_handle(self, source: Path) -> bool:
        return (
            source.is_file()
            and is_text_entry(source.name)
            and classify(source.name) is NoteFormat.PLAIN_TEXT
        )

    def read(self, source: Path) -> tuple[str, list[Attachment]]:
        return decode(source.read_bytes()), []
