"""Importer for ``.knote`` and ``.zip`` containers."""

from pathlib import Path

from knote.codecs import unpack
from knote.models import Attachment
from knote.utils.formats import NoteFormat, classify


class ContainerImporter:
    """Importer for note containers saved locally."""

    source_type = "knote"

    def can_handle(self, source: Path) -> bool:
        """Check if this is an existing container file."""
        return source.is_file() and classify(source.name) is NoteFormat.CONTAINER

    def read(self, source: Path) -> tuple[str, list[Attachment]]:
        """Unpack the container.

        Raises:
            CorruptedContainer: If the file is not a readable archive.
        """
        return unpack(source.read_bytes())
