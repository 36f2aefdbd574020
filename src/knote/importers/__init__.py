"""Readers and writers for local note files."""

from pathlib import Path
from typing import Optional

from knote.importers.attachments import FileAttachmentSource
from knote.importers.container_importer import ContainerImporter
from knote.importers.text_importer import TextImporter
from knote.importers.writer import write_note_file
from knote.protocols import Importer

# Registry of available importers
_IMPORTERS: list[Importer] = [
    ContainerImporter(),
    TextImporter(),
]


def get_importer(source: Path | str) -> Optional[Importer]:
    """Find an importer that can read the given file.

    Args:
        source: Path to a local note file

    Returns:
        An Importer instance that can handle the file, or None
    """
    source_path = Path(source)
    for importer in _IMPORTERS:
        if importer.can_handle(source_path):
            return importer
    return None


def register_importer(importer: Importer) -> None:
    """Register a custom importer.

    Args:
        importer: An object implementing the Importer protocol
    """
    _IMPORTERS.append(importer)


__all__ = [
    "ContainerImporter",
    "FileAttachmentSource",
    "TextImporter",
    "get_importer",
    "register_importer",
    "write_note_file",
]
