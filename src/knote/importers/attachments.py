"""Attachment source reading local files."""

from pathlib import Path
from typing import Iterable

from knote.models import Attachment


class FileAttachmentSource:
    """Loads local files as attachments, named by their base name."""

    def load(self, selection: Iterable[str | Path]) -> list[Attachment]:
        """Read every selected file.

        Raises:
            OSError: If a selected file cannot be read.
        """
        attachments = []
        for item in selection:
            path = Path(item)
            attachments.append(Attachment(name=path.name, data=path.read_bytes()))
        return attachments
