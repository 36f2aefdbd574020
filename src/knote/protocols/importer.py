"""Protocol for local note file readers."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from knote.models import Attachment


@runtime_checkable
class Importer(Protocol):
    """Protocol for local note file readers.

    Implementations handle different local formats (plain text, containers).
    Uses structural subtyping - no inheritance required.
    """

    @property
    def source_type(self) -> str:
        """Return identifier for this format (e.g., 'txt', 'knote')."""
        ...

    def can_handle(self, source: Path) -> bool:
        """Check if this importer can read the given file."""
        ...

    def read(self, source: Path) -> tuple[str, list[Attachment]]:
        """Return the note text and attachments held in the file."""
        ...
