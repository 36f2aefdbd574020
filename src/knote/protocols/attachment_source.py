"""Protocol for local attachment providers."""

from typing import Iterable, Protocol, runtime_checkable

from knote.models import Attachment


@runtime_checkable
class AttachmentSource(Protocol):
    """Turns a local selection into opaque attachment payloads."""

    def load(self, selection: Iterable[str]) -> list[Attachment]:
        ...
