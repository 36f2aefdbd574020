"""Protocol for authorized sessions."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Session(Protocol):
    """An authorized session consumed (never acquired) by the engine."""

    def is_valid(self) -> bool:
        """Return True if the session holds a usable credential."""
        ...

    def refresh_if_needed(self) -> None:
        """Refresh an expired credential in place when possible."""
        ...

    def invalidate(self) -> None:
        """Forget the credential so the user must authenticate again."""
        ...
