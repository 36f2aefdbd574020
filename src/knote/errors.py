"""Error taxonomy for the note engine."""


class KnoteError(Exception):
    """Base class for every error the engine reports to callers."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class NotAuthorized(KnoteError):
    """No valid credential; the user must authenticate again."""


class TransientNetwork(KnoteError):
    """Connectivity failure. Nothing local was changed; retry later."""


class RemoteStoreError(KnoteError):
    """The remote store rejected a request for a non-auth, non-network reason."""


class CorruptedIndex(KnoteError):
    """The metadata index could not be parsed."""


class CorruptedContainer(KnoteError):
    """A note archive could not be read."""


class MissingIdentifier(KnoteError):
    """A mutating call was made without a file identifier."""


class InvalidEncoding(KnoteError):
    """The requested text encoding is not known."""


class IndexConflict(KnoteError):
    """The index changed remotely between load and save."""


class FolderExists(RemoteStoreError):
    """A folder with the requested name already exists."""
