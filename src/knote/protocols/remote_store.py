"""Protocol for remote object stores holding the notes area."""

from typing import Optional, Protocol, runtime_checkable

from knote.models import FileFilter, RemoteFile

# Root of the application-private area every folder and file lives under
APP_SCOPE = "appDataFolder"


@runtime_checkable
class RemoteStore(Protocol):
    """Protocol for remote stores.

    Implementations translate their own failures into the errors in
    ``knote.errors`` (NotAuthorized, TransientNetwork, RemoteStoreError).
    Uses structural subtyping - no inheritance required.
    """

    def list_files(self, folder_id: str, filter: Optional[FileFilter] = None) -> list[RemoteFile]:
        """List the non-folder files directly inside ``folder_id``."""
        ...

    def get_file(self, file_id: str) -> RemoteFile:
        """Return current metadata (including version) for one file."""
        ...

    def get_file_content(self, file_id: str) -> bytes:
        """Download a file's full content."""
        ...

    def create_file(self, parent_id: str, name: str, content_type: str, data: bytes) -> RemoteFile:
        """Create a file and return its metadata."""
        ...

    def update_file(
        self,
        file_id: str,
        name: Optional[str] = None,
        content_type: Optional[str] = None,
        data: Optional[bytes] = None,
    ) -> RemoteFile:
        """Replace any of name, content type and content of a file."""
        ...

    def delete_file(self, file_id: str) -> None:
        """Permanently delete a file."""
        ...

    def find_folder(self, parent_id: str, name: str) -> Optional[str]:
        """Return the id of the oldest folder named ``name``, or None."""
        ...

    def create_folder(self, parent_id: str, name: str) -> str:
        """Create a folder and return its id."""
        ...
