"""Lookup of the notes folder inside the application-private area."""

import logging

from knote.errors import FolderExists
from knote.protocols import APP_SCOPE, RemoteStore

logger = logging.getLogger(__name__)


class NotesArea:
    """The folder holding every note file and the metadata index.

    The folder id is looked up on every call and never cached.
    """

    def __init__(self, store: RemoteStore, name: str = "notes", parent: str = APP_SCOPE):
        self.store = store
        self.name = name
        self.parent = parent

    def resolve(self) -> str:
        """Return the notes folder id, creating the folder on first access."""
        folder_id = self.store.find_folder(self.parent, self.name)
        if folder_id:
            return folder_id

        try:
            created = self.store.create_folder(self.parent, self.name)
            logger.info(f"Created notes folder '{self.name}' ({created})")
        except FolderExists:
            # Another client created it first
            created = None

        # Two first accesses may each create a folder; both then settle on the oldest
        folder_id = self.store.find_folder(self.parent, self.name) or created
        if folder_id is None:
            raise FolderExists(f"Notes folder '{self.name}' exists but cannot be found")
        return folder_id
