"""Session objects wrapping Google OAuth credentials."""

import logging
from pathlib import Path
from typing import Optional

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from knote.errors import NotAuthorized, TransientNetwork

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/drive.appdata",
    "https://www.googleapis.com/auth/drive.file",
]


class DriveSession:
    """Credentials for the Drive store, persisted to a token file."""

    def __init__(self, credentials: Optional[Credentials], token_path: Optional[Path] = None):
        self.credentials = credentials
        self.token_path = Path(token_path) if token_path else None

    @classmethod
    def from_token_file(cls, token_path: Path | str) -> "DriveSession":
        """Restore a session saved by ``authorize``.

        Raises:
            NotAuthorized: If there is no usable token file.
        """
        path = Path(token_path)
        if not path.exists():
            raise NotAuthorized("No token found, please authenticate first.")
        try:
            credentials = Credentials.from_authorized_user_file(str(path), SCOPES)
        except ValueError as e:
            raise NotAuthorized(f"Unreadable token file {path}: {e}")
        return cls(credentials, path)

    def is_valid(self) -> bool:
        return self.credentials is not None and self.credentials.valid

    def refresh_if_needed(self) -> None:
        """Refresh expired credentials using the refresh token.

        Raises:
            NotAuthorized: If the grant was rejected; the session is invalidated.
            TransientNetwork: If the token endpoint could not be reached; the
                token file is kept for a later retry.
        """
        credentials = self.credentials
        if credentials is None or credentials.valid or not credentials.refresh_token:
            return
        try:
            credentials.refresh(Request())
        except RefreshError as e:
            logger.info(f"Credential refresh rejected ({e}); invalidating session")
            self.invalidate()
            raise NotAuthorized(f"Credential refresh rejected: {e}")
        except TransportError as e:
            raise TransientNetwork(f"Offline or network error: {e}")
        logger.info("Refreshed Drive credentials")
        self._persist()

    def invalidate(self) -> None:
        """Drop the credential and its token file."""
        self.credentials = None
        if self.token_path is not None and self.token_path.exists():
            logger.info(f"Removing token file {self.token_path}")
            self.token_path.unlink()

    def _persist(self) -> None:
        if self.token_path is None or self.credentials is None:
            return
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(self.credentials.to_json())


class StaticSession:
    """Session for stores that need no credential (e.g. the SQLite store)."""

    def __init__(self, valid: bool = True):
        self._valid = valid

    def is_valid(self) -> bool:
        return self._valid

    def refresh_if_needed(self) -> None:
        return None

    def invalidate(self) -> None:
        self._valid = False


def authorize(credentials_path: Path | str, token_path: Path | str, port: int = 0) -> DriveSession:
    """Run the installed-app consent flow and save the resulting token.

    Args:
        credentials_path: OAuth client secrets JSON from the Cloud Console
        token_path: Where to write the authorized-user token
        port: Local redirect port (0 picks a free one)
    """
    credentials_path = Path(credentials_path)
    if not credentials_path.exists():
        raise NotAuthorized(
            f"OAuth client credentials not found at {credentials_path}. "
            "Create an OAuth client ID (desktop app) in the Google Cloud Console "
            "and save its JSON there."
        )

    flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)
    credentials = flow.run_local_server(port=port)

    session = DriveSession(credentials, Path(token_path))
    session._persist()
    return session
