"""Protocol definitions for pluggable collaborators."""

from knote.protocols.attachment_source import AttachmentSource
from knote.protocols.importer import Importer
from knote.protocols.remote_store import APP_SCOPE, RemoteStore
from knote.protocols.session import Session
from knote.protocols.write_strategy import WriteStrategy

__all__ = [
    "APP_SCOPE",
    "AttachmentSource",
    "Importer",
    "RemoteStore",
    "Session",
    "WriteStrategy",
]
