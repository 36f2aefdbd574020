"""Authorized sessions consumed by the engine."""

from knote.auth.session import SCOPES, DriveSession, StaticSession, authorize

__all__ = ["SCOPES", "DriveSession", "StaticSession", "authorize"]
