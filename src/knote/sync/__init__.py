"""Reconciliation and CRUD sequences against a remote store."""

from knote.sync.area import NotesArea
from knote.sync.orchestrator import MutationResult, NoteOrchestrator, NoteWrite
from knote.sync.reconcile import Reconciler

__all__ = ["MutationResult", "NoteOrchestrator", "NoteWrite", "NotesArea", "Reconciler"]
