"""Utility functions for knote."""

from knote.utils.formats import NoteFormat, classify, note_file_name, representation_for

__all__ = ["NoteFormat", "classify", "note_file_name", "representation_for"]
