"""knote - rich text notes with attachments, stored in a private cloud area."""

__version__ = "0.1.0"
