"""notesync - multi-device note sync backend."""

__version__ = "0.1.0"
