"""Note store implementations."""

from nebula.store.base import NoteNotFoundError, NoteStore
from nebula.store.files import FileNoteStore
from nebula.store.memory import MemoryNoteStore

__all__ = ["FileNoteStore", "MemoryNoteStore", "NoteNotFoundError", "NoteStore"]
