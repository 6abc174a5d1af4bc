"""In-memory, single-writer note store."""

from __future__ import annotations

import logging
from typing import Iterable

from nebula.note import UNTITLED, Note
from nebula.scanner import normalize_title
from nebula.store.base import NoteNotFoundError

log = logging.getLogger(__name__)


class MemoryNoteStore:
    """Keeps notes in an immutable tuple that is replaced on every change.

    Snapshots handed out earlier keep pointing at the old tuple, so readers
    never see a half-applied mutation.  New notes go to the front.
    """

    def __init__(self, notes: Iterable[Note] = ()) -> None:
        self._notes: tuple[Note, ...] = tuple(notes)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> tuple[Note, ...]:
        return self._notes

    def get(self, note_id: str) -> Note:
        for note in self._notes:
            if note.id == note_id:
                return note
        raise NoteNotFoundError(note_id)

    def find_by_title(self, title: str) -> Note | None:
        """First note whose normalized title equals that of *title*."""
        key = normalize_title(title)
        if not key:
            return None
        for note in self._notes:
            if normalize_title(note.title) == key:
                return note
        return None

    def __len__(self) -> int:
        return len(self._notes)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, title: str = UNTITLED, content: str = "") -> Note:
        note = Note.create(title, content)
        self._notes = (note, *self._notes)
        self._saved(note)
        log.debug("Created note id=%s title=%r", note.id, note.title)
        return note

    def update(
        self,
        note_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> Note:
        current = self.get(note_id)
        updated = current.edit(title=title, content=content)
        self._notes = tuple(updated if n.id == note_id else n for n in self._notes)
        self._saved(updated)
        log.debug("Updated note id=%s", note_id)
        return updated

    def delete(self, note_id: str) -> None:
        note = self.get(note_id)
        self._notes = tuple(n for n in self._notes if n.id != note_id)
        self._deleted(note)
        log.debug("Deleted note id=%s", note_id)

    def upsert_by_title(self, title: str) -> str:
        """Find-or-create by normalized title.

        A blank title never matches (blank titles are unreachable by
        reference), so it always creates a fresh ``Untitled`` note.
        """
        existing = self.find_by_title(title)
        if existing is not None:
            return existing.id
        return self.create(title.strip() or UNTITLED).id

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    def _saved(self, note: Note) -> None:
        """Called after *note* was created or changed."""

    def _deleted(self, note: Note) -> None:
        """Called after *note* was removed."""
