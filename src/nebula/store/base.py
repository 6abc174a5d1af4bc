"""Note store protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from nebula.note import UNTITLED, Note


class NoteNotFoundError(KeyError):
    """Raised when a store is asked for an id it does not hold."""


@runtime_checkable
class NoteStore(Protocol):
    """Owner of the canonical note collection.

    The core only ever reads :meth:`snapshot` results; every change goes
    through the mutation methods below, which recompute derived fields
    before storing.
    """

    def snapshot(self) -> tuple[Note, ...]:
        """Return the current collection; later mutations never alter it."""
        ...

    def get(self, note_id: str) -> Note:
        """Return one note or raise :class:`NoteNotFoundError`."""
        ...

    def create(self, title: str = UNTITLED, content: str = "") -> Note:
        ...

    def update(self, note_id: str, *, title: str | None = None, content: str | None = None) -> Note:
        """Change title and/or content; tags and ``updated_at`` are recomputed."""
        ...

    def delete(self, note_id: str) -> None:
        ...

    def upsert_by_title(self, title: str) -> str:
        """Return the id of the note titled *title*, creating it if needed."""
        ...
