"""NoteIndex: read-only query facade over one note snapshot."""

from __future__ import annotations

from functools import cached_property
from typing import Any, Iterable

from nebula.backlinks import backlinks_for, backlinks_panel
from nebula.config import Settings
from nebula.graph import ReferenceGraph, TitleIndex, build_graph, find_title_collisions
from nebula.note import Note

# "use the configured limit"; None already means "no cap"
_CONFIGURED: Any = object()


class NoteIndex:
    """Derives tags, graph and backlink views from an immutable snapshot.

    Build a new index whenever the store hands out a new snapshot; nothing
    here is updated in place.  List caps and excerpt length come from
    *settings*; every capped method also takes an explicit ``limit``, where
    ``None`` means no cap.
    """

    def __init__(self, notes: Iterable[Note], *, settings: Settings | None = None) -> None:
        self.settings = settings or Settings()
        self.snapshot: tuple[Note, ...] = tuple(notes)
        self.notes: dict[str, Note] = {n.id: n for n in self.snapshot}
        self.tags: dict[str, list[str]] = {}
        for note in self.snapshot:
            for tag in sorted(note.tags):
                self.tags.setdefault(tag, []).append(note.id)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @cached_property
    def titles(self) -> TitleIndex:
        return TitleIndex.build(self.snapshot)

    @cached_property
    def graph(self) -> ReferenceGraph:
        return build_graph(self.snapshot, self.titles)

    def backlinks(self, note_id: str, limit: int | None = _CONFIGURED) -> list[Note]:
        if limit is _CONFIGURED:
            limit = self.settings.backlink_limit
        return backlinks_for(self.notes[note_id], self.snapshot, limit, titles=self.titles)

    def backlinks_panel(self, note_id: str, limit: int | None = _CONFIGURED) -> list[dict[str, str]]:
        if limit is _CONFIGURED:
            limit = self.settings.backlink_limit
        return backlinks_panel(
            self.notes[note_id],
            self.snapshot,
            limit,
            excerpt_length=self.settings.excerpt_length,
            titles=self.titles,
        )

    def dangling(self, limit: int | None = _CONFIGURED) -> list[tuple[str, int]]:
        """Missing titles by reference count."""
        if limit is _CONFIGURED:
            limit = self.settings.dangling_limit
        return self.graph.top_dangling(limit)

    def title_collisions(self) -> dict[str, list[str]]:
        return find_title_collisions(self.snapshot)

    def resolve(self, title: str) -> str | None:
        return self.titles.resolve(title)

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------

    def search(self, query: str) -> list[Note]:
        """Case-insensitive match on title, content or tags, newest first."""
        q = query.strip().lower()
        if q:
            hits = [
                n
                for n in self.snapshot
                if q in n.title.lower()
                or q in n.content.lower()
                or any(q in t for t in n.tags)
            ]
        else:
            hits = list(self.snapshot)
        return sorted(hits, key=lambda n: n.updated_at, reverse=True)

    def notes_with_tag(self, tag: str) -> list[Note]:
        ids = self.tags.get(tag.lower().lstrip("#"), [])
        return [self.notes[i] for i in ids]
