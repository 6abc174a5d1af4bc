"""Backlinks: every note that references a given note.

Resolution goes through :class:`nebula.graph.TitleIndex`, the same index the
graph builder uses, so "M is a backlink of N" holds exactly when the graph
has an edge ``M -> N``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from nebula.graph import TitleIndex
from nebula.scanner import extract_references

if TYPE_CHECKING:
    from nebula.note import Note

DEFAULT_LIMIT = 20


def backlinks_for(
    note: "Note",
    notes: Sequence["Note"],
    limit: int | None = DEFAULT_LIMIT,
    *,
    titles: TitleIndex | None = None,
) -> list["Note"]:
    """Return the notes (other than *note*) whose content references *note*.

    Results keep the order of *notes* and are cut to *limit*; pass ``None``
    for no cap.
    """
    titles = titles if titles is not None else TitleIndex.build(notes)
    if titles.resolve(note.title) != note.id:
        # blank title, or shadowed by a later note with the same title
        return []
    result: list["Note"] = []
    for other in notes:
        if limit is not None and len(result) >= limit:
            break
        if other.id == note.id:
            continue
        if any(titles.resolve(t) == note.id for t in extract_references(other.content)):
            result.append(other)
    return result


def backlinks_panel(
    note: "Note",
    notes: Sequence["Note"],
    limit: int | None = DEFAULT_LIMIT,
    *,
    excerpt_length: int = 120,
    titles: TitleIndex | None = None,
) -> list[dict[str, str]]:
    """Return ``{id, title, excerpt}`` dicts for the backlinks side panel."""
    return [
        {
            "id": other.id,
            "title": other.display_title,
            "excerpt": other.content[:excerpt_length],
        }
        for other in backlinks_for(note, notes, limit, titles=titles)
    ]
