"""Directory-backed note store.

Each note lives in ``<notes_dir>/<id>.md``::

    ---
    id: 3f9c0a1b2d4e
    title: Reading list
    updated_at: '2026-10-19T09:30:00+00:00'
    ---
    Books to read: [[Dune]] #books

The front-matter holds the record fields; the body is the raw content.
Tags are not written: they are recomputed from the body on load.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from nebula.config import Settings
from nebula.note import Note
from nebula.store.memory import MemoryNoteStore

log = logging.getLogger(__name__)

# YAML front-matter block
_FRONTMATTER_RE = re.compile(r"^---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|$)", re.DOTALL)


def parse_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split YAML front-matter from body text.

    Returns ``(metadata_dict, body)``; ``metadata_dict`` is empty when there
    is no front-matter block or it is not a YAML mapping.
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        meta = yaml.safe_load(match.group(1) or "") or {}
    except yaml.YAMLError:
        meta = {}
    if not isinstance(meta, dict):
        meta = {}
    return meta, text[match.end() :]


def dump_note(note: Note) -> str:
    """Serialise *note* as front-matter + body."""
    meta = {
        "id": note.id,
        "title": note.title,
        "updated_at": note.updated_at.isoformat(),
    }
    header = yaml.safe_dump(meta, allow_unicode=True, sort_keys=False)
    return f"---\n{header}---\n{note.content}"


def load_note(path: Path) -> Note:
    """Read one ``.md`` file; the file stem stands in for a missing id."""
    meta, body = parse_frontmatter(path.read_text(encoding="utf-8"))
    updated = meta.get("updated_at")
    if updated is None:
        updated = datetime.fromtimestamp(path.stat().st_mtime).astimezone()
    return Note.from_dict(
        {
            "id": meta.get("id") or path.stem,
            "title": meta.get("title") or "",
            "content": body,
            "updated_at": updated,
        }
    )


class FileNoteStore(MemoryNoteStore):
    """A :class:`MemoryNoteStore` mirrored to a directory of Markdown files.

    A note loaded from disk keeps writing to the file it came from, even
    when that file's name differs from its id.  New notes go to ``<id>.md``.
    """

    def __init__(self, notes_dir: Path | str) -> None:
        self.notes_dir = Path(notes_dir)
        self.notes_dir.mkdir(parents=True, exist_ok=True)
        self._paths: dict[str, Path] = {}
        super().__init__(self._load())

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "FileNoteStore":
        """Open the store at ``settings.notes_dir``."""
        return cls((settings or Settings()).notes_dir)

    def _load(self) -> list[Note]:
        notes: list[Note] = []
        for path in sorted(self.notes_dir.glob("*.md")):
            try:
                note = load_note(path)
            except (OSError, UnicodeDecodeError, ValueError) as exc:
                log.warning("Skipping unreadable note %s: %s", path.name, exc)
                continue
            if note.id in self._paths:
                log.warning(
                    "Skipping %s: id %r already loaded from %s",
                    path.name,
                    note.id,
                    self._paths[note.id].name,
                )
                continue
            self._paths[note.id] = path
            notes.append(note)
        notes.sort(key=lambda n: n.updated_at, reverse=True)
        log.info("Loaded %d notes from %s", len(notes), self.notes_dir)
        return notes

    def path_for(self, note_id: str) -> Path:
        return self._paths.get(note_id, self.notes_dir / f"{note_id}.md")

    def _saved(self, note: Note) -> None:
        path = self.path_for(note.id)
        path.write_text(dump_note(note), encoding="utf-8")
        self._paths[note.id] = path

    def _deleted(self, note: Note) -> None:
        self.path_for(note.id).unlink(missing_ok=True)
        self._paths.pop(note.id, None)
