"""Core Note record."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from nebula.scanner import extract_tags

UNTITLED = "Untitled"

_MARKUP_CHARS_RE = re.compile(r"[#*_`\[\]]")


def new_note_id() -> str:
    return uuid.uuid4().hex[:12]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Note:
    """A single note in the collection.

    ``tags`` is not a constructor argument: it is always recomputed from
    ``content`` so the two cannot drift apart.
    """

    id: str
    title: str
    content: str
    updated_at: datetime
    tags: frozenset[str] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", frozenset(extract_tags(self.content)))

    @classmethod
    def create(
        cls,
        title: str = UNTITLED,
        content: str = "",
        *,
        note_id: str | None = None,
        now: datetime | None = None,
    ) -> "Note":
        return cls(
            id=note_id or new_note_id(),
            title=title,
            content=content,
            updated_at=now or utcnow(),
        )

    @property
    def display_title(self) -> str:
        """Title for lists and labels; blank titles show as ``Untitled``."""
        return self.title if self.title.strip() else UNTITLED

    def edit(
        self,
        *,
        title: str | None = None,
        content: str | None = None,
        now: datetime | None = None,
    ) -> "Note":
        """Return a copy with the given fields changed and ``updated_at`` bumped."""
        return replace(
            self,
            title=self.title if title is None else title,
            content=self.content if content is None else content,
            updated_at=now or utcnow(),
        )

    def excerpt(self, length: int = 80) -> str:
        """Content with markup characters stripped, cut to *length*."""
        return _MARKUP_CHARS_RE.sub("", self.content)[:length]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": sorted(self.tags),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        """Rebuild a note from :meth:`to_dict` output; stored tags are ignored."""
        updated = data.get("updated_at")
        if isinstance(updated, str):
            updated = datetime.fromisoformat(updated)
        elif not isinstance(updated, datetime):
            updated = utcnow()
        if updated.tzinfo is None:
            updated = updated.replace(tzinfo=timezone.utc)
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            content=str(data.get("content") or ""),
            updated_at=updated,
        )
