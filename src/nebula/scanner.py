"""Tag and ``[[reference]]`` scanner.

Every component that needs to recognise a reference marker goes through
:data:`REFERENCE_RE` and :func:`normalize_title` so that the graph, the
backlink panel and the renderer can never disagree about what a marker is.
"""

from __future__ import annotations

import re

# [[Target]]; the first "]]" closes the marker, the target may be empty
REFERENCE_RE = re.compile(r"\[\[([^\]]*)\]\]")
# #tag at start of text or after whitespace
_TAG_RE = re.compile(r"(?:^|(?<=\s))#([A-Za-z0-9_-]+)")


def normalize_title(title: str | None) -> str:
    """Return the resolution key for *title*: trimmed and lowercased."""
    return (title or "").strip().lower()


def extract_tags(text: str) -> set[str]:
    """Return the lowercased ``#tag`` tokens found in *text*."""
    return {m.group(1).lower() for m in _TAG_RE.finditer(text or "")}


def extract_references(text: str) -> list[str]:
    """Return every ``[[Target]]`` target in *text*, trimmed, in order.

    Duplicates are kept: two markers to the same note are two references.
    """
    return [m.group(1).strip() for m in REFERENCE_RE.finditer(text or "")]
