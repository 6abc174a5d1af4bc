"""Markup-to-render-tree transform.

The dialect is small: fenced code blocks, ``#``/``##``/``###`` headings,
``**bold**``, ``*italic*``, ```code```, ``[label](url)`` links,
``[[Reference]]`` markers and blank-line paragraphs.

:func:`render` makes one left-to-right pass and returns an immutable tree.
Text is kept raw inside the tree and escaped only by :func:`to_html`, which
emits nothing outside a fixed tag vocabulary.  Malformed constructs fall
back to literal text, so every string renders.

Precedence
----------
* fence contents are opaque to every other rule
* ``**`` is tried before ``*``, and an italic span skips over complete
  bold spans when looking for its closing marker
* reference markers are tried before links
* bold, italic and links stay on one line; nothing crosses a paragraph break
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Iterator, Union

from nebula.scanner import REFERENCE_RE

SAFE_SCHEMES = frozenset({"http", "https", "mailto"})

_FENCE = "```"
_PARAGRAPH_BREAK_RE = re.compile(r"\n{2,}")
_HEADING_RE = re.compile(r"(#{1,3}) ([^\n]*)")
_SPECIAL_RE = re.compile(r"[`*\[\n]")
_SCHEME_RE = re.compile(r"([A-Za-z][A-Za-z0-9+.-]*):")


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class InlineCode:
    code: str


@dataclass(frozen=True)
class Reference:
    """A ``[[Target]]`` marker; ``target`` is the trimmed title."""

    target: str


@dataclass(frozen=True)
class Strong:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Emphasis:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Link:
    href: str
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Heading:
    level: int
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class CodeBlock:
    code: str
    info: str = ""


@dataclass(frozen=True)
class Paragraph:
    children: tuple["Block", ...]


@dataclass(frozen=True)
class Document:
    children: tuple[Paragraph, ...]


Inline = Union[Text, InlineCode, Reference, Strong, Emphasis, Link]
Block = Union[Inline, Heading, CodeBlock]
Node = Union[Block, Paragraph, Document]


# ---------------------------------------------------------------------------
# Fences
# ---------------------------------------------------------------------------


def _find_closing_fence(text: str, start: int) -> int:
    pos = start
    while pos < len(text):
        if text.startswith(_FENCE, pos):
            return pos
        nl = text.find("\n", pos)
        if nl == -1:
            break
        pos = nl + 1
    return -1


def _split_fences(text: str) -> list[Union[str, CodeBlock]]:
    """Cut *text* into flow strings and :class:`CodeBlock` items.

    Opening and closing fences must both start a line.  The rest of the
    opening line is the info string.  Only the closing backticks are
    consumed; the rest of that line stays in the flow after the block.
    """
    parts: list[Union[str, CodeBlock]] = []
    flow_start = 0
    pos = 0
    while pos < len(text):
        if text.startswith(_FENCE, pos):
            open_end = text.find("\n", pos)
            if open_end == -1:
                break
            close = _find_closing_fence(text, open_end + 1)
            if close == -1:
                break
            code = text[open_end + 1 : close]
            if code.endswith("\n"):
                code = code[:-1]
            parts.append(text[flow_start:pos])
            parts.append(CodeBlock(code, text[pos + len(_FENCE) : open_end].strip()))
            close_end = text.find("\n", close)
            if close_end == -1:
                close_end = len(text)
            flow_start = close + len(_FENCE)
            pos = close_end + 1
            continue
        nl = text.find("\n", pos)
        if nl == -1:
            break
        pos = nl + 1
    parts.append(text[flow_start:])
    return parts


# ---------------------------------------------------------------------------
# Inline spans
# ---------------------------------------------------------------------------


def is_safe_href(url: str) -> bool:
    """True when *url* has no scheme or one of :data:`SAFE_SCHEMES`."""
    # browsers ignore whitespace and control characters inside a scheme
    cleaned = "".join(ch for ch in url if ch > " ")
    m = _SCHEME_RE.match(cleaned)
    return m is None or m.group(1).lower() in SAFE_SCHEMES


def _find_italic_close(s: str, start: int, line_end: int) -> int:
    pos = start
    while pos < line_end:
        if s.startswith("**", pos):
            bold_close = s.find("**", pos + 2, line_end)
            if bold_close > pos + 2:
                pos = bold_close + 2
                continue
        if s[pos] == "*":
            return pos
        pos += 1
    return -1


def _span_at(s: str, i: int) -> tuple[Inline, int] | None:
    """Try to read one inline construct starting at ``s[i]``."""
    c = s[i]
    line_end = s.find("\n", i)
    if line_end == -1:
        line_end = len(s)

    if c == "`":
        if s.startswith("``", i):
            return None
        close = s.find("`", i + 1)
        if close == -1:
            return None
        return InlineCode(s[i + 1 : close]), close + 1

    if c == "[":
        m = REFERENCE_RE.match(s, i)
        if m:
            return Reference(m.group(1).strip()), m.end()
        label_end = s.find("](", i + 1, line_end)
        if label_end == -1:
            return None
        url_end = s.find(")", label_end + 2, line_end)
        if url_end == -1:
            return None
        href = s[label_end + 2 : url_end].strip()
        if not is_safe_href(href):
            return None
        return Link(href, _parse_inline(s[i + 1 : label_end])), url_end + 1

    if c == "*":
        if s.startswith("**", i):
            close = s.find("**", i + 2, line_end)
            if close > i + 2:
                return Strong(_parse_inline(s[i + 2 : close])), close + 2
        close = _find_italic_close(s, i + 1, line_end)
        if close > i + 1:
            return Emphasis(_parse_inline(s[i + 1 : close])), close + 1

    return None


def _scan(s: str, *, headings: bool, at_line_start: bool = True) -> tuple[Block, ...]:
    nodes: list[Block] = []
    buf: list[str] = []

    def flush() -> None:
        if buf:
            nodes.append(Text("".join(buf)))
            buf.clear()

    i = 0
    line_start = at_line_start
    while i < len(s):
        if headings and line_start:
            m = _HEADING_RE.match(s, i)
            if m:
                flush()
                nodes.append(Heading(len(m.group(1)), _parse_inline(m.group(2))))
                i = m.end()
                line_start = False
                continue
        m = _SPECIAL_RE.search(s, i)
        if m is None:
            buf.append(s[i:])
            break
        if m.start() > i:
            buf.append(s[i : m.start()])
            i = m.start()
            line_start = False
        if s[i] == "\n":
            buf.append("\n")
            i += 1
            line_start = True
            continue
        span = _span_at(s, i)
        if span is None:
            buf.append(s[i])
            i += 1
        else:
            flush()
            nodes.append(span[0])
            i = span[1]
        line_start = False
    flush()
    return tuple(nodes)


def _parse_inline(s: str) -> tuple[Inline, ...]:
    return _scan(s, headings=False)  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


def render(text: str) -> Document:
    """Transform raw note markup into a :class:`Document` tree."""
    paragraphs: list[list[Union[str, CodeBlock]]] = [[]]
    for part in _split_fences(text or ""):
        if isinstance(part, CodeBlock):
            paragraphs[-1].append(part)
            continue
        for n, segment in enumerate(_PARAGRAPH_BREAK_RE.split(part)):
            if n:
                paragraphs.append([])
            paragraphs[-1].append(segment)

    result: list[Paragraph] = []
    for items in paragraphs:
        if all(isinstance(it, str) and not it.strip() for it in items):
            continue
        children: list[Block] = []
        for n, item in enumerate(items):
            if isinstance(item, CodeBlock):
                children.append(item)
            elif item:
                # flow right after a code block starts mid-line
                after_fence = n > 0 and isinstance(items[n - 1], CodeBlock)
                children.extend(_scan(item, headings=True, at_line_start=not after_fence))
        result.append(Paragraph(tuple(children)))
    return Document(tuple(result))


def walk(node: Node) -> Iterator[Node]:
    """Yield *node* and all of its descendants, depth first."""
    yield node
    for child in getattr(node, "children", ()):
        yield from walk(child)


def references_in(tree: Node) -> list[str]:
    """Targets of every :class:`Reference` node in *tree*, in document order."""
    return [n.target for n in walk(tree) if isinstance(n, Reference)]


# ---------------------------------------------------------------------------
# HTML serialisation
# ---------------------------------------------------------------------------


def _text(value: str) -> str:
    return html.escape(value, quote=False)


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def _join(children: tuple[Node, ...]) -> str:
    return "".join(to_html(c) for c in children)


def to_html(node: Node) -> str:
    """Serialise a render tree using only p/h1-h3/pre/code/br/strong/em/a/span."""
    if isinstance(node, Text):
        return _text(node.value)
    if isinstance(node, Document):
        return _join(node.children)
    if isinstance(node, Paragraph):
        return f"<p>{_join(node.children)}</p>"
    if isinstance(node, Heading):
        return f"<h{node.level}>{_join(node.children)}</h{node.level}>"
    if isinstance(node, Strong):
        return f"<strong>{_join(node.children)}</strong>"
    if isinstance(node, Emphasis):
        return f"<em>{_join(node.children)}</em>"
    if isinstance(node, InlineCode):
        return f"<code>{_text(node.code)}</code>"
    if isinstance(node, CodeBlock):
        lang = f' data-lang="{_attr(node.info)}"' if node.info else ""
        body = _text(node.code).replace("\n", "<br/>")
        return f"<pre><code{lang}>{body}</code></pre>"
    if isinstance(node, Link):
        return (
            f'<a href="{_attr(node.href)}" target="_blank" rel="noopener noreferrer">'
            f"{_join(node.children)}</a>"
        )
    if isinstance(node, Reference):
        return (
            f'<span class="reference" data-reference="{_attr(node.target)}">'
            f"{_text(node.target)}</span>"
        )
    raise TypeError(f"Not a render node: {node!r}")


def render_html(text: str) -> str:
    """Shortcut for ``to_html(render(text))``."""
    return to_html(render(text))
