"""Nebula Notes: link-graph and markup core for a personal knowledge base."""

from nebula.backlinks import backlinks_for, backlinks_panel
from nebula.config import Settings, load_settings
from nebula.graph import Edge, ReferenceGraph, TitleIndex, build_graph, find_title_collisions
from nebula.index import NoteIndex
from nebula.note import Note
from nebula.render import render, render_html, to_html
from nebula.scanner import extract_references, extract_tags, normalize_title
from nebula.store import FileNoteStore, MemoryNoteStore, NoteNotFoundError, NoteStore

__all__ = [
    "Edge",
    "FileNoteStore",
    "MemoryNoteStore",
    "Note",
    "NoteIndex",
    "NoteNotFoundError",
    "NoteStore",
    "ReferenceGraph",
    "Settings",
    "TitleIndex",
    "backlinks_for",
    "backlinks_panel",
    "build_graph",
    "extract_references",
    "extract_tags",
    "find_title_collisions",
    "load_settings",
    "normalize_title",
    "render",
    "render_html",
    "to_html",
]
