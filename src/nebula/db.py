"""NoteDB: DuckDB views over a note snapshot and its reference graph.

Uses DuckDB (in-memory) as a query engine over note records, the resolved
reference edges and the dangling-reference counts.  Returns :mod:`polars`
DataFrames.

Usage::

    db = NoteDB(store.snapshot())

    df      = db.query("SELECT title FROM notes WHERE 'work' = ANY(tags)")
    table   = db.table_view(filter_tag="work", order_by="updated_at DESC")
    degrees = db.degree_table()
    missing = db.dangling_table()

Tables
------
``notes(id, title, content, tags, updated_at)``,
``edges(source_id, target_id)`` (one row per resolved marker),
``dangling(title, ref_count)``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Sequence

import duckdb
import polars as pl

from nebula.graph import ReferenceGraph, build_graph
from nebula.note import Note

log = logging.getLogger(__name__)


def _utc_naive(ts: datetime) -> datetime:
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


class NoteDB:
    """In-memory DuckDB database over one snapshot."""

    def __init__(self, notes: Sequence[Note], graph: ReferenceGraph | None = None) -> None:
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(":memory:")
        self.refresh(notes, graph)

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def refresh(self, notes: Sequence[Note], graph: ReferenceGraph | None = None) -> None:
        """(Re-)populate every table from *notes*."""
        graph = graph if graph is not None else build_graph(notes)
        self._create_schema()
        self._load(notes, graph)
        log.debug("NoteDB refreshed: notes=%d edges=%d", len(notes), len(graph.edges))

    def _create_schema(self) -> None:
        self.conn.execute("""
            CREATE OR REPLACE TABLE notes (
                id          VARCHAR PRIMARY KEY,
                title       VARCHAR,
                content     TEXT,
                tags        VARCHAR[],
                updated_at  TIMESTAMP
            )
        """)
        self.conn.execute("""
            CREATE OR REPLACE TABLE edges (
                source_id   VARCHAR,
                target_id   VARCHAR
            )
        """)
        self.conn.execute("""
            CREATE OR REPLACE TABLE dangling (
                title       VARCHAR PRIMARY KEY,
                ref_count   INTEGER
            )
        """)

    def _load(self, notes: Sequence[Note], graph: ReferenceGraph) -> None:
        rows = [(n.id, n.title, n.content, sorted(n.tags), _utc_naive(n.updated_at)) for n in notes]
        if rows:
            self.conn.executemany("INSERT OR REPLACE INTO notes VALUES (?,?,?,?,?)", rows)
        if graph.edges:
            self.conn.executemany("INSERT INTO edges VALUES (?,?)", [tuple(e) for e in graph.edges])
        if graph.dangling:
            self.conn.executemany("INSERT INTO dangling VALUES (?,?)", list(graph.dangling.items()))

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(self, sql: str) -> pl.DataFrame:
        """Run a raw SQL query and return a Polars DataFrame."""
        return self.conn.execute(sql).pl()

    # ------------------------------------------------------------------
    # Pre-built views
    # ------------------------------------------------------------------

    def table_view(
        self,
        *,
        filter_tag: str | None = None,
        search: str | None = None,
        columns: list[str] | None = None,
        order_by: str = "title",
    ) -> pl.DataFrame:
        """Return notes as a Polars DataFrame, optionally filtered.

        Parameters
        ----------
        filter_tag:
            Only include notes that have this tag.
        search:
            Case-insensitive substring filter on title or content.
        columns:
            Which columns to include.  Defaults to ``id, title, tags, updated_at``.
        order_by:
            Column name to sort by.
        """
        cols = ", ".join(columns) if columns else "id, title, tags, updated_at"
        where_clauses: list[str] = []
        params: list[str] = []

        if filter_tag:
            where_clauses.append("list_contains(tags, ?)")
            params.append(filter_tag.lower().lstrip("#"))
        if search:
            where_clauses.append("(title ILIKE ? OR content ILIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])

        where = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        safe_order = order_by.replace(";", "").replace("'", "")
        sql = f"SELECT {cols} FROM notes {where} ORDER BY {safe_order}"
        return self.conn.execute(sql, params).pl()

    def tag_counts(self) -> pl.DataFrame:
        """Return a tag -> note count table sorted by frequency."""
        return self.conn.execute(
            """
            SELECT tag, COUNT(*) AS note_count
            FROM (SELECT unnest(tags) AS tag FROM notes)
            GROUP BY tag
            ORDER BY note_count DESC, tag
            """
        ).pl()

    def degree_table(self) -> pl.DataFrame:
        """Outgoing and incoming reference counts per note (multiplicity kept)."""
        return self.conn.execute(
            """
            SELECT
                n.id,
                n.title,
                (SELECT COUNT(*) FROM edges e WHERE e.source_id = n.id) AS out_refs,
                (SELECT COUNT(*) FROM edges e WHERE e.target_id = n.id) AS in_refs
            FROM notes n
            ORDER BY in_refs DESC, out_refs DESC, n.title
            """
        ).pl()

    def dangling_table(self, limit: int | None = None) -> pl.DataFrame:
        """Missing titles by reference count."""
        sql = "SELECT title, ref_count FROM dangling ORDER BY ref_count DESC, title"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
        return self.conn.execute(sql).pl()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "NoteDB":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
