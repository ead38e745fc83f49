"""Durable list of completed daily reflections.

The collection is always read and written whole. Writes replace every row
inside one transaction, so the last writer wins and a reload returns the
records in exactly the order they were saved (newest first by convention).
"""

from __future__ import annotations

import json
import sqlite3
from datetime import date
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from friendhelp.errors import StoreError
from friendhelp.logging import format_log_context, logger
from friendhelp.models import DayEntry, utc_now
from friendhelp.storage.db import get_connection, resolve_db_path, undecodable_rows


class EntryStore:
    """Storage for DayEntry records of one user."""

    def __init__(self, user_id: str, db_path: str | Path | None = None) -> None:
        self.user_id = user_id
        self._db_path = resolve_db_path(user_id, db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def load_entries(self) -> list[DayEntry]:
        """Load every entry in stored order.

        Rows that no longer decode are skipped with a warning.

        Raises:
            StoreError: If the database cannot be read.
        """
        try:
            conn = get_connection(self._db_path)
            try:
                rows = conn.execute(
                    "SELECT position, payload FROM day_entries ORDER BY position"
                ).fetchall()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not read entries: {e}") from e

        entries: list[DayEntry] = []
        for row in rows:
            try:
                entries.append(DayEntry.model_validate_json(row["payload"]))
            except ValidationError as e:
                logger.warning(
                    format_log_context(
                        "entry_row_skipped",
                        component="entry_store",
                        user=self.user_id,
                        position=row["position"],
                        error=e.error_count(),
                    )
                )
        return entries

    def save_entries(self, entries: Iterable[DayEntry]) -> None:
        """Replace the stored collection with ``entries``.

        Rows that no longer decode are kept, after the saved entries.

        Raises:
            StoreError: If the write fails. Nothing is partially written.
        """
        saved_at = utc_now().isoformat()
        rows = [
            (
                position,
                entry.id,
                entry.date.isoformat(),
                json.dumps(entry.to_wire()),
                saved_at,
            )
            for position, entry in enumerate(entries)
        ]
        try:
            conn = get_connection(self._db_path)
            try:
                with conn:
                    carried = [
                        (len(rows) + i, row["id"], row["entry_date"], row["payload"], row["saved_at"])
                        for i, row in enumerate(undecodable_rows(conn, "day_entries", DayEntry))
                    ]
                    conn.execute("DELETE FROM day_entries")
                    conn.executemany(
                        """
                        INSERT INTO day_entries (position, id, entry_date, payload, saved_at)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        rows + carried,
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not save entries: {e}") from e

        logger.debug(
            format_log_context(
                "entries_saved",
                component="entry_store",
                user=self.user_id,
                count=len(rows),
                kept=len(carried),
            )
        )

    def add_entry(self, entry: DayEntry) -> list[DayEntry]:
        """Insert ``entry`` at the front (newest first).

        Existing rows are shifted, not rewritten.

        Returns:
            The collection after the insert.

        Raises:
            StoreError: If the write fails. Nothing is partially written.
        """
        try:
            conn = get_connection(self._db_path)
            try:
                with conn:
                    # Two steps so no intermediate position collides.
                    conn.execute("UPDATE day_entries SET position = -(position + 1)")
                    conn.execute("UPDATE day_entries SET position = -position")
                    conn.execute(
                        """
                        INSERT INTO day_entries (position, id, entry_date, payload, saved_at)
                        VALUES (0, ?, ?, ?, ?)
                        """,
                        (
                            entry.id,
                            entry.date.isoformat(),
                            json.dumps(entry.to_wire()),
                            utc_now().isoformat(),
                        ),
                    )
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not add entry: {e}") from e

        logger.info(
            format_log_context("entry_added", component="entry_store", user=self.user_id, entry=entry.id)
        )
        return self.load_entries()

    def find_entry_for_day(self, day: date) -> DayEntry | None:
        """Return the first stored entry whose UTC day is ``day``."""
        for entry in self.load_entries():
            if entry.day == day:
                return entry
        return None

    def clear(self) -> None:
        """Delete every row, including ones that no longer decode."""
        try:
            conn = get_connection(self._db_path)
            try:
                with conn:
                    conn.execute("DELETE FROM day_entries")
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise StoreError(f"Could not clear entries: {e}") from e
