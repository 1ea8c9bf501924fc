"""Caller-side session over one database note.

Holds the last loaded rows and configuration, drops stale loads, and
applies cell edits optimistically with a revert when the write fails.
"""

from __future__ import annotations

import dataclasses
import logging
import threading

from dbview_mcp.engine.models import CellValue, Column, CreateRowResult, DatabaseConfig, Lane, LoadResult, Row
from dbview_mcp.engine.mutations import CellWriteError, apply_cell_value
from dbview_mcp.engine.view import DatabaseView
from dbview_mcp.store.documents import DocumentStore, StoreError

logger = logging.getLogger(__name__)


class ViewSession:
    """
    A loaded database view.

    Every ``reload`` takes a new request version; a load that finishes after
    a newer one started is discarded instead of overwriting newer state.
    """

    def __init__(self, store: DocumentStore, database_path: str, limit: int | None = None):
        self.store = store
        self.database_path = database_path
        self.limit = limit
        self._lock = threading.Lock()
        self._request_version = 0
        self._result: LoadResult | None = None
        self._view: DatabaseView | None = None
        self._rows: list[Row] = []

    # --- State ---

    @property
    def result(self) -> LoadResult | None:
        return self._result

    @property
    def view(self) -> DatabaseView:
        if self._view is None:
            raise RuntimeError("Session is not loaded; call reload() first")
        return self._view

    @property
    def config(self) -> DatabaseConfig:
        return self.view.config

    @property
    def rows(self) -> list[Row]:
        return list(self._rows)

    def row(self, note_path: str) -> Row:
        for row in self._rows:
            if row.id == note_path:
                return row
        raise StoreError(f"Row not loaded: {note_path}")

    def _replace_row(self, note_path: str, row: Row) -> None:
        self._rows = [row if current.id == note_path else current for current in self._rows]

    def _column(self, column_id: str) -> Column:
        column = self.config.column(column_id)
        if column is None:
            raise CellWriteError(f"unknown column: {column_id}")
        return column

    # --- Loading ---

    def reload(self) -> LoadResult | None:
        """
        Load the database from the store.

        Returns:
            The load result, or None if a newer reload started meanwhile
        """
        with self._lock:
            self._request_version += 1
            version = self._request_version

        result = self.store.load_database(self.database_path, self.limit)

        with self._lock:
            if version != self._request_version:
                logger.debug("Dropping stale load %d of %s", version, self.database_path)
                return None
            self._result = result
            self._view = DatabaseView(result.config)
            self._rows = list(result.rows)
        return result

    def apply_config(self, config: DatabaseConfig) -> DatabaseConfig:
        """Save a complete replacement configuration and switch the view to it."""
        if not isinstance(config, DatabaseConfig):
            raise TypeError(f"apply_config needs a full DatabaseConfig, got {type(config).__name__}")
        saved = self.store.save_config(self.database_path, config)
        self._view = self.view.apply_config(saved)
        if self._result is not None:
            self._result = dataclasses.replace(self._result, config=saved)
        return saved

    # --- Rows ---

    def update_cell(self, note_path: str, column_id: str, value: CellValue) -> Row:
        """
        Write a cell, showing the new value before the store confirms it.

        If the write fails the previous row is restored and the error
        re-raised.
        """
        column = self._column(column_id)
        previous = self.row(note_path)
        self._replace_row(note_path, apply_cell_value(previous, column, value))
        try:
            written = self.store.update_cell(note_path, column, value)
        except Exception:
            self._replace_row(note_path, previous)
            raise
        self._replace_row(note_path, written)
        return written

    def create_row(self, title: str | None = None) -> CreateRowResult:
        result = self.store.create_row(self.database_path, title)
        self._rows.insert(0, result.row)
        return result

    # --- Views ---

    def table(self) -> list[Row]:
        return self.view.table(self._rows)

    def lanes(self) -> list[Lane]:
        return self.view.lanes(self._rows)

    def move_card(self, note_path: str, lane_id: str) -> Row | None:
        """Move a card to another lane; None when the board has no group column."""
        column = self.view.group_column
        if column is None:
            return None
        value = self.view.drop_value(self.row(note_path), lane_id)
        return self.update_cell(note_path, column.id, value)
