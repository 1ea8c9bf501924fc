"""A configured view over a row set."""

from collections.abc import Sequence

from dbview_mcp.engine.board import create_lanes, drop_value, group_columns, resolve_group_column
from dbview_mcp.engine.filters import filter_rows
from dbview_mcp.engine.models import CellValue, Column, DatabaseConfig, Lane, Layout, Row
from dbview_mcp.engine.sorting import sort_rows


class DatabaseView:
    """Filtering, sorting and grouping driven by one configuration snapshot.

    The configuration is never patched in place. ``apply_config`` takes a
    complete replacement and returns a new view, so columns, filters and
    sorts are always read from one consistent snapshot.
    """

    def __init__(self, config: DatabaseConfig):
        if not isinstance(config, DatabaseConfig):
            raise TypeError(f"DatabaseView needs a DatabaseConfig, got {type(config).__name__}")
        self._config = config

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    def apply_config(self, config: DatabaseConfig) -> "DatabaseView":
        """Return a view for the full replacement ``config``."""
        return DatabaseView(config)

    @property
    def layout(self) -> Layout:
        return self._config.view.layout

    @property
    def visible_columns(self) -> list[Column]:
        return [column for column in self._config.columns if column.visible]

    @property
    def group_columns(self) -> list[Column]:
        return group_columns(self._config.columns)

    @property
    def group_column(self) -> Column | None:
        return resolve_group_column(self._config.columns, self._config.view.board_group_by)

    def filter(self, rows: Sequence[Row]) -> list[Row]:
        return filter_rows(rows, self._config.columns, self._config.filters)

    def table(self, rows: Sequence[Row]) -> list[Row]:
        """Rows for table mode: filtered, then sorted."""
        return sort_rows(self.filter(rows), self._config.columns, self._config.sorts)

    def lanes(self, rows: Sequence[Row]) -> list[Lane]:
        """Lanes for board mode, built from the filtered rows in input order."""
        return create_lanes(self.filter(rows), self.group_column)

    def drop_value(self, row: Row, lane_id: str) -> CellValue | None:
        """Cell value that moves ``row`` to ``lane_id``, None without a group column."""
        column = self.group_column
        if column is None:
            return None
        return drop_value(row, column, lane_id)
