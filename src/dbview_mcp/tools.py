"""MCP read tools for dbviewMCP server.

This module defines the read tools exposed by the MCP server:
- database_load: Load a database note's configuration and rows
- database_table: Table view (filtered and sorted rows)
- database_board: Board view (filtered rows grouped into lanes)
- database_properties: Frontmatter properties available for new columns
"""

from fastmcp import FastMCP

from dbview_mcp.config import Config
from dbview_mcp.engine.board import EMPTY_LANE_LABEL
from dbview_mcp.engine.codec import (
    column_to_dict,
    create_property_column,
    lane_to_dict,
    load_result_to_dict,
    property_option_to_dict,
    row_to_dict,
)
from dbview_mcp.engine.view import DatabaseView
from dbview_mcp.store.documents import DocumentStore


def register_tools(mcp: FastMCP, store: DocumentStore, config: Config) -> None:
    """Register all read tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        store: Document store for the workspace root
        config: Config instance (default row limit)
    """

    def _limit(limit: int | None) -> int:
        return limit if limit is not None else config.row_limit

    @mcp.tool()
    def database_load(database_path: str, limit: int | None = None) -> dict:
        """Load a database note: its configuration and the rows its source selects.

        Args:
            database_path: Path of the database note relative to the workspace root
            limit: Maximum number of rows (1-500, default: DBVIEW_ROW_LIMIT)

        Returns:
            Dict with:
            - config: The database configuration
            - rows: Rows in source order (most recently updated first)
            - available_properties: Frontmatter keys seen on the rows
            - truncated: Whether the source selected more rows than the limit
            - total_loaded: Number of rows returned
        """
        return load_result_to_dict(store.load_database(database_path, _limit(limit)))

    @mcp.tool()
    def database_table(database_path: str, limit: int | None = None) -> dict:
        """Table view of a database: rows filtered and sorted by its configuration.

        Args:
            database_path: Path of the database note
            limit: Maximum number of rows loaded before filtering

        Returns:
            Dict with visible columns, the ids of the editable ones, matching
            rows and the truncated flag
        """
        result = store.load_database(database_path, _limit(limit))
        view = DatabaseView(result.config)
        rows = view.table(result.rows)
        return {
            "database_path": database_path,
            "columns": [column_to_dict(column) for column in view.visible_columns],
            "editable_columns": [column.id for column in view.visible_columns if column.is_editable],
            "rows": [row_to_dict(row) for row in rows],
            "row_count": len(rows),
            "truncated": result.truncated,
        }

    @mcp.tool()
    def database_board(database_path: str, limit: int | None = None) -> dict:
        """Board view of a database: filtered rows grouped into lanes.

        Lanes come from the configured group-by column. Checkbox columns
        always have Unchecked, Checked and No value lanes; other columns
        have one lane per value in first-seen order plus a trailing
        "No value" lane. A card with several values appears in each of
        their lanes.

        Args:
            database_path: Path of the database note
            limit: Maximum number of rows loaded before filtering

        Returns:
            Dict with the group column, the lanes (ids, labels, note paths)
            and the rows they reference
        """
        result = store.load_database(database_path, _limit(limit))
        view = DatabaseView(result.config)
        group_column = view.group_column
        rows = view.filter(result.rows)
        return {
            "database_path": database_path,
            "group_by": group_column.id if group_column else None,
            "group_columns": [column.id for column in view.group_columns],
            "empty_lane_label": EMPTY_LANE_LABEL,
            "lanes": [lane_to_dict(lane) for lane in view.lanes(result.rows)],
            "rows": [row_to_dict(row) for row in rows],
            "truncated": result.truncated,
        }

    @mcp.tool()
    def database_properties(database_path: str) -> list[dict]:
        """List frontmatter properties seen on a database's rows.

        Args:
            database_path: Path of the database note

        Returns:
            List of properties sorted by key, each with key, kind, count and
            the column that would show it (``suggested_column``)
        """
        result = store.load_database(database_path, config.row_limit)
        existing = {column.property_key for column in result.config.columns if column.property_key}
        return [
            {
                **property_option_to_dict(option),
                "in_use": option.key in existing,
                "suggested_column": column_to_dict(create_property_column(option)),
            }
            for option in result.available_properties
        ]
