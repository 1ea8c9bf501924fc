"""Write tools for dbviewMCP - update database configurations and note frontmatter."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from dbview_mcp.auth import check_write_permission
from dbview_mcp.config import Config
from dbview_mcp.engine.codec import cell_value_from_dict, config_from_dict, config_to_dict, row_to_dict
from dbview_mcp.session import ViewSession
from dbview_mcp.store.documents import HARD_LIMIT, DocumentStore

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)


def register_tools_write(mcp: "FastMCP", config: Config, store: DocumentStore) -> None:
    """Register all write tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        config: Config instance (read-only guard)
        store: Document store for the workspace root
    """

    def _open_session(database_path: str) -> ViewSession:
        session = ViewSession(store, database_path, HARD_LIMIT)
        session.reload()
        return session

    @mcp.tool()
    def database_save_config(database_path: str, database: dict[str, Any]) -> dict:
        """Replace a database's whole view configuration.

        The configuration is never merged: send the complete object as
        returned by database_load, with your changes applied.

        Args:
            database_path: Path of the database note
            database: Complete configuration (source, new_note, view,
                columns, sorts, filters)

        Returns:
            Dict with status and the stored configuration
        """
        check_write_permission(config)

        saved = store.save_config(database_path, config_from_dict(database))
        return {
            "status": "saved",
            "database_path": database_path,
            "config": config_to_dict(saved),
        }

    @mcp.tool()
    def database_update_cell(
        database_path: str,
        note_path: str,
        column_id: str,
        value: dict[str, Any],
    ) -> dict:
        """Write one cell of a row back to the note's frontmatter.

        The note must be one of the rows the database currently selects.

        Args:
            database_path: Path of the database note (defines the columns)
            note_path: Path of the row's note
            column_id: Column to write
            value: Cell value with kind and value_text, value_bool or value_list

        Returns:
            Dict with status and the updated row
        """
        check_write_permission(config)

        session = _open_session(database_path)
        row = session.update_cell(note_path, column_id, cell_value_from_dict(value))
        return {"status": "updated", "column_id": column_id, "row": row_to_dict(row)}

    @mcp.tool()
    def database_move_card(database_path: str, note_path: str, lane_id: str) -> dict:
        """Move a board card to another lane by rewriting its group-by cell.

        For multi-value columns the lane value is added to the existing
        values; moving to the empty lane ("__empty__") clears them.

        Args:
            database_path: Path of the database note
            note_path: Path of the card's note
            lane_id: Target lane id

        Returns:
            Dict with status, the lane id and the updated row
        """
        check_write_permission(config)

        session = _open_session(database_path)
        row = session.move_card(note_path, lane_id)
        if row is None:
            raise ValueError("Board has no group-by column")
        logger.info("Moved %s to lane %s on %s", note_path, lane_id, database_path)
        return {
            "status": "moved",
            "lane_id": lane_id,
            "group_by": session.view.group_column.id,
            "row": row_to_dict(row),
        }

    @mcp.tool()
    def database_create_row(database_path: str, title: str | None = None) -> dict:
        """Create a new note in the database's new-note folder.

        Args:
            database_path: Path of the database note
            title: Optional title (default: the configured title prefix)

        Returns:
            Dict with status, the new note path and its row
        """
        check_write_permission(config)

        result = store.create_row(database_path, title)
        return {
            "status": "created",
            "note_path": result.note_path,
            "row": row_to_dict(result.row),
        }

    @mcp.tool()
    def database_create(
        database_path: str,
        title: str | None = None,
        folder: str | None = None,
    ) -> dict:
        """Create a database note listing the notes of a folder.

        Args:
            database_path: Path of the new database note (e.g. "projects/Projects.md")
            title: Optional note title (default: the file name)
            folder: Folder to list (default: the database note's folder)

        Returns:
            Dict with status and the starter configuration
        """
        check_write_permission(config)

        if not database_path.endswith(".md"):
            database_path = f"{database_path}.md"
        created = store.create_database(database_path, title=title, folder=folder)
        return {
            "status": "created",
            "database_path": database_path,
            "config": config_to_dict(created),
        }
