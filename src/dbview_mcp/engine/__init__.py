"""
Database view engine.

Treats a set of markdown documents as rows of a typed table: extracts cells,
filters, sorts and groups rows into board lanes, and turns cell edits into
metadata patches. Everything here is pure and recomputed on every call.
"""

from dbview_mcp.engine.board import create_lanes, drop_value, has_lane, lane_ids_for_row
from dbview_mcp.engine.cells import extract
from dbview_mcp.engine.codec import ConfigError, config_from_dict, config_to_dict
from dbview_mcp.engine.filters import filter_rows, matches_all
from dbview_mcp.engine.models import (
    EMPTY_LANE_ID,
    CellKind,
    CellValue,
    Column,
    ColumnType,
    DatabaseConfig,
    Filter,
    FilterOperator,
    Lane,
    Row,
    Sort,
    SortDirection,
)
from dbview_mcp.engine.mutations import CellWriteError, MetadataPatch, apply_cell_value, cell_patch
from dbview_mcp.engine.sorting import compare_rows, sort_rows
from dbview_mcp.engine.view import DatabaseView

__all__ = [
    "EMPTY_LANE_ID",
    "CellKind",
    "CellValue",
    "CellWriteError",
    "Column",
    "ColumnType",
    "ConfigError",
    "DatabaseConfig",
    "DatabaseView",
    "Filter",
    "FilterOperator",
    "Lane",
    "MetadataPatch",
    "Row",
    "Sort",
    "SortDirection",
    "apply_cell_value",
    "cell_patch",
    "compare_rows",
    "config_from_dict",
    "config_to_dict",
    "create_lanes",
    "drop_value",
    "extract",
    "filter_rows",
    "has_lane",
    "lane_ids_for_row",
    "matches_all",
    "sort_rows",
]
