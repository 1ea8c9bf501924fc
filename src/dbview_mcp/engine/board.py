"""Board grouping: rows as cards in lanes keyed by a column's values.

Multi-value columns (tags, list and tags properties) put a row in one lane
per element. Checkbox property columns always produce the lanes
``false``, ``true`` and the empty lane, in that order, whatever the data.
Every other column produces lanes in first-seen order with the empty lane
last.
"""

from collections.abc import Iterable, Sequence

from dbview_mcp.engine.cells import extract
from dbview_mcp.engine.models import (
    EMPTY_LANE_ID,
    CellKind,
    CellValue,
    Column,
    ColumnType,
    Lane,
    Row,
    find_column,
)

EMPTY_LANE_LABEL = "No value"
CHECKBOX_LANE_LABELS = {"false": "Unchecked", "true": "Checked", EMPTY_LANE_ID: EMPTY_LANE_LABEL}


def group_columns(columns: Iterable[Column]) -> list[Column]:
    """Columns a board can be grouped by."""
    return [column for column in columns if column.is_groupable]


def default_group_column_id(columns: Iterable[Column]) -> str | None:
    candidates = group_columns(columns)
    return candidates[0].id if candidates else None


def resolve_group_column(columns: Sequence[Column], group_by: str | None) -> Column | None:
    """Pick the grouping column.

    An explicit ``group_by`` that no longer names a groupable column yields
    None; no choice at all falls back to the first groupable column.
    """
    if group_by is None:
        group_by = default_group_column_id(columns)
        if group_by is None:
            return None
    column = find_column(columns, group_by)
    if column is None or not column.is_groupable:
        return None
    return column


def unique_lane_values(values: Iterable[str]) -> list[str]:
    """Trimmed, non-empty values with duplicates removed, order kept."""
    seen: dict[str, None] = {}
    for value in values:
        trimmed = value.strip()
        if trimmed:
            seen.setdefault(trimmed)
    return list(seen)


def _is_checkbox_board(column: Column) -> bool:
    return column.type == ColumnType.PROPERTY and column.property_kind == CellKind.CHECKBOX


def lane_values(row: Row, column: Column) -> list[str]:
    """The values that place ``row`` in lanes; empty when it has none."""
    cell = extract(row, column)
    if column.is_multi_value:
        return unique_lane_values(cell.value_list)
    if cell.kind == CellKind.CHECKBOX:
        if cell.value_bool is None:
            return []
        return ["true" if cell.value_bool else "false"]
    value = (cell.value_text or "").strip()
    return [value] if value else []


def lane_ids_for_row(row: Row, column: Column) -> list[str]:
    return lane_values(row, column) or [EMPTY_LANE_ID]


def has_lane(row: Row, column: Column, lane_id: str) -> bool:
    """True when the row shows up in lane ``lane_id``."""
    return lane_id in lane_ids_for_row(row, column)


def create_lanes(rows: Iterable[Row], column: Column | None) -> list[Lane]:
    """Partition ``rows`` into lanes for ``column``.

    Returns an empty list when there is no grouping column.
    """
    if column is None:
        return []

    if _is_checkbox_board(column):
        buckets: dict[str, list[Row]] = {"false": [], "true": [], EMPTY_LANE_ID: []}
        for row in rows:
            buckets[lane_ids_for_row(row, column)[0]].append(row)
        return [
            Lane(id=lane_id, label=CHECKBOX_LANE_LABELS[lane_id], rows=tuple(members))
            for lane_id, members in buckets.items()
        ]

    lanes: dict[str, list[Row]] = {}
    for row in rows:
        for lane_id in lane_ids_for_row(row, column):
            lanes.setdefault(lane_id, []).append(row)
    empty_members = lanes.pop(EMPTY_LANE_ID, [])

    result = [Lane(id=lane_id, label=lane_id, rows=tuple(members)) for lane_id, members in lanes.items()]
    result.append(Lane(id=EMPTY_LANE_ID, label=EMPTY_LANE_LABEL, rows=tuple(empty_members)))
    return result


def lane_value(column: Column, lane_id: str) -> CellValue:
    """The single-value cell that puts a row into ``lane_id``."""
    if _is_checkbox_board(column):
        return CellValue.checkbox(None if lane_id == EMPTY_LANE_ID else lane_id == "true")
    return CellValue.text("" if lane_id == EMPTY_LANE_ID else lane_id, kind=column.kind)


def _append_lane_value(cell: CellValue, lane_id: str) -> CellValue:
    return CellValue.items(unique_lane_values([*cell.value_list, lane_id]), kind=cell.kind)


def _clear_lane_values(cell: CellValue) -> CellValue:
    return CellValue.empty(cell.kind)


def drop_value(row: Row, column: Column, lane_id: str) -> CellValue:
    """The new cell value for ``row`` after dropping it on lane ``lane_id``.

    Multi-value columns keep the row's other values: the lane value is
    appended if missing, and only the empty lane clears the list.
    """
    if column.is_multi_value:
        cell = extract(row, column)
        if lane_id == EMPTY_LANE_ID:
            return _clear_lane_values(cell)
        return _append_lane_value(cell, lane_id)
    return lane_value(column, lane_id)
