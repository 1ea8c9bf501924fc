"""Filter evaluation.

All filters must pass for a row to match. A filter whose column is no longer
in the schema passes, so editing the columns never hides the whole table.
Numbers and dates are filtered as text.
"""

import re
from collections.abc import Iterable, Sequence

from dbview_mcp.engine.cells import extract, is_blank
from dbview_mcp.engine.models import CellValue, Column, Filter, FilterOperator, Row, find_column

TAG_MARKER_PATTERN = re.compile(r"^#+")


def normalize_text(value: str | None) -> str:
    return (value or "").strip().casefold()


def normalize_tag_text(value: str | None) -> str:
    return TAG_MARKER_PATTERN.sub("", normalize_text(value))


def text_candidates(cell: CellValue) -> list[str]:
    """Normalized text renderings of the cell, empty strings dropped."""
    values = [
        cell.value_text,
        ", ".join(cell.value_list) if cell.value_list else None,
        None if cell.value_bool is None else str(cell.value_bool).lower(),
    ]
    return [text for text in map(normalize_text, values) if text]


def list_candidates(cell: CellValue) -> list[str]:
    return [text for text in map(normalize_text, cell.value_list) if text]


def filter_operand(flt: Filter) -> str:
    """The normalized comparison text of a filter."""
    if flt.value_text is not None:
        return normalize_text(flt.value_text)
    if flt.value_list:
        return normalize_text(flt.value_list[0])
    return ""


def matches(row: Row, columns: Sequence[Column], flt: Filter) -> bool:
    """Evaluate a single filter against a row."""
    column = find_column(columns, flt.column_id)
    if column is None:
        return True

    cell = extract(row, column)
    operand = filter_operand(flt)
    op = flt.operator

    if op == FilterOperator.CONTAINS:
        if not operand:
            return True
        return any(operand in value for value in text_candidates(cell) + list_candidates(cell))
    if op == FilterOperator.EQUALS:
        if not operand:
            return True
        return any(operand == value for value in text_candidates(cell) + list_candidates(cell))
    if op == FilterOperator.IS_EMPTY:
        return is_blank(cell)
    if op == FilterOperator.IS_NOT_EMPTY:
        return not is_blank(cell)
    if op == FilterOperator.IS_TRUE:
        return cell.value_bool is True
    if op == FilterOperator.IS_FALSE:
        return cell.value_bool is False
    if op == FilterOperator.TAGS_CONTAINS:
        if not operand:
            return True
        wanted = normalize_tag_text(operand)
        return any(normalize_tag_text(value) == wanted for value in cell.value_list)
    return True


def matches_all(row: Row, columns: Sequence[Column], filters: Iterable[Filter]) -> bool:
    """True when ``row`` passes every filter."""
    return all(matches(row, columns, flt) for flt in filters)


def filter_rows(
    rows: Iterable[Row],
    columns: Sequence[Column],
    filters: Sequence[Filter],
) -> list[Row]:
    """Keep the rows that pass every filter, in input order."""
    return [row for row in rows if matches_all(row, columns, filters)]
