"""Row comparison and sorting.

Comparison dispatches on the kind of the extracted cell. Rows with no usable
value for the sort column always come after rows that have one, in both
directions; only present-vs-present results are reversed for ``desc``.
"""

import math
import re
import unicodedata
import warnings
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any

from dateutil import parser as date_parser

from dbview_mcp.engine.cells import extract
from dbview_mcp.engine.models import CellKind, CellValue, Column, Row, Sort, SortDirection, find_column

DIGITS_PATTERN = re.compile(r"(\d+)")

# Fills in missing fields so parsing never depends on today's date.
_DATE_DEFAULT = datetime(1970, 1, 1)


def string_value(cell: CellValue) -> str | None:
    if cell.value_text is not None and cell.value_text.strip():
        return cell.value_text
    if cell.value_list:
        return ", ".join(cell.value_list)
    if cell.value_bool is not None:
        return str(cell.value_bool).lower()
    return None


def number_value(cell: CellValue) -> float | None:
    raw = (cell.value_text or "").strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def timestamp_value(cell: CellValue) -> float | None:
    """Parse the cell text as a point in time (epoch seconds, naive = UTC)."""
    raw = (cell.value_text or "").strip()
    if not raw:
        return None
    try:
        parsed = date_parser.isoparse(raw)
    except (ValueError, OverflowError):
        try:
            # Unknown zone names ("PST") parse as naive times
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", date_parser.UnknownTimezoneWarning)
                parsed = date_parser.parse(raw, default=_DATE_DEFAULT)
        except (ValueError, OverflowError):
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def boolean_value(cell: CellValue) -> int | None:
    if cell.value_bool is None:
        return None
    return 1 if cell.value_bool else 0


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def natural_key(text: str) -> list[Any]:
    """Sort key comparing digit runs by magnitude, letters case-insensitively.

    ``re.split`` with a capturing group alternates text and digit parts, so
    two keys always hold the same type at the same position.
    """
    parts = DIGITS_PATTERN.split(text.strip())
    return [int(part) if index % 2 else _fold(part) for index, part in enumerate(parts)]


def _cmp(left: Any, right: Any) -> int:
    return (left > right) - (left < right)


def _compare_present(
    left: Any,
    right: Any,
    direction: SortDirection,
    compare: Callable[[Any, Any], int] = _cmp,
) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    result = compare(left, right)
    return -result if direction == SortDirection.DESC else result


def compare_rows(
    left: Row,
    right: Row,
    column: Column,
    direction: SortDirection = SortDirection.ASC,
) -> int:
    """Compare two rows on ``column``: negative, zero or positive."""
    left_cell = extract(left, column)
    right_cell = extract(right, column)

    kind = left_cell.kind
    if kind == CellKind.CHECKBOX:
        return _compare_present(boolean_value(left_cell), boolean_value(right_cell), direction)
    if kind == CellKind.NUMBER:
        return _compare_present(number_value(left_cell), number_value(right_cell), direction)
    if kind in (CellKind.DATE, CellKind.DATETIME):
        return _compare_present(timestamp_value(left_cell), timestamp_value(right_cell), direction)
    return _compare_present(
        string_value(left_cell),
        string_value(right_cell),
        direction,
        lambda a, b: _cmp(natural_key(a), natural_key(b)),
    )


def sort_rows(rows: Sequence[Row], columns: Sequence[Column], sorts: Sequence[Sort]) -> list[Row]:
    """Order rows by the active sort.

    Only the first sort entry is used. Without one, or when its column is
    gone from the schema, the input order is kept.
    """
    if not sorts:
        return list(rows)
    sort = sorts[0]
    column = find_column(columns, sort.column_id)
    if column is None:
        return list(rows)
    key = cmp_to_key(lambda left, right: compare_rows(left, right, column, sort.direction))
    return sorted(rows, key=key)
