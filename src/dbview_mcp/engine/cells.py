"""Cell value extraction.

``extract`` turns a (row, column) pair into a ``CellValue``. It never fails
and never returns None: a property the document does not set comes back as
an empty cell of the column's kind.
"""

from dbview_mcp.engine.models import CellKind, CellValue, Column, ColumnType, Row

_TRUE_TEXT = {"true", "yes", "on", "1"}
_FALSE_TEXT = {"false", "no", "off", "0"}


def extract(row: Row, column: Column) -> CellValue:
    """Return the cell for ``column`` in ``row``."""
    if column.type == ColumnType.TITLE:
        return CellValue.text(row.title)
    if column.type == ColumnType.TAGS:
        return CellValue.items(row.tags, kind=CellKind.TAGS)
    if column.type == ColumnType.PATH:
        return CellValue.text(row.id)
    if column.type == ColumnType.CREATED:
        return CellValue.text(row.created, kind=CellKind.DATETIME)
    if column.type == ColumnType.UPDATED:
        return CellValue.text(row.updated, kind=CellKind.DATETIME)

    kind = column.kind
    stored = row.properties.get(column.property_key or "")
    if stored is None:
        return CellValue.empty(kind)
    return coerce(stored, kind)


def coerce(cell: CellValue, kind: CellKind) -> CellValue:
    """Re-express ``cell`` as a cell of ``kind``.

    A document may store a value whose shape disagrees with the column that
    reads it (a number in a text column, a bare string in a list column).
    Only the payload slot that ``kind`` treats as authoritative is filled.
    """
    if cell.kind == kind:
        return cell

    if kind == CellKind.CHECKBOX:
        text = (scalar_text(cell) or "").strip().lower()
        if text in _TRUE_TEXT:
            return CellValue.checkbox(True)
        if text in _FALSE_TEXT:
            return CellValue.checkbox(False)
        return CellValue.empty(kind)

    if kind.is_multi_value:
        if cell.kind.is_multi_value:
            return CellValue.items(cell.value_list, kind=kind)
        text = scalar_text(cell)
        if text is None or not text.strip():
            return CellValue.empty(kind)
        return CellValue.items([text], kind=kind)

    return CellValue.text(scalar_text(cell), kind=kind)


def scalar_text(cell: CellValue) -> str | None:
    """The cell's content rendered as a single string, None if unset."""
    if cell.kind == CellKind.CHECKBOX:
        if cell.value_bool is None:
            return None
        return "true" if cell.value_bool else "false"
    if cell.kind.is_multi_value:
        return ", ".join(cell.value_list) if cell.value_list else None
    return cell.value_text


def is_blank(cell: CellValue) -> bool:
    """True when no payload slot carries a value."""
    return (
        not (cell.value_text or "").strip()
        and not cell.value_list
        and cell.value_bool is None
    )
