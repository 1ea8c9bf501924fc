"""Cell edits: from a new cell value to a document metadata patch."""

import dataclasses
from dataclasses import dataclass
from typing import Any

from dbview_mcp.engine.models import CellKind, CellValue, Column, ColumnType, Row


class CellWriteError(ValueError):
    """Raised when a cell value cannot be written back to its document."""


@dataclass(frozen=True)
class MetadataPatch:
    """One frontmatter field to set on a document.

    ``key`` is ``title``, ``tags`` or the property key of the column; the
    payload slots follow the same rules as ``CellValue``.
    """

    key: str
    kind: CellKind
    value_text: str | None = None
    value_bool: bool | None = None
    value_list: tuple[str, ...] = ()

    def yaml_value(self) -> Any:
        """The value to store under ``key`` in the frontmatter mapping."""
        if self.kind == CellKind.CHECKBOX:
            return self.value_bool
        if self.kind == CellKind.NUMBER:
            return parse_number(self.value_text)
        if self.kind.is_multi_value:
            return list(self.value_list)
        return self.value_text or ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.kind == CellKind.CHECKBOX:
            data["bool"] = self.value_bool
        elif self.kind.is_multi_value:
            data["list"] = list(self.value_list)
        else:
            data["text"] = self.value_text
        return {self.key: data}


def parse_number(text: str | None) -> int | float | None:
    """Integer if the text is integral, else float; blank is None."""
    trimmed = (text or "").strip()
    if not trimmed:
        return None
    try:
        return int(trimmed)
    except ValueError:
        pass
    try:
        return float(trimmed)
    except ValueError:
        raise CellWriteError(f"invalid number value: {trimmed!r}") from None


def cell_patch(column: Column, value: CellValue) -> MetadataPatch:
    """Describe the metadata change that stores ``value`` in ``column``.

    Raises:
        CellWriteError: If the column is derived or read-only, a property
            column has no key, or a number cell holds something else.
    """
    if column.type == ColumnType.TITLE:
        return MetadataPatch(key="title", kind=CellKind.TEXT, value_text=value.value_text or "")
    if column.type == ColumnType.TAGS:
        return MetadataPatch(key="tags", kind=CellKind.TAGS, value_list=tuple(value.value_list))
    if column.type != ColumnType.PROPERTY:
        raise CellWriteError(f"{column.type.value} columns are read-only")

    if not column.property_key:
        raise CellWriteError("property column is missing property_key")
    kind = column.kind
    if kind == CellKind.YAML:
        raise CellWriteError("yaml columns are read-only")

    if kind == CellKind.CHECKBOX:
        patch = MetadataPatch(key=column.property_key, kind=kind, value_bool=value.value_bool)
    elif kind.is_multi_value:
        patch = MetadataPatch(key=column.property_key, kind=kind, value_list=tuple(value.value_list))
    else:
        patch = MetadataPatch(key=column.property_key, kind=kind, value_text=value.value_text)

    if kind == CellKind.NUMBER:
        # Validate now so a bad number never reaches the document
        parse_number(patch.value_text)
    return patch


def apply_cell_value(row: Row, column: Column, value: CellValue) -> Row:
    """Return ``row`` as it looks once ``value`` is written to ``column``.

    Used for optimistic updates before the store confirms the write.
    Read-only columns leave the row unchanged.
    """
    if column.type == ColumnType.TITLE:
        return dataclasses.replace(row, title=value.value_text or "")
    if column.type == ColumnType.TAGS:
        return dataclasses.replace(row, tags=tuple(value.value_list))
    if column.type == ColumnType.PROPERTY and column.property_key:
        kind = value.kind or column.kind
        if kind == CellKind.CHECKBOX:
            stored = CellValue.checkbox(value.value_bool)
        elif kind.is_multi_value:
            stored = CellValue.items(value.value_list, kind=kind)
        else:
            stored = CellValue.text(value.value_text, kind=kind)
        properties = {**row.properties, column.property_key: stored}
        return dataclasses.replace(row, properties=properties)
    return row
