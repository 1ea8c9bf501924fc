"""Conversion between engine models and plain data (dicts, lists, scalars).

The dict shapes here are what gets stored in a database note's frontmatter
and what MCP tools send and receive. Optional column and filter fields are
left out when unset, so a configuration survives a save/reload cycle
unchanged.
"""

from enum import Enum
from typing import Any, TypeVar

from dbview_mcp.engine.models import (
    CellKind,
    CellValue,
    Column,
    ColumnType,
    DatabaseConfig,
    DatabaseSource,
    Filter,
    FilterOperator,
    Lane,
    Layout,
    LoadResult,
    NewNoteConfig,
    PropertyOption,
    Row,
    Sort,
    SortDirection,
    SourceKind,
    ViewState,
)

E = TypeVar("E", bound=Enum)

DEFAULT_TITLE_PREFIX = "Untitled"

BUILT_IN_COLUMN_ICONS = {
    ColumnType.TITLE: "document",
    ColumnType.TAGS: "tag",
    ColumnType.PATH: "route",
    ColumnType.CREATED: "calendar",
    ColumnType.UPDATED: "clock",
}

PROPERTY_KIND_ICONS = {
    CellKind.TEXT: "document",
    CellKind.URL: "link",
    CellKind.NUMBER: "hash",
    CellKind.DATE: "calendar",
    CellKind.DATETIME: "clock",
    CellKind.CHECKBOX: "check-circle",
    CellKind.LIST: "list",
    CellKind.TAGS: "tag",
    CellKind.YAML: "source",
}


class ConfigError(ValueError):
    """Raised when plain data does not describe a valid model."""


def _mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ConfigError(f"{what} must be a mapping, got {type(data).__name__}")
    return data


def _sequence(data: Any, what: str) -> list:
    if data is None:
        return []
    if not isinstance(data, list | tuple):
        raise ConfigError(f"{what} must be a list, got {type(data).__name__}")
    return list(data)


def _enum(enum_cls: type[E], raw: Any, what: str) -> E:
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ConfigError(f"unsupported {what} {raw!r} (expected one of: {allowed})") from None


def _required_str(data: dict, field: str, what: str) -> str:
    value = data.get(field)
    if not isinstance(value, str) or not value:
        raise ConfigError(f"{what} is missing '{field}'")
    return value


def _optional_str(data: dict, field: str) -> str | None:
    value = data.get(field)
    if value is None:
        return None
    return str(value)


def _optional_bool(data: dict, field: str, what: str) -> bool | None:
    value = data.get(field)
    if value is None or isinstance(value, bool):
        return value
    raise ConfigError(f"{what} '{field}' must be a boolean")


def _string_list(data: dict, field: str, what: str) -> tuple[str, ...]:
    return tuple(str(item) for item in _sequence(data.get(field), f"{what} '{field}'"))


# --- Columns, filters, sorts ---


def column_from_dict(data: Any) -> Column:
    data = _mapping(data, "column")
    width = data.get("width")
    if width is not None and (isinstance(width, bool) or not isinstance(width, int)):
        raise ConfigError("column 'width' must be an integer")
    visible = data.get("visible", True)
    if not isinstance(visible, bool):
        raise ConfigError("column 'visible' must be a boolean")
    column_type = _enum(ColumnType, data.get("type"), "column type")
    # Only property columns carry a kind of their own
    property_kind = data.get("property_kind") if column_type == ColumnType.PROPERTY else None
    return Column(
        id=_required_str(data, "id", "column"),
        type=column_type,
        label=str(data.get("label") or ""),
        icon=_optional_str(data, "icon"),
        width=width,
        visible=visible,
        property_key=_optional_str(data, "property_key"),
        property_kind=None if property_kind is None else _enum(CellKind, property_kind, "property kind"),
    )


def column_to_dict(column: Column) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": column.id,
        "type": column.type.value,
        "label": column.label,
    }
    if column.icon is not None:
        data["icon"] = column.icon
    if column.width is not None:
        data["width"] = column.width
    data["visible"] = column.visible
    if column.property_key is not None:
        data["property_key"] = column.property_key
    if column.property_kind is not None:
        data["property_kind"] = column.property_kind.value
    return data


def filter_from_dict(data: Any) -> Filter:
    data = _mapping(data, "filter")
    return Filter(
        column_id=_required_str(data, "column_id", "filter"),
        operator=_enum(FilterOperator, data.get("operator"), "filter operator"),
        value_text=_optional_str(data, "value_text"),
        value_bool=_optional_bool(data, "value_bool", "filter"),
        value_list=_string_list(data, "value_list", "filter"),
    )


def filter_to_dict(flt: Filter) -> dict[str, Any]:
    data: dict[str, Any] = {"column_id": flt.column_id, "operator": flt.operator.value}
    if flt.value_text is not None:
        data["value_text"] = flt.value_text
    if flt.value_bool is not None:
        data["value_bool"] = flt.value_bool
    data["value_list"] = list(flt.value_list)
    return data


def sort_from_dict(data: Any) -> Sort:
    data = _mapping(data, "sort")
    return Sort(
        column_id=_required_str(data, "column_id", "sort"),
        direction=_enum(SortDirection, data.get("direction", "asc"), "sort direction"),
    )


def sort_to_dict(sort: Sort) -> dict[str, Any]:
    return {"column_id": sort.column_id, "direction": sort.direction.value}


# --- Whole configuration ---


def config_from_dict(data: Any) -> DatabaseConfig:
    """Build a ``DatabaseConfig`` from its stored form.

    Raises:
        ConfigError: If a required section is missing or a value is invalid.
    """
    data = _mapping(data, "database config")

    source_data = _mapping(data.get("source"), "database 'source'")
    recursive = source_data.get("recursive", True)
    if not isinstance(recursive, bool):
        raise ConfigError("source 'recursive' must be a boolean")
    source = DatabaseSource(
        kind=_enum(SourceKind, source_data.get("kind"), "database source kind"),
        value=str(source_data.get("value") or ""),
        recursive=recursive,
    )

    new_note_data = _mapping(data.get("new_note"), "database 'new_note'")
    new_note = NewNoteConfig(
        folder=str(new_note_data.get("folder") or ""),
        title_prefix=str(new_note_data.get("title_prefix") or ""),
    )

    view_data = _mapping(data.get("view") or {}, "database 'view'")
    view = ViewState(
        layout=_enum(Layout, view_data.get("layout", "table"), "database layout"),
        board_group_by=_optional_str(view_data, "board_group_by"),
    )

    return DatabaseConfig(
        source=source,
        new_note=new_note,
        view=view,
        columns=tuple(column_from_dict(item) for item in _sequence(data.get("columns"), "columns")),
        sorts=tuple(sort_from_dict(item) for item in _sequence(data.get("sorts"), "sorts")),
        filters=tuple(filter_from_dict(item) for item in _sequence(data.get("filters"), "filters")),
    )


def config_to_dict(config: DatabaseConfig) -> dict[str, Any]:
    view: dict[str, Any] = {"layout": config.view.layout.value}
    if config.view.board_group_by is not None:
        view["board_group_by"] = config.view.board_group_by
    return {
        "source": {
            "kind": config.source.kind.value,
            "value": config.source.value,
            "recursive": config.source.recursive,
        },
        "new_note": {
            "folder": config.new_note.folder,
            "title_prefix": config.new_note.title_prefix,
        },
        "view": view,
        "columns": [column_to_dict(column) for column in config.columns],
        "sorts": [sort_to_dict(sort) for sort in config.sorts],
        "filters": [filter_to_dict(flt) for flt in config.filters],
    }


# --- Cells, rows, lanes ---


def cell_value_from_dict(data: Any) -> CellValue:
    data = _mapping(data, "cell value")
    return CellValue(
        kind=_enum(CellKind, data.get("kind", "text"), "cell kind"),
        value_text=_optional_str(data, "value_text"),
        value_bool=_optional_bool(data, "value_bool", "cell value"),
        value_list=_string_list(data, "value_list", "cell value"),
    )


def cell_value_to_dict(cell: CellValue) -> dict[str, Any]:
    return {
        "kind": cell.kind.value,
        "value_text": cell.value_text,
        "value_bool": cell.value_bool,
        "value_list": list(cell.value_list),
    }


def row_to_dict(row: Row) -> dict[str, Any]:
    return {
        "note_path": row.id,
        "title": row.title,
        "created": row.created,
        "updated": row.updated,
        "preview": row.preview,
        "tags": list(row.tags),
        "properties": {key: cell_value_to_dict(cell) for key, cell in row.properties.items()},
    }


def lane_to_dict(lane: Lane) -> dict[str, Any]:
    return {
        "id": lane.id,
        "label": lane.label,
        "card_count": lane.card_count,
        "note_paths": [row.id for row in lane.rows],
    }


def property_option_to_dict(option: PropertyOption) -> dict[str, Any]:
    return {"key": option.key, "kind": option.kind.value, "count": option.count}


def load_result_to_dict(result: LoadResult) -> dict[str, Any]:
    return {
        "config": config_to_dict(result.config),
        "rows": [row_to_dict(row) for row in result.rows],
        "available_properties": [property_option_to_dict(option) for option in result.available_properties],
        "truncated": result.truncated,
        "total_loaded": result.total_loaded,
    }


# --- Defaults ---


def normalize_dir(dir_path: str) -> str:
    return dir_path.replace("\\", "/").strip("/")


def default_column_icon(column_type: ColumnType, property_kind: CellKind | None = None) -> str:
    if column_type == ColumnType.PROPERTY:
        return PROPERTY_KIND_ICONS.get(property_kind, "document")
    return BUILT_IN_COLUMN_ICONS[column_type]


def create_default_config(dir_path: str) -> DatabaseConfig:
    """Starter configuration for a database over ``dir_path``."""
    folder = normalize_dir(dir_path)
    return DatabaseConfig(
        source=DatabaseSource(kind=SourceKind.FOLDER, value=folder, recursive=True),
        new_note=NewNoteConfig(folder=folder, title_prefix=DEFAULT_TITLE_PREFIX),
        view=ViewState(layout=Layout.TABLE, board_group_by=None),
        columns=(
            Column(
                id="title",
                type=ColumnType.TITLE,
                label="Title",
                icon=default_column_icon(ColumnType.TITLE),
                width=320,
            ),
            Column(
                id="tags",
                type=ColumnType.TAGS,
                label="Tags",
                icon=default_column_icon(ColumnType.TAGS),
                width=220,
            ),
            Column(
                id="updated",
                type=ColumnType.UPDATED,
                label="Updated",
                icon=default_column_icon(ColumnType.UPDATED),
                width=180,
            ),
        ),
    )


def create_property_column(option: PropertyOption) -> Column:
    """A column showing the frontmatter property ``option``."""
    return Column(
        id=f"property:{option.key}",
        type=ColumnType.PROPERTY,
        label=option.key,
        icon=default_column_icon(ColumnType.PROPERTY, option.kind),
        width=180,
        visible=True,
        property_key=option.key,
        property_kind=option.kind,
    )
