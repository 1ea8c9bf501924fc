"""Data models for the database view engine."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

# Lane id reserved for rows without a value in the grouping column.
EMPTY_LANE_ID = "__empty__"


class CellKind(str, Enum):
    """Kind of a cell value; decides which payload slot is authoritative."""

    TEXT = "text"
    URL = "url"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    CHECKBOX = "checkbox"
    LIST = "list"
    TAGS = "tags"
    YAML = "yaml"

    @property
    def is_multi_value(self) -> bool:
        return self in (CellKind.LIST, CellKind.TAGS)


class ColumnType(str, Enum):
    """Where a column reads its value from."""

    TITLE = "title"
    TAGS = "tags"
    PATH = "path"
    CREATED = "created"
    UPDATED = "updated"
    PROPERTY = "property"


class FilterOperator(str, Enum):
    CONTAINS = "contains"
    EQUALS = "equals"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    IS_TRUE = "is_true"
    IS_FALSE = "is_false"
    TAGS_CONTAINS = "tags_contains"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Layout(str, Enum):
    TABLE = "table"
    BOARD = "board"


class SourceKind(str, Enum):
    FOLDER = "folder"
    TAG = "tag"
    SEARCH = "search"


# Implicit kinds of the built-in column types
FIXED_COLUMN_KINDS = {
    ColumnType.TITLE: CellKind.TEXT,
    ColumnType.TAGS: CellKind.TAGS,
    ColumnType.PATH: CellKind.TEXT,
    ColumnType.CREATED: CellKind.DATETIME,
    ColumnType.UPDATED: CellKind.DATETIME,
}

READ_ONLY_COLUMN_TYPES = frozenset({ColumnType.PATH, ColumnType.CREATED, ColumnType.UPDATED})


@dataclass(frozen=True)
class CellValue:
    """The typed content of one table cell.

    Only one payload slot is meaningful per kind: ``value_bool`` for
    checkbox cells, ``value_list`` for list and tags cells, ``value_text``
    for everything else.
    """

    kind: CellKind
    value_text: str | None = None
    value_bool: bool | None = None
    value_list: tuple[str, ...] = ()

    @classmethod
    def empty(cls, kind: CellKind) -> "CellValue":
        return cls(kind=kind)

    @classmethod
    def text(cls, value: str | None, kind: CellKind = CellKind.TEXT) -> "CellValue":
        return cls(kind=kind, value_text=value)

    @classmethod
    def checkbox(cls, value: bool | None) -> "CellValue":
        return cls(kind=CellKind.CHECKBOX, value_bool=value)

    @classmethod
    def items(cls, values, kind: CellKind = CellKind.LIST) -> "CellValue":
        return cls(kind=kind, value_list=tuple(str(value) for value in values))


@dataclass(frozen=True)
class Column:
    """A named, typed lens into a row.

    ``label``, ``icon``, ``width`` and ``visible`` are presentation metadata
    that the engine carries through untouched.
    """

    id: str
    type: ColumnType
    label: str = ""
    icon: str | None = None
    width: int | None = None
    visible: bool = True
    property_key: str | None = None
    property_kind: CellKind | None = None

    @property
    def kind(self) -> CellKind:
        """The kind every cell of this column is extracted as."""
        if self.type == ColumnType.PROPERTY:
            return self.property_kind or CellKind.TEXT
        return FIXED_COLUMN_KINDS[self.type]

    @property
    def is_multi_value(self) -> bool:
        return self.kind in (CellKind.LIST, CellKind.TAGS)

    @property
    def is_editable(self) -> bool:
        if self.type in READ_ONLY_COLUMN_TYPES:
            return False
        if self.type != ColumnType.PROPERTY:
            return True
        return self.property_kind != CellKind.YAML

    @property
    def is_groupable(self) -> bool:
        return self.type in (ColumnType.TAGS, ColumnType.PROPERTY)


@dataclass(frozen=True)
class Row:
    """One document seen as a table row.

    Rows are snapshots: edits produce a new row via ``dataclasses.replace``.
    """

    id: str  # Relative path of the document
    title: str = ""
    created: str = ""
    updated: str = ""
    tags: tuple[str, ...] = ()
    properties: Mapping[str, CellValue] = field(default_factory=dict)
    preview: str = ""


@dataclass(frozen=True)
class Filter:
    column_id: str
    operator: FilterOperator
    value_text: str | None = None
    value_bool: bool | None = None
    value_list: tuple[str, ...] = ()


@dataclass(frozen=True)
class Sort:
    column_id: str
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class DatabaseSource:
    kind: SourceKind
    value: str = ""
    recursive: bool = True


@dataclass(frozen=True)
class NewNoteConfig:
    folder: str = ""
    title_prefix: str = ""


@dataclass(frozen=True)
class ViewState:
    layout: Layout = Layout.TABLE
    board_group_by: str | None = None


@dataclass(frozen=True)
class DatabaseConfig:
    """Complete view configuration.

    Always handled as a whole: a changed view is a new ``DatabaseConfig``.
    """

    source: DatabaseSource
    new_note: NewNoteConfig
    view: ViewState = field(default_factory=ViewState)
    columns: tuple[Column, ...] = ()
    sorts: tuple[Sort, ...] = ()
    filters: tuple[Filter, ...] = ()

    def column(self, column_id: str | None) -> Column | None:
        """Look up a column by id, None if it is not in the schema."""
        if column_id is None:
            return None
        return find_column(self.columns, column_id)


@dataclass(frozen=True)
class Lane:
    """A board lane and the rows that belong to it."""

    id: str
    label: str
    rows: tuple[Row, ...] = ()

    @property
    def card_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty_lane(self) -> bool:
        return self.id == EMPTY_LANE_ID


@dataclass(frozen=True)
class PropertyOption:
    """A frontmatter property seen across the loaded rows."""

    key: str
    kind: CellKind
    count: int = 0


@dataclass(frozen=True)
class LoadResult:
    config: DatabaseConfig
    rows: tuple[Row, ...]
    available_properties: tuple[PropertyOption, ...] = ()
    truncated: bool = False
    total_loaded: int = 0


@dataclass(frozen=True)
class CreateRowResult:
    note_path: str
    row: Row


def find_column(columns, column_id: str) -> Column | None:
    """Return the first column with ``column_id``, or None."""
    for column in columns:
        if column.id == column_id:
            return column
    return None
