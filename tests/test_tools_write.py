"""Tests for write tools."""

import pytest
import yaml
from fastmcp import FastMCP

from dbview_mcp.auth import AuthError
from dbview_mcp.config import Config
from dbview_mcp.engine.codec import ConfigError
from dbview_mcp.engine.mutations import CellWriteError
from dbview_mcp.store import DocumentStore, StoreError
from dbview_mcp.store.parser import parse_frontmatter_mapping, split_frontmatter
from dbview_mcp.tools_write import register_tools_write


def frontmatter_of(path):
    frontmatter, _ = split_frontmatter(path.read_text(encoding="utf-8"))
    return parse_frontmatter_mapping(frontmatter)


def build_tools(config):
    mcp = FastMCP()
    register_tools_write(mcp, config, DocumentStore(config.root))
    return {tool.fn.__name__: tool.fn for tool in mcp._tool_manager._tools.values()}


@pytest.fixture
def notes_and_tools(tmp_path, monkeypatch):
    """Create a workspace with a board database and register write tools."""
    root = tmp_path / "notes"
    (root / "board").mkdir(parents=True)
    monkeypatch.setenv("DBVIEW_ROOT", str(root))
    monkeypatch.delenv("DBVIEW_READ_ONLY", raising=False)
    monkeypatch.delenv("DBVIEW_AUTH_TOKEN", raising=False)

    (root / "board" / "card.md").write_text(
        "---\n" + yaml.safe_dump({"title": "Card", "tags": ["swift", "ios"], "done": False}) + "---\nBody\n",
        encoding="utf-8",
    )

    tools = build_tools(Config.from_env())
    tools["database_create"](database_path="board/Board", title="Board")
    yield root, tools


class TestDatabaseCreate:
    def test_create_adds_extension(self, notes_and_tools):
        root, _ = notes_and_tools
        data = frontmatter_of(root / "board" / "Board.md")
        assert data["dbview"]["database"]["source"]["value"] == "board"
        assert data["title"] == "Board"

    def test_create_with_other_folder(self, notes_and_tools):
        root, tools = notes_and_tools
        result = tools["database_create"](database_path="All.md", folder="board")
        assert result["status"] == "created"
        assert result["config"]["new_note"]["folder"] == "board"

    def test_create_existing_fails(self, notes_and_tools):
        _, tools = notes_and_tools
        with pytest.raises(StoreError, match="already exists"):
            tools["database_create"](database_path="board/Board.md")


class TestSaveConfig:
    def test_save_config_rejects_invalid_data(self, notes_and_tools):
        _, tools = notes_and_tools
        with pytest.raises(ConfigError):
            tools["database_save_config"](database_path="board/Board.md", database={"columns": []})

    def test_save_config_returns_stored_config(self, notes_and_tools):
        root, tools = notes_and_tools
        database = frontmatter_of(root / "board" / "Board.md")["dbview"]["database"]
        database["view"] = {"layout": "board", "board_group_by": "tags"}

        result = tools["database_save_config"](database_path="board/Board.md", database=database)
        assert result["status"] == "saved"
        assert result["config"] == database
        assert frontmatter_of(root / "board" / "Board.md")["dbview"]["database"] == database


class TestUpdateCell:
    def test_update_title(self, notes_and_tools):
        root, tools = notes_and_tools
        result = tools["database_update_cell"](
            database_path="board/Board.md",
            note_path="board/card.md",
            column_id="title",
            value={"kind": "text", "value_text": "Renamed"},
        )
        assert result["status"] == "updated"
        assert result["row"]["title"] == "Renamed"
        assert frontmatter_of(root / "board" / "card.md")["title"] == "Renamed"

    def test_unknown_column(self, notes_and_tools):
        _, tools = notes_and_tools
        with pytest.raises(CellWriteError, match="unknown column"):
            tools["database_update_cell"](
                database_path="board/Board.md",
                note_path="board/card.md",
                column_id="property:nope",
                value={"kind": "text", "value_text": "x"},
            )

    def test_note_outside_database_is_rejected(self, notes_and_tools):
        root, tools = notes_and_tools
        (root / "loose.md").write_text("---\ntitle: Loose\n---\n", encoding="utf-8")
        with pytest.raises(StoreError, match="not loaded"):
            tools["database_update_cell"](
                database_path="board/Board.md",
                note_path="loose.md",
                column_id="title",
                value={"kind": "text", "value_text": "Moved in"},
            )
        assert frontmatter_of(root / "loose.md")["title"] == "Loose"

    def test_returned_row_keeps_only_the_written_slot(self, notes_and_tools):
        root, tools = notes_and_tools
        status = {
            "id": "property:status",
            "type": "property",
            "label": "Status",
            "visible": True,
            "property_key": "status",
            "property_kind": "text",
        }
        database = frontmatter_of(root / "board" / "Board.md")["dbview"]["database"]
        database["columns"].append(status)
        tools["database_save_config"](database_path="board/Board.md", database=database)

        result = tools["database_update_cell"](
            database_path="board/Board.md",
            note_path="board/card.md",
            column_id="property:status",
            value={"kind": "text", "value_text": "a", "value_list": ["b"]},
        )
        assert result["row"]["properties"]["status"]["value_list"] == []
        assert result["row"]["properties"]["status"]["value_text"] == "a"

    def test_read_only_column(self, notes_and_tools):
        _, tools = notes_and_tools
        with pytest.raises(CellWriteError, match="read-only"):
            tools["database_update_cell"](
                database_path="board/Board.md",
                note_path="board/card.md",
                column_id="updated",
                value={"kind": "datetime", "value_text": "2020-01-01T00:00:00Z"},
            )


class TestMoveCard:
    def _group_by(self, root, tools, group_by, extra_column=None):
        database = frontmatter_of(root / "board" / "Board.md")["dbview"]["database"]
        if extra_column:
            database["columns"].append(extra_column)
        database["view"] = {"layout": "board", "board_group_by": group_by}
        tools["database_save_config"](database_path="board/Board.md", database=database)

    def test_move_on_tags_is_additive(self, notes_and_tools):
        root, tools = notes_and_tools
        self._group_by(root, tools, "tags")

        result = tools["database_move_card"](database_path="board/Board.md", note_path="board/card.md", lane_id="project")
        assert result["status"] == "moved"
        assert result["row"]["tags"] == ["ios", "swift", "project"]
        assert frontmatter_of(root / "board" / "card.md")["tags"] == ["ios", "swift", "project"]

    def test_move_to_empty_lane_clears_tags(self, notes_and_tools):
        root, tools = notes_and_tools
        self._group_by(root, tools, "tags")
        tools["database_move_card"](database_path="board/Board.md", note_path="board/card.md", lane_id="__empty__")
        assert frontmatter_of(root / "board" / "card.md")["tags"] == []

    def test_move_on_checkbox(self, notes_and_tools):
        root, tools = notes_and_tools
        done = {
            "id": "property:done",
            "type": "property",
            "label": "Done",
            "visible": True,
            "property_key": "done",
            "property_kind": "checkbox",
        }
        self._group_by(root, tools, "property:done", done)

        tools["database_move_card"](database_path="board/Board.md", note_path="board/card.md", lane_id="true")
        assert frontmatter_of(root / "board" / "card.md")["done"] is True

        tools["database_move_card"](database_path="board/Board.md", note_path="board/card.md", lane_id="__empty__")
        data = frontmatter_of(root / "board" / "card.md")
        assert "done" in data
        assert data["done"] is None

    def test_move_without_group_column(self, notes_and_tools):
        root, tools = notes_and_tools
        self._group_by(root, tools, "missing")
        with pytest.raises(ValueError, match="no group-by column"):
            tools["database_move_card"](database_path="board/Board.md", note_path="board/card.md", lane_id="x")


class TestCreateRow:
    def test_create_row(self, notes_and_tools):
        root, tools = notes_and_tools
        result = tools["database_create_row"](database_path="board/Board.md", title="New card")
        assert result["status"] == "created"
        assert result["note_path"] == "board/New card.md"
        assert result["row"]["title"] == "New card"
        assert (root / "board" / "New card.md").exists()


class TestReadOnly:
    def test_all_write_tools_rejected(self, notes_and_tools, monkeypatch):
        root, _ = notes_and_tools
        monkeypatch.setenv("DBVIEW_READ_ONLY", "true")
        tools = build_tools(Config.from_env())
        before = (root / "board" / "card.md").read_text(encoding="utf-8")

        calls = [
            ("database_save_config", {"database_path": "board/Board.md", "database": {}}),
            (
                "database_update_cell",
                {
                    "database_path": "board/Board.md",
                    "note_path": "board/card.md",
                    "column_id": "title",
                    "value": {"kind": "text", "value_text": "x"},
                },
            ),
            ("database_move_card", {"database_path": "board/Board.md", "note_path": "board/card.md", "lane_id": "x"}),
            ("database_create_row", {"database_path": "board/Board.md"}),
            ("database_create", {"database_path": "Other.md"}),
        ]
        for name, kwargs in calls:
            with pytest.raises(AuthError, match="read-only mode"):
                tools[name](**kwargs)

        assert (root / "board" / "card.md").read_text(encoding="utf-8") == before
        assert not (root / "Other.md").exists()
