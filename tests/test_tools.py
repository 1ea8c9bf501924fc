"""Tests for read tools."""

import pytest
import yaml
from fastmcp import FastMCP

from dbview_mcp.config import Config
from dbview_mcp.store import DocumentStore
from dbview_mcp.tools import register_tools
from dbview_mcp.tools_write import register_tools_write


def write_note(root, rel_path, frontmatter, body=""):
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{yaml.safe_dump(frontmatter, sort_keys=False)}---\n{body}", encoding="utf-8")


@pytest.fixture
def notes_and_tools(tmp_path, monkeypatch):
    """Create a workspace with a tasks database and register all tools."""
    root = tmp_path / "notes"
    root.mkdir()
    monkeypatch.setenv("DBVIEW_ROOT", str(root))
    monkeypatch.delenv("DBVIEW_READ_ONLY", raising=False)
    monkeypatch.delenv("DBVIEW_AUTH_TOKEN", raising=False)
    monkeypatch.delenv("DBVIEW_ROW_LIMIT", raising=False)

    write_note(root, "tasks/a.md", {"title": "A", "updated": "2025-01-01T00:00:00Z", "status": "Backlog", "estimate": 10})
    write_note(root, "tasks/b.md", {"title": "B", "updated": "2025-01-02T00:00:00Z", "status": "Doing", "estimate": 2})
    write_note(root, "tasks/c.md", {"title": "C", "updated": "2025-01-03T00:00:00Z", "status": None})

    config = Config.from_env()
    store = DocumentStore(config.root, default_limit=config.row_limit)
    mcp = FastMCP()
    register_tools(mcp, store, config)
    register_tools_write(mcp, config, store)

    tools = {}
    for tool in mcp._tool_manager._tools.values():
        tools[tool.fn.__name__] = tool.fn

    tools["database_create"](database_path="tasks/Tasks.md", title="Tasks")
    yield root, tools


def add_status_column(tools, **changes):
    """Add a status property column (plus any other config changes) and save."""
    config = tools["database_load"](database_path="tasks/Tasks.md")["config"]
    config["columns"].append(
        {
            "id": "property:status",
            "type": "property",
            "label": "Status",
            "visible": True,
            "property_key": "status",
            "property_kind": "text",
        }
    )
    config["columns"].append(
        {
            "id": "property:estimate",
            "type": "property",
            "label": "Estimate",
            "visible": True,
            "property_key": "estimate",
            "property_kind": "number",
        }
    )
    config.update(changes)
    tools["database_save_config"](database_path="tasks/Tasks.md", database=config)
    return config


class TestDatabaseLoad:
    def test_load(self, notes_and_tools):
        _, tools = notes_and_tools
        result = tools["database_load"](database_path="tasks/Tasks.md")

        assert [row["note_path"] for row in result["rows"]] == ["tasks/c.md", "tasks/b.md", "tasks/a.md"]
        assert result["truncated"] is False
        assert result["total_loaded"] == 3
        assert result["config"]["source"] == {"kind": "folder", "value": "tasks", "recursive": True}
        assert [column["id"] for column in result["config"]["columns"]] == ["title", "tags", "updated"]

    def test_load_with_limit(self, notes_and_tools):
        _, tools = notes_and_tools
        result = tools["database_load"](database_path="tasks/Tasks.md", limit=1)
        assert result["total_loaded"] == 1
        assert result["truncated"] is True

    def test_load_missing_database(self, notes_and_tools):
        _, tools = notes_and_tools
        with pytest.raises(ValueError, match="not found"):
            tools["database_load"](database_path="tasks/Missing.md")


class TestDatabaseTable:
    def test_number_sort_with_absent_last(self, notes_and_tools):
        _, tools = notes_and_tools
        add_status_column(tools, sorts=[{"column_id": "property:estimate", "direction": "asc"}])

        result = tools["database_table"](database_path="tasks/Tasks.md")
        assert [row["note_path"] for row in result["rows"]] == ["tasks/b.md", "tasks/a.md", "tasks/c.md"]
        assert result["row_count"] == 3

    def test_is_empty_filter(self, notes_and_tools):
        _, tools = notes_and_tools
        add_status_column(
            tools,
            filters=[{"column_id": "property:status", "operator": "is_empty", "value_list": []}],
        )
        result = tools["database_table"](database_path="tasks/Tasks.md")
        assert [row["note_path"] for row in result["rows"]] == ["tasks/c.md"]

    def test_dangling_filter_fails_open(self, notes_and_tools):
        _, tools = notes_and_tools
        add_status_column(tools, filters=[{"column_id": "gone", "operator": "is_true", "value_list": []}])
        assert tools["database_table"](database_path="tasks/Tasks.md")["row_count"] == 3

    def test_hidden_columns_are_left_out(self, notes_and_tools):
        _, tools = notes_and_tools
        config = tools["database_load"](database_path="tasks/Tasks.md")["config"]
        config["columns"][1]["visible"] = False
        tools["database_save_config"](database_path="tasks/Tasks.md", database=config)

        result = tools["database_table"](database_path="tasks/Tasks.md")
        assert [column["id"] for column in result["columns"]] == ["title", "updated"]
        assert result["editable_columns"] == ["title"]


class TestDatabaseBoard:
    def test_status_lanes(self, notes_and_tools):
        _, tools = notes_and_tools
        add_status_column(tools, view={"layout": "board", "board_group_by": "property:status"})

        result = tools["database_board"](database_path="tasks/Tasks.md")
        assert result["group_by"] == "property:status"
        assert [(lane["id"], lane["note_paths"]) for lane in result["lanes"]] == [
            ("Doing", ["tasks/b.md"]),
            ("Backlog", ["tasks/a.md"]),
            ("__empty__", ["tasks/c.md"]),
        ]
        assert result["lanes"][-1]["label"] == "No value"

    def test_default_group_column(self, notes_and_tools):
        _, tools = notes_and_tools
        result = tools["database_board"](database_path="tasks/Tasks.md")
        assert result["group_by"] == "tags"
        assert result["group_columns"] == ["tags"]
        assert [lane["id"] for lane in result["lanes"]] == ["__empty__"]

    def test_missing_group_column_has_no_lanes(self, notes_and_tools):
        _, tools = notes_and_tools
        add_status_column(tools, view={"layout": "board", "board_group_by": "property:priority"})
        result = tools["database_board"](database_path="tasks/Tasks.md")
        assert result["group_by"] is None
        assert result["lanes"] == []


class TestDatabaseProperties:
    def test_properties(self, notes_and_tools):
        _, tools = notes_and_tools
        add_status_column(tools)
        result = tools["database_properties"](database_path="tasks/Tasks.md")

        assert [(item["key"], item["kind"], item["count"]) for item in result] == [
            ("estimate", "number", 2),
            ("status", "text", 3),
        ]
        assert all(item["in_use"] for item in result)
        assert result[0]["suggested_column"]["id"] == "property:estimate"
