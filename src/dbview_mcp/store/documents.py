"""Document store: markdown notes under a root directory as database rows.

The notes on disk are the only source of truth. Every load walks the root
and rebuilds rows from scratch; writes patch a note's frontmatter and
replace the file atomically.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

from dbview_mcp.engine.codec import config_from_dict, config_to_dict, create_default_config, normalize_dir
from dbview_mcp.engine.models import (
    CellValue,
    Column,
    CreateRowResult,
    DatabaseConfig,
    DatabaseSource,
    LoadResult,
    PropertyOption,
    Row,
    SourceKind,
)
from dbview_mcp.engine.mutations import apply_cell_value, cell_patch
from dbview_mcp.store.parser import (
    DEFAULT_TITLE,
    FrontmatterError,
    normalize_frontmatter_mapping,
    normalize_tag,
    note_tags,
    note_title,
    now_rfc3339,
    parse_frontmatter_mapping,
    preview_from_body,
    properties_from_mapping,
    read_frontmatter,
    render_markdown,
    split_frontmatter,
    timestamp_text,
)
from dbview_mcp.store.walker import FileInfo, file_info, walk_root

logger = logging.getLogger(__name__)

# Frontmatter key holding a database note's configuration
DATABASE_KEY = "dbview"
DATABASE_KIND = "database"
DATABASE_VERSION = 1

HARD_LIMIT = 500
MAX_ROW_CREATE_COLLISION_INDEX = 1_000

RESERVED_PROPERTIES = frozenset({"id", "title", "created", "updated", "tags", DATABASE_KEY})


class StoreError(ValueError):
    """Raised when a note cannot be read or written."""


@dataclass
class Document:
    """A note read from disk: its row and the body used for search."""

    row: Row
    body: str


def _format_file_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def folder_of(rel_path: str) -> str:
    parent = PurePosixPath(rel_path).parent.as_posix()
    return "" if parent == "." else parent


def _join(folder: str, filename: str) -> str:
    return f"{folder}/{filename}" if folder else filename


def slugify_title(title: str) -> str:
    """File name stem for a note title: ASCII letters, digits, space, - and _."""
    kept = "".join(ch if (ch.isascii() and ch.isalnum()) or ch in " -_" else " " for ch in title.strip())
    slug = " ".join(kept.split())
    return slug or DEFAULT_TITLE


def clamp_limit(limit: int | None, default: int = HARD_LIMIT) -> int:
    return max(1, min(limit if limit is not None else default, HARD_LIMIT))


def collect_available_properties(rows: list[Row]) -> list[PropertyOption]:
    """Non-reserved frontmatter keys across ``rows``, with first-seen kind and count."""
    counts: dict[str, tuple[Any, int]] = {}
    for row in rows:
        for key, cell in row.properties.items():
            if key in RESERVED_PROPERTIES:
                continue
            kind, count = counts.get(key, (cell.kind, 0))
            counts[key] = (kind, count + 1)
    return [PropertyOption(key=key, kind=kind, count=count) for key, (kind, count) in sorted(counts.items())]


class DocumentStore:
    """
    Reads and writes the notes under ``root``.

    Thread Safety:
        Writes to the same note are serialized by a per-note lock, so at
        most one write per document is in flight. Reads take no locks.
    """

    def __init__(self, root: Path, default_limit: int = HARD_LIMIT):
        self.root = root
        self.default_limit = clamp_limit(default_limit)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._create_lock = threading.Lock()

    # --- Paths ---

    def resolve(self, rel_path: str) -> Path:
        """
        Validate a note path and return its absolute location.

        Raises:
            StoreError: If the path is absolute, escapes the root, touches a
                hidden file or directory, or is not a markdown note.
        """
        if not rel_path or not rel_path.strip():
            raise StoreError("Note path is empty")
        rel = PurePosixPath(rel_path.replace("\\", "/"))
        if rel.is_absolute():
            raise StoreError(f"Note path must be relative: {rel_path}")
        if any(part == ".." for part in rel.parts):
            raise StoreError("Path traversal not allowed")
        if any(part.startswith(".") for part in rel.parts):
            raise StoreError(f"Hidden paths are not allowed: {rel_path}")
        if rel.suffix != ".md":
            raise StoreError(f"Not a markdown note: {rel_path}")

        root = self.root.resolve()
        abs_path = (root / rel).resolve()
        if not abs_path.is_relative_to(root):
            raise StoreError(f"Note path outside root: {rel_path}")
        return abs_path

    def note_exists(self, rel_path: str) -> bool:
        return self.resolve(rel_path).exists()

    def read_markdown(self, rel_path: str) -> str:
        abs_path = self.resolve(rel_path)
        if not abs_path.is_file():
            raise StoreError(f"Note not found: {rel_path}")
        return abs_path.read_text(encoding="utf-8")

    @contextmanager
    def document_lock(self, rel_path: str) -> Iterator[None]:
        """Hold the write lock of one note."""
        with self._locks_guard:
            lock = self._locks.setdefault(rel_path, threading.Lock())
        with lock:
            yield

    def _write_note(self, rel_path: str, markdown: str) -> None:
        """Replace a note atomically (temp file in the same directory, then rename)."""
        abs_path = self.resolve(rel_path)
        abs_path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=abs_path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(markdown)
            os.replace(tmp_name, abs_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info("Wrote note: %s", rel_path)

    # --- Rows ---

    def _document(self, info: FileInfo) -> Document:
        markdown = info.path.read_text(encoding="utf-8", errors="replace")
        mapping, body = read_frontmatter(markdown, info.relative_path)
        row = Row(
            id=info.relative_path,
            title=note_title(mapping, info.relative_path),
            created=timestamp_text(mapping.get("created")) or _format_file_time(info.ctime),
            updated=timestamp_text(mapping.get("updated")) or _format_file_time(info.mtime),
            tags=note_tags(mapping, body),
            properties=properties_from_mapping(mapping),
            preview=preview_from_body(body),
        )
        return Document(row=row, body=body)

    def read_row(self, rel_path: str) -> Row:
        abs_path = self.resolve(rel_path)
        if not abs_path.is_file():
            raise StoreError(f"Note not found: {rel_path}")
        return self._document(file_info(self.root, abs_path)).row

    def documents(self) -> list[Document]:
        """All notes, most recently updated first."""
        docs = [self._document(info) for info in walk_root(self.root)]
        docs.sort(key=lambda doc: doc.row.updated, reverse=True)
        return docs

    def source_documents(self, source: DatabaseSource) -> list[Document]:
        """Notes selected by a database source, most recently updated first."""
        docs = self.documents()

        if source.kind == SourceKind.FOLDER:
            folder = normalize_dir(source.value)
            if source.recursive:
                if not folder:
                    return docs
                return [doc for doc in docs if doc.row.id.startswith(f"{folder}/")]
            return [doc for doc in docs if folder_of(doc.row.id) == folder]

        if source.kind == SourceKind.TAG:
            tag = normalize_tag(source.value)
            if tag is None:
                return []
            return [doc for doc in docs if tag in doc.row.tags]

        terms = source.value.casefold().split()
        if not terms:
            return []
        return [
            doc
            for doc in docs
            if all(term in f"{doc.row.title}\n{doc.body}".casefold() for term in terms)
        ]

    # --- Database notes ---

    def read_database_config(self, database_path: str) -> DatabaseConfig:
        """
        Parse the configuration stored in a database note.

        Raises:
            StoreError: If the note has no frontmatter or no database block.
            ConfigError: If the stored configuration is malformed.
        """
        frontmatter, _ = split_frontmatter(self.read_markdown(database_path))
        if frontmatter is None:
            raise StoreError("database note is missing frontmatter")
        try:
            mapping = parse_frontmatter_mapping(frontmatter)
        except FrontmatterError as e:
            raise StoreError(str(e)) from e

        block = mapping.get(DATABASE_KEY)
        if not isinstance(block, dict):
            raise StoreError(f"database note is missing {DATABASE_KEY} config")
        if block.get("kind") != DATABASE_KIND:
            raise StoreError("note is not a database note")
        if block.get("database") is None:
            raise StoreError(f"database note is missing {DATABASE_KEY}.database config")
        return config_from_dict(block["database"])

    def is_database_note(self, rel_path: str) -> bool:
        try:
            self.read_database_config(rel_path)
        except ValueError:
            return False
        return True

    def load_database(self, database_path: str, limit: int | None = None) -> LoadResult:
        """Load a database note's configuration and the rows its source selects."""
        config = self.read_database_config(database_path)
        effective_limit = clamp_limit(limit, self.default_limit)

        rows = [doc.row for doc in self.source_documents(config.source) if doc.row.id != database_path]
        truncated = len(rows) > effective_limit
        rows = rows[:effective_limit]
        logger.debug("Loaded %d rows for %s (truncated: %s)", len(rows), database_path, truncated)

        return LoadResult(
            config=config,
            rows=tuple(rows),
            available_properties=tuple(collect_available_properties(rows)),
            truncated=truncated,
            total_loaded=len(rows),
        )

    def _render_database_markdown(self, path: str, markdown: str, config: DatabaseConfig) -> str:
        frontmatter, body = split_frontmatter(markdown)
        try:
            mapping = parse_frontmatter_mapping(frontmatter)
        except FrontmatterError as e:
            raise StoreError(str(e)) from e

        block = mapping.get(DATABASE_KEY)
        if block is None:
            block = {}
        elif not isinstance(block, dict):
            raise StoreError(f"'{DATABASE_KEY}' must be a mapping")
        block = {**block, "kind": DATABASE_KIND, "version": DATABASE_VERSION, "database": config_to_dict(config)}
        mapping[DATABASE_KEY] = block
        return render_markdown(normalize_frontmatter_mapping(mapping, path), body)

    def save_config(self, database_path: str, config: DatabaseConfig) -> DatabaseConfig:
        """Store a complete replacement configuration in a database note."""
        if not isinstance(config, DatabaseConfig):
            raise TypeError(f"save_config needs a full DatabaseConfig, got {type(config).__name__}")
        with self.document_lock(database_path):
            markdown = self.read_markdown(database_path)
            if split_frontmatter(markdown)[0] is None:
                raise StoreError("database note is missing frontmatter")
            self._write_note(database_path, self._render_database_markdown(database_path, markdown, config))
        logger.info("Saved database config: %s", database_path)
        return config

    def create_database(
        self,
        database_path: str,
        title: str | None = None,
        folder: str | None = None,
    ) -> DatabaseConfig:
        """Create a database note with the starter configuration.

        Args:
            database_path: Path of the new database note
            title: Note title (default: the file name)
            folder: Folder the database lists (default: the note's folder)
        """
        if folder is None:
            folder = folder_of(database_path)
        config = create_default_config(folder)
        with self._create_lock, self.document_lock(database_path):
            if self.note_exists(database_path):
                raise StoreError(f"Note already exists: {database_path}")
            base = {"title": (title or "").strip() or PurePosixPath(database_path).stem}
            markdown = render_markdown(base, "")
            self._write_note(database_path, self._render_database_markdown(database_path, markdown, config))
        logger.info("Created database note: %s", database_path)
        return config

    # --- Row writes ---

    def update_cell(self, note_path: str, column: Column, value: CellValue) -> Row:
        """
        Write one cell value back to its note.

        Returns the re-read row with the written value applied on top.

        Raises:
            CellWriteError: If the column cannot be written.
            StoreError: If the note is missing or its frontmatter is invalid.
        """
        patch = cell_patch(column, value)
        with self.document_lock(note_path):
            markdown = self.read_markdown(note_path)
            frontmatter, body = split_frontmatter(markdown)
            try:
                mapping = parse_frontmatter_mapping(frontmatter)
            except FrontmatterError as e:
                raise StoreError(f"Cannot update {note_path}: {e}") from e
            mapping[patch.key] = patch.yaml_value()
            self._write_note(note_path, render_markdown(normalize_frontmatter_mapping(mapping, note_path), body))

        logger.info("Updated %s in %s", patch.key, note_path)
        return apply_cell_value(self.read_row(note_path), column, value)

    def create_row(self, database_path: str, title: str | None = None) -> CreateRowResult:
        """
        Create a new note in the database's new-note folder.

        Raises:
            StoreError: If no free file name is found.
        """
        config = self.read_database_config(database_path)
        folder = normalize_dir(config.new_note.folder)
        title = (title or "").strip() or config.new_note.title_prefix.strip() or DEFAULT_TITLE
        slug = slugify_title(title)

        with self._create_lock:
            candidate = _join(folder, f"{slug}.md")
            index = 2
            while self.note_exists(candidate):
                if index > MAX_ROW_CREATE_COLLISION_INDEX:
                    raise StoreError(
                        f"reached note name collision limit while creating database row for slug "
                        f"'{slug}' in folder '{folder}' (last candidate: '{candidate}', next index: {index})"
                    )
                candidate = _join(folder, f"{slug} {index}.md")
                index += 1

            now = now_rfc3339()
            mapping = {"title": title, "created": now, "updated": now, "tags": []}
            with self.document_lock(candidate):
                self._write_note(candidate, render_markdown(normalize_frontmatter_mapping(mapping, candidate), ""))

        logger.info("Created row %s in %s", candidate, database_path)
        return CreateRowResult(note_path=candidate, row=self.read_row(candidate))
