"""File walker for discovering notes under the workspace root."""

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path


@dataclass
class FileInfo:
    """Information about a discovered note."""

    path: Path  # Absolute path
    relative_path: str  # POSIX path relative to the root, used as the row id
    folder: str  # Parent directory relative to the root, "" for root notes
    filename: str
    mtime: float
    ctime: float


def is_hidden(relative_parts: tuple[str, ...]) -> bool:
    return any(part.startswith(".") for part in relative_parts)


def file_info(root: Path, file_path: Path) -> FileInfo:
    """Build the FileInfo of one note under ``root``."""
    relative = file_path.relative_to(root)
    stat = file_path.stat()
    created = getattr(stat, "st_birthtime", None) or stat.st_ctime
    parent = relative.parent.as_posix()
    return FileInfo(
        path=file_path,
        relative_path=relative.as_posix(),
        folder="" if parent == "." else parent,
        filename=file_path.name,
        mtime=stat.st_mtime,
        ctime=created,
    )


def walk_root(root: Path) -> Iterator[FileInfo]:
    """
    Walk the workspace root and yield FileInfo for each .md note.

    Hidden files and anything inside hidden directories (``.git``,
    ``.obsidian``, ...) are skipped. Notes are yielded in path order.
    """
    if not root.exists():
        return

    for file_path in sorted(root.rglob("*.md")):
        if not file_path.is_file():
            continue
        if is_hidden(file_path.relative_to(root).parts):
            continue
        yield file_info(root, file_path)
