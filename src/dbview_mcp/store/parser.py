"""YAML frontmatter handling for markdown notes.

Splits a note into its frontmatter mapping and body, infers typed
properties from frontmatter values, collects tags, and renders a mapping
back into a note.
"""

import logging
import re
from datetime import date, datetime, timezone
from pathlib import PurePosixPath
from typing import Any

import yaml

from dbview_mcp.engine.models import CellKind, CellValue

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled"
PREVIEW_MAX_LINES = 20

URL_PREFIXES = ("http://", "https://")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DATETIME_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"
)
# Closing delimiter line; may be the first line (empty block) or the last
FRONTMATTER_CLOSE_PATTERN = re.compile(r"(?:\A|\r?\n)---[ \t]*(?:\r?\n|\Z)")
TAG_PATTERN = re.compile(r"^[a-z0-9_/-]+$")
INLINE_TAG_PATTERN = re.compile(r"(?<![A-Za-z0-9/_])#([A-Za-z0-9_/-]+)")
INLINE_CODE_PATTERN = re.compile(r"`[^`]*`?")


class FrontmatterError(ValueError):
    """Raised when a frontmatter block is not a valid YAML mapping."""


def split_frontmatter(markdown: str) -> tuple[str | None, str]:
    """
    Split a note into its raw frontmatter and body.

    The frontmatter must open on the first line with ``---`` and close with
    a ``---`` line; both LF and CRLF line endings are accepted.

    Returns:
        Tuple of (frontmatter text or None, body)
    """
    for opener in ("---\n", "---\r\n"):
        if not markdown.startswith(opener):
            continue
        rest = markdown[len(opener):]
        match = FRONTMATTER_CLOSE_PATTERN.search(rest)
        if match is None:
            return None, markdown
        return rest[: match.start()], rest[match.end():]
    return None, markdown


def parse_frontmatter_mapping(frontmatter: str | None) -> dict[str, Any]:
    """Parse frontmatter text into a mapping; no frontmatter is an empty one.

    Raises:
        FrontmatterError: If the text is not YAML or not a mapping.
    """
    if frontmatter is None or not frontmatter.strip():
        return {}
    try:
        raw = yaml.safe_load(frontmatter)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"invalid YAML frontmatter: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise FrontmatterError("frontmatter must be a mapping")
    return {str(key): value for key, value in raw.items()}


def read_frontmatter(markdown: str, file_path: str) -> tuple[dict[str, Any], str]:
    """Lenient variant for reads: broken frontmatter counts as none."""
    frontmatter, body = split_frontmatter(markdown)
    try:
        return parse_frontmatter_mapping(frontmatter), body
    except FrontmatterError as e:
        logger.debug("Ignoring frontmatter in %s: %s", file_path, e)
        return {}, body


def render_frontmatter_yaml(mapping: dict[str, Any]) -> str:
    return yaml.safe_dump(mapping, sort_keys=False, allow_unicode=True, default_flow_style=False)


def render_markdown(mapping: dict[str, Any], body: str) -> str:
    """Join a frontmatter mapping and a body into note text."""
    body = body.lstrip("\n")
    return f"---\n{render_frontmatter_yaml(mapping)}---\n\n{body}"


def now_rfc3339() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _has_text(mapping: dict[str, Any], field: str) -> bool:
    value = mapping.get(field)
    if value is None:
        return False
    return bool(str(value).strip())


def normalize_frontmatter_mapping(
    mapping: dict[str, Any],
    note_id: str,
    default_title: str | None = None,
    preserve_created: str | None = None,
) -> dict[str, Any]:
    """Fill in the fields every written note carries.

    ``id`` is always the note path and ``updated`` always now; ``title``,
    ``created`` and ``tags`` are only set when missing.
    """
    normalized = dict(mapping)
    normalized["id"] = note_id
    if not _has_text(normalized, "title"):
        normalized["title"] = default_title or DEFAULT_TITLE
    if not _has_text(normalized, "created"):
        normalized["created"] = preserve_created or now_rfc3339()
    normalized["updated"] = now_rfc3339()
    if "tags" not in normalized:
        normalized["tags"] = []
    return normalized


# --- Properties ---


def _scalar_text(value: Any) -> str | None:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str | int | float):
        return str(value)
    return None


def infer_string_kind(value: str) -> CellKind:
    trimmed = value.strip()
    if trimmed.startswith(URL_PREFIXES):
        return CellKind.URL
    if DATE_PATTERN.match(trimmed):
        return CellKind.DATE
    if DATETIME_PATTERN.match(trimmed):
        return CellKind.DATETIME
    return CellKind.TEXT


def property_from_yaml(key: str, value: Any) -> CellValue:
    """Turn one frontmatter value into a typed cell."""
    if value is None:
        return CellValue.empty(CellKind.TEXT)
    if isinstance(value, bool):
        return CellValue.checkbox(value)
    if isinstance(value, int | float):
        return CellValue.text(str(value), kind=CellKind.NUMBER)
    # datetime is a date subclass, so it goes first
    if isinstance(value, datetime):
        return CellValue.text(value.isoformat(), kind=CellKind.DATETIME)
    if isinstance(value, date):
        return CellValue.text(value.isoformat(), kind=CellKind.DATE)
    if isinstance(value, list):
        items = [_scalar_text(item) for item in value]
        if any(item is None for item in items):
            return CellValue.text(render_frontmatter_yaml(value), kind=CellKind.YAML)
        kind = CellKind.TAGS if key.lower() == "tags" else CellKind.LIST
        return CellValue.items(items, kind=kind)
    if isinstance(value, dict):
        return CellValue.text(render_frontmatter_yaml(value), kind=CellKind.YAML)
    text = str(value)
    return CellValue.text(text, kind=infer_string_kind(text))


def properties_from_mapping(mapping: dict[str, Any]) -> dict[str, CellValue]:
    """Typed cells for every frontmatter key, in document order."""
    return {key: property_from_yaml(key, value) for key, value in mapping.items()}


# --- Tags ---


def normalize_tag(raw: str) -> str | None:
    """Lower-case a tag and strip its ``#``; None if it is not a valid tag."""
    tag = raw.strip()
    if tag.startswith("#"):
        tag = tag[1:].strip()
    tag = tag.lower()
    if not tag or not TAG_PATTERN.match(tag):
        return None
    return tag


def frontmatter_tags(mapping: dict[str, Any]) -> list[str]:
    value = mapping.get("tags")
    if isinstance(value, list):
        parts = [item for item in value if isinstance(item, str)]
    elif isinstance(value, str):
        parts = value.split(",") if "," in value else value.split()
    else:
        return []
    return sorted({tag for tag in map(normalize_tag, parts) if tag})


def inline_tags(body: str) -> list[str]:
    """Collect ``#tags`` from the body, skipping fenced and inline code."""
    found: set[str] = set()
    in_fence = False
    for line in body.splitlines():
        if line.lstrip().startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        cleaned = INLINE_CODE_PATTERN.sub("", line)
        for match in INLINE_TAG_PATTERN.finditer(cleaned):
            tag = normalize_tag(match.group(1))
            if tag:
                found.add(tag)
    return sorted(found)


def note_tags(mapping: dict[str, Any], body: str) -> tuple[str, ...]:
    return tuple(sorted(set(frontmatter_tags(mapping)) | set(inline_tags(body))))


# --- Title, timestamps, preview ---


def note_title(mapping: dict[str, Any], file_path: str) -> str:
    """Frontmatter title, falling back to the file name without extension."""
    title = mapping.get("title")
    if title is not None and str(title).strip() and str(title).strip() != DEFAULT_TITLE:
        return str(title).strip()
    stem = PurePosixPath(file_path).stem
    return stem or DEFAULT_TITLE


def timestamp_text(value: Any) -> str | None:
    """Frontmatter timestamp as text; dates parsed by YAML become ISO-8601."""
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def preview_from_body(body: str) -> str:
    body = body.strip()
    if not body:
        return ""
    lines = body.splitlines()
    preview = "\n".join(lines[:PREVIEW_MAX_LINES])
    if len(lines) > PREVIEW_MAX_LINES:
        preview += "\n…"
    return preview
