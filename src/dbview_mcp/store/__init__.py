"""
Document store for dbviewMCP.

Markdown notes under the workspace root are the rows. Frontmatter holds
their properties, and a database note's frontmatter holds its view
configuration.
"""

from dbview_mcp.store.documents import (
    DATABASE_KEY,
    HARD_LIMIT,
    RESERVED_PROPERTIES,
    DocumentStore,
    StoreError,
    slugify_title,
)
from dbview_mcp.store.parser import FrontmatterError, split_frontmatter
from dbview_mcp.store.walker import FileInfo, walk_root

__all__ = [
    "DATABASE_KEY",
    "HARD_LIMIT",
    "RESERVED_PROPERTIES",
    "DocumentStore",
    "FileInfo",
    "FrontmatterError",
    "StoreError",
    "slugify_title",
    "split_frontmatter",
    "walk_root",
]
