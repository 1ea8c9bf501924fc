"""
dbviewMCP - database views over a workspace of markdown notes.

Turns a folder, tag or search of markdown notes into a typed table or a
kanban board, and writes cell edits back into each note's frontmatter.

Stack:
- Python + FastMCP
- YAML frontmatter (source of truth)
- SSE (remote HTTP transport) or stdio (local clients)
"""

__version__ = "0.1.0"
