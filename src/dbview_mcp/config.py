"""Configuration module for dbviewMCP.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dbview_mcp.store.documents import HARD_LIMIT


@dataclass
class Config:
    """Application configuration."""

    root: Path
    port: int
    auth_token: str | None
    read_only: bool
    row_limit: int

    @classmethod
    def from_env(cls, read_only_override: bool | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            read_only_override: If provided, overrides the DBVIEW_READ_ONLY env var.
        """
        default_root = str(Path.home() / "Notes")
        root = Path(os.getenv("DBVIEW_ROOT", default_root)).expanduser()

        port_str = os.getenv("DBVIEW_PORT", "8080")
        try:
            port = int(port_str)
            if not 1 <= port <= 65535:
                raise ValueError(f"Port must be between 1 and 65535, got {port}")
        except ValueError as e:
            raise ValueError(f"Invalid DBVIEW_PORT value '{port_str}': {e}") from e

        # Auth token - must be at least 32 bytes if set
        auth_token = os.getenv("DBVIEW_AUTH_TOKEN")
        if auth_token is not None:
            if len(auth_token) < 32:
                raise ValueError(
                    "DBVIEW_AUTH_TOKEN must be at least 32 characters for security"
                )

        # Read-only mode - CLI flag takes precedence over env var
        if read_only_override is not None:
            read_only = read_only_override
        else:
            read_only = os.getenv("DBVIEW_READ_ONLY", "").lower() in ("1", "true", "yes")

        limit_str = os.getenv("DBVIEW_ROW_LIMIT", str(HARD_LIMIT))
        try:
            row_limit = max(1, min(int(limit_str), HARD_LIMIT))
        except ValueError as e:
            raise ValueError(f"Invalid DBVIEW_ROW_LIMIT value '{limit_str}': {e}") from e

        return cls(
            root=root,
            port=port,
            auth_token=auth_token,
            read_only=read_only,
            row_limit=row_limit,
        )
