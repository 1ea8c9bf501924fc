"""Main entry point for dbviewMCP server."""

import argparse
import logging
import sys

from fastmcp import FastMCP

from dbview_mcp.auth import get_auth_provider
from dbview_mcp.config import Config
from dbview_mcp.store import DocumentStore
from dbview_mcp.tools import register_tools
from dbview_mcp.tools_write import register_tools_write

logger = logging.getLogger(__name__)


def create_server(config: Config) -> FastMCP:
    """Create and configure the MCP server with all components.

    Args:
        config: Configuration instance with all settings.
    """
    auth_provider = get_auth_provider(config)

    mcp = FastMCP(
        name="dbviewMCP",
        instructions=(
            "dbviewMCP shows markdown notes as database views. A database note "
            "selects notes by folder, tag or search and configures columns, "
            "filters, sorts and a board group-by column. Use database_table or "
            "database_board to read a view and the write tools to edit cells, "
            "move cards and create rows."
        ),
        auth=auth_provider,
    )

    if not config.root.exists():
        logger.warning("Workspace root %s does not exist yet", config.root)
    store = DocumentStore(config.root, default_limit=config.row_limit)

    logger.info("Registering read tools...")
    register_tools(mcp, store, config)

    logger.info("Registering write tools...")
    register_tools_write(mcp, config, store)

    logger.info("Server configured successfully")
    return mcp


def main() -> None:
    """Main function - starts the MCP server."""
    # Configure logging here to avoid side effects on import
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="dbviewMCP - database views over markdown notes")
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Run in read-only mode (write tools reject calls)",
    )
    parser.add_argument(
        "--transport",
        choices=["sse", "stdio"],
        default="sse",
        help="MCP transport (default: sse)",
    )
    args = parser.parse_args()

    # CLI flag overrides env var
    config = Config.from_env(read_only_override=args.read_only if args.read_only else None)

    logger.info("=" * 50)
    logger.info("dbviewMCP starting...")
    logger.info("  DBVIEW_ROOT:      %s", config.root)
    logger.info("  DBVIEW_PORT:      %s", config.port)
    logger.info("  DBVIEW_ROW_LIMIT: %s", config.row_limit)
    logger.info("  AUTH:             %s", "enabled" if config.auth_token else "disabled")
    logger.info("  READ_ONLY:        %s", config.read_only)
    logger.info("=" * 50)

    try:
        mcp = create_server(config)
        if args.transport == "stdio":
            mcp.run(transport="stdio")
        else:
            logger.info("Starting MCP server on port %s...", config.port)
            mcp.run(transport="sse", host="0.0.0.0", port=config.port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)


if __name__ == "__main__":
    main()
