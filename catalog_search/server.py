"""
Catalog Search MCP Server - Main Entry Point

FastMCP server with STDIO and SSE transport support.
"""

import argparse
import logging
from fastmcp import FastMCP

from catalog_search.config import get_settings

# Import tools (registered on their routers at import time)
from catalog_search.tools import (
    browse_catalog,
    search_catalog,
    get_facet,
)

LOG_FORMATS = {
    "text": "%(asctime)s %(levelname)s %(name)s %(message)s",
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
}


def configure_logging(settings=None) -> None:
    """Configure the root logger from LogSettings."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log.level),
        format=LOG_FORMATS[settings.log.format],
    )


def create_app() -> FastMCP:
    """Create and configure the MCP application."""
    mcp = FastMCP(
        name="catalog-search",
        instructions="Catalog browse and search with merchandising rules and facets",
    )

    # Register all tools
    mcp.mount(browse_catalog.router)
    mcp.mount(search_catalog.router)
    mcp.mount(get_facet.router)

    return mcp


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Catalog Search MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=None,
        help="Transport protocol (default: from env)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for SSE transport (default: from env)"
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings)
    transport = args.transport or settings.mcp.transport
    port = args.port or settings.mcp.port

    mcp = create_app()

    if transport == "stdio":
        mcp.run(transport="stdio")
    else:
        mcp.run(transport="sse", host=settings.mcp.host, port=port)


if __name__ == "__main__":
    main()
