"""
MCP front end — serves the meta-tools to an agent over stdio.

stdout carries the protocol; all logging goes to stderr.
"""

from __future__ import annotations

import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import __version__
from .aggregator import Aggregator
from .meta import META_TOOL_SCHEMAS, MetaTools

logger = logging.getLogger(__name__)

SERVER_NAME = "mcpcute"


def build_server(aggregator: Aggregator) -> Server:
    """Create an MCP Server whose tools are the aggregator's meta-operations."""
    server = Server(SERVER_NAME, version=__version__)
    meta = MetaTools(aggregator)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [Tool(**schema) for schema in META_TOOL_SCHEMAS]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        # MetaToolError propagates; the SDK returns it as an isError result
        text = await meta.dispatch(name, arguments)
        return [TextContent(type="text", text=text)]

    return server


async def serve(aggregator: Aggregator) -> None:
    """Run the front end on stdin/stdout until the client disconnects."""
    server = build_server(aggregator)
    logger.info(f"Serving {len(META_TOOL_SCHEMAS)} meta-tools for {aggregator.registry.count} backend(s)")

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        await aggregator.close()
