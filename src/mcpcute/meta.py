"""
Meta-tools — the seven operations mcpcute publishes instead of the
backends' own catalogs.

MetaTools renders every operation to pretty-printed JSON text. Failures
surface as MetaToolError carrying the user-facing message; adapters turn
that into an error result rather than letting a fault cross the boundary.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .aggregator import Aggregator

logger = logging.getLogger(__name__)


class MetaToolError(Exception):
    """A meta-tool call that produced an error result."""


META_TOOL_SCHEMAS: list[dict[str, Any]] = [
    {
        "name": "list_mcps",
        "description": "List all available MCP servers with their connection status and tool counts.",
        "inputSchema": {"type": "object", "properties": {}},
    },
    {
        "name": "search_mcps",
        "description": "Search for MCP servers by name.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Keywords to search for in MCP names"},
            },
        },
    },
    {
        "name": "get_mcp_details",
        "description": "Get detailed information about a specific MCP including its available tools.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "mcp_name": {"type": "string", "description": "The name of the MCP to get details for"},
            },
            "required": ["mcp_name"],
        },
    },
    {
        "name": "list_tools",
        "description": "List all tools available in a specific MCP server.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "mcp_name": {"type": "string", "description": "The MCP to list tools from"},
            },
            "required": ["mcp_name"],
        },
    },
    {
        "name": "search_tools",
        "description": "Search for tools across all MCPs or within a specific MCP.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query to filter tools by name or description",
                },
                "mcp_name": {
                    "type": "string",
                    "description": "Optional: Scope search to a specific MCP",
                },
            },
        },
    },
    {
        "name": "get_tool_details",
        "description": "Get detailed information about a specific tool including its input schema and description.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tool_name": {"type": "string", "description": "The name of the tool to get details for"},
            },
            "required": ["tool_name"],
        },
    },
    {
        "name": "execute_tool",
        "description": "Execute a tool from one of the aggregated MCPs.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tool_name": {"type": "string", "description": "The name of the tool to execute"},
                "arguments": {
                    "type": "object",
                    "additionalProperties": True,
                    "description": "Arguments to pass to the tool",
                },
                "mcp_name": {
                    "type": "string",
                    "description": "Optional: The MCP that owns the tool (skips name resolution)",
                },
            },
            "required": ["tool_name"],
        },
    },
]


def to_json(value: Any) -> str:
    """Pretty-print a result, dumping pydantic models (SDK results) first."""
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(value, indent=2, default=str)


class MetaTools:
    """Text-rendering front for an Aggregator."""

    def __init__(self, aggregator: Aggregator):
        self.aggregator = aggregator

    async def list_mcps(self) -> str:
        return to_json(self.aggregator.list_mcps())

    async def search_mcps(self, query: str | None = None) -> str:
        return to_json(self.aggregator.search_mcps(query))

    async def get_mcp_details(self, mcp_name: str) -> str:
        details = await self.aggregator.get_mcp_details(mcp_name)
        if details is None:
            raise MetaToolError(f"MCP not found: {mcp_name}")
        return to_json(details)

    async def list_tools(self, mcp_name: str) -> str:
        tools = await self.aggregator.list_tools_for_mcp(mcp_name)
        if not tools:
            raise MetaToolError(
                f"No tools found for MCP: {mcp_name} (MCP may not exist or has no tools)"
            )
        return to_json([t.to_summary() for t in tools])

    async def search_tools(self, query: str | None = None, mcp_name: str | None = None) -> str:
        results = await self.aggregator.search_tools(query, mcp_name)
        return to_json([t.to_search_result() for t in results])

    async def get_tool_details(self, tool_name: str) -> str:
        tool = await self.aggregator.get_tool_details(tool_name)
        if tool is None:
            raise MetaToolError(f"Tool not found: {tool_name}")
        return to_json(tool.to_details())

    async def execute_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        mcp_name: str | None = None,
    ) -> str:
        try:
            result = await self.aggregator.execute_tool(tool_name, arguments or {}, mcp_name)
        except Exception as e:
            logger.error(f"Error executing tool {tool_name}: {e}")
            raise MetaToolError(f"Error executing tool: {e}") from e
        return to_json(result)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None = None) -> str:
        """Route a meta-tool call by name."""
        arguments = arguments or {}

        if name == "list_mcps":
            return await self.list_mcps()
        if name == "search_mcps":
            return await self.search_mcps(arguments.get("query"))
        if name == "get_mcp_details":
            return await self.get_mcp_details(_required(arguments, "mcp_name"))
        if name == "list_tools":
            return await self.list_tools(_required(arguments, "mcp_name"))
        if name == "search_tools":
            return await self.search_tools(arguments.get("query"), arguments.get("mcp_name"))
        if name == "get_tool_details":
            return await self.get_tool_details(_required(arguments, "tool_name"))
        if name == "execute_tool":
            return await self.execute_tool(
                _required(arguments, "tool_name"),
                arguments.get("arguments"),
                arguments.get("mcp_name"),
            )

        raise MetaToolError(f"Unknown tool: '{name}'. Available: {[s['name'] for s in META_TOOL_SCHEMAS]}")


def _required(arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise MetaToolError(f"Missing required argument: {key}")
    return value
