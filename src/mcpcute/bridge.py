"""
Bridge between mcpcute and LangChain.

Exposes the aggregator's meta-tools as LangChain StructuredTools, so an
in-process LangChain/LangGraph agent can browse and call every backend
without an MCP hop in between.

Usage:
    async with Aggregator(registry) as aggregator:
        tools = meta_tools(aggregator)
        agent = create_react_agent(model, tools)
"""

from __future__ import annotations

from typing import Any, Awaitable

from langchain_core.tools import StructuredTool

from .aggregator import Aggregator
from .meta import META_TOOL_SCHEMAS, MetaToolError, MetaTools

_DESCRIPTIONS = {schema["name"]: schema["description"] for schema in META_TOOL_SCHEMAS}


async def _guard(call: Awaitable[str]) -> str:
    """Return error results as text instead of raising into the agent loop."""
    try:
        return await call
    except MetaToolError as e:
        return f"Error: {e}"


def meta_tools(aggregator: Aggregator) -> list[StructuredTool]:
    """Create one async StructuredTool per meta-operation."""
    meta = MetaTools(aggregator)

    async def list_mcps() -> str:
        return await _guard(meta.list_mcps())

    async def search_mcps(query: str | None = None) -> str:
        return await _guard(meta.search_mcps(query))

    async def get_mcp_details(mcp_name: str) -> str:
        return await _guard(meta.get_mcp_details(mcp_name))

    async def list_tools(mcp_name: str) -> str:
        return await _guard(meta.list_tools(mcp_name))

    async def search_tools(query: str | None = None, mcp_name: str | None = None) -> str:
        return await _guard(meta.search_tools(query, mcp_name))

    async def get_tool_details(tool_name: str) -> str:
        return await _guard(meta.get_tool_details(tool_name))

    async def execute_tool(
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        mcp_name: str | None = None,
    ) -> str:
        return await _guard(meta.execute_tool(tool_name, arguments, mcp_name))

    functions = [
        list_mcps,
        search_mcps,
        get_mcp_details,
        list_tools,
        search_tools,
        get_tool_details,
        execute_tool,
    ]
    return [
        StructuredTool.from_function(
            coroutine=func,
            name=func.__name__,
            description=_DESCRIPTIONS[func.__name__],
        )
        for func in functions
    ]
