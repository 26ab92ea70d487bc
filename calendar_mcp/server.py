"""
MCP stdio server exposing the calendar tools.

stdout carries the protocol, so logging goes to stderr only.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from .dispatcher import OperationDispatcher, get_dispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "calendar"


def create_server(dispatcher: Optional[OperationDispatcher] = None) -> Server:
    """Build the MCP server; the dispatcher defaults to the Google-backed one."""
    server = Server(SERVER_NAME)

    def _dispatcher() -> OperationDispatcher:
        return dispatcher or get_dispatcher()

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [
            types.Tool(
                name=schema.name.value,
                description=schema.description,
                inputSchema=schema.json_schema(),
            )
            for schema in _dispatcher().registry
        ]

    # Arguments are validated by the dispatcher so failures keep the "Error: ..." reply shape
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        text = _dispatcher().call(name, arguments)
        return [types.TextContent(type="text", text=text)]

    return server


async def serve() -> None:
    server = create_server()
    logger.info(f"Starting MCP server '{SERVER_NAME}' on stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())
