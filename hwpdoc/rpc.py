"""
MCP Transport
=============
Serves the tool engine as an MCP server.

    serve_stdio      → ``mcp`` low-level ``Server`` over ``stdio_server()``
    handle_message   → one JSON-RPC message, for the HTTP ``/rpc`` endpoint

Methods:
    initialize   → protocol version, capabilities, server info
    tools/list   → tool definitions with input schemas
    tools/call   → tool result envelope
"""

from __future__ import annotations

import logging
from typing import Optional

import anyio
import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from . import __version__
from .contracts import PROTOCOL_VERSION
from .engine import ToolEngine
from .errors import ErrorKind
from .models import ToolResult
from .results import error_result

logger = logging.getLogger(__name__)

SERVER_NAME = "hwpdoc"


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, mode="json", exclude_none=True)


def server_info() -> types.Implementation:
    return types.Implementation(name=SERVER_NAME, version=__version__)


def initialize_result() -> types.InitializeResult:
    return types.InitializeResult(
        protocolVersion=PROTOCOL_VERSION,
        capabilities=types.ServerCapabilities(tools=types.ToolsCapability()),
        serverInfo=server_info(),
    )


def tool_list(engine: ToolEngine) -> list[types.Tool]:
    return [types.Tool.model_validate(tool) for tool in engine.list_tools()]


def to_call_tool_result(result: ToolResult) -> types.CallToolResult:
    return types.CallToolResult.model_validate(result.to_wire())


# ─── MCP Server ──────────────────────────────────────────────────────────────


def create_mcp_server(engine: ToolEngine) -> Server:
    """Build a low-level MCP server whose handlers delegate to ``engine``."""
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return tool_list(engine)

    # Argument errors are reported by the tools themselves.
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict) -> types.CallToolResult:
        result = await anyio.to_thread.run_sync(engine.call, name, arguments)
        return to_call_tool_result(result)

    return server


async def _run_stdio(engine: ToolEngine):
    server = create_mcp_server(engine)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def serve_stdio(engine: ToolEngine):
    """Serve MCP over stdin/stdout until the client disconnects."""
    logger.info("Serving MCP over stdio")
    anyio.run(_run_stdio, engine)
    logger.info("stdio server stopped")


# ─── Single-message Dispatch ─────────────────────────────────────────────────


def handle_tool_call(engine: ToolEngine, params) -> ToolResult:
    if not isinstance(params, dict):
        return error_result(ErrorKind.INVALID_INPUT, "params must be an object")

    name = params.get("name")
    if not isinstance(name, str):
        return error_result(
            ErrorKind.INVALID_INPUT, "params.name must be a string"
        )

    return engine.call(name, params.get("arguments", {}))


def handle_message(engine: ToolEngine, message) -> Optional[dict]:
    """
    Handle one decoded JSON-RPC message.

    Returns the response object, or ``None`` when no response is due
    (notifications and non-object messages).
    """
    if not isinstance(message, dict):
        return None

    method = message.get("method")
    if "id" not in message:
        logger.debug(f"Ignoring notification: {method}")
        return None
    request_id = message["id"]
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int)):
        logger.warning(f"Ignoring request with invalid id: {request_id!r}")
        return None

    if method == "initialize":
        result = initialize_result()
    elif method == "tools/list":
        result = types.ListToolsResult(tools=tool_list(engine))
    elif method == "tools/call":
        result = to_call_tool_result(
            handle_tool_call(engine, message.get("params"))
        )
    else:
        logger.warning(f"Unknown method: {method}")
        return _dump(types.JSONRPCError(
            jsonrpc="2.0",
            id=request_id,
            error=types.ErrorData(
                code=types.METHOD_NOT_FOUND,
                message=f"method not found: {method}",
            ),
        ))

    return _dump(types.JSONRPCResponse(
        jsonrpc="2.0", id=request_id, result=_dump(result)
    ))
