# src/elastic_mcp/mcp.py
from __future__ import annotations

import asyncio
import copy
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set, TextIO

from jsonschema import FormatChecker, ValidationError, validate

from .util.results import ToolResult, error_text

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"

Handler = Callable[[Dict[str, Any]], Awaitable[ToolResult]]


@dataclass
class ToolSpec:
    name: str
    title: str
    description: str
    input_schema: Dict[str, Any]
    handler: Handler


def apply_defaults(schema: Dict[str, Any], args: Dict[str, Any]) -> Dict[str, Any]:
    """Fill in top-level `default` values the caller left out."""
    out = dict(args)
    for key, prop in (schema.get("properties") or {}).items():
        if key not in out and isinstance(prop, dict) and "default" in prop:
            out[key] = copy.deepcopy(prop["default"])
    return out


class MCPServer:
    """
    Minimal MCP over JSON-RPC via stdio:
    - initialize / notifications/initialized / ping / shutdown / exit
    - tools/list, tools/call
    """

    def __init__(self, server_name: str = "elastic-mcp", server_version: str = "0.0.0") -> None:
        self._tools: Dict[str, ToolSpec] = {}
        self._server_name = server_name
        self._server_version = server_version
        self._capabilities = {"tools": {}}
        self._format_checker = FormatChecker()

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"duplicate tool name: {spec.name}")
        self._tools[spec.name] = spec

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    # ---- envelopes ----
    @staticmethod
    def _result(id_val: Any, result: Any) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": id_val, "result": result}

    @staticmethod
    def _error(id_val: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": id_val,
            "error": {"code": code, "message": message, "data": data or {}},
        }

    # ---- protocol handlers ----
    def _handle_initialize(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        params = msg.get("params") or {}
        if not isinstance(params, dict):
            return self._error(msg.get("id"), -32602, "Invalid params", {"reason": "params must be an object"})
        result = {
            "protocolVersion": params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION,
            "serverInfo": {"name": self._server_name, "version": self._server_version},
            "capabilities": self._capabilities,
        }
        return self._result(msg.get("id"), result)

    def list_tools(self) -> Dict[str, Any]:
        return {
            "tools": [
                {
                    "name": t.name,
                    "title": t.title,
                    "description": t.description,
                    "inputSchema": t.input_schema,
                }
                for t in self._tools.values()
            ]
        }

    async def call_tool(self, name: Optional[str], args: Any) -> ToolResult:
        """
        Validate and run one tool. Never raises: unknown tools, invalid
        arguments and handler crashes all come back as error-flagged text.
        """
        spec = self._tools.get(name) if isinstance(name, str) else None
        if spec is None:
            return error_text(f"Unknown tool: {name}")

        if args is None:
            args = {}
        try:
            validate(instance=args, schema=spec.input_schema, format_checker=self._format_checker)
        except ValidationError as ve:
            logger.info("invalid arguments: %s", ve.message, extra={"tool": name})
            return error_text(f"Invalid arguments for {name}: {ve.message}")

        logger.debug("tool call", extra={"tool": name})
        try:
            return await spec.handler(apply_defaults(spec.input_schema, args))
        except Exception as ex:  # noqa: BLE001
            logger.exception("tool execution failed", extra={"tool": name})
            return error_text(f"Tool execution failed: {ex}")

    async def _handle_tools_call(self, msg: Dict[str, Any]) -> Dict[str, Any]:
        params = msg.get("params") or {}
        if not isinstance(params, dict):
            return self._error(msg.get("id"), -32602, "Invalid params", {"reason": "params must be an object"})
        if not isinstance(params.get("name"), str):
            return self._error(msg.get("id"), -32602, "Invalid params", {"reason": "tool name must be a string"})
        out = await self.call_tool(params["name"], params.get("arguments"))
        return self._result(msg.get("id"), out)

    async def handle(self, msg: Any) -> Optional[Dict[str, Any]]:
        """Dispatch one decoded JSON-RPC message; returns the reply, or None for notifications."""
        if not isinstance(msg, dict):
            return self._error(None, -32600, "Invalid Request")

        method = msg.get("method")
        is_notification = "id" not in msg

        if method == "initialize":
            return self._handle_initialize(msg)
        if method == "tools/list":
            return self._result(msg.get("id"), self.list_tools())
        if method == "tools/call":
            return await self._handle_tools_call(msg)
        if method in ("ping", "shutdown"):
            return None if is_notification else self._result(msg.get("id"), {} if method == "ping" else None)
        if is_notification:
            # notifications/initialized, notifications/cancelled, ...
            return None
        return self._error(msg.get("id"), -32601, f"Unknown method: {method}")

    # ---- main loop ----
    async def serve(self, reader: Optional[TextIO] = None, writer: Optional[TextIO] = None) -> None:
        writer = writer or sys.stdout
        next_line = await _line_source(reader)
        pending: Set[asyncio.Task] = set()

        def send(obj: Dict[str, Any]) -> None:
            writer.write(json.dumps(obj, separators=(",", ":"), default=str) + "\n")
            writer.flush()

        async def dispatch(msg: Any) -> None:
            try:
                reply = await self.handle(msg)
            except Exception as ex:  # noqa: BLE001
                logger.exception("dispatch failed")
                if isinstance(msg, dict) and "id" in msg:
                    send(self._error(msg.get("id"), -32603, "Internal error", {"reason": str(ex)}))
                return
            if reply is not None:
                send(reply)

        logger.info("mcp server ready (%d tools)", len(self._tools))
        while True:
            line = await next_line()
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            try:
                msg = json.loads(line)
            except json.JSONDecodeError:
                send(self._error(None, -32700, "Parse error"))
                continue

            if isinstance(msg, dict) and msg.get("method") == "exit":
                break

            # tool calls may overlap; each runs as its own task
            task = asyncio.create_task(dispatch(msg))
            pending.add(task)
            task.add_done_callback(pending.discard)

        if pending:
            await asyncio.gather(*pending)


# a single tools/call frame can carry large query bodies
_MAX_LINE = 16 * 1024 * 1024


async def _line_source(reader: Optional[TextIO]) -> Callable[[], Awaitable[str]]:
    """
    Returns a coroutine function yielding one line per call ("" at EOF).

    Real stdin is attached to the event loop as a pipe so a pending read is
    cancelled with the loop on Ctrl-C. Explicit readers (in-memory buffers,
    files) and stdin redirected from a regular file are read directly.
    """
    if reader is None:
        loop = asyncio.get_running_loop()
        stream = asyncio.StreamReader(limit=_MAX_LINE)
        try:
            await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(stream), sys.stdin)
        except (ValueError, OSError, NotImplementedError) as ex:
            logger.debug("stdin is not a pipe (%s); reading it directly", ex)
            reader = sys.stdin
        else:
            async def read_pipe() -> str:
                return (await stream.readline()).decode("utf-8")

            return read_pipe

    source = reader

    async def read_direct() -> str:
        return source.readline()

    return read_direct
