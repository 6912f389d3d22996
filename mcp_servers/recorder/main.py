"""
MCP server for browser session recording.

This module provides the main entry point and protocol handling
(newline-delimited JSON-RPC over stdio). Tool dispatch is handled via the
registry in server/registry.py.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from typing import Any

from .config import RecorderConfig
from .errors import RecordingError
from .launcher import BrowserLauncher
from .server.contract import (
    DEFAULT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    initialize_result,
    select_protocol,
    tools_list,
)
from .server.registry import create_default_registry
from .server.types import ToolResult
from .session_manager import SessionManager

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("mcp.recorder")

__all__ = [
    "SUPPORTED_PROTOCOL_VERSIONS",
    "LATEST_PROTOCOL_VERSION",
    "DEFAULT_PROTOCOL_VERSION",
    "McpServer",
    "main",
]


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout."""
    data = json.dumps(payload, ensure_ascii=False)
    sys.stdout.buffer.write((data + "\n").encode())
    sys.stdout.buffer.flush()


class InvalidRequestError(ValueError):
    """A line parsed as JSON but is not a JSON-RPC request object."""


def _read_message() -> dict[str, Any] | None:
    """Read JSON-RPC message from stdin. Returns None on EOF.

    Raises `ValueError` for undecodable lines (bad UTF-8 or JSON) and
    `InvalidRequestError` for JSON that is not an object.
    """
    while True:
        line = sys.stdin.buffer.readline()
        if not line:
            return None
        line = line.strip()
        if not line:
            continue
        msg = json.loads(line.decode("utf-8", errors="strict"))
        if not isinstance(msg, dict):
            raise InvalidRequestError(f"expected a JSON object, got {type(msg).__name__}")
        if os.environ.get("MCP_TRACE"):
            logger.info("recv %s", msg)
        return msg


def _write_invalid_request(request_id: Any, detail: str) -> None:
    _write_message(
        {"jsonrpc": "2.0", "id": request_id, "error": {"code": -32600, "message": f"Invalid Request: {detail}"}}
    )


class McpServer:
    """MCP server with registry-based tool dispatch."""

    def __init__(
        self,
        config: RecorderConfig | None = None,
        *,
        launcher: BrowserLauncher | None = None,
        manager: SessionManager | None = None,
    ) -> None:
        self.config = config or RecorderConfig.from_env()
        self.launcher = launcher or BrowserLauncher(self.config)
        self.manager = manager or SessionManager(self.config)
        self.registry = create_default_registry(self.manager)

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        protocol = select_protocol(requested)
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": initialize_result(protocol)})

    def handle_list_tools(self, request_id: Any) -> None:
        _write_message({"jsonrpc": "2.0", "id": request_id, "result": {"tools": tools_list()}})

    def handle_call_tool(self, request_id: Any, name: str, arguments: dict[str, Any]) -> None:
        logger.info("tool=%s args=%s", name, arguments)

        try:
            if not name:
                result = ToolResult.error("Missing tool name")
            elif not self.registry.has(name):
                result = ToolResult.error(f"Unknown tool: {name}", tool=name)
            else:
                result = self.registry.dispatch(name, self.config, self.launcher, arguments)
        except RecordingError as e:
            logger.info("tool_error tool=%s code=%s reason=%s", name, e.code, e.reason)
            result = ToolResult.error(e.reason, tool=name, suggestion=e.suggestion, details=e.details)
        except Exception as exc:
            logger.exception("tool_call_failed")
            result = ToolResult.error(f"Recording tool error: {exc}", tool=name)

        _write_message(
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "result": {"content": result.to_content_list(), "isError": result.is_error},
            }
        )

    def dispatch(self, message: dict[str, Any]) -> None:
        """Dispatch incoming JSON-RPC message to appropriate handler."""
        if not isinstance(message, dict):
            _write_invalid_request(None, "Request must be a JSON object")
            return
        if not message:
            return

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}
        if not isinstance(params, dict):
            _write_message(
                {"jsonrpc": "2.0", "id": request_id, "error": {"code": -32602, "message": "params must be an object"}}
            )
            return

        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method == "notifications/initialized":
            return
        elif method in ("tools/list", "list_tools"):
            self.handle_list_tools(request_id)
        elif method in ("tools/call", "call_tool"):
            name = params.get("name")
            arguments = params.get("arguments") or {}
            if not isinstance(arguments, dict):
                _write_message(
                    {"jsonrpc": "2.0", "id": request_id, "error": {"code": -32602, "message": "arguments must be an object"}}
                )
                return
            self.handle_call_tool(request_id, name or "", arguments)
        elif method == "ping":
            _write_message({"jsonrpc": "2.0", "id": request_id, "result": {}})
        else:
            _write_message(
                {
                    "jsonrpc": "2.0",
                    "id": request_id,
                    "error": {"code": -32601, "message": f"Method {method} not found"},
                }
            )

    def shutdown(self) -> None:
        """Finalize a recording left running at EOF, then release the browser."""
        if self.manager.is_recording:
            result = self.manager.stop(force=True)
            logger.info("shutdown_stop success=%s message=%s", result.success, result.message)
        self.launcher.stop()


def main() -> None:
    """Main entry point for MCP server."""
    server = McpServer()
    try:
        while True:
            try:
                message = _read_message()
            except InvalidRequestError as exc:
                logger.warning("invalid_request error=%s", exc)
                _write_invalid_request(None, str(exc))
                continue
            except ValueError as exc:
                logger.warning("invalid_json error=%s", exc)
                _write_message({"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}})
                continue
            if message is None:
                break
            server.dispatch(message)
    finally:
        server.shutdown()


if __name__ == "__main__":
    main()
