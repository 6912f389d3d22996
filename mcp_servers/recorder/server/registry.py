"""
Tool registry with dispatch table for the MCP server.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .types import HandlerFunc, ToolResult

if TYPE_CHECKING:
    from ..config import RecorderConfig
    from ..launcher import BrowserLauncher
    from ..session_manager import SessionManager

logger = logging.getLogger("mcp.recorder.registry")


class ToolRegistry:
    """Registry for tool handlers with automatic browser lifecycle management."""

    def __init__(self) -> None:
        # name -> (handler, requires_browser)
        self._handlers: dict[str, tuple[HandlerFunc, bool]] = {}

    def register(self, name: str, handler: HandlerFunc, requires_browser: bool = True) -> None:
        """Register a tool handler."""
        self._handlers[name] = (handler, requires_browser)

    def register_many(self, handlers: dict[str, tuple[HandlerFunc, bool]]) -> None:
        """Register multiple handlers at once."""
        self._handlers.update(handlers)

    def get(self, name: str) -> tuple[HandlerFunc, bool] | None:
        """Get handler and its browser requirement."""
        return self._handlers.get(name)

    def has(self, name: str) -> bool:
        return name in self._handlers

    def dispatch(
        self,
        name: str,
        config: RecorderConfig,
        launcher: BrowserLauncher,
        arguments: dict[str, Any],
    ) -> ToolResult:
        """
        Dispatch tool call to appropriate handler.

        Raises:
            KeyError: If tool not found
        """
        handler_info = self._handlers.get(name)
        if handler_info is None:
            raise KeyError(f"Unknown tool: {name}")

        handler, requires_browser = handler_info
        if requires_browser:
            try:
                launch_res = launcher.ensure_running()
            except Exception as exc:
                logger.warning("browser_unavailable tool=%s error=%s", name, exc)
                return ToolResult.error(
                    f"Browser is not available: {exc}",
                    tool=name,
                    suggestion="Check MCP_BROWSER_MODE/MCP_BROWSER_ENGINE and that Playwright browsers are installed (playwright install)",
                )
            if launch_res.started:
                logger.info("browser_started tool=%s %s", name, launch_res.message)

        return handler(config, launcher, arguments)

    @property
    def tool_names(self) -> list[str]:
        return list(self._handlers.keys())

    def __len__(self) -> int:
        return len(self._handlers)


def create_default_registry(manager: SessionManager) -> ToolRegistry:
    """Create registry with the recording handlers bound to `manager`."""
    from .handlers import recording_handlers

    registry = ToolRegistry()
    registry.register_many(recording_handlers(manager))
    return registry
