"""
Type definitions for MCP server responses and handlers.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..config import RecorderConfig
    from ..launcher import BrowserLauncher


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    is_error: bool = False
    # Structured payload (the operation's result shape). Not part of the MCP wire format.
    data: Any | None = None

    @classmethod
    def text(cls, text: str, *, data: Any | None = None) -> ToolResult:
        return cls(content=[ToolContent(type="text", text=text or "")], data=data)

    @classmethod
    def error(
        cls,
        message: str,
        *,
        tool: str | None = None,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
        data: Any | None = None,
    ) -> ToolResult:
        """Create error result (human-readable text, structured payload in `data`)."""
        lines = [message]
        if suggestion:
            lines.append(f"Suggestion: {suggestion}")
        payload: dict[str, Any] = data if isinstance(data, dict) else {"success": False, "message": message}
        if tool:
            payload = {**payload, "tool": tool}
        if details:
            payload = {**payload, "details": details}
        return cls(content=[ToolContent(type="text", text="\n".join(lines))], is_error=True, data=payload)

    def to_content_list(self) -> list[dict[str, Any]]:
        """Convert to MCP content list format."""
        return [c.to_dict() for c in self.content]


HandlerFunc = Callable[["RecorderConfig", "BrowserLauncher", dict[str, Any]], ToolResult]
