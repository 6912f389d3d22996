"""
Tool handlers organized by domain.

All handlers follow the signature: (config, launcher, arguments) -> ToolResult
"""

from .recording import recording_handlers

__all__ = ["recording_handlers"]
