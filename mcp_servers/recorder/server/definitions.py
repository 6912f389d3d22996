"""
Recording tool definitions (MCP `tools/list`).
"""

from __future__ import annotations

from typing import Any

START_RECORDING_TOOL: dict[str, Any] = {
    "name": "browser_start_recording",
    "description": """Start a new browser session recording that captures video, network requests, and traces.
USAGE:
- browser_start_recording(projectId="shop")
- browser_start_recording(projectId="shop", runId="checkout-1")
Only one recording can be active at a time.""",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "projectId": {
                "type": "string",
                "description": "Project identifier for organizing recordings",
            },
            "runId": {
                "type": "string",
                "description": "Optional run identifier. If not provided, a unique ID will be generated",
            },
        },
        "required": ["projectId"],
        "additionalProperties": False,
    },
}

STOP_RECORDING_TOOL: dict[str, Any] = {
    "name": "browser_stop_recording",
    "description": """Stop the current recording session and retrieve artifact URLs.
If finalizing fails the recording stays active and stop can be retried.
force=true closes the session anyway (without artifacts).""",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "force": {
                "type": "boolean",
                "default": False,
                "description": "Close the session even if finalizing the artifacts fails",
            },
        },
        "additionalProperties": False,
    },
}

RECORDING_STATUS_TOOL: dict[str, Any] = {
    "name": "browser_recording_status",
    "description": "Check the status of the current recording session",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {},
        "additionalProperties": False,
    },
}

LIST_RECORDINGS_TOOL: dict[str, Any] = {
    "name": "browser_list_recordings",
    "description": "List recent recording sessions with their status and artifacts (most recent first)",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "limit": {
                "type": "number",
                "description": "Maximum number of recordings to return (default: 10)",
                "minimum": 1,
                "maximum": 100,
            },
        },
        "additionalProperties": False,
    },
}

GET_RECORDING_ARTIFACTS_TOOL: dict[str, Any] = {
    "name": "browser_get_recording_artifacts",
    "description": "Get artifact URLs for a completed recording session",
    "inputSchema": {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "type": "object",
        "properties": {
            "projectId": {"type": "string", "description": "Project identifier of the recording"},
            "runId": {"type": "string", "description": "Run identifier of the recording"},
        },
        "required": ["projectId", "runId"],
        "additionalProperties": False,
    },
}

RECORDING_TOOL_DEFINITIONS: list[dict[str, Any]] = [
    START_RECORDING_TOOL,
    STOP_RECORDING_TOOL,
    RECORDING_STATUS_TOOL,
    LIST_RECORDINGS_TOOL,
    GET_RECORDING_ARTIFACTS_TOOL,
]
