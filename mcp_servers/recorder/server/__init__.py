"""Server package for the recording MCP server: tool contract, registry and handlers."""
