"""MCP server exposing dictionary sync operations as tools."""
