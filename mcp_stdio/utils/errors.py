"""Custom exception classes for the MCP server."""


class MCPError(Exception):
    """Base exception for MCP-related errors."""

    pass


class RegistrationError(MCPError):
    """Invalid or duplicate tool registration."""

    pass


class TransportError(MCPError):
    """The input stream can no longer be decoded."""

    pass


class ToolExecutionError(MCPError):
    """Tool execution errors."""

    pass
