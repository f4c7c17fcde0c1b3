"""Stdio JSON-RPC server exposing system tools over a minimal MCP subset."""
from .mcp_handler import ToolDefinition, ToolRegistration, ToolRegistry
from .server import MCPServer, ServerState

__version__ = "0.1.0"

__all__ = ["MCPServer", "ServerState", "ToolDefinition", "ToolRegistration", "ToolRegistry"]
