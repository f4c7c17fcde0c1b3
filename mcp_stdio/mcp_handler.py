"""MCP tool registry with uniqueness-enforced registration."""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional
import logging

from pydantic import BaseModel

from .mcp_types import CallToolResult
from .utils.errors import RegistrationError

logger = logging.getLogger(__name__)

DEFAULT_INPUT_SCHEMA: Dict[str, Any] = {"type": "object"}

# Receives the decoded ``arguments`` of a tools/call request (None when absent).
# A raised exception is reported to the caller as a tool error.
ToolHandler = Callable[[Any], Awaitable[Optional[CallToolResult]]]


class ToolDefinition(BaseModel):
    name: str
    description: Optional[str] = None
    input_schema: Optional[Dict[str, Any]] = None


class ListToolsResult(BaseModel):
    tools: List[ToolDefinition]


@dataclass(frozen=True)
class ToolRegistration:
    definition: ToolDefinition
    handler: ToolHandler


class ToolRegistry:
    """Name-keyed store of tools, listed in registration order."""

    def __init__(self):
        self._tools: Dict[str, ToolRegistration] = {}

    def register(self, definition: ToolDefinition, handler: Optional[ToolHandler]) -> ToolRegistration:
        """Register an MCP tool.

        A missing input schema is normalized to ``{"type": "object"}``.

        Raises:
            RegistrationError: the name is empty or taken, or the handler is missing.
        """
        if not definition.name:
            raise RegistrationError("tool name is required")
        if handler is None or not callable(handler):
            raise RegistrationError(f"tool handler for {definition.name} is missing")
        if definition.name in self._tools:
            raise RegistrationError(f"tool {definition.name} already registered")

        if definition.input_schema is None:
            definition = definition.model_copy(update={"input_schema": dict(DEFAULT_INPUT_SCHEMA)})

        registration = ToolRegistration(definition=definition, handler=handler)
        self._tools[definition.name] = registration
        logger.info(f"Registered tool: {definition.name}")
        return registration

    def get(self, name: str) -> Optional[ToolRegistration]:
        return self._tools.get(name)

    def list(self) -> List[ToolRegistration]:
        """All registrations, in the order they were registered."""
        return list(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools
