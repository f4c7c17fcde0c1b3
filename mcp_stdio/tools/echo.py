"""echo: returns the caller's message unchanged."""
from typing import Any

from pydantic import BaseModel, ValidationError

from ..mcp_handler import ToolDefinition
from ..mcp_types import CallToolResult, text_content
from ..utils.errors import ToolExecutionError

ECHO_DEFINITION = ToolDefinition(
    name="echo",
    description="Echo a message back to the caller.",
    input_schema={
        "type": "object",
        "properties": {
            "message": {
                "type": "string",
                "description": "Text to echo back to the caller.",
            },
        },
        "required": ["message"],
    },
)


class EchoArguments(BaseModel):
    message: str = ""


async def echo(arguments: Any) -> CallToolResult:
    """Echo the ``message`` argument as a single text item."""
    try:
        args = EchoArguments.model_validate(arguments if arguments is not None else {})
    except ValidationError as e:
        raise ToolExecutionError(f"invalid arguments: {e.errors()[0]['msg']}") from e
    if not args.message:
        raise ToolExecutionError("message cannot be empty")

    return CallToolResult(content=[text_content(args.message)])
