"""MCP payload models exchanged by the builtin methods."""
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .jsonrpc.models import invalid_params

# Protocol version advertised during initialization
PROTOCOL_VERSION = "2024-06-24"

ParamsT = TypeVar("ParamsT", bound=BaseModel)


class StrictParams(BaseModel):
    """Base for request payloads; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


class ClientInfo(StrictParams):
    name: Optional[str] = None
    version: Optional[str] = None


class InitializeParams(StrictParams):
    protocolVersion: Optional[str] = None
    clientInfo: Optional[ClientInfo] = None
    capabilities: Optional[Any] = None
    metadata: Optional[Dict[str, str]] = None


class ServerInfo(BaseModel):
    """Name and version advertised to clients."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str = ""


class ToolCapability(BaseModel):
    list: bool = True
    call: bool = True


class ServerCapabilities(BaseModel):
    tools: Optional[ToolCapability] = None


class InitializeResult(BaseModel):
    protocolVersion: str
    capabilities: ServerCapabilities
    serverInfo: ServerInfo
    metadata: Optional[Dict[str, str]] = None


class PingParams(StrictParams):
    message: Optional[str] = None


class PingResult(BaseModel):
    status: str = "ok"
    message: Optional[str] = None


class CallToolParams(StrictParams):
    name: Optional[str] = None
    arguments: Optional[Any] = None


class ContentItem(BaseModel):
    """A text-based MCP content payload."""

    type: str
    text: Optional[str] = None


class CallToolResult(BaseModel):
    content: List[ContentItem] = Field(default_factory=list)


def text_content(text: str) -> ContentItem:
    """Create a text content item."""
    return ContentItem(type="text", text=text)


def _describe(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def decode_params(raw: Optional[str], model: Type[ParamsT]) -> ParamsT:
    """Strictly decode a raw params payload into ``model``.

    Absent params decode to the model's defaults.

    Raises:
        RPCError: Invalid Params, when the payload does not match the model.
    """
    if raw is None:
        return model()
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise invalid_params(_describe(e)) from e
