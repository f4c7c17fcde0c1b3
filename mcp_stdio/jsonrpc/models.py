"""JSON-RPC 2.0 request/response models."""
import json
from pydantic import BaseModel
from typing import Any, Optional

JSONRPC_VERSION = "2.0"


class RequestID:
    """Literal JSON text of a request identifier.

    The text is kept exactly as the client sent it so the response can echo
    it unchanged (`1.0` stays `1.0`, `"\\u00e9"` keeps its escape).
    """

    __slots__ = ("raw",)

    def __init__(self, raw: str):
        self.raw = raw

    @property
    def value(self) -> Any:
        return json.loads(self.raw)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequestID):
            return NotImplemented
        return self.raw == other.raw

    def __hash__(self) -> int:
        return hash(self.raw)

    def __repr__(self) -> str:
        return f"RequestID({self.raw})"


class ErrorCode:
    """JSON-RPC 2.0 standard error codes and custom application codes."""

    # Standard JSON-RPC 2.0 error codes
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Custom application error codes
    APPLICATION_ERROR = -32001
    TOOL_ERROR = -32002


class JSONRPCError(BaseModel):
    """JSON-RPC 2.0 error model."""

    code: int
    message: str
    data: Optional[Any] = None


class RPCError(Exception):
    """Raised by method handlers to answer with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_error(self) -> JSONRPCError:
        return JSONRPCError(code=self.code, message=self.message, data=self.data)


def invalid_params(err: Any) -> RPCError:
    """Wrap a decoding failure as an Invalid Params error."""
    return RPCError(ErrorCode.INVALID_PARAMS, str(err) or "invalid parameters")


class JSONRPCRequest(BaseModel):
    """JSON-RPC 2.0 request or notification envelope.

    ``params`` holds the raw JSON text of the parameter payload; handlers
    decode it when they need it.
    """

    model_config = {"arbitrary_types_allowed": True}

    jsonrpc: Optional[str] = None
    method: str = ""
    params: Optional[str] = None
    id: Optional[RequestID] = None

    @property
    def is_notification(self) -> bool:
        return self.id is None


class JSONRPCResponse(BaseModel):
    """JSON-RPC 2.0 response model."""

    model_config = {"arbitrary_types_allowed": True}

    jsonrpc: str = JSONRPC_VERSION
    id: Optional[RequestID] = None
    result: Optional[Any] = None
    error: Optional[JSONRPCError] = None
