"""JSON-RPC 2.0 implementation for MCP protocol."""
from .models import (
    JSONRPC_VERSION,
    ErrorCode,
    JSONRPCError,
    JSONRPCRequest,
    JSONRPCResponse,
    RequestID,
    RPCError,
    invalid_params,
)
from .codec import EnvelopeDecoder, InvalidEnvelope, clone_id, encode_response
from .writer import ResponseWriter

__all__ = [
    "JSONRPC_VERSION",
    "ErrorCode",
    "JSONRPCError",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "RequestID",
    "RPCError",
    "invalid_params",
    "EnvelopeDecoder",
    "InvalidEnvelope",
    "clone_id",
    "encode_response",
    "ResponseWriter",
]
