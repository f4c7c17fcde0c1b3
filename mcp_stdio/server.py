"""Stdio MCP server: the JSON-RPC dispatch loop and its builtin methods."""
import asyncio
import logging
import os
import sys
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, TextIO

from .jsonrpc.codec import EnvelopeDecoder, InvalidEnvelope, clone_id
from .jsonrpc.models import (
    JSONRPC_VERSION,
    ErrorCode,
    JSONRPCError,
    JSONRPCRequest,
    JSONRPCResponse,
    RequestID,
    RPCError,
    invalid_params,
)
from .jsonrpc.writer import ResponseWriter
from .mcp_handler import ListToolsResult, ToolRegistration, ToolRegistry
from .mcp_types import (
    PROTOCOL_VERSION,
    CallToolParams,
    CallToolResult,
    InitializeParams,
    InitializeResult,
    PingParams,
    PingResult,
    ServerCapabilities,
    ServerInfo,
    ToolCapability,
    decode_params,
)
from .tools import default_tools
from .utils.errors import RegistrationError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_SERVER_NAME = "mcp-stdio-server"
DEFAULT_SERVER_VERSION = "dev"

MethodHandler = Callable[[JSONRPCRequest], Awaitable[Any]]


class ServerState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLOSED = "closed"


class MCPServer:
    """Reads JSON-RPC envelopes from ``reader`` and answers on ``writer``.

    Tools are registered here, at construction, so a duplicate or invalid
    registration fails before any message is read.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: TextIO,
        tools: Optional[Iterable[ToolRegistration]] = None,
        name: str = "",
        version: str = "",
        logger: Optional[logging.Logger] = None,
    ):
        self.decoder = EnvelopeDecoder(reader)
        self.writer = ResponseWriter(writer)
        self.logger = logger or logging.getLogger(__name__)
        self.info = ServerInfo(
            name=name or DEFAULT_SERVER_NAME,
            version=version or DEFAULT_SERVER_VERSION,
        )
        self.state = ServerState.UNINITIALIZED

        self.registry = ToolRegistry()
        for registration in tools or ():
            self.registry.register(registration.definition, registration.handler)

        self.methods: Dict[str, MethodHandler] = {}
        self.register_method("initialize", self.handle_initialize)
        self.register_method("ping", self.handle_ping)
        self.register_method("tools/list", self.handle_list_tools)
        self.register_method("tools/call", self.handle_call_tool)

    @property
    def initialized(self) -> bool:
        # Recorded only; no method is gated on it.
        return self.state is ServerState.INITIALIZED

    def register_method(self, method_name: str, handler: MethodHandler) -> None:
        """Register a JSON-RPC method handler.

        Args:
            method_name: Name of the JSON-RPC method (e.g., "tools/list")
            handler: Async callable receiving the decoded request
        """
        self.methods[method_name] = handler
        self.logger.debug(f"Registered JSON-RPC method: {method_name}")

    async def serve(self) -> None:
        """Process messages until the input stream ends.

        Returns normally on a clean end of stream. Cancelling the task that
        runs this coroutine stops the loop without writing anything further.

        Raises:
            TransportError: the input stream could not be decoded.
        """
        try:
            while True:
                # Cancellation checkpoint before each read.
                await asyncio.sleep(0)

                try:
                    request = await self.decoder.decode()
                except InvalidEnvelope as e:
                    await self._respond_with_error(
                        e.id, e.method, RPCError(ErrorCode.INVALID_REQUEST, e.message)
                    )
                    continue

                if request is None:
                    self.logger.info("Input stream closed")
                    return

                if request.jsonrpc is not None and request.jsonrpc != JSONRPC_VERSION:
                    await self._respond_with_error(
                        request.id,
                        request.method,
                        RPCError(
                            ErrorCode.INVALID_REQUEST,
                            f"expected jsonrpc version {JSONRPC_VERSION}",
                        ),
                    )
                    continue

                await self.dispatch(request)
        finally:
            self.state = ServerState.CLOSED

    async def dispatch(self, request: JSONRPCRequest) -> None:
        """Route one request to its handler and deliver the outcome."""
        handler = self.methods.get(request.method)
        if handler is None:
            self.logger.warning(f"Unknown method: {request.method}")
            await self._respond_with_error(
                request.id,
                request.method,
                RPCError(ErrorCode.METHOD_NOT_FOUND, f'method "{request.method}" not found'),
            )
            return

        result: Any = None
        error: Optional[JSONRPCError] = None
        try:
            result = await handler(request)
        except RPCError as e:
            error = e.to_error()
        except Exception as e:
            self.logger.error(f"Internal error handling {request.method}: {e}", exc_info=True)
            error = JSONRPCError(
                code=ErrorCode.INTERNAL_ERROR,
                message="Internal error",
                data={"details": str(e)},
            )

        # Notifications are never answered, whatever the outcome.
        if request.is_notification:
            return

        response = JSONRPCResponse(id=clone_id(request.id))
        if error is not None:
            response.error = error
        else:
            response.result = {} if result is None else result

        await self._send(response)

    async def _respond_with_error(
        self, id: Optional[RequestID], method: str, error: RPCError
    ) -> None:
        if id is None:
            self.logger.debug(f"Dropping error for notification {method}: {error.message}")
            return

        await self._send(JSONRPCResponse(id=clone_id(id), error=error.to_error()))

    async def _send(self, response: JSONRPCResponse) -> None:
        # A failed write loses this response only; the session continues.
        try:
            await self.writer.write(response)
        except Exception as e:
            self.logger.error(f"Failed to send response: {e}")

    async def handle_initialize(self, request: JSONRPCRequest) -> InitializeResult:
        params = decode_params(request.params, InitializeParams)

        self.state = ServerState.INITIALIZED

        if params.clientInfo is not None:
            self.logger.info(
                f"Client connected: {params.clientInfo.name or ''} {params.clientInfo.version or ''}"
            )

        return InitializeResult(
            protocolVersion=PROTOCOL_VERSION,
            capabilities=ServerCapabilities(tools=ToolCapability(list=True, call=True)),
            serverInfo=self.info,
        )

    async def handle_ping(self, request: JSONRPCRequest) -> PingResult:
        params = decode_params(request.params, PingParams)
        return PingResult(status="ok", message=params.message or None)

    async def handle_list_tools(self, request: JSONRPCRequest) -> ListToolsResult:
        return ListToolsResult(
            tools=[registration.definition for registration in self.registry.list()]
        )

    async def handle_call_tool(self, request: JSONRPCRequest) -> CallToolResult:
        if request.params is None:
            raise invalid_params("missing params")
        params = decode_params(request.params, CallToolParams)
        if not params.name:
            raise invalid_params("missing tool name")

        registration = self.registry.get(params.name)
        if registration is None:
            raise RPCError(ErrorCode.APPLICATION_ERROR, f'tool "{params.name}" not registered')

        try:
            result = await registration.handler(params.arguments)
        except RPCError:
            raise
        except Exception as e:
            self.logger.warning(f"Tool {params.name} failed: {e}")
            raise RPCError(ErrorCode.TOOL_ERROR, str(e) or "tool execution failed") from e

        if result is None:
            return CallToolResult(content=[])
        return result


async def run_stdio(name: str = "", version: str = "") -> None:
    """Serve the builtin tools over this process's stdin/stdout."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

    server = MCPServer(reader, sys.stdout, tools=default_tools(), name=name, version=version)
    logger.info(f"Starting {server.info.name} {server.info.version} with {len(server.registry)} tools")
    await server.serve()


def main() -> None:
    # stdout carries the protocol; logs go to stderr.
    logging.basicConfig(
        level=os.getenv("MCP_LOG_LEVEL", "INFO").upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.stdout.reconfigure(encoding="utf-8")

    try:
        asyncio.run(
            run_stdio(
                name=os.getenv("MCP_SERVER_NAME", ""),
                version=os.getenv("MCP_SERVER_VERSION", ""),
            )
        )
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except (RegistrationError, TransportError) as e:
        logger.error(f"Server failed: {e}")
        sys.exit(1)
