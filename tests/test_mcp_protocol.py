"""Unit tests for the MCP tool registry and payload models."""
import pytest
from pydantic import ValidationError

from mcp_stdio.jsonrpc.models import ErrorCode, RPCError
from mcp_stdio.mcp_handler import ToolDefinition, ToolRegistry
from mcp_stdio.mcp_types import (
    CallToolParams,
    CallToolResult,
    InitializeParams,
    PingParams,
    ServerInfo,
    decode_params,
    text_content,
)
from mcp_stdio.utils.errors import RegistrationError


@pytest.fixture
def registry():
    """Create ToolRegistry instance for testing."""
    return ToolRegistry()


@pytest.fixture
def sample_tool_handler():
    """Create a sample async tool handler."""
    async def handler(arguments):
        return CallToolResult(content=[text_content(str(arguments))])
    return handler


class TestToolRegistration:
    """Test tool registration functionality."""

    def test_register_single_tool(self, registry, sample_tool_handler):
        """Test registering a single tool."""
        input_schema = {
            "type": "object",
            "properties": {"name": {"type": "string"}},
            "required": ["name"]
        }

        registration = registry.register(
            ToolDefinition(
                name="sample_tool",
                description="A sample tool for testing",
                input_schema=input_schema,
            ),
            sample_tool_handler,
        )

        assert "sample_tool" in registry
        assert len(registry) == 1
        assert registry.get("sample_tool") is registration
        assert registration.definition.description == "A sample tool for testing"
        assert registration.definition.input_schema == input_schema

    def test_missing_schema_defaults_to_object(self, registry, sample_tool_handler):
        registration = registry.register(ToolDefinition(name="bare"), sample_tool_handler)

        assert registration.definition.input_schema == {"type": "object"}

    def test_duplicate_name_rejected(self, registry, sample_tool_handler):
        """Test that registering a tool with the same name fails."""
        async def handler2(arguments):
            return None

        first = registry.register(
            ToolDefinition(name="my_tool", description="First version"), sample_tool_handler
        )

        with pytest.raises(RegistrationError) as exc_info:
            registry.register(ToolDefinition(name="my_tool", description="Second version"), handler2)

        assert "my_tool" in str(exc_info.value)
        assert len(registry) == 1
        assert registry.get("my_tool") is first
        assert [r.definition.description for r in registry.list()] == ["First version"]

    def test_empty_name_rejected(self, registry, sample_tool_handler):
        with pytest.raises(RegistrationError):
            registry.register(ToolDefinition(name=""), sample_tool_handler)
        assert len(registry) == 0

    def test_missing_handler_rejected(self, registry):
        with pytest.raises(RegistrationError) as exc_info:
            registry.register(ToolDefinition(name="no_handler"), None)

        assert "no_handler" in str(exc_info.value)
        assert "no_handler" not in registry

    def test_get_unknown_tool(self, registry):
        assert registry.get("nonexistent_tool") is None


class TestListTools:
    """Test listing tools functionality."""

    def test_list_empty_tools(self, registry):
        """Test listing tools when none are registered."""
        assert registry.list() == []

    @pytest.mark.parametrize(
        "names",
        [
            ["zebra", "apple", "banana", "cherry"],
            ["b", "a"],
            ["cpu_status", "echo", "disk", "memory"],
        ],
    )
    def test_registration_order_preserved(self, registry, sample_tool_handler, names):
        """Test that tool registration order is reflected in list."""
        for name in names:
            registry.register(ToolDefinition(name=name, description=f"{name} tool"), sample_tool_handler)

        assert [r.definition.name for r in registry.list()] == names

    def test_list_includes_schemas(self, registry, sample_tool_handler):
        """Test that listed tools include their input schemas."""
        input_schema = {
            "type": "object",
            "properties": {"limit": {"type": "integer", "description": "Max records"}},
        }
        registry.register(
            ToolDefinition(name="query_tool", description="Query", input_schema=input_schema),
            sample_tool_handler,
        )

        tool = registry.list()[0].definition.model_dump(exclude_none=True)

        assert tool == {
            "name": "query_tool",
            "description": "Query",
            "input_schema": input_schema,
        }


class TestDecodeParams:
    """Test strict decoding of request payloads."""

    def test_absent_params_use_defaults(self):
        params = decode_params(None, PingParams)
        assert params.message is None

    def test_initialize_params(self):
        params = decode_params(
            '{"protocolVersion":"2024-06-24","clientInfo":{"name":"cli","version":"1.0"},'
            '"capabilities":{},"metadata":{"k":"v"}}',
            InitializeParams,
        )

        assert params.protocolVersion == "2024-06-24"
        assert params.clientInfo.name == "cli"
        assert params.metadata == {"k": "v"}

    def test_unknown_field_rejected(self):
        with pytest.raises(RPCError) as exc_info:
            decode_params('{"protocolVersion":"x","surprise":true}', InitializeParams)

        assert exc_info.value.code == ErrorCode.INVALID_PARAMS
        assert "surprise" in exc_info.value.message

    def test_nested_unknown_field_rejected(self):
        with pytest.raises(RPCError) as exc_info:
            decode_params('{"clientInfo":{"name":"cli","extra":1}}', InitializeParams)

        assert exc_info.value.code == ErrorCode.INVALID_PARAMS

    def test_wrong_type_rejected(self):
        with pytest.raises(RPCError) as exc_info:
            decode_params('{"name":42}', CallToolParams)

        assert exc_info.value.code == ErrorCode.INVALID_PARAMS

    def test_null_strings_accepted(self):
        params = decode_params('{"message":null}', PingParams)
        assert params.message is None

        info = decode_params('{"clientInfo":{"name":null,"version":null}}', InitializeParams)
        assert info.clientInfo.name is None

    def test_call_tool_arguments_decoded(self):
        params = decode_params('{"name":"echo","arguments":{"message":"hello"}}', CallToolParams)

        assert params.name == "echo"
        assert params.arguments == {"message": "hello"}


def test_server_info_is_immutable():
    info = ServerInfo(name="srv", version="1.0")

    with pytest.raises(ValidationError):
        info.name = "other"


def test_text_content_serialization():
    item = text_content("hello")
    assert item.model_dump(exclude_none=True) == {"type": "text", "text": "hello"}
