"""
Tests for context7_mcp.errors module.
"""

import pytest
from context7_mcp.errors import (
    MAX_ERROR_MESSAGE_LENGTH,
    ConfigError,
    MCPClientError,
    ProtocolError,
    RequestTimeoutError,
    SessionClosedError,
    SessionFatalError,
    SessionStateError,
    ToolValidationError,
    TransportError,
    truncate_message,
)
from context7_mcp.types import SessionState


class TestMCPClientError:
    """Tests for base MCPClientError."""

    def test_is_exception(self):
        assert issubclass(MCPClientError, Exception)

    def test_message(self):
        error = MCPClientError("Test error message")
        assert str(error) == "Test error message"

    @pytest.mark.parametrize("error_class", [
        ConfigError,
        ToolValidationError,
        TransportError,
        ProtocolError,
        RequestTimeoutError,
        SessionFatalError,
        SessionClosedError,
        SessionStateError,
    ])
    def test_all_errors_inherit_base(self, error_class):
        assert issubclass(error_class, MCPClientError)


class TestTruncateMessage:
    """Tests for truncate_message function."""

    def test_short_message_unchanged(self):
        assert truncate_message("short") == "short"

    def test_exact_limit_unchanged(self):
        message = "x" * MAX_ERROR_MESSAGE_LENGTH
        assert truncate_message(message) == message

    def test_long_message_cut(self):
        assert truncate_message("x" * 500) == "x" * MAX_ERROR_MESSAGE_LENGTH

    def test_custom_limit(self):
        assert truncate_message("abcdef", limit=3) == "abc"


class TestToolValidationError:
    """Tests for ToolValidationError."""

    def test_fields(self):
        error = ToolValidationError("tool name", "'x y' is not a valid tool name")
        assert error.field == "tool name"
        assert error.detail == "'x y' is not a valid tool name"
        assert str(error) == "Invalid tool name: 'x y' is not a valid tool name"

    def test_repr(self):
        error = ToolValidationError("arguments", "expected a mapping")
        assert "ToolValidationError" in repr(error)
        assert "arguments" in repr(error)


class TestProtocolError:
    """Tests for ProtocolError."""

    def test_basic_creation(self):
        error = ProtocolError(-32601, "Method not found", method="tools/call")
        assert error.code == -32601
        assert error.message == "Method not found"
        assert error.data is None
        assert error.method == "tools/call"
        assert str(error) == "tools/call failed (-32601): Method not found"

    def test_without_method(self):
        error = ProtocolError(-32603, "Internal error")
        assert str(error) == "Request failed (-32603): Internal error"

    def test_with_data(self):
        error = ProtocolError(-32602, "Invalid params", data={"field": "name"})
        assert error.data == {"field": "name"}

    def test_message_truncated(self):
        error = ProtocolError(-1, "E" * 1000)
        assert len(error.message) == MAX_ERROR_MESSAGE_LENGTH
        assert len(str(error)) < 1000

    def test_custom_max_length(self):
        error = ProtocolError(-1, "E" * 1000, max_length=10)
        assert error.message == "E" * 10

    def test_repr(self):
        error = ProtocolError(-32601, "nope", method="m")
        assert "-32601" in repr(error)


class TestRequestTimeoutError:
    """Tests for RequestTimeoutError."""

    def test_fields(self):
        error = RequestTimeoutError("tools/list", 7, 10.0)
        assert error.method == "tools/list"
        assert error.request_id == 7
        assert error.timeout == 10.0
        assert "Request timeout" in str(error)
        assert "id=7" in str(error)

    def test_is_timeout_error(self):
        with pytest.raises(TimeoutError):
            raise RequestTimeoutError("m", 1, 0.1)


class TestSessionErrors:
    """Tests for session lifecycle errors."""

    def test_fatal_error_keeps_cause(self):
        cause = ProtocolError(-32600, "bad handshake")
        try:
            try:
                raise cause
            except ProtocolError as e:
                raise SessionFatalError("Initialization failed") from e
        except SessionFatalError as error:
            assert error.__cause__ is cause

    def test_closed_error_can_be_caught_as_base(self):
        with pytest.raises(MCPClientError):
            raise SessionClosedError("closed")

    def test_state_error_message(self):
        error = SessionStateError(SessionState.CLOSED, SessionState.READY)
        assert error.current == SessionState.CLOSED
        assert error.requested == SessionState.READY
        assert str(error) == "Illegal session transition: closed -> ready"
