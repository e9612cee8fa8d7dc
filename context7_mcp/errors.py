"""
Exception types for context7-mcp.

Provides typed exceptions for:
- Local validation of tool names and arguments
- Transport failures on the companion-process stream
- Protocol errors returned by the server
- Timeouts and session lifecycle failures
"""

from __future__ import annotations

from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from context7_mcp.types import SessionState


# Server-supplied error messages are cut to this length before propagating
MAX_ERROR_MESSAGE_LENGTH = 200


def truncate_message(message: str, limit: int = MAX_ERROR_MESSAGE_LENGTH) -> str:
    """Cut a server-supplied message to at most ``limit`` characters."""
    if len(message) <= limit:
        return message
    return message[:limit]


class MCPClientError(Exception):
    """Base exception for all context7-mcp errors."""
    pass


class ConfigError(MCPClientError):
    """
    Raised when client or server configuration is invalid.
    
    This includes:
    - Non-positive timeouts or size limits
    - Empty companion command
    """
    pass


# =============================================================================
# Local Validation Errors
# =============================================================================


class ToolValidationError(MCPClientError):
    """
    Raised when a tool call is rejected before touching the stream.
    
    Example:
        try:
            await client.call_tool("../etc/passwd", {})
        except ToolValidationError as e:
            logger.warning(f"Rejected call: {e.field} - {e.detail}")
    """
    
    def __init__(self, field: str, detail: str):
        self.field = field
        self.detail = detail
        super().__init__(f"Invalid {field}: {detail}")
    
    def __repr__(self) -> str:
        return f"ToolValidationError(field={self.field!r}, detail={self.detail!r})"


# =============================================================================
# Transport Errors
# =============================================================================


class TransportError(MCPClientError):
    """
    Raised when the companion-process stream refuses a frame.
    
    This includes:
    - send() returning False (process not running, pipe closed)
    - Companion process failing to start
    """
    pass


# =============================================================================
# Protocol Errors
# =============================================================================


class ProtocolError(MCPClientError):
    """
    Raised when the server answers a call with a JSON-RPC error.
    
    The message is truncated to MAX_ERROR_MESSAGE_LENGTH characters so an
    oversized server payload cannot propagate upward unbounded.
    
    Attributes:
        code: JSON-RPC error code
        message: Server-supplied message (truncated)
        data: Optional server-supplied error data
        method: Method of the call that failed
    """
    
    def __init__(
        self,
        code: int,
        message: str,
        data: Any = None,
        method: Optional[str] = None,
        max_length: int = MAX_ERROR_MESSAGE_LENGTH,
    ):
        self.code = code
        self.message = truncate_message(message, max_length)
        self.data = data
        self.method = method
        
        prefix = f"{method} failed" if method else "Request failed"
        super().__init__(f"{prefix} ({code}): {self.message}")
    
    def __repr__(self) -> str:
        return (
            f"ProtocolError(code={self.code!r}, message={self.message!r}, "
            f"method={self.method!r})"
        )


class RequestTimeoutError(MCPClientError, TimeoutError):
    """Raised when no matching response arrives before the call deadline."""
    
    def __init__(self, method: str, request_id: int, timeout: float):
        self.method = method
        self.request_id = request_id
        self.timeout = timeout
        super().__init__(
            f"Request timeout: {method} (id={request_id}) got no response within {timeout}s"
        )


# =============================================================================
# Session Errors
# =============================================================================


class SessionFatalError(MCPClientError):
    """
    Raised when the session cannot be (or could not be) brought up.
    
    Handshake or discovery failures mark the session FAILED. Every later
    call on the same client raises this error without touching the stream;
    the original failure is available as ``__cause__``.
    """
    pass


class SessionClosedError(MCPClientError):
    """Raised for calls issued after, or interrupted by, cleanup()."""
    pass


class SessionStateError(MCPClientError):
    """
    Raised on an illegal session state transition.
    
    This is a programming error: terminal states accept no further mutation.
    """
    
    def __init__(self, current: "SessionState", requested: "SessionState"):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Illegal session transition: {current.value} -> {requested.value}"
        )
