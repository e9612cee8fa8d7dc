"""
context7-mcp: Async MCP client for companion-process servers.

Talks JSON-RPC 2.0 over the stdio of a long-lived MCP server process
(Context7 by default): handshake, tool discovery and concurrent tool calls
correlated by id over one shared stream.

This package provides:
- MCPClient, the tool invocation facade with lazy initialization
- StdioProcessManager, the companion process behind the stream
- Argument sanitization and tool name validation
- LibraryDocsService for Context7 documentation lookups

Installation:
    pip install context7-mcp-client

Quickstart:
    from context7_mcp import create_client

    async with create_client() as client:
        print([tool.name for tool in client.tools])
        content = await client.call_tool(
            "get-library-docs", {"library_id": "react-main"}
        )
"""

from context7_mcp.types import (
    SessionState,
    Tool,
    ServerInfo,
    LibraryResolution,
    DocumentationResult,
)
from context7_mcp.errors import (
    MCPClientError,
    ConfigError,
    ToolValidationError,
    TransportError,
    ProtocolError,
    RequestTimeoutError,
    SessionFatalError,
    SessionClosedError,
    SessionStateError,
)
from context7_mcp.config import ClientConfig, ServerConfig
from context7_mcp.sanitize import sanitize_arguments, validate_tool_name
from context7_mcp.client import MCPClient, create_client
from context7_mcp.docs import LibraryDocsService, is_connectivity_error
from context7_mcp._core.process import StdioProcessManager, CommandNotFoundError
from context7_mcp._core.version import CLIENT_VERSION, PROTOCOL_VERSION

__version__ = CLIENT_VERSION

__all__ = [
    # Version
    "__version__",
    "CLIENT_VERSION",
    "PROTOCOL_VERSION",
    # Types
    "SessionState",
    "Tool",
    "ServerInfo",
    "LibraryResolution",
    "DocumentationResult",
    # Errors
    "MCPClientError",
    "ConfigError",
    "ToolValidationError",
    "TransportError",
    "ProtocolError",
    "RequestTimeoutError",
    "SessionFatalError",
    "SessionClosedError",
    "SessionStateError",
    "CommandNotFoundError",
    # Config
    "ClientConfig",
    "ServerConfig",
    # Sanitization
    "sanitize_arguments",
    "validate_tool_name",
    # Client
    "MCPClient",
    "create_client",
    "StdioProcessManager",
    # Docs
    "LibraryDocsService",
    "is_connectivity_error",
]
