"""
MCP client facade over a companion-process stream.

The client is an explicit object: construct it with a transport (or use
create_client() for the stdio process manager) and hand it to whoever
needs it. Initialization is lazy and idempotent, so a first call_tool()
drives the handshake and tool discovery transparently.

Usage:
    from context7_mcp import create_client

    async with create_client() as client:
        content = await client.call_tool(
            "resolve-library-id", {"library_name": "react"}
        )

    # Manual lifecycle
    client = MCPClient(transport, ClientConfig(request_timeout=5.0))
    await client.initialize()
    # ... use client ...
    await client.cleanup()
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Tuple

from context7_mcp._core.process import StdioProcessManager
from context7_mcp._core.session import CompanionTransport, Session
from context7_mcp.config import ClientConfig, ServerConfig
from context7_mcp.errors import ProtocolError, TransportError
from context7_mcp.sanitize import sanitize_arguments, validate_tool_name
from context7_mcp.types import ServerInfo, SessionState, Tool

logger = logging.getLogger(__name__)


class MCPClient:
    """
    Calls tools on an MCP server over one shared stream.

    Any number of call_tool() invocations may be in flight at once; each
    is correlated to its response by id.

    Attributes:
        config: Client configuration
    """

    def __init__(
        self,
        transport: CompanionTransport,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._session = Session(transport, self.config)

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def is_ready(self) -> bool:
        return self._session.state == SessionState.READY

    @property
    def tools(self) -> Tuple[Tool, ...]:
        """Tools discovered during initialization."""
        return self._session.tools

    @property
    def server_info(self) -> Optional[ServerInfo]:
        """Server identity reported by the handshake."""
        return self._session.server_info

    def get_tool(self, name: str) -> Optional[Tool]:
        """Find a discovered tool by name."""
        for tool in self._session.tools:
            if tool.name == name:
                return tool
        return None

    async def initialize(self) -> None:
        """
        Start the companion process, handshake and discover tools.

        Idempotent: returns immediately once the session is READY.

        Raises:
            SessionFatalError: If the handshake or discovery fails, or
                               failed on an earlier attempt
            SessionClosedError: If cleanup() has run
        """
        await self._session.initialize()

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        Invoke a tool and return its content.

        The name is validated and the arguments sanitized before anything
        is sent; the session is initialized first if needed.

        Args:
            name: Tool name
            arguments: Tool arguments; disallowed keys and non-scalar
                       values are dropped

        Returns:
            ``result["content"]`` if present, otherwise the raw result

        Raises:
            ToolValidationError: If the name or arguments are rejected locally
            TransportError: If the stream refuses the request
            ProtocolError: If the server returns an error
            RequestTimeoutError: If no response arrives in time
            SessionFatalError: If the session failed to initialize or its
                               stream was lost
            SessionClosedError: If the client is closed
        """
        validate_tool_name(name)
        sanitized = sanitize_arguments(arguments)

        self._session.ensure_usable()
        await self._session.initialize()

        try:
            result = await self._session.request("tools/call", {
                "name": name,
                "arguments": sanitized,
            })
        except ProtocolError as e:
            logger.debug(f"Tool {name} failed: {e.message}")
            raise

        if isinstance(result, dict) and result.get("content") is not None:
            return result["content"]
        return result

    async def cleanup(self) -> None:
        """Close the session and release the companion process. Idempotent."""
        await self._session.cleanup()

    def transport_lost(self, reason: str) -> None:
        """
        Fail the session because the stream underneath it is gone.

        In-flight calls raise SessionFatalError right away; later calls
        are rejected until a new client is created. Ignored once closed.
        """
        logger.warning(f"MCP stream lost: {reason}")
        self._session.abort(TransportError(reason))

    async def __aenter__(self) -> "MCPClient":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.cleanup()


def create_client(
    server_config: Optional[ServerConfig] = None,
    client_config: Optional[ClientConfig] = None,
) -> MCPClient:
    """
    Build a client backed by a stdio companion process.

    Configs default to their environment-aware variants.

    Args:
        server_config: Companion process configuration
        client_config: Client configuration

    Returns:
        An uninitialized MCPClient
    """
    manager = StdioProcessManager(server_config or ServerConfig.from_env())
    client = MCPClient(manager, client_config or ClientConfig.from_env())
    manager.on_exit(
        lambda code: client.transport_lost(f"MCP server exited with code {code}")
    )
    return client
