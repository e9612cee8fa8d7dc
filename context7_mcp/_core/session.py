"""
Session lifecycle for an MCP client.

A session is created UNINITIALIZED. initialize() starts the transport and
performs exactly one handshake round trip and exactly one tool discovery
round trip, in that order, before moving to READY. Any failure on the way
marks the session FAILED. cleanup() is valid from any state, always ends
in CLOSED and releases the transport exactly once.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Tuple, Union

from context7_mcp._core.correlator import RequestCorrelator
from context7_mcp._core.version import is_protocol_compatible
from context7_mcp.config import ClientConfig
from context7_mcp.errors import (
    SessionClosedError,
    SessionFatalError,
    SessionStateError,
)
from context7_mcp.types import ServerInfo, SessionState, Tool

logger = logging.getLogger(__name__)

Listener = Callable[[Union[bytes, str]], None]


class CompanionTransport(Protocol):
    """The four operations the client needs from a companion-process stream."""
    
    async def start(self) -> None: ...
    def send(self, data: str) -> bool: ...
    def subscribe(self, listener: Listener) -> Callable[[], None]: ...
    async def cleanup(self) -> None: ...


# Allowed transitions; CLOSED accepts none, FAILED only cleanup
_TRANSITIONS: Dict[SessionState, Tuple[SessionState, ...]] = {
    SessionState.UNINITIALIZED: (
        SessionState.HANDSHAKING,
        SessionState.FAILED,
        SessionState.CLOSED,
    ),
    SessionState.HANDSHAKING: (
        SessionState.READY,
        SessionState.FAILED,
        SessionState.CLOSED,
    ),
    SessionState.READY: (SessionState.FAILED, SessionState.CLOSED),
    SessionState.FAILED: (SessionState.CLOSED,),
    SessionState.CLOSED: (),
}


class Session:
    """
    Drives handshake and discovery on top of a RequestCorrelator.
    
    Attributes:
        config: Client configuration (timeouts, handshake identity)
    """
    
    def __init__(
        self,
        transport: CompanionTransport,
        config: Optional[ClientConfig] = None,
    ) -> None:
        self.config = config or ClientConfig()
        
        self._transport = transport
        self._correlator = RequestCorrelator(
            transport,
            timeout=self.config.request_timeout,
            max_frame_bytes=self.config.max_frame_bytes,
            max_error_message_length=self.config.max_error_message_length,
        )
        self._state = SessionState.UNINITIALIZED
        self._lock = asyncio.Lock()
        self._tools: Tuple[Tool, ...] = ()
        self._server_info: Optional[ServerInfo] = None
        self._failure: Optional[BaseException] = None
        self._released = False
    
    @property
    def state(self) -> SessionState:
        return self._state
    
    @property
    def tools(self) -> Tuple[Tool, ...]:
        """Tools discovered during initialization (empty before READY)."""
        return self._tools
    
    @property
    def server_info(self) -> Optional[ServerInfo]:
        return self._server_info
    
    @property
    def correlator(self) -> RequestCorrelator:
        return self._correlator
    
    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise SessionStateError(self._state, new_state)
        logger.debug(f"Session {self._state.value} -> {new_state.value}")
        self._state = new_state
    
    def ensure_usable(self) -> None:
        """
        Raise if no call may be issued from the current state.
        
        Raises:
            SessionClosedError: If cleanup() has run
            SessionFatalError: If initialization failed or the stream was lost
        """
        if self._state == SessionState.CLOSED:
            raise SessionClosedError("Session is closed")
        if self._state == SessionState.FAILED:
            raise SessionFatalError(
                f"Session failed: {self._failure}"
            ) from self._failure
    
    async def initialize(self) -> None:
        """
        Bring the session to READY. No-op if already READY.
        
        Concurrent callers share one initialization.
        
        Raises:
            SessionFatalError: If start, handshake or discovery fails
            SessionClosedError: If the session is (or gets) closed
        """
        if self._state == SessionState.READY:
            return
        
        async with self._lock:
            if self._state == SessionState.READY:
                return
            self.ensure_usable()
            
            self._transition(SessionState.HANDSHAKING)
            try:
                await self._transport.start()
                self._correlator.attach()
                await self._handshake()
                await self._discover_tools()
            except asyncio.CancelledError:
                if self._state == SessionState.HANDSHAKING:
                    self._fail(SessionFatalError("Initialization was cancelled"))
                raise
            except Exception as e:
                if self._state == SessionState.CLOSED:
                    if isinstance(e, SessionClosedError):
                        raise
                    raise SessionClosedError("Session closed during initialization") from e
                if self._state != SessionState.FAILED:
                    self._fail(e)
                raise SessionFatalError(
                    f"Initialization failed: {self._failure}"
                ) from self._failure
            
            # cleanup() or abort() may have run while the last round trip completed
            self.ensure_usable()
            self._transition(SessionState.READY)
            logger.info(f"MCP session ready with {len(self._tools)} tool(s)")
    
    async def request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue an application-level call. Only valid in READY.
        
        Raises:
            SessionClosedError, SessionFatalError: If the session is terminal
            SessionStateError: If the session has not been initialized
        """
        self.ensure_usable()
        if self._state != SessionState.READY:
            raise SessionStateError(self._state, SessionState.READY)
        return await self._correlator.send(method, params)
    
    async def cleanup(self) -> None:
        """
        Close the session and release the transport. Idempotent.
        
        Pending calls are failed with SessionClosedError.
        """
        if self._state != SessionState.CLOSED:
            self._transition(SessionState.CLOSED)
        self._correlator.close()
        
        if self._released:
            return
        self._released = True
        try:
            await self._transport.cleanup()
        except Exception as e:
            logger.warning(f"Transport cleanup failed: {e}")
        logger.info("MCP session closed")
    
    def abort(self, error: BaseException) -> None:
        """
        Mark the session FAILED because its stream is gone.
        
        Calls in flight fail at once with SessionFatalError instead of
        waiting for their deadlines. No-op once CLOSED or FAILED.
        """
        if self._state.is_terminal:
            return
        self._fail(error)
    
    async def _handshake(self) -> None:
        result = await self._correlator.send("initialize", {
            "protocolVersion": self.config.protocol_version,
            "capabilities": {
                "tools": {},
            },
            "clientInfo": {
                "name": self.config.client_name,
                "version": self.config.client_version,
            },
        })
        
        self._server_info = ServerInfo.from_result(result)
        if self._server_info.protocol_version and not is_protocol_compatible(
            self._server_info.protocol_version
        ):
            logger.warning(
                f"Protocol version mismatch: server={self._server_info.protocol_version}, "
                f"client={self.config.protocol_version}. This may cause issues."
            )
        
        self._correlator.notify("notifications/initialized")
        logger.info(
            f"Handshake completed with {self._server_info.name or 'server'} "
            f"{self._server_info.version}".rstrip()
        )
    
    async def _discover_tools(self) -> None:
        result = await self._correlator.send("tools/list")
        
        entries = result.get("tools", []) if isinstance(result, dict) else []
        if not isinstance(entries, list):
            logger.warning(f"tools/list returned a non-list tools member: {type(entries).__name__}")
            entries = []
        
        tools = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed tool descriptor: {entry!r}")
                continue
            try:
                tools.append(Tool.from_dict(entry))
            except ValueError as e:
                logger.warning(f"Skipping malformed tool descriptor: {e}")
        
        self._tools = tuple(tools)
        logger.info(f"Available tools: {[tool.name for tool in self._tools]}")
    
    def _fail(self, error: BaseException) -> None:
        self._failure = error
        if self._state != SessionState.FAILED:
            self._transition(SessionState.FAILED)
        logger.error(f"MCP session failed: {error}")
        # Nothing may be in flight on a failed session
        self._correlator.close(SessionFatalError(f"Session failed: {error}"))
