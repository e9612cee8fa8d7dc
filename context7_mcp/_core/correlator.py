"""
Request correlation over a single shared stream.

Every call gets a fresh integer id and a pending entry holding an asyncio
Future. A single subscription on the transport feeds inbound chunks
through the frame buffer and validator; a validated response resolves the
pending entry with the same id. Each entry is resolved exactly once, by a
response, by its deadline, or by close(), and is removed from the table
when resolved.

Usage:
    correlator = RequestCorrelator(transport, timeout=10.0)
    correlator.attach()
    result = await correlator.send("tools/list")
    ...
    correlator.close()
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Type, Union, TYPE_CHECKING

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from context7_mcp._core.framing import FrameBuffer, parse_frame, MAX_FRAME_BYTES
from context7_mcp._core.protocol import (
    Envelope,
    ErrorData,
    INTERNAL_ERROR,
    JSONRPCNotification,
    JSONRPCRequest,
)
from context7_mcp.errors import (
    MAX_ERROR_MESSAGE_LENGTH,
    MCPClientError,
    ProtocolError,
    RequestTimeoutError,
    SessionClosedError,
    ToolValidationError,
    TransportError,
)

if TYPE_CHECKING:
    from context7_mcp._core.session import CompanionTransport

logger = logging.getLogger(__name__)


@dataclass
class PendingCall:
    """An in-flight call awaiting its response."""
    id: int
    method: str
    deadline: float
    future: "asyncio.Future[Envelope]"


class RequestCorrelator:
    """
    Matches responses to calls by id over one companion-process stream.
    
    All state lives on the event loop thread; transport listeners must be
    invoked from that loop.
    
    Attributes:
        timeout: Seconds each call waits for its response
    """
    
    def __init__(
        self,
        transport: "CompanionTransport",
        timeout: float = 10.0,
        max_frame_bytes: int = MAX_FRAME_BYTES,
        max_error_message_length: int = MAX_ERROR_MESSAGE_LENGTH,
    ):
        self.timeout = timeout
        self.max_error_message_length = max_error_message_length
        
        self._transport = transport
        self._frames = FrameBuffer(max_frame_bytes)
        self._pending: Dict[int, PendingCall] = {}
        # Python ints do not overflow, so ids are never reused within a session
        self._ids: Iterator[int] = itertools.count(1)
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._closed = False
    
    def attach(self) -> None:
        """Subscribe to inbound chunks. Safe to call more than once."""
        if self._unsubscribe is None and not self._closed:
            self._unsubscribe = self._transport.subscribe(self.feed)
    
    def close(self, error: Optional[MCPClientError] = None) -> None:
        """
        Stop correlating and fail every pending call.
        
        Args:
            error: Exception set on each unresolved call
                   (default: SessionClosedError)
        """
        self._closed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        
        pending = list(self._pending.values())
        self._pending.clear()
        for call in pending:
            if not call.future.done():
                call.future.set_exception(
                    error or SessionClosedError(f"Session closed before {call.method} completed")
                )
        if pending:
            logger.debug(f"Failed {len(pending)} pending call(s) on close")
    
    @property
    def closed(self) -> bool:
        return self._closed
    
    @property
    def pending_ids(self) -> List[int]:
        """Ids of calls currently in flight."""
        return list(self._pending)
    
    async def send(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Issue one call and wait for its outcome.
        
        Args:
            method: JSON-RPC method
            params: Optional params object
            
        Returns:
            The response ``result`` payload, unopened
            
        Raises:
            SessionClosedError: If the correlator is closed, or closes mid-call
            ToolValidationError: If params cannot be encoded as JSON
            TransportError: If the stream refuses the frame
            ProtocolError: If the server answers with an error or a corrupt body
            RequestTimeoutError: If no matching response arrives in time
        """
        if self._closed:
            raise SessionClosedError(f"Cannot send {method}: session is closed")
        
        loop = asyncio.get_running_loop()
        request_id = next(self._ids)
        frame = self._encode(JSONRPCRequest, id=request_id, method=method, params=params)
        
        call = PendingCall(
            id=request_id,
            method=method,
            deadline=loop.time() + self.timeout,
            future=loop.create_future(),
        )
        self._pending[request_id] = call
        
        if not self._write(frame):
            self._pending.pop(request_id, None)
            raise TransportError(f"Failed to send request {method} (id={request_id})")
        logger.debug(f"Sent {method} (id={request_id})")
        
        try:
            envelope = await asyncio.wait_for(
                call.future, timeout=max(0.0, call.deadline - loop.time())
            )
        except asyncio.TimeoutError:
            logger.debug(
                f"Request {request_id} ({method}) timed out "
                f"{loop.time() - call.deadline:.3f}s past its deadline"
            )
            raise RequestTimeoutError(method, request_id, self.timeout) from None
        finally:
            self._pending.pop(request_id, None)
        
        return self._unwrap(call, envelope)
    
    def notify(self, method: str, params: Optional[Dict[str, Any]] = None) -> None:
        """
        Send a one-way notification.
        
        Raises:
            SessionClosedError: If the correlator is closed
            ToolValidationError: If params cannot be encoded as JSON
            TransportError: If the stream refuses the frame
        """
        if self._closed:
            raise SessionClosedError(f"Cannot send {method}: session is closed")
        
        frame = self._encode(JSONRPCNotification, method=method, params=params)
        if not self._write(frame):
            raise TransportError(f"Failed to send notification {method}")
        logger.debug(f"Sent notification {method}")
    
    def feed(self, chunk: Union[bytes, str]) -> None:
        """Transport listener: route every complete line to its pending call."""
        for line in self._frames.feed(chunk):
            envelope = parse_frame(line, self._frames.max_bytes)
            if envelope is not None:
                self._dispatch(envelope)
    
    def _encode(
        self,
        model: Union[Type[JSONRPCRequest], Type[JSONRPCNotification]],
        **fields: Any,
    ) -> str:
        """Serialize a message before anything is registered or written."""
        try:
            return model(**fields).to_frame()
        except (ValidationError, PydanticSerializationError) as e:
            logger.debug(f"Cannot encode {fields.get('method')}: {e}")
            raise ToolValidationError(
                "params", f"{fields.get('method')} params cannot be encoded as JSON"
            ) from e
    
    def _write(self, frame: str) -> bool:
        try:
            return bool(self._transport.send(frame))
        except Exception as e:
            logger.warning(f"Transport send raised: {e}")
            return False
    
    def _dispatch(self, envelope: Envelope) -> None:
        if not envelope.is_response:
            logger.debug(f"Ignoring server request {envelope.method} (id={envelope.id})")
            return
        
        call = self._pending.pop(envelope.id, None)
        if call is None:
            # Unknown id, or a late response for a call already resolved
            logger.debug(f"Dropping response for unknown id {envelope.id}")
            return
        
        if not call.future.done():
            call.future.set_result(envelope)
            logger.debug(f"Request {call.id} ({call.method}) resolved")
    
    def _unwrap(self, call: PendingCall, envelope: Envelope) -> Any:
        if envelope.has_error:
            try:
                error = ErrorData.model_validate(envelope.error)
            except ValidationError:
                raise ProtocolError(
                    INTERNAL_ERROR,
                    "Malformed error object in response",
                    data=envelope.error,
                    method=call.method,
                    max_length=self.max_error_message_length,
                ) from None
            raise ProtocolError(
                error.code,
                error.message,
                data=error.data,
                method=call.method,
                max_length=self.max_error_message_length,
            )
        
        if not envelope.has_result:
            raise ProtocolError(
                INTERNAL_ERROR,
                "Response carried neither result nor error",
                method=call.method,
                max_length=self.max_error_message_length,
            )
        
        return envelope.result
