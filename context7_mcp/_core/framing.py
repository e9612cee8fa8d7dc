"""
Frame validation and line splitting for the companion-process stream.

parse_frame() never raises for malformed input: anything that is not a
well-formed, bounded JSON-RPC envelope yields None and is dropped by the
consumer.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from pydantic import ValidationError

from context7_mcp._core.protocol import Envelope

logger = logging.getLogger(__name__)

MAX_FRAME_BYTES = 10_000


def parse_frame(
    chunk: Union[bytes, str],
    max_bytes: int = MAX_FRAME_BYTES,
) -> Optional[Envelope]:
    """
    Parse one line of inbound text as a JSON-RPC envelope.
    
    The size cap is applied before any decoding. After decoding the frame
    must be a JSON object with ``"jsonrpc": "2.0"`` and an integer ``id``.
    
    Args:
        chunk: One frame, with or without its trailing newline
        max_bytes: Frames larger than this are rejected undecoded
        
    Returns:
        The validated Envelope, or None if the frame is not one
    """
    raw = chunk.encode("utf-8", errors="replace") if isinstance(chunk, str) else chunk
    if len(raw) > max_bytes:
        logger.warning(f"Dropping oversized frame ({len(raw)} bytes > {max_bytes})")
        return None
    
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Dropping frame that is not valid UTF-8")
        return None
    
    text = text.strip()
    if not text:
        return None
    
    try:
        return Envelope.model_validate_json(text)
    except ValidationError as e:
        logger.debug(f"Dropping invalid frame: {e.error_count()} validation error(s)")
        return None


class FrameBuffer:
    """
    Reassembles newline-delimited frames from arbitrary stream chunks.
    
    A partial line that grows past ``max_bytes`` is discarded together with
    the rest of that line, so a peer that never sends a newline cannot make
    the buffer grow without bound.
    """
    
    def __init__(self, max_bytes: int = MAX_FRAME_BYTES):
        self.max_bytes = max_bytes
        self._buffer = bytearray()
        self._discarding = False
    
    def feed(self, chunk: Union[bytes, str]) -> List[bytes]:
        """
        Add a chunk and return every complete line it finished.
        
        Lines longer than ``max_bytes`` are still returned so that
        parse_frame() can reject them by size.
        """
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        
        lines: List[bytes] = []
        for piece in chunk.splitlines(keepends=True):
            complete = piece.endswith(b"\n") or piece.endswith(b"\r")
            if self._discarding:
                if complete:
                    self._discarding = False
                continue
            
            self._buffer.extend(piece)
            if complete:
                line = bytes(self._buffer).rstrip(b"\r\n")
                self._buffer.clear()
                if line.strip():
                    lines.append(line)
            elif len(self._buffer) > self.max_bytes:
                logger.warning(
                    f"Discarding unterminated frame after {len(self._buffer)} bytes"
                )
                self._buffer.clear()
                self._discarding = True
        
        return lines
    
    @property
    def pending_bytes(self) -> int:
        """Bytes buffered for an unterminated line."""
        return len(self._buffer)
