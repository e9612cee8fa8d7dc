"""
JSON-RPC 2.0 wire models for MCP communication.

Outbound messages are built with JSONRPCRequest / JSONRPCNotification and
serialized as one compact JSON object per line. Inbound frames are parsed
into an Envelope, which is deliberately lenient about the shape of
``result`` and ``error`` so a corrupted body can be classified per call
instead of being dropped.
"""

from __future__ import annotations

from typing import Any, Dict, Final, Literal, Optional

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr

from context7_mcp._core.version import JSONRPC_VERSION

# Standard JSON-RPC error codes
PARSE_ERROR: Final[int] = -32700
INVALID_REQUEST: Final[int] = -32600
METHOD_NOT_FOUND: Final[int] = -32601
INVALID_PARAMS: Final[int] = -32602
INTERNAL_ERROR: Final[int] = -32603


class JSONRPCRequest(BaseModel):
    """A request that expects a response."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: int
    method: str
    params: Optional[Dict[str, Any]] = None

    def to_frame(self) -> str:
        """Serialize to a newline-terminated frame."""
        return self.model_dump_json(exclude_none=True) + "\n"


class JSONRPCNotification(BaseModel):
    """A one-way message; carries no id and gets no response."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    method: str
    params: Optional[Dict[str, Any]] = None

    def to_frame(self) -> str:
        """Serialize to a newline-terminated frame."""
        return self.model_dump_json(exclude_none=True) + "\n"


class ErrorData(BaseModel):
    """Error information in a JSON-RPC error response."""

    model_config = ConfigDict(extra="allow")

    code: StrictInt
    message: StrictStr
    data: Any = None


class Envelope(BaseModel):
    """
    A validated inbound frame.

    Only the envelope itself is checked here: the version tag and an
    integer id. ``result`` and ``error`` are kept raw.
    """

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"]
    id: StrictInt
    method: Optional[str] = None
    params: Any = None
    result: Any = None
    error: Any = None

    @property
    def is_response(self) -> bool:
        """Server-initiated requests carry a method; responses never do."""
        return self.method is None

    @property
    def has_result(self) -> bool:
        return "result" in self.model_fields_set

    @property
    def has_error(self) -> bool:
        return "error" in self.model_fields_set and self.error is not None
