"""
Pytest configuration for context7-mcp tests.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from context7_mcp.config import ClientConfig

# Note: With pytest-asyncio in auto mode, no event_loop fixture needed


SAMPLE_TOOLS = [
    {
        "name": "resolve-library-id",
        "description": "Resolve a library name to a Context7 library ID",
        "inputSchema": {
            "type": "object",
            "properties": {"library_name": {"type": "string"}},
        },
    },
    {
        "name": "get-library-docs",
        "description": "Fetch documentation for a library ID",
        "inputSchema": {
            "type": "object",
            "properties": {"library_id": {"type": "string"}},
        },
    },
]


def mcp_responder(
    tools: Optional[List[Dict[str, Any]]] = None,
    tool_results: Optional[Dict[str, Any]] = None,
    errors: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]:
    """
    Build a responder that answers like a small MCP server.

    Args:
        tools: Descriptors returned by tools/list
        tool_results: Result per tool name for tools/call
                      (default: echo the arguments as a text block)
        errors: Error object per method (or per tool name for tools/call)
    """
    tools = SAMPLE_TOOLS if tools is None else tools
    tool_results = tool_results or {}
    errors = errors or {}

    def respond(message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if "id" not in message:
            return None  # notification

        method = message["method"]
        params = message.get("params") or {}
        key = params.get("name", method) if method == "tools/call" else method
        if key in errors:
            return {"jsonrpc": "2.0", "id": message["id"], "error": errors[key]}

        if method == "initialize":
            result = {
                "protocolVersion": "2024-11-05",
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "fake-context7", "version": "1.2.3"},
            }
        elif method == "tools/list":
            result = {"tools": tools}
        elif method == "tools/call":
            name = params["name"]
            if name in tool_results:
                result = tool_results[name]
            else:
                result = {
                    "content": [
                        {"type": "text", "text": json.dumps(params["arguments"], sort_keys=True)}
                    ]
                }
        else:
            return {
                "jsonrpc": "2.0",
                "id": message["id"],
                "error": {"code": -32601, "message": f"Method not found: {method}"},
            }
        return {"jsonrpc": "2.0", "id": message["id"], "result": result}

    return respond


class FakeTransport:
    """
    In-memory companion stream.

    Every accepted frame is decoded into ``sent``. If a responder is set,
    its reply is delivered on the next loop iteration, like a real pipe.
    """

    def __init__(
        self,
        responder: Optional[Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]] = None,
        accept: bool = True,
    ):
        self.responder = responder
        self.accept = accept
        self.sent: List[Dict[str, Any]] = []
        self.raw_sent: List[str] = []
        self.listeners: List[Callable] = []
        self.start_calls = 0
        self.cleanup_calls = 0

    async def start(self) -> None:
        self.start_calls += 1

    def send(self, data: str) -> bool:
        if not self.accept:
            return False
        self.raw_sent.append(data)
        message = json.loads(data)
        self.sent.append(message)
        if self.responder is not None:
            reply = self.responder(message)
            if reply is not None:
                asyncio.get_running_loop().call_soon(self.push, reply)
        return True

    def subscribe(self, listener: Callable) -> Callable[[], None]:
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def push(self, message: Any) -> None:
        """Deliver a chunk; dicts are encoded as one newline-terminated frame."""
        if isinstance(message, (bytes, str)):
            chunk = message
        else:
            chunk = json.dumps(message) + "\n"
        for listener in list(self.listeners):
            listener(chunk)

    async def cleanup(self) -> None:
        self.cleanup_calls += 1

    @property
    def methods(self) -> List[str]:
        """Methods of every frame sent, in order."""
        return [message["method"] for message in self.sent]

    def requests_for(self, method: str) -> List[Dict[str, Any]]:
        return [message for message in self.sent if message.get("method") == method]


@pytest.fixture
def transport():
    """Fake transport answering like an MCP server."""
    return FakeTransport(responder=mcp_responder())


@pytest.fixture
def silent_transport():
    """Fake transport that accepts frames but never answers."""
    return FakeTransport()


@pytest.fixture
def fast_config():
    """Client config with a short deadline for timeout tests."""
    return ClientConfig(request_timeout=0.1)
