"""
Type definitions for context7-mcp.

Defines enums and dataclasses used across the package for:
- Session lifecycle state
- Capability descriptors discovered from the server
- Library documentation records returned by the docs service
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


# =============================================================================
# Session Types
# =============================================================================


class SessionState(str, Enum):
    """
    Lifecycle state of a client session.
    
    - UNINITIALIZED: Created, nothing sent yet
    - HANDSHAKING: Handshake and tool discovery in progress
    - READY: Tools discovered, tool calls accepted
    - CLOSED: cleanup() ran; terminal
    - FAILED: Handshake or discovery failed; terminal until cleanup()
    """
    UNINITIALIZED = "uninitialized"
    HANDSHAKING = "handshaking"
    READY = "ready"
    CLOSED = "closed"
    FAILED = "failed"
    
    @property
    def is_terminal(self) -> bool:
        """Check if no further calls may be issued from this state."""
        return self in (SessionState.CLOSED, SessionState.FAILED)


# =============================================================================
# Capability Descriptors
# =============================================================================


@dataclass(frozen=True)
class Tool:
    """
    A remotely invokable operation discovered via tools/list.
    
    Attributes:
        name: Tool name used in tools/call
        description: Optional human-readable description
        input_schema: JSON schema describing the tool arguments
    """
    name: str
    description: Optional[str] = None
    input_schema: Dict[str, Any] = field(default_factory=dict)
    
    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Tool":
        """
        Build a descriptor from a tools/list entry.
        
        Raises:
            ValueError: If the entry has no string name
        """
        name = d.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Tool descriptor without a name: {d!r}")
        
        description = d.get("description")
        schema = d.get("inputSchema", d.get("input_schema"))
        return cls(
            name=name,
            description=description if isinstance(description, str) else None,
            input_schema=schema if isinstance(schema, dict) else {},
        )


@dataclass(frozen=True)
class ServerInfo:
    """Server identity and capabilities reported by the handshake."""
    name: str = ""
    version: str = ""
    protocol_version: str = ""
    capabilities: Dict[str, Any] = field(default_factory=dict)
    
    @classmethod
    def from_result(cls, result: Any) -> "ServerInfo":
        """Build from an initialize result, tolerating missing members."""
        if not isinstance(result, dict):
            return cls()
        
        info = result.get("serverInfo")
        info = info if isinstance(info, dict) else {}
        capabilities = result.get("capabilities")
        return cls(
            name=str(info.get("name", "")),
            version=str(info.get("version", "")),
            protocol_version=str(result.get("protocolVersion", "")),
            capabilities=capabilities if isinstance(capabilities, dict) else {},
        )


# =============================================================================
# Documentation Records
# =============================================================================


@dataclass
class LibraryResolution:
    """A candidate documentation library for a library name."""
    library_id: str
    trust_score: float = 0.0
    code_snippets_count: int = 0
    description: Optional[str] = None


@dataclass
class DocumentationResult:
    """Documentation content fetched for a library ID."""
    content: str
    source: str = "Context7"
    last_updated: Optional[str] = None
    version: str = "latest"
