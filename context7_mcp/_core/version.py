"""
Version constants and compatibility checking for context7-mcp.

The client tracks three independent versions:
- CLIENT_VERSION: User-facing package version, also sent as clientInfo.version
- PROTOCOL_VERSION: MCP protocol revision requested during the handshake
- JSONRPC_VERSION: Envelope tag required on every frame
"""

from __future__ import annotations

import re
from typing import Tuple

# context7-mcp version (user-facing semver)
CLIENT_VERSION = "0.1.0"
CLIENT_NAME = "context7-mcp-client"

# MCP protocol revision (date-based)
PROTOCOL_VERSION = "2024-11-05"

# JSON-RPC envelope tag
JSONRPC_VERSION = "2.0"


def parse_protocol_version(version: str) -> Tuple[int, int, int]:
    """
    Parse a date-based protocol revision into (year, month, day).
    
    Args:
        version: Revision string like "2024-11-05"
        
    Returns:
        Tuple of (year, month, day)
        
    Raises:
        ValueError: If the revision string is invalid
    """
    match = re.match(r"^(\d{4})-(\d{2})-(\d{2})$", version.strip())
    if not match:
        raise ValueError(f"Invalid protocol version: {version}")
    
    return (int(match.group(1)), int(match.group(2)), int(match.group(3)))


def is_protocol_compatible(server_version: str) -> bool:
    """
    Check if the revision a server answered with can be spoken by this client.
    
    Servers may answer with an older revision; anything newer than the
    requested revision, or unparseable, is incompatible.
    
    Args:
        server_version: Revision string returned by the server
        
    Returns:
        True if compatible, False otherwise
    """
    try:
        return parse_protocol_version(server_version) <= parse_protocol_version(PROTOCOL_VERSION)
    except ValueError:
        return False
