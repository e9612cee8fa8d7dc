"""
Configuration for the MCP client and its companion process.

Both configs validate on creation and can be overridden from the
environment:

    CONTEXT7_MCP_COMMAND: Command line for the companion process
    CONTEXT7_MCP_STARTUP_TIMEOUT: Seconds to wait for the process to spawn
    CONTEXT7_MCP_REQUEST_TIMEOUT: Seconds to wait for each response
"""

from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from context7_mcp._core.framing import MAX_FRAME_BYTES
from context7_mcp._core.version import CLIENT_NAME, CLIENT_VERSION, PROTOCOL_VERSION
from context7_mcp.errors import ConfigError, MAX_ERROR_MESSAGE_LENGTH

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 10.0


def _env_float(name: str) -> Optional[float]:
    """Read a float environment variable, raising ConfigError if malformed."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class ClientConfig:
    """
    Configuration for MCPClient.
    
    Attributes:
        request_timeout: Seconds to wait for a matching response (default 10)
        max_frame_bytes: Inbound frames above this size are dropped undecoded
        max_error_message_length: Server error messages are truncated to this
        protocol_version: MCP revision requested in the handshake
        client_name: clientInfo.name sent in the handshake
        client_version: clientInfo.version sent in the handshake
    """
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    max_frame_bytes: int = MAX_FRAME_BYTES
    max_error_message_length: int = MAX_ERROR_MESSAGE_LENGTH
    protocol_version: str = PROTOCOL_VERSION
    client_name: str = CLIENT_NAME
    client_version: str = CLIENT_VERSION
    
    def __post_init__(self) -> None:
        """Validate configuration on creation."""
        self.validate()
    
    def validate(self) -> None:
        """Validate configuration values."""
        if self.request_timeout <= 0:
            raise ConfigError(
                f"request_timeout must be positive, got {self.request_timeout}"
            )
        if self.max_frame_bytes <= 0:
            raise ConfigError(
                f"max_frame_bytes must be positive, got {self.max_frame_bytes}"
            )
        if self.max_error_message_length <= 0:
            raise ConfigError(
                "max_error_message_length must be positive, "
                f"got {self.max_error_message_length}"
            )
        if not self.client_name:
            raise ConfigError("client_name must not be empty")
    
    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config honoring CONTEXT7_MCP_REQUEST_TIMEOUT."""
        timeout = _env_float("CONTEXT7_MCP_REQUEST_TIMEOUT")
        if timeout is None:
            return cls()
        logger.debug(f"Using request timeout from environment: {timeout}s")
        return cls(request_timeout=timeout)


@dataclass
class ServerConfig:
    """
    Configuration for the companion MCP server process.
    
    Attributes:
        command: Executable to spawn
        args: Arguments for the executable
        env: Extra environment variables merged over os.environ
        cwd: Working directory for the process
        startup_timeout: Seconds to wait for the process to spawn
        shutdown_timeout: Seconds to wait after SIGTERM before killing
    """
    command: str = "npx"
    args: List[str] = field(default_factory=lambda: ["-y", "@upstash/context7-mcp"])
    env: Dict[str, str] = field(default_factory=dict)
    cwd: Optional[str] = None
    startup_timeout: float = 10.0
    shutdown_timeout: float = 5.0
    
    def __post_init__(self) -> None:
        """Validate configuration on creation."""
        self.validate()
    
    def validate(self) -> None:
        """Validate configuration values."""
        if not self.command or not self.command.strip():
            raise ConfigError("command must not be empty")
        if self.startup_timeout <= 0:
            raise ConfigError(
                f"startup_timeout must be positive, got {self.startup_timeout}"
            )
        if self.shutdown_timeout <= 0:
            raise ConfigError(
                f"shutdown_timeout must be positive, got {self.shutdown_timeout}"
            )
    
    @classmethod
    def from_command_line(cls, command_line: str, **kwargs) -> "ServerConfig":
        """
        Parse a shell-style command line.
        
        Example: "uvx my-mcp-server --db-path ./data.db"
        """
        parts = shlex.split(command_line)
        if not parts:
            raise ConfigError(f"Invalid server command: {command_line!r}")
        return cls(command=parts[0], args=parts[1:], **kwargs)
    
    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build a config honoring CONTEXT7_MCP_COMMAND and CONTEXT7_MCP_STARTUP_TIMEOUT."""
        kwargs = {}
        startup_timeout = _env_float("CONTEXT7_MCP_STARTUP_TIMEOUT")
        if startup_timeout is not None:
            kwargs["startup_timeout"] = startup_timeout
        
        command_line = os.environ.get("CONTEXT7_MCP_COMMAND")
        if command_line:
            logger.info(f"Using companion command from CONTEXT7_MCP_COMMAND: {command_line}")
            return cls.from_command_line(command_line, **kwargs)
        return cls(**kwargs)
