"""
Companion-process management for context7-mcp.

Handles:
- Command resolution on PATH
- Spawning the MCP server with piped stdio
- Publishing stdout chunks to subscribers
- Graceful termination

A dropped process is not restarted. Exit listeners registered with
on_exit() are told about it so the session on top can fail at once.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from context7_mcp.config import ServerConfig
from context7_mcp.errors import TransportError

logger = logging.getLogger(__name__)

Listener = Callable[[Union[bytes, str]], None]
ExitListener = Callable[[Optional[int]], None]

READ_CHUNK_SIZE = 4096
STDOUT_DRAIN_TIMEOUT = 1.0


class CommandNotFoundError(TransportError):
    """Raised when the companion command cannot be found on PATH."""
    pass


@dataclass
class ProcessStatus:
    """Snapshot of the companion process state."""
    running: bool
    pid: Optional[int] = None
    start_time: Optional[datetime] = None
    exit_code: Optional[int] = None
    last_error: Optional[str] = None


def resolve_command(command: str) -> str:
    """
    Resolve the companion command to an executable path.

    Args:
        command: Command name or path

    Returns:
        Absolute path to the executable

    Raises:
        CommandNotFoundError: If the command is not on PATH
    """
    resolved = shutil.which(command)
    if resolved is None:
        raise CommandNotFoundError(f"Command not found on PATH: {command}")
    return resolved


async def start_server_process(config: ServerConfig) -> asyncio.subprocess.Process:
    """
    Start the MCP server process with piped stdio.

    Args:
        config: Companion process configuration

    Returns:
        The asyncio subprocess

    Raises:
        CommandNotFoundError: If the command is not on PATH
        TransportError: If the process fails to start in time
    """
    executable = resolve_command(config.command)

    env = os.environ.copy()
    env.update(config.env)

    try:
        process = await asyncio.wait_for(
            asyncio.create_subprocess_exec(
                executable,
                *config.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=config.cwd,
            ),
            timeout=config.startup_timeout,
        )
    except asyncio.TimeoutError:
        raise TransportError(
            f"MCP server startup timeout after {config.startup_timeout}s"
        ) from None
    except OSError as e:
        raise TransportError(f"Failed to start MCP server {config.command}: {e}") from e

    logger.debug(f"Started MCP server process (PID: {process.pid}): {config.command}")
    return process


class StdioProcessManager:
    """
    Runs an MCP server as a child process and exposes its stdio as a stream.

    Implements the CompanionTransport interface used by MCPClient:
    start(), send(), subscribe() and cleanup().

    Example:
        manager = StdioProcessManager(ServerConfig.from_command_line("uvx my-server"))
        client = MCPClient(manager)
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()

        self._process: Optional[asyncio.subprocess.Process] = None
        self._listeners: List[Listener] = []
        self._exit_listeners: List[ExitListener] = []
        self._tasks: List[asyncio.Task] = []
        self._running = False
        self._start_time: Optional[datetime] = None
        self._exit_code: Optional[int] = None
        self._last_error: Optional[str] = None

    async def start(self) -> None:
        """Start the process. No-op if already running."""
        if self.is_running:
            return

        logger.info(f"Starting MCP server: {self.config.command} {' '.join(self.config.args)}")
        try:
            self._process = await start_server_process(self.config)
        except TransportError as e:
            self._last_error = str(e)
            raise

        self._running = True
        self._start_time = datetime.now(timezone.utc)
        self._exit_code = None
        reader = asyncio.create_task(self._read_stdout())
        self._tasks = [
            reader,
            asyncio.create_task(self._read_stderr()),
            asyncio.create_task(self._watch(reader)),
        ]
        logger.info(f"MCP server started with PID: {self._process.pid}")

    def send(self, data: str) -> bool:
        """
        Write one frame to the process stdin.

        Returns:
            False if the process is not running or the write failed
        """
        if not self.is_running or self._process is None or self._process.stdin is None:
            return False

        try:
            self._process.stdin.write(data.encode("utf-8"))
            return True
        except (OSError, RuntimeError) as e:
            logger.error(f"Failed to send data to MCP server: {e}")
            self._last_error = str(e)
            return False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for stdout chunks.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def on_exit(self, listener: ExitListener) -> Callable[[], None]:
        """
        Register a listener called with the exit code when the process
        dies without stop() having been called.

        Returns:
            Callable that removes the listener
        """
        self._exit_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._exit_listeners:
                self._exit_listeners.remove(listener)

        return unsubscribe

    async def stop(self) -> None:
        """Stop the process gracefully, killing it after shutdown_timeout."""
        self._running = False

        process = self._process
        if process is not None and process.returncode is None:
            logger.info("Stopping MCP server process...")
            if process.stdin is not None:
                process.stdin.close()
            try:
                process.terminate()
            except ProcessLookupError:
                pass
            try:
                await asyncio.wait_for(process.wait(), timeout=self.config.shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning("MCP server did not stop in time, killing it")
                process.kill()
                await process.wait()

        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []

        if process is not None:
            self._exit_code = process.returncode
        self._process = None

    async def cleanup(self) -> None:
        """Stop the process and drop all listeners. Idempotent."""
        await self.stop()
        self._listeners.clear()
        self._exit_listeners.clear()

    def status(self) -> ProcessStatus:
        """Get a snapshot of the process state."""
        return ProcessStatus(
            running=self.is_running,
            pid=self._process.pid if self._process is not None else None,
            start_time=self._start_time,
            exit_code=self._exit_code,
            last_error=self._last_error,
        )

    @property
    def is_running(self) -> bool:
        """Check if the process is running."""
        return (
            self._running
            and self._process is not None
            and self._process.returncode is None
        )

    def _publish(self, chunk: bytes) -> None:
        for listener in list(self._listeners):
            try:
                listener(chunk)
            except Exception:
                logger.exception("MCP stdout listener raised")

    async def _read_stdout(self) -> None:
        assert self._process is not None and self._process.stdout is not None
        stdout = self._process.stdout
        while True:
            chunk = await stdout.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            self._publish(chunk)

    async def _read_stderr(self) -> None:
        assert self._process is not None and self._process.stderr is not None
        stderr = self._process.stderr
        while True:
            line = await stderr.readline()
            if not line:
                break
            logger.debug(f"MCP server stderr: {line.decode('utf-8', errors='replace').rstrip()}")

    async def _watch(self, reader: Optional[asyncio.Task] = None) -> None:
        """Record an unexpected exit and notify exit listeners; no restart."""
        assert self._process is not None
        return_code = await self._process.wait()
        self._exit_code = return_code

        if not self._running:
            return  # Intentional shutdown

        self._running = False
        if return_code != 0:
            self._last_error = f"MCP server exited with code {return_code}"
        logger.warning(f"MCP server exited with code {return_code}")

        if reader is not None:
            # Responses written just before the exit reach subscribers first
            await asyncio.wait([reader], timeout=STDOUT_DRAIN_TIMEOUT)

        for listener in list(self._exit_listeners):
            try:
                listener(return_code)
            except Exception:
                logger.exception("MCP exit listener raised")
