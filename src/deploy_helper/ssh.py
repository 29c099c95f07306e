"""Async SSH transport for deploy-helper.

Provides the authenticated remote session a host's tasks run over. One
SSHHost is opened per host and deployment and reused for every command of
that host's task list.

Remote commands stream stdout and stderr back over two logical channels of
the same connection. Both are drained concurrently until end of stream, so a
command that fills one pipe while nobody reads it can never stall.
"""

import asyncio
import codecs
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

import asyncssh

from .exceptions import AuthenticationError, CommandSpawnError, HostConnectionError
from .logging import TRACE
from .types import TargetHost

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024

OutputCallback = Callable[[str], None]


@dataclass
class SSHConfig:
    """SSH connection configuration.

    Attributes:
        hostname: Remote hostname or IP
        port: SSH port (default 22)
        username: SSH username
        password: Password for authentication (optional)
        client_keys: List of private key paths (optional)
        connect_timeout: Connection timeout in seconds
    """

    hostname: str
    port: int = 22
    username: str | None = None
    password: str | None = None
    client_keys: list[str] | None = None
    connect_timeout: float = 30.0

    @classmethod
    def from_target(cls, target: TargetHost) -> "SSHConfig":
        """Build a config from an inventory host.

        An SSH key wins over a password when both are set.

        Raises:
            AuthenticationError: If the user or both credentials are missing
        """
        if not target.user:
            raise AuthenticationError(target.name, "Missing user for remote host")

        if target.ssh_key_path:
            return cls(
                hostname=target.host,
                port=target.port,
                username=target.user,
                client_keys=[os.path.expanduser(target.ssh_key_path)],
            )
        if target.password:
            return cls(
                hostname=target.host,
                port=target.port,
                username=target.user,
                password=target.password,
            )

        raise AuthenticationError(target.name, "Either ssh_key_path or password must be provided")

    def to_asyncssh_options(self) -> dict[str, Any]:
        """Convert to asyncssh.connect() kwargs."""
        options: dict[str, Any] = {
            "host": self.hostname,
            "port": self.port,
            "connect_timeout": self.connect_timeout,
            "known_hosts": None,
        }

        if self.username:
            options["username"] = self.username
        if self.client_keys:
            options["client_keys"] = self.client_keys
        elif self.password:
            options["password"] = self.password
            # Password only: don't offer default keys or the agent
            options["client_keys"] = None
            options["agent_path"] = None

        return options


async def drain_stream(
    reader: Any,
    callback: OutputCallback | None = None,
    chunk_size: int = READ_CHUNK_SIZE,
) -> str:
    """Read a byte stream to end of stream in bounded chunks.

    Each decoded chunk is passed to the callback as soon as it arrives.
    Multi-byte characters split across chunks are decoded correctly.

    Args:
        reader: Stream with an async ``read(n)`` returning bytes
        callback: Called with each decoded chunk (optional)
        chunk_size: Maximum bytes per read

    Returns:
        Everything read, decoded as UTF-8
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    parts: list[str] = []

    while True:
        data = await reader.read(chunk_size)
        if not data:
            break
        text = decoder.decode(data)
        if text:
            parts.append(text)
            if callback:
                callback(text)

    tail = decoder.decode(b"", final=True)
    if tail:
        parts.append(tail)
        if callback:
            callback(tail)

    return "".join(parts)


class SSHHost:
    """Authenticated SSH session to one inventory host.

    The connection is made on first use and cached until disconnect().

    Example:
        async with SSHHost(SSHConfig.from_target(target)) as session:
            stdout, stderr, rc = await session.run_streaming("uptime")
    """

    def __init__(self, config: SSHConfig) -> None:
        self.config = config
        self._conn: asyncssh.SSHClientConnection | None = None

    @property
    def name(self) -> str:
        """Host name for identification."""
        return self.config.hostname

    async def connect(self) -> asyncssh.SSHClientConnection:
        """Establish the SSH connection, returning the cached one if open.

        Raises:
            AuthenticationError: If the server rejects the credentials
            HostConnectionError: If the host cannot be reached
        """
        if self._conn is None:
            logger.debug(f"Connecting to {self.config.hostname}:{self.config.port}")
            try:
                self._conn = await asyncssh.connect(**self.config.to_asyncssh_options())
            except asyncssh.PermissionDenied as e:
                raise AuthenticationError(self.config.hostname, str(e)) from e
            except (OSError, asyncio.TimeoutError, asyncssh.Error) as e:
                raise HostConnectionError(self.config.hostname, str(e)) from e
            logger.info(f"Connected to {self.config.hostname}")
        return self._conn

    async def disconnect(self) -> None:
        """Close the SSH connection."""
        if self._conn is not None:
            self._conn.close()
            await self._conn.wait_closed()
            logger.debug(f"Disconnected from {self.config.hostname}")
        self._conn = None

    async def __aenter__(self) -> "SSHHost":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.disconnect()

    async def run_streaming(
        self,
        command: str,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
    ) -> tuple[str, str, int]:
        """Run a command, streaming both output channels as they arrive.

        stdout and stderr are drained by two concurrent readers joined before
        the exit status is read. There is no timeout: a command that never
        finishes blocks the run.

        Args:
            command: Command line executed by the remote login shell
            on_stdout: Called with each stdout chunk (optional)
            on_stderr: Called with each stderr chunk (optional)

        Returns:
            Tuple of (stdout, stderr, exit_code); exit_code is -1 when the
            remote side reports no status

        Raises:
            CommandSpawnError: If the channel cannot be opened or the
                connection drops mid-command
        """
        conn = await self.connect()

        logger.log(TRACE, f"Running on {self.config.hostname}: {command}")

        try:
            async with conn.create_process(command, encoding=None) as process:
                process.stdin.write_eof()
                stdout, stderr = await asyncio.gather(
                    drain_stream(process.stdout, on_stdout),
                    drain_stream(process.stderr, on_stderr),
                )
                await process.wait()
                exit_status = process.exit_status
        except asyncssh.ChannelOpenError as e:
            raise CommandSpawnError(command, f"could not open channel: {e}") from e
        except (OSError, asyncssh.Error) as e:
            raise CommandSpawnError(command, str(e)) from e

        rc = exit_status if exit_status is not None else -1
        logger.debug(
            f"Command completed: rc={rc}, "
            f"stdout={len(stdout)} chars, stderr={len(stderr)} chars"
        )
        return stdout, stderr, rc
