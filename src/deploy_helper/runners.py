"""Command runner interfaces and implementations for deploy-helper.

This module defines the strategy pattern for command execution: one runner
per host locality (local subprocess or remote SSH session), selected once
per host and handed to the task engine, which never branches on locality.

A non-zero exit status is not an error at this layer. Runners report it as
data and the task engine decides that it is fatal.
"""

import asyncio
import codecs
import contextlib
import logging
import shlex
from abc import ABC, abstractmethod

from .exceptions import CommandSpawnError
from .output import Display
from .ssh import OutputCallback, SSHHost
from .types import RegisterResult, TargetHost

logger = logging.getLogger(__name__)

# Bytes read from a local pipe at a time; lines may be longer than this
PIPE_READ_SIZE = 64 * 1024


class CommandRunner(ABC):
    """Abstract base class for command execution strategies."""

    def __init__(self, display: Display) -> None:
        self.display = display

    @abstractmethod
    async def execute(
        self,
        command: str,
        use_shell: bool,
        display_output: bool,
        chdir: str | None = None,
    ) -> RegisterResult:
        """Run one command and capture its output.

        Args:
            command: Fully rendered command text
            use_shell: Run through ``sh -c`` instead of exec'ing directly
            display_output: Echo output to the console as it arrives
            chdir: Working directory for the command (optional)

        Returns:
            RegisterResult with captured stdout, stderr and exit code

        Raises:
            CommandSpawnError: If the command could not be started
        """


def _strip_carriage_return(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


class LocalCommandRunner(CommandRunner):
    """Runner for executing commands as local subprocesses.

    Output is read line by line from both pipes concurrently; captured text
    is the lines joined with newlines, without a trailing newline.

    Example:
        >>> runner = LocalCommandRunner(Display())
        >>> result = await runner.execute("echo hello", use_shell=False, display_output=False)
        >>> result.stdout
        'hello'
    """

    async def execute(
        self,
        command: str,
        use_shell: bool,
        display_output: bool,
        chdir: str | None = None,
    ) -> RegisterResult:
        if use_shell:
            argv = ["sh", "-c", command]
        else:
            try:
                argv = shlex.split(command)
            except ValueError as e:
                raise CommandSpawnError(command, f"Failed to parse command: {e}") from e
            if not argv:
                raise CommandSpawnError(command, "Empty command")

        logger.debug(f"Spawning {argv!r} in {chdir or '.'}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=chdir,
            )
        except OSError as e:
            raise CommandSpawnError(command, str(e)) from e

        try:
            stdout, stderr = await asyncio.gather(
                self._read_lines(proc.stdout, self.display.stdout_line if display_output else None),
                self._read_lines(proc.stderr, self.display.stderr_line if display_output else None),
            )
        except BaseException:
            # The child must not outlive a failed read
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise
        returncode = await proc.wait()

        # Killed by a signal: no exit code available
        rc = returncode if returncode >= 0 else -1
        return RegisterResult(stdout=stdout, stderr=stderr, rc=rc)

    @staticmethod
    async def _read_lines(stream: asyncio.StreamReader, emit: OutputCallback | None) -> str:
        """Read a pipe to end of stream, emitting each complete line.

        Reads fixed-size chunks rather than readline(), so a single line
        has no length limit.
        """
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        lines: list[str] = []
        partial: list[str] = []

        def finish_line() -> None:
            line = _strip_carriage_return("".join(partial))
            partial.clear()
            lines.append(line)
            if emit:
                emit(line)

        while True:
            data = await stream.read(PIPE_READ_SIZE)
            if not data:
                break
            pieces = decoder.decode(data).split("\n")
            partial.append(pieces[0])
            for piece in pieces[1:]:
                finish_line()
                partial.append(piece)

        partial.append(decoder.decode(b"", final=True))
        if any(partial):
            finish_line()

        return "\n".join(lines)

def build_remote_command(command: str, use_shell: bool, chdir: str | None = None) -> str:
    """Build the command line sent to the remote login shell.

    Example:
        >>> build_remote_command("ls -la", use_shell=True, chdir="/srv/app")
        "cd /srv/app && sh -c 'ls -la'"
    """
    if use_shell:
        command = f"sh -c {shlex.quote(command)}"
    if chdir:
        command = f"cd {chdir} && {command}"
    return command


class RemoteCommandRunner(CommandRunner):
    """Runner for executing commands over an authenticated SSH session.

    Output chunks are echoed as they arrive; captured text is exactly the
    bytes the command wrote, decoded as UTF-8.
    """

    def __init__(self, session: SSHHost, display: Display) -> None:
        super().__init__(display)
        self.session = session

    async def execute(
        self,
        command: str,
        use_shell: bool,
        display_output: bool,
        chdir: str | None = None,
    ) -> RegisterResult:
        remote_command = build_remote_command(command, use_shell, chdir)
        stdout, stderr, rc = await self.session.run_streaming(
            remote_command,
            on_stdout=self.display.stdout_chunk if display_output else None,
            on_stderr=self.display.stderr_chunk if display_output else None,
        )
        return RegisterResult(stdout=stdout, stderr=stderr, rc=rc)


def create_runner(
    host: TargetHost,
    display: Display,
    session: SSHHost | None = None,
) -> CommandRunner:
    """Create the runner for a host.

    Args:
        host: Inventory host the tasks run against
        display: Console display for command output
        session: Open SSH session, required for remote hosts

    Returns:
        LocalCommandRunner for localhost, RemoteCommandRunner otherwise
    """
    if host.is_local:
        return LocalCommandRunner(display)
    if session is None:
        raise ValueError(f"Remote host {host.name} requires an SSH session")
    return RemoteCommandRunner(session, display)
