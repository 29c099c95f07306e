"""Console display for deploy-helper.

All user-facing progress (deployment and task headers, skip notices, debug
messages, command echo and live command output) goes through a Display,
which renders it with Rich. Diagnostic logging is separate and goes to the
logging module.
"""

from rich.console import Console


class Display:
    """Colored console output for a deployment run.

    Command output is written verbatim: no markup, no highlighting and no
    wrapping, so captured text is exactly what the command produced.

    Example:
        display = Display()
        display.task_start("Install packages")
        display.command("apt-get install -y nginx")
    """

    def __init__(self, console: Console | None = None, err_console: Console | None = None) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.err_console = err_console or Console(stderr=True, highlight=False, soft_wrap=True)

    def _say(self, message: str, style: str) -> None:
        self.console.print(message, style=style, markup=False, highlight=False)

    def deployment_start(self, name: str) -> None:
        self._say(f"Starting deployment: {name}\n", "green")

    def host_start(self, host: str) -> None:
        self._say(f"Processing host: {host}\n", "blue")

    def task_start(self, name: str) -> None:
        self._say(f"Executing task: {name}", "cyan")

    def task_skipped(self, name: str) -> None:
        self._say(f"Skipping task: {name}\n", "yellow")

    def task_end(self) -> None:
        self.console.print()

    def debug(self, label: str, message: str) -> None:
        self._say(f"{label}: {message}", "blue")

    def command(self, command: str) -> None:
        self._say(f"> {command}", "magenta")

    def registered(self, name: str) -> None:
        self._say(f"Registering output to: {name}", "yellow")

    def including(self, path: str) -> None:
        self._say(f"Including tasks from: {path}\n", "blue")

    def missing_host(self, host: str) -> None:
        self.err_console.print(
            f"No server config found for host: {host}", style="red", markup=False, highlight=False
        )

    def stdout_line(self, line: str) -> None:
        """Write one line of command stdout."""
        self.console.out(line, style="white", highlight=False)

    def stderr_line(self, line: str) -> None:
        """Write one line of command stderr."""
        self.err_console.out(line, style="red", highlight=False)

    def stdout_chunk(self, text: str) -> None:
        """Write a raw chunk of command stdout, newlines included."""
        self.console.out(text, style="white", highlight=False, end="")

    def stderr_chunk(self, text: str) -> None:
        """Write a raw chunk of command stderr, newlines included."""
        self.err_console.out(text, style="red", highlight=False, end="")
