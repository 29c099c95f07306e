"""Type definitions for deploy-helper.

This module defines the core data types read from the deploy and inventory
documents: deployments, tasks, target hosts and the register result that
captures a command's output. Deployments and tasks are immutable once
parsed; only the variable context they read and write is mutable.
"""

from dataclasses import dataclass, field
from typing import Any


LOCALHOST = "localhost"


@dataclass
class TargetHost:
    """Connection parameters for one inventory host.

    Attributes:
        name: Inventory key the deployment refers to (e.g., "web01")
        host: Address to connect to, or the literal "localhost"
        port: SSH port (default: 22)
        user: SSH username
        password: Password for authentication (optional)
        ssh_key_path: Private key path for authentication (optional)

    Example:
        >>> host = TargetHost(name="web01", host="192.168.1.10", user="deploy")
        >>> host.port
        22
        >>> host.is_local
        False

        >>> TargetHost(name="local", host="localhost").is_local
        True
    """

    name: str
    host: str
    port: int = 22
    user: str | None = None
    password: str | None = None
    ssh_key_path: str | None = None

    @property
    def is_local(self) -> bool:
        """Check if this host runs commands as local subprocesses."""
        return self.host == LOCALHOST

    @property
    def is_remote(self) -> bool:
        """Check if this host runs commands over SSH."""
        return not self.is_local


@dataclass(frozen=True)
class Task:
    """One unit of declarative work inside a deployment.

    Attributes:
        name: Display name (template-expandable)
        shell: Command text run through ``sh -c`` (optional)
        command: Command text exec'd directly after shell-word splitting (optional)
        register: Variable name that receives the captured output (optional)
        debug: Ordered label -> message templates printed before commands
        vars: Ordered name -> value templates merged into the context
        chdir: Working directory overriding the deployment default (optional)
        when: Boolean expression deciding whether the task runs (optional)
        loop: Values the task body is repeated for, bound to ``item`` (optional)
        include_tasks: Path of a task-list file run after the commands (optional)
    """

    name: str
    shell: str | None = None
    command: str | None = None
    register: str | None = None
    debug: dict[str, str] | None = None
    vars: dict[str, str] | None = None
    chdir: str | None = None
    when: str | None = None
    loop: list[Any] | None = None
    include_tasks: str | None = None


@dataclass(frozen=True)
class Deployment:
    """A named unit of work targeting one or more inventory hosts.

    Attributes:
        name: Display name
        hosts: Inventory keys, in the order they are processed
        tasks: Ordered task list run against every host
        chdir: Default working directory for all tasks (optional)
        vars: Ordered name -> value templates evaluated once per run
    """

    name: str
    hosts: list[str]
    tasks: list[Task] = field(default_factory=list)
    chdir: str | None = None
    vars: dict[str, str] | None = None


@dataclass
class RegisterResult:
    """Captured output of one finished command.

    Attributes:
        stdout: Everything the command wrote to stdout
        stderr: Everything the command wrote to stderr
        rc: Exit code (-1 when the process ended without one)

    Example:
        >>> RegisterResult(stdout="hello", stderr="", rc=0).to_dict()
        {'stdout': 'hello', 'stderr': '', 'rc': 0}
    """

    stdout: str
    stderr: str
    rc: int

    @property
    def is_success(self) -> bool:
        """Check if the command exited with status 0."""
        return self.rc == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-like value stored in the variable context."""
        return {"stdout": self.stdout, "stderr": self.stderr, "rc": self.rc}
