"""Exception hierarchy for deploy-helper.

Every error carries a human-readable message plus a ``details`` dict of the
structured fields that produced it, so callers can report the offending
template, command or path without parsing the message.

Only MissingHostConfigError is recoverable: the deployment driver reports it
and moves on to the next host. Everything else aborts the whole run.
"""

from typing import Any


class DeployHelperError(Exception):
    """Base class for all deploy-helper errors.

    Attributes:
        msg: Human-readable error message
        details: Structured fields describing the failure

    Example:
        raise DeployHelperError("Something broke", path="deploy.yml")
    """

    def __init__(self, msg: str, **details: Any) -> None:
        super().__init__(msg)
        self.msg = msg
        self.details: dict[str, Any] = details

    def __str__(self) -> str:
        return self.msg


class RenderError(DeployHelperError):
    """Raised when a template cannot be rendered or coerced."""


class UndefinedVariableError(RenderError):
    """Raised when a template references a name absent from the context."""

    def __init__(self, template: str, available: list[str]) -> None:
        names = ", ".join(available) if available else "(none)"
        super().__init__(
            f'One or more of the variables are undefined in:\n"{template}"\n'
            f"Available vars: {names}",
            template=template,
            available=available,
        )
        self.template = template
        self.available = available


class TemplateSyntaxError(RenderError):
    """Raised when a template is not valid template syntax."""

    def __init__(self, template: str, reason: str) -> None:
        super().__init__(
            f'Error rendering template "{template}": {reason}',
            template=template,
            reason=reason,
        )
        self.template = template


class TemplateEvaluationError(RenderError):
    """Raised when a valid template fails while it is being evaluated."""

    def __init__(self, template: str, reason: str) -> None:
        super().__init__(
            f'Error rendering template "{template}": {reason}',
            template=template,
            reason=reason,
        )
        self.template = template


class InvalidJsonError(RenderError):
    """Raised when a from_json value does not render to valid JSON."""

    def __init__(self, template: str, rendered: str, reason: str) -> None:
        super().__init__(
            f"Error parsing JSON: {reason}:\n{rendered}\nat {template}",
            template=template,
            rendered=rendered,
            reason=reason,
        )
        self.template = template
        self.rendered = rendered


class CommandSpawnError(DeployHelperError):
    """Raised when a local process or remote channel cannot be started."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(
            f"Command execution failed with error: {reason}. Stopping further tasks.",
            command=command,
            reason=reason,
        )
        self.command = command


class NonZeroExitError(DeployHelperError):
    """Raised when a command runs but exits with a failing status."""

    def __init__(self, command: str, rc: int) -> None:
        super().__init__(
            f"Command execution failed with exit status: {rc}. Stopping further tasks.",
            command=command,
            rc=rc,
        )
        self.command = command
        self.rc = rc


class AuthenticationError(DeployHelperError):
    """Raised when no usable credential exists or the server rejects it."""

    def __init__(self, host: str, reason: str) -> None:
        super().__init__(f"Authentication failed for {host}: {reason}", host=host, reason=reason)
        self.host = host


class HostConnectionError(DeployHelperError):
    """Raised when the SSH connection to a host cannot be established."""

    def __init__(self, host: str, reason: str) -> None:
        super().__init__(f"Could not connect to {host}: {reason}", host=host, reason=reason)
        self.host = host


class MissingHostConfigError(DeployHelperError):
    """Raised when a deployment names a host the inventory does not define."""

    def __init__(self, host: str) -> None:
        super().__init__(f"No server config found for host: {host}", host=host)
        self.host = host


class IncludeResolutionError(DeployHelperError):
    """Raised when an include_tasks file is missing, malformed or recursive."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot include tasks from {path}: {reason}", path=path, reason=reason)
        self.path = path


class DocumentError(DeployHelperError):
    """Raised when a deploy, inventory or extra-vars document is malformed."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Invalid document {path}: {reason}", path=path, reason=reason)
        self.path = path
