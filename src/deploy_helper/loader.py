"""Loading of deploy documents, included task files and extra vars.

This is a thin deserialization boundary: YAML is parsed with PyYAML and
turned into the immutable Deployment and Task dataclasses. Nothing here
renders templates or touches the variable context.
"""

import json
import logging
import shlex
from pathlib import Path
from typing import Any

import yaml

from .exceptions import DocumentError, IncludeResolutionError
from .types import Deployment, Task

logger = logging.getLogger(__name__)

TASK_FIELDS = {
    "name",
    "shell",
    "command",
    "register",
    "debug",
    "vars",
    "chdir",
    "when",
    "loop",
    "include_tasks",
}


def _scalar_text(value: Any) -> str:
    """Text form of a YAML scalar, as it would be written in the file."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _string_map(data: Any, field_name: str) -> dict[str, str] | None:
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"'{field_name}' must be a mapping")

    result: dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ValueError(f"'{field_name}.{key}' must be a string")
        result[str(key)] = _scalar_text(value)
    return result


def _optional_text(data: dict[str, Any], field_name: str) -> str | None:
    value = data.get(field_name)
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ValueError(f"'{field_name}' must be a string")
    return _scalar_text(value)


def parse_task(data: Any) -> Task:
    """Build a Task from one parsed YAML mapping.

    Raises:
        ValueError: If the mapping is not a valid task
    """
    if not isinstance(data, dict):
        raise ValueError(f"task must be a mapping, got {type(data).__name__}")
    if "name" not in data or data["name"] is None:
        raise ValueError("task is missing required field 'name'")

    unknown = set(data) - TASK_FIELDS
    if unknown:
        logger.warning(f"Ignoring unknown field(s) {sorted(unknown)} in task {data['name']!r}")

    loop = data.get("loop")
    if loop is not None and not isinstance(loop, list):
        raise ValueError("'loop' must be a list")

    return Task(
        name=_scalar_text(data["name"]),
        shell=_optional_text(data, "shell"),
        command=_optional_text(data, "command"),
        register=_optional_text(data, "register"),
        debug=_string_map(data.get("debug"), "debug"),
        vars=_string_map(data.get("vars"), "vars"),
        chdir=_optional_text(data, "chdir"),
        when=_optional_text(data, "when"),
        loop=loop,
        include_tasks=_optional_text(data, "include_tasks"),
    )


def parse_tasks(data: Any) -> list[Task]:
    """Build an ordered task list from a parsed YAML list."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError("tasks must be a list")
    return [parse_task(item) for item in data]


def parse_deployment(data: Any) -> Deployment:
    """Build a Deployment from one parsed YAML mapping.

    ``hosts`` is a comma-separated string of inventory keys; a YAML list of
    keys is accepted too.

    Raises:
        ValueError: If the mapping is not a valid deployment
    """
    if not isinstance(data, dict):
        raise ValueError(f"deployment must be a mapping, got {type(data).__name__}")
    for required in ("name", "hosts"):
        if data.get(required) is None:
            raise ValueError(f"deployment is missing required field '{required}'")

    raw_hosts = data["hosts"]
    if isinstance(raw_hosts, list):
        hosts = [str(h).strip() for h in raw_hosts]
    else:
        hosts = [h.strip() for h in str(raw_hosts).split(",")]

    return Deployment(
        name=_scalar_text(data["name"]),
        hosts=hosts,
        tasks=parse_tasks(data.get("tasks")),
        chdir=_optional_text(data, "chdir"),
        vars=_string_map(data.get("vars"), "vars"),
    )


def load_deployments(deploy_file: str | Path) -> list[Deployment]:
    """Load every deployment from a multi-document deploy file.

    Each YAML document is a list of deployments; all documents are
    concatenated in order. Empty documents are skipped.

    Raises:
        DocumentError: If the file cannot be read or is malformed
    """
    path = Path(deploy_file)
    try:
        documents = list(yaml.safe_load_all(path.read_text()))
    except OSError as e:
        raise DocumentError(str(path), f"cannot read deploy file: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise DocumentError(str(path), str(e)) from e

    deployments: list[Deployment] = []
    for index, document in enumerate(documents):
        if document is None:
            continue
        if not isinstance(document, list):
            raise DocumentError(str(path), f"document {index + 1} must be a list of deployments")
        try:
            deployments.extend(parse_deployment(item) for item in document)
        except ValueError as e:
            raise DocumentError(str(path), str(e)) from e

    logger.debug(f"Loaded {len(deployments)} deployment(s) from {path}")
    return deployments


def load_task_file(task_file: str | Path) -> list[Task]:
    """Load a bare task list referenced by include_tasks.

    Raises:
        IncludeResolutionError: If the file is missing or malformed
    """
    path = Path(task_file)
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise IncludeResolutionError(str(path), e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise IncludeResolutionError(str(path), str(e)) from e

    try:
        return parse_tasks(data)
    except ValueError as e:
        raise IncludeResolutionError(str(path), str(e)) from e


def load_extra_vars(extra_vars: str | None) -> dict[str, Any]:
    """Parse the -e/--extra-vars option.

    Three forms are accepted:
    - ``@path``: a YAML file holding a mapping of variables
    - ``{...}``: a JSON object
    - ``key=value`` pairs separated by spaces (shell quoting honored);
      tokens without ``=`` are ignored

    Raises:
        DocumentError: If the file is missing or the value is malformed

    Example:
        >>> load_extra_vars("env=staging version='1.2 beta'")
        {'env': 'staging', 'version': '1.2 beta'}
    """
    if not extra_vars:
        return {}

    if extra_vars.startswith("@"):
        path = Path(extra_vars[1:])
        if not path.exists():
            raise DocumentError(str(path), "Extra vars file not found")
        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            raise DocumentError(str(path), str(e)) from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise DocumentError(str(path), "extra vars file must contain a mapping")
        return {str(k): v for k, v in data.items()}

    if extra_vars.startswith("{"):
        try:
            data = json.loads(extra_vars)
        except json.JSONDecodeError as e:
            raise DocumentError("--extra-vars", f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise DocumentError("--extra-vars", "JSON extra vars must be an object")
        return data

    try:
        tokens = shlex.split(extra_vars)
    except ValueError as e:
        raise DocumentError("--extra-vars", str(e)) from e

    result: dict[str, Any] = {}
    for token in tokens:
        if "=" in token:
            key, value = token.split("=", 1)
            result[key] = value
    return result
