"""Inventory loading for deploy-helper.

The inventory is one YAML document with a single ``hosts`` mapping from
inventory key to connection parameters:

    hosts:
      web01:
        host: 192.168.1.10
        port: 2222
        user: deploy
        ssh_key_path: ~/.ssh/id_ed25519
      local:
        host: localhost
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .exceptions import DocumentError
from .types import LOCALHOST, TargetHost

logger = logging.getLogger(__name__)


@dataclass
class Inventory:
    """Host registry mapping inventory keys to TargetHost objects.

    Only keys the inventory defines resolve; a deployment that targets
    ``localhost`` needs a ``localhost`` entry like any other host.

    Example:
        >>> inventory = Inventory()
        >>> inventory.add_host(TargetHost(name="web01", host="10.0.0.1", user="deploy"))
        >>> inventory.get_host("web01").port
        22
        >>> inventory.get_host("localhost") is None
        True
    """

    hosts: dict[str, TargetHost] = field(default_factory=dict)

    def add_host(self, host: TargetHost) -> None:
        """Add a host to the inventory."""
        self.hosts[host.name] = host

    def get_host(self, name: str) -> TargetHost | None:
        """Get a host by inventory key, or None if it is not defined."""
        return self.hosts.get(name)

    def list_hosts(self) -> list[TargetHost]:
        """Get all defined hosts."""
        return list(self.hosts.values())


def load_inventory(inventory_file: str | Path) -> Inventory:
    """Load an inventory file.

    Args:
        inventory_file: Path to the inventory YAML file

    Returns:
        Inventory with one TargetHost per entry of the ``hosts`` mapping

    Raises:
        DocumentError: If the file is missing, not YAML, or malformed
    """
    path = Path(inventory_file)
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise DocumentError(str(path), f"cannot read inventory: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise DocumentError(str(path), str(e)) from e

    if not isinstance(data, dict) or not isinstance(data.get("hosts"), dict):
        raise DocumentError(str(path), "inventory must contain a 'hosts' mapping")

    inventory = Inventory()
    for name, host_data in data["hosts"].items():
        inventory.add_host(_host_from_vars(str(path), str(name), host_data))

    logger.debug(f"Loaded {len(inventory.hosts)} host(s) from {path}")
    return inventory


def _host_from_vars(source: str, name: str, host_data: Any) -> TargetHost:
    """Create a TargetHost from one inventory entry."""
    if not isinstance(host_data, dict) or not host_data.get("host"):
        raise DocumentError(source, f"host '{name}' must be a mapping with a 'host' field")

    port = host_data.get("port", 22)
    if not isinstance(port, int) or isinstance(port, bool):
        raise DocumentError(source, f"host '{name}' has an invalid port: {port!r}")

    return TargetHost(
        name=name,
        host=str(host_data["host"]),
        port=port,
        user=_optional_str(host_data.get("user")),
        password=_optional_str(host_data.get("password")),
        ssh_key_path=_optional_str(host_data.get("ssh_key_path")),
    )


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


def localhost_inventory() -> Inventory:
    """Generate a localhost-only inventory.

    Used when no inventory file exists at the default location.
    """
    inventory = Inventory()
    inventory.add_host(TargetHost(name=LOCALHOST, host=LOCALHOST))
    return inventory
