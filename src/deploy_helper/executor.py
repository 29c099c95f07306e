"""Deployment orchestration for deploy-helper.

Runs deployments one after another and, within each, their hosts one after
another. Every host gets a runner chosen from its locality; remote hosts get
one SSH session for the whole task list. A host missing from the inventory
is reported and skipped; any other error aborts the entire run.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .context import VariableContext
from .engine import TaskEngine, merge_vars
from .exceptions import MissingHostConfigError
from .inventory import Inventory
from .logging import host_scope
from .output import Display
from .runners import CommandRunner, create_runner
from .ssh import SSHConfig, SSHHost
from .types import Deployment, TargetHost

logger = logging.getLogger(__name__)


@dataclass
class DeploymentResults:
    """Outcome of a full run.

    Attributes:
        completed: (deployment name, host key) pairs whose task list finished
        missing_hosts: Host keys that were not found in the inventory
    """

    completed: list[tuple[str, str]] = field(default_factory=list)
    missing_hosts: list[str] = field(default_factory=list)


class DeploymentExecutor:
    """Runs deployments against the hosts of an inventory.

    Attributes:
        inventory: Host registry used to resolve deployment host keys
        base_dir: Directory of the deploy file, for include_tasks paths
        display: Console display for progress and output

    Example:
        executor = DeploymentExecutor(inventory, Path("."), Display())
        results = await executor.run(deployments, VariableContext())
    """

    def __init__(self, inventory: Inventory, base_dir: Path, display: Display | None = None) -> None:
        self.inventory = inventory
        self.base_dir = base_dir
        self.display = display or Display()

    async def run(self, deployments: list[Deployment], context: VariableContext) -> DeploymentResults:
        """Run every deployment in order.

        Raises:
            DeployHelperError: On the first fatal error
        """
        results = DeploymentResults()

        for deployment in deployments:
            self.display.deployment_start(deployment.name)
            merge_vars(deployment.vars, context)

            for host_key in deployment.hosts:
                if len(deployment.hosts) > 1:
                    self.display.host_start(host_key)

                try:
                    host = self._resolve_host(host_key)
                except MissingHostConfigError as e:
                    logger.warning(str(e))
                    self.display.missing_host(host_key)
                    results.missing_hosts.append(host_key)
                    continue

                with host_scope(logger, deployment.name, host_key):
                    await self._run_on_host(deployment, host, context)
                results.completed.append((deployment.name, host_key))

        return results

    def _resolve_host(self, host_key: str) -> TargetHost:
        host = self.inventory.get_host(host_key)
        if host is None:
            raise MissingHostConfigError(host_key)
        return host

    async def _run_on_host(
        self,
        deployment: Deployment,
        host: TargetHost,
        context: VariableContext,
    ) -> None:
        if host.is_local:
            await self._run_tasks(deployment, create_runner(host, self.display), context)
            return

        async with SSHHost(SSHConfig.from_target(host)) as session:
            await self._run_tasks(deployment, create_runner(host, self.display, session), context)

    async def _run_tasks(
        self,
        deployment: Deployment,
        runner: CommandRunner,
        context: VariableContext,
    ) -> None:
        engine = TaskEngine(runner, self.base_dir, self.display)
        await engine.run_tasks(deployment.tasks, context, deployment.chdir)
