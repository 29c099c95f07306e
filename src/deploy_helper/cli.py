"""Command-line interface for deploy-helper."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import click

from deploy_helper import __version__
from deploy_helper.context import VariableContext
from deploy_helper.exceptions import DeployHelperError
from deploy_helper.executor import DeploymentExecutor
from deploy_helper.inventory import Inventory, load_inventory, localhost_inventory
from deploy_helper.loader import load_deployments, load_extra_vars
from deploy_helper.logging import configure_logging, get_level_from_name, get_level_from_verbosity
from deploy_helper.output import Display

logger = logging.getLogger("deploy_helper.cli")

DEFAULT_INVENTORY = "servers.yml"


def resolve_inventory(inventory_file: str, explicit: bool) -> Inventory:
    """Load the inventory, falling back to localhost only for the default path.

    Args:
        inventory_file: Path given by -i or the default
        explicit: Whether the user named the file

    Returns:
        Loaded inventory
    """
    if not explicit and not Path(inventory_file).exists():
        logger.info(f"No {inventory_file} found, using a localhost-only inventory")
        return localhost_inventory()
    return load_inventory(inventory_file)


@click.command()
@click.argument("deploy_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--extra-vars", "-e", "extra_vars", metavar="VARS", default=None,
              help="Set additional variables as key=value, JSON, or @file")
@click.option("--inventory", "-i", default=DEFAULT_INVENTORY, show_default=True,
              envvar="DEPLOY_HELPER_INVENTORY", metavar="FILE",
              help="The server configuration YAML file")
@click.option("-v", "--verbose", count=True,
              help="Increase log verbosity (-v info, -vv debug, -vvv trace)")
@click.option("--log-level", type=click.Choice(["trace", "debug", "info", "warning", "error"]),
              default=None, help="Set log level explicitly")
@click.option("--log-file", type=click.Path(), default=None,
              help="Also write logs to this file")
@click.version_option(__version__, prog_name="deploy-helper")
@click.pass_context
def cli(
    ctx: click.Context,
    deploy_file: str,
    extra_vars: Optional[str],
    inventory: str,
    verbose: int,
    log_level: Optional[str],
    log_file: Optional[str],
) -> None:
    """Deployment helper tool.

    Runs the deployments in DEPLOY_FILE against the hosts of the inventory,
    one deployment, host and task at a time. The first failing task stops
    the whole run.

    Examples:
        deploy-helper deploy.yml

        deploy-helper deploy.yml -i servers.yml -e "env=staging version=1.2"

        deploy-helper deploy.yml -e '{"replicas": 3}'

        deploy-helper deploy.yml -e @vars.yml -vv
    """
    level = get_level_from_name(log_level) if log_level else get_level_from_verbosity(verbose)
    configure_logging(level=level, log_file=log_file)

    explicit_inventory = (
        ctx.get_parameter_source("inventory") != click.core.ParameterSource.DEFAULT
    )

    try:
        context = VariableContext(load_extra_vars(extra_vars))
        inv = resolve_inventory(inventory, explicit_inventory)
        deployments = load_deployments(deploy_file)

        executor = DeploymentExecutor(inv, Path(deploy_file).parent, Display())
        results = asyncio.run(executor.run(deployments, context))
    except DeployHelperError as e:
        logger.debug("Run aborted", exc_info=True)
        raise click.ClickException(str(e))

    logger.info(
        f"Finished {len(results.completed)} host run(s), "
        f"{len(results.missing_hosts)} host(s) missing from inventory"
    )


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
