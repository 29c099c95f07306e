"""deploy-helper - declarative deployments over SSH or local subprocesses.

Reads a list of named deployments, each targeting one or more inventory
hosts, and runs their ordered task lists (shell/command execution, variable
assignment, conditions, loops, output capture and task inclusion) against
every host in turn, failing fast on the first error.

Quick Start:
    deploy-helper deploy.yml -i servers.yml -e "env=staging"
"""

__version__ = "1.0.3"

__all__ = ["__version__"]
