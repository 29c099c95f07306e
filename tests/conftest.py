"""Shared fixtures for deploy-helper tests."""

import logging
from io import StringIO

import pytest
from rich.console import Console

from deploy_helper.output import Display
from deploy_helper.runners import CommandRunner
from deploy_helper.types import RegisterResult


class FakeRunner(CommandRunner):
    """Runner that records commands instead of executing them.

    Results can be scripted per command; unscripted commands succeed with
    stdout "out:<command>".
    """

    def __init__(self, display: Display, results: dict[str, RegisterResult] | None = None):
        super().__init__(display)
        self.results = results or {}
        self.calls: list[tuple[str, bool, bool, str | None]] = []

    @property
    def commands(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def execute(self, command, use_shell, display_output, chdir=None):
        self.calls.append((command, use_shell, display_output, chdir))
        return self.results.get(
            command, RegisterResult(stdout=f"out:{command}", stderr="", rc=0)
        )


def make_display() -> Display:
    """Display writing to in-memory buffers."""
    return Display(
        console=Console(file=StringIO(), highlight=False, soft_wrap=True, width=200),
        err_console=Console(file=StringIO(), highlight=False, soft_wrap=True, width=200),
    )


def display_text(display: Display) -> str:
    return display.console.file.getvalue()


def display_err_text(display: Display) -> str:
    return display.err_console.file.getvalue()


@pytest.fixture
def display() -> Display:
    return make_display()


@pytest.fixture
def fake_runner(display) -> FakeRunner:
    return FakeRunner(display)


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo handler changes made by configure_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers and type(handler) in (logging.StreamHandler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
