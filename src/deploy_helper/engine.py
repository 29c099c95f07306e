"""Task execution engine for deploy-helper.

Interprets a task list against a live variable context. Per task:

1. Render the name (for display only)
2. Evaluate ``when``; a false condition skips the task with no side effects
3. Merge ``vars`` into the context, one assignment at a time
4. Resolve the working directory (task chdir, else the inherited default)
5. For each loop value (or once, without ``item``): bind ``item``, print
   ``debug`` messages, run ``shell`` then ``command``, store ``register``,
   and run ``include_tasks`` recursively with the same context

Any error aborts the remaining tasks; the engine never catches its own
failures.
"""

import logging
from pathlib import Path

from .commands import split_commands
from .context import VariableContext
from .exceptions import IncludeResolutionError, NonZeroExitError
from .loader import load_task_file
from .logging import task_timer
from .output import Display
from .runners import CommandRunner
from .templating import evaluate_condition, render, render_and_coerce
from .types import Task

logger = logging.getLogger(__name__)


def merge_vars(values: dict[str, str] | None, context: VariableContext) -> None:
    """Render vars values and merge them into the context in order.

    Each assignment is visible to the ones after it, so a later value may
    refer to an earlier key of the same mapping.
    """
    if not values:
        return
    for key, template in values.items():
        context[key] = render_and_coerce(template, context)


class TaskEngine:
    """Runs task lists for one host through a command runner.

    Attributes:
        runner: Runner selected for the host's locality
        base_dir: Directory include_tasks paths are resolved against
        display: Console display for progress and output

    Example:
        engine = TaskEngine(LocalCommandRunner(display), Path("."), display)
        await engine.run_tasks(deployment.tasks, context, deployment.chdir)
    """

    def __init__(self, runner: CommandRunner, base_dir: Path, display: Display) -> None:
        self.runner = runner
        self.base_dir = base_dir
        self.display = display
        self._include_stack: list[Path] = []

    async def run_tasks(
        self,
        tasks: list[Task],
        context: VariableContext,
        default_chdir: str | None = None,
    ) -> None:
        """Run tasks in order, stopping at the first error."""
        for task in tasks:
            await self.run_task(task, context, default_chdir)

    async def run_task(
        self,
        task: Task,
        context: VariableContext,
        default_chdir: str | None = None,
    ) -> bool:
        """Run a single task.

        Returns:
            False if the task was skipped by its condition, True otherwise
        """
        name = render(task.name, context)

        if not evaluate_condition(task.when, context):
            self.display.task_skipped(name)
            return False

        self.display.task_start(name)

        if task.shell is not None and task.command is not None:
            logger.warning(f"Task {name!r} has both 'shell' and 'command'; running both")

        with task_timer(logger, name):
            merge_vars(task.vars, context)

            chdir_template = task.chdir if task.chdir is not None else default_chdir
            chdir = render(chdir_template, context) if chdir_template is not None else None

            loop_values = task.loop if task.loop is not None else [None]
            for value in loop_values:
                context.bind_item(value)

                if task.debug:
                    for label, message in task.debug.items():
                        self.display.debug(label, render(message, context))

                if task.shell is not None:
                    await self._run_commands(task, task.shell, True, chdir, context)

                if task.command is not None:
                    await self._run_commands(task, task.command, False, chdir, context)

                if task.include_tasks is not None:
                    await self._include(task.include_tasks, context, chdir)

        self.display.task_end()
        return True

    async def _run_commands(
        self,
        task: Task,
        text: str,
        use_shell: bool,
        chdir: str | None,
        context: VariableContext,
    ) -> None:
        # Registered output is captured silently
        display_output = task.register is None

        for command in split_commands(text):
            rendered = render(command, context)
            self.display.command(rendered)

            result = await self.runner.execute(rendered, use_shell, display_output, chdir)
            if not result.is_success:
                raise NonZeroExitError(rendered, result.rc)

            if task.register:
                context[task.register] = result.to_dict()
                self.display.registered(task.register)

    async def _include(self, include_file: str, context: VariableContext, chdir: str | None) -> None:
        rendered = render(include_file, context)
        path = (self.base_dir / rendered).resolve()

        if path in self._include_stack:
            chain = " -> ".join(str(p) for p in [*self._include_stack, path])
            raise IncludeResolutionError(rendered, f"recursive include ({chain})")

        self.display.including(rendered)
        tasks = load_task_file(path)
        logger.debug(f"Including {len(tasks)} task(s) from {path}")

        self._include_stack.append(path)
        try:
            await self.run_tasks(tasks, context, chdir)
        finally:
            self._include_stack.pop()
