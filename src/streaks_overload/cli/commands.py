# src/streaks_overload/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core import clock
from ..core.errors import NotFoundError, StreaksError, TaskNotFound
from ..core.rollover import DAILY_THRESHOLD
from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import Task

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Domain errors (bad input, unknown task) become the reply text.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except StreaksError as e:
            logger.debug("Command /%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def resolve_task(state: AppState, token: str) -> Task:
    """
    Find a task by 1-based list position, full id, or unique id prefix.
    """
    tasks = state.registry.tasks
    if token.isdigit():
        n = int(token)
        if 1 <= n <= len(tasks):
            return tasks[n - 1]

    exact = state.registry.find(token)
    if exact is not None:
        return exact

    matches = [t for t in tasks if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise NotFoundError(f"Ambiguous task id prefix: {token}")
    raise TaskNotFound(token)


def format_task(task: Task, position: int | None = None) -> str:
    pct = task.hopper / DAILY_THRESHOLD * 100
    mark = "secured" if task.secured_today else "open"
    head = f"{position}. " if position is not None else ""
    thumb = " [img]" if task.thumbnail_url else ""
    return (
        f"{head}{task.name}{thumb} - hopper {pct:.0f}% "
        f"streak {task.streak} ({mark}) id={task.id[:8]}"
    )


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    view = task_api.state_view(state)
    secured = sum(1 for t in view["tasks"] if t["securedToday"])
    return (
        "Status:\n"
        f"  Today: {view['today']}\n"
        f"  Tasks: {len(view['tasks'])} ({secured} secured today)\n"
        f"  Background: {view['backgroundUrl'] or '-'}\n"
        f"  Data file: {getattr(state.settings, 'data_path', '-')}"
    )


def cmd_tasks(state: AppState, args: list[str]) -> str:
    task_api.refresh(state)
    tasks = state.registry.tasks
    if not tasks:
        return "No tasks yet. Create one with /new <name>."
    lines = [f"Tasks for {clock.today()}:"]
    for i, task in enumerate(tasks, start=1):
        lines.append(format_task(task, i))
    return "\n".join(lines)


def cmd_new(state: AppState, args: list[str]) -> str:
    """
    /new <name>                      -> create a task
    /new <name> --thumb <image path> -> create a task with a thumbnail
    """
    thumb_ref = None
    if "--thumb" in args:
        i = args.index("--thumb")
        path = " ".join(args[i + 1 :])
        args = args[:i]
        if not path:
            return "Usage: /new <name> [--thumb <image path>]"
        thumb_ref = state.uploads.import_image(path, prefix="thumb")

    try:
        task = task_api.create_task(state, " ".join(args), thumb_ref)
    except StreaksError:
        state.uploads.remove(thumb_ref)
        raise
    return f"Created: {format_task(task)}"


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <task> <amount> -> add to the hopper (1.0 == 100% of the daily goal)
    """
    if len(args) != 2:
        return "Usage: /add <task> <amount>  (e.g. /add 1 0.5)"
    task = resolve_task(state, args[0])
    result = task_api.add_to_hopper(state, task.id, args[1])
    suffix = " Day secured!" if result.secured else ""
    return f"{format_task(result.task)}{suffix}"


def cmd_del(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /del <task>"
    task = resolve_task(state, args[0])
    task_api.delete_task(state, task.id)
    return f"Deleted: {task.name}"


def cmd_bg(state: AppState, args: list[str]) -> str:
    """
    /bg <image path> -> set the background image
    /bg clear        -> remove it
    """
    if not args:
        current = state.registry.background_url
        return f"Background: {current or '-'}. Use /bg <image path> or /bg clear."

    if len(args) == 1 and args[0].lower() == "clear":
        task_api.clear_background(state)
        return "Background cleared."

    ref = state.uploads.import_image(" ".join(args), prefix="background")
    try:
        url = task_api.set_background(state, ref)
    except StreaksError:
        state.uploads.remove(ref)
        raise
    return f"Background set: {url}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show today, task totals and data location.")
registry.register("tasks", cmd_tasks, help_text="List tasks with hopper and streak.", aliases=["ls"])
registry.register("new", cmd_new, help_text="Create a task: /new <name> [--thumb <image path>].")
registry.register("add", cmd_add, help_text="Add to a hopper: /add <task> <amount>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <task>.", aliases=["rm"])
registry.register("bg", cmd_bg, help_text="Background image: /bg <image path> | /bg clear.")
