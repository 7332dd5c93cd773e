"""CLI commands for frame-commander."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from frame_commander import __logo__, __version__
from frame_commander.core.errors import FrameCommanderError
from frame_commander.core.events import EditorError, Notice
from frame_commander.core.tasks import TaskDraft, TaskFilter, TaskStatus, format_task_date

if TYPE_CHECKING:
    from frame_commander.shell import Shell

app = typer.Typer(
    name="frame_commander",
    help=f"{__logo__} frame-commander - drive a coding agent from your project",
    no_args_is_help=True,
)
console = Console()

_STATUS_STYLE = {
    TaskStatus.PENDING: "yellow",
    TaskStatus.IN_PROGRESS: "cyan",
    TaskStatus.COMPLETED: "green",
}
_PRIORITY_LABEL = {"high": "[red]High[/red]", "medium": "Med", "low": "[dim]Low[/dim]"}


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} frame-commander v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logs."),
) -> None:
    """frame-commander entrypoint."""
    del version
    ctx.obj = {"verbose": verbose}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_project(raw: str) -> str:
    path = Path(raw or ".").expanduser().resolve()
    if not path.is_dir():
        console.print(f"[red]Not a directory: {path}[/red]")
        raise typer.Exit(1)
    return str(path)


def _print_notice(event: Notice) -> None:
    style = {"success": "green", "error": "red"}.get(event.level, "cyan")
    console.print(f"[{style}]{event.text}[/{style}]")


def _print_editor_error(event: EditorError) -> None:
    console.print(f"[red]{event.message}[/red]")


def _run(ctx: typer.Context, project: str, action: Callable[["Shell"], object] | None = None) -> "Shell":
    """Open ``project`` in a fresh shell, run ``action``, and wait for the store."""
    from frame_commander.config.loader import load_config
    from frame_commander.shell import Shell
    from frame_commander.store.local import LocalStore
    from frame_commander.store.service import StoreService
    from frame_commander.utils.helpers import configure_logging

    config = load_config()
    configure_logging("DEBUG" if (ctx.obj or {}).get("verbose") else config.logging.level)

    def echo_command(target: str, text: str) -> None:
        if config.terminal.echo_commands:
            console.print(f"[dim]{config.terminal.agent_command} ({Path(target).name}) <-[/dim] {text}")

    async def run_once() -> Shell:
        shell = Shell(config=config, command_sink=echo_command)
        shell.hub.subscribe(Notice, _print_notice)
        shell.hub.subscribe(EditorError, _print_editor_error)
        service = StoreService(shell.bus, LocalStore(config.store))
        shell.open_project(project)
        await shell.settle(service)
        if action is not None:
            action(shell)
            await shell.settle(service)
        return shell

    try:
        return asyncio.run(run_once())
    except FrameCommanderError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)


def _render_tasks(shell: "Shell", task_filter: TaskFilter) -> None:
    tasks = shell.tasks.filtered_view(task_filter)
    counts = shell.tasks.counts()
    summary = "  ".join(f"{f.value}: {counts[f]}" for f in TaskFilter)
    if not tasks:
        console.print("[dim]No tasks found[/dim]")
        console.print(f"[dim]{summary}[/dim]")
        return

    table = Table(title=f"Tasks ({task_filter.value})", show_lines=False)
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Pri")
    table.add_column("Title")
    table.add_column("Category", style="magenta")
    table.add_column("Created", style="dim")
    for task in tasks:
        style = _STATUS_STYLE[task.status]
        title = task.title if not task.description else f"{task.title}\n[dim]{task.description}[/dim]"
        table.add_row(
            task.id,
            f"[{style}]{task.status.value.replace('_', ' ')}[/{style}]",
            _PRIORITY_LABEL.get(task.priority.value, "Med"),
            title,
            task.category,
            format_task_date(task.created_at),
        )
    console.print(table)
    console.print(f"[dim]{summary}[/dim]")


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


@app.command()
def status(ctx: typer.Context, path: str = typer.Argument(".", help="Project directory")) -> None:
    """Show project classification and task counts."""
    project = _resolve_project(path)
    shell = _run(ctx, project)
    managed = shell.project.is_managed_project
    counts = shell.tasks.counts()
    console.print(f"{__logo__} frame-commander status\n")
    console.print(f"Project: [cyan]{project}[/cyan]")
    console.print(f"Managed: {'[green]yes[/green]' if managed else '[yellow]no[/yellow]'}")
    console.print(
        "Tasks: "
        f"{counts[TaskFilter.PENDING]} pending, "
        f"{counts[TaskFilter.IN_PROGRESS]} in progress, "
        f"{counts[TaskFilter.COMPLETED]} completed"
    )
    if not managed:
        console.print("\nRun [cyan]frame-commander init[/cyan] to initialize this project.")


@app.command()
def init(
    ctx: typer.Context,
    path: str = typer.Argument(".", help="Project directory"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Initialize a directory as a managed project."""
    project = _resolve_project(path)

    def confirm(question: str) -> bool:
        return yes or typer.confirm(question)

    shell = _run(ctx, project, lambda s: s.project.request_initialize(confirm))
    if shell.project.is_managed_project:
        console.print(f"[green]OK[/green] {project} is a managed project")
    else:
        raise typer.Exit(1)


@app.command()
def tree(
    ctx: typer.Context,
    path: str = typer.Argument(".", help="Project directory"),
    expand: bool = typer.Option(False, "--expand", "-e", help="Expand every directory."),
) -> None:
    """Print the project file tree."""
    project = _resolve_project(path)
    shell = _run(ctx, project)
    navigator = shell.file_tree
    if expand:
        # Expanding a parent reveals its children, so keep going until stable.
        while True:
            hidden = [i.node.path for i in navigator.visible_items() if i.node.is_directory and not i.expanded]
            if not hidden:
                break
            for dir_path in hidden:
                navigator.expand(dir_path)

    root = Tree(f"[bold]{Path(project).name}[/bold]")
    branches: dict[int, Tree] = {-1: root}
    for item in navigator.visible_items():
        parent = branches[item.depth - 1]
        if item.node.is_directory:
            marker = "▾" if item.expanded else "▸"
            branches[item.depth] = parent.add(f"[cyan]{marker} {item.node.name}[/cyan]")
        else:
            parent.add(item.node.name)
    console.print(root)


@app.command()
def edit(
    ctx: typer.Context,
    file: str = typer.Argument(..., help="File to rewrite"),
    text: str = typer.Option(..., "--text", "-t", help="New file content."),
    path: str = typer.Option(".", "--path", "-p", help="Project directory"),
) -> None:
    """Replace a file's content through the editor session."""
    project = _resolve_project(path)
    target = str(Path(file).expanduser().resolve())

    shell = _run(ctx, project, lambda s: s.open_file(target))
    if not shell.editor.is_open:
        raise typer.Exit(1)

    async def save_and_close() -> None:
        from frame_commander.store.local import LocalStore
        from frame_commander.store.service import StoreService

        service = StoreService(shell.bus, LocalStore(shell.config.store))
        shell.editor.set_buffer(text)
        if shell.editor.is_modified:
            shell.editor.save()
            await shell.settle(service)
        shell.editor.close(lambda _q: typer.confirm("Discard unsaved changes?"))

    asyncio.run(save_and_close())
    if shell.editor.is_open:
        raise typer.Exit(1)
    console.print(f"[green]OK[/green] Saved {target}")


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@app.command("tasks")
def list_tasks(
    ctx: typer.Context,
    path: str = typer.Argument(".", help="Project directory"),
    filter_: str = typer.Option("all", "--filter", "-f", help="all | pending | inProgress | completed"),
) -> None:
    """List project tasks."""
    try:
        task_filter = TaskFilter(filter_)
    except ValueError:
        console.print(f"[red]Unknown filter '{filter_}'[/red]")
        raise typer.Exit(1)
    project = _resolve_project(path)
    shell = _run(ctx, project)
    _render_tasks(shell, task_filter)


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    description: str = typer.Option("", "--description", "-d"),
    priority: str = typer.Option("medium", "--priority", help="high | medium | low"),
    category: str = typer.Option("feature", "--category", "-c"),
    path: str = typer.Option(".", "--path", "-p", help="Project directory"),
) -> None:
    """Add a task."""
    project = _resolve_project(path)
    draft = TaskDraft(title=title, description=description, priority=priority, category=category)
    shell = _run(ctx, project, lambda s: s.tasks.request_create(draft))
    _render_tasks(shell, TaskFilter.PENDING)


@app.command()
def update(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
    title: str = typer.Option(None, "--title"),
    description: str = typer.Option(None, "--description", "-d"),
    priority: str = typer.Option(None, "--priority"),
    category: str = typer.Option(None, "--category", "-c"),
    path: str = typer.Option(".", "--path", "-p", help="Project directory"),
) -> None:
    """Edit a task's title, description, priority or category."""
    fields = {
        key: value
        for key, value in (
            ("title", title),
            ("description", description),
            ("priority", priority),
            ("category", category),
        )
        if value is not None
    }
    project = _resolve_project(path)
    shell = _run(ctx, project, lambda s: s.tasks.request_update(task_id, fields))
    _render_tasks(shell, TaskFilter.ALL)


@app.command()
def delete(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    path: str = typer.Option(".", "--path", "-p", help="Project directory"),
) -> None:
    """Delete a task."""
    project = _resolve_project(path)

    def confirm(question: str) -> bool:
        return yes or typer.confirm(question)

    shell = _run(ctx, project, lambda s: s.tasks.request_delete(task_id, confirm))
    _render_tasks(shell, TaskFilter.ALL)


def _transition_command(action: str, help_text: str) -> None:
    def command(
        ctx: typer.Context,
        task_id: str = typer.Argument(..., help="Task ID"),
        path: str = typer.Option(".", "--path", "-p", help="Project directory"),
    ) -> None:
        project = _resolve_project(path)
        shell = _run(ctx, project, lambda s: s.tasks.request_transition(task_id, action))
        logger.debug("Task {} after {}: {}", task_id, action, shell.tasks.snapshot)
        _render_tasks(shell, TaskFilter.ALL)

    command.__doc__ = help_text
    app.command(name=action)(command)


_transition_command("start", "Start a task and send it to the agent.")
_transition_command("complete", "Mark a task complete.")
_transition_command("pause", "Move a task back to pending.")
_transition_command("reopen", "Reopen a completed task.")


if __name__ == "__main__":
    app()
