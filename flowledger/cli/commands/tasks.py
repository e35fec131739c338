"""Backend task commands."""

import json

import click

from flowledger.api import imports as imports_api
from flowledger.cli.colors import console, print_status, print_success
from flowledger.cli.context import CliContext, pass_context, positive_float
from flowledger.tasks.models import TaskStatusRecord


def _describe(record: TaskStatusRecord) -> str:
    parts = [f"Task {record.task_id}: {record.status.value}"]
    if record.progress is not None:
        parts.append(f"({record.progress:g}%)")
    stage = record.extras.get("stage")
    if stage:
        parts.append(f"- {stage}")
    return " ".join(parts)


@click.group()
def tasks():
    """Inspect backend import tasks."""
    pass


@tasks.command()
@click.argument("task_id")
@pass_context
def status(ctx: CliContext, task_id: str):
    """Show the current status of a task."""
    record = ctx.run(lambda client: imports_api.get_task_status(client, task_id))

    print_status(record.status.value, _describe(record))
    if record.error:
        console.print(f"[error]Error:[/error] {record.error}")
    if record.updated_at:
        click.echo(f"Updated: {record.updated_at.isoformat()}")


@tasks.command()
@click.argument("task_id")
@click.option("--timeout", type=positive_float, default=None, help="Polling budget in seconds")
@click.option("--interval", type=positive_float, default=None, help="Seconds between status checks")
@pass_context
def wait(ctx: CliContext, task_id: str, timeout, interval):
    """Wait for a task to finish and print its result."""
    poller = ctx.poller(interval=interval, timeout=timeout)
    with console.status(f"Waiting for task {task_id}..."):
        record = ctx.run(lambda client: imports_api.wait_for_task(client, task_id, poller=poller))

    print_success(_describe(record))
    if record.result is not None:
        click.echo(json.dumps(record.result, indent=2, default=str))
