"""Command-line interface for wakenrun."""

import logging
import sys
from pathlib import Path

import click

from wakenrun import __version__
from wakenrun.core.models import Task


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_task(config: str) -> Task:
    from wakenrun.config.loader import load_task
    from wakenrun.core.errors import ConfigurationError

    path = Path(config)
    if not path.exists():
        click.echo(f"Config file not found: {path}", err=True)
        sys.exit(1)
    try:
        return load_task(path)
    except ConfigurationError as exc:
        click.echo(str(exc) + (":" if exc.errors else ""), err=True)
        for e in exc.errors:
            click.echo(f"  • {e}", err=True)
        sys.exit(1)


# ── Root group ────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="wakenrun")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """wakenrun: wake a remote host, run a task on it, shut it down."""
    _setup_logging(verbose)


# ── run command ───────────────────────────────────────────────────────────────


@main.command()
@click.argument("config", type=click.Path(dir_okay=False))
@click.option(
    "--sample",
    is_flag=True,
    help="Write a sample task file to CONFIG instead of running it",
)
def run(config: str, sample: bool) -> None:
    """Wake the host, run every instruction, then shut it down."""
    if sample:
        from wakenrun.config.writer import write_sample

        try:
            write_sample(Path(config))
        except FileExistsError as exc:
            click.echo(str(exc), err=True)
            sys.exit(1)
        click.echo(f"Sample task written to {config}")
        return

    task = _load_task(config)
    click.echo(f"▶  Running task: {task.display_name}")
    from wakenrun.core.task import run_task

    result = run_task(task)
    if result.success:
        click.echo(
            f"✓  Task '{result.task_name}' completed in {result.duration_seconds:.1f}s "
            f"({result.instructions_run} instruction(s))"
        )
    else:
        click.echo(
            f"✗  Task '{result.task_name}' failed during {result.stage}: {result.error}",
            err=True,
        )
        sys.exit(2)


# ── check command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("config", type=click.Path(dir_okay=False))
def check(config: str) -> None:
    """Validate a task file and print what it would do."""
    task = _load_task(config)
    click.echo(f"Task:      {task.display_name}")
    click.echo(f"Host:      {task.host}")
    if task.wake.enabled:
        checks = [
            name
            for name, on in (
                ("ping", task.wake.validate_ping),
                ("ssh", task.wake.validate_ssh_connection),
            )
            if on
        ]
        click.echo(
            f"Wake:      {task.wake.mac} (validate: {', '.join(checks) or 'none'}, "
            f"timeout {task.wake.boot_timeout_secs}s)"
        )
    else:
        click.echo("Wake:      disabled")
    click.echo(f"Steps:     {len(task.instructions)}")
    for i, instruction in enumerate(task.instructions, start=1):
        click.echo(f"  {i:>3}. {instruction.describe()}")
    if task.shutdown.shutdown_remote:
        validation = (
            f"validate, timeout {task.shutdown.shutdown_timeout_secs}s"
            if task.shutdown.validate_shutdown
            else "no validation"
        )
        click.echo(f"Shutdown:  {task.shutdown.shutdown_cmd} ({validation})")
    else:
        click.echo("Shutdown:  disabled")


# ── wake command ─────────────────────────────────────────────────────────────


@main.command()
@click.argument("config", type=click.Path(dir_okay=False))
def wake(config: str) -> None:
    """Wake the task's host and run the configured boot validation only."""
    task = _load_task(config)
    if not task.wake.enabled:
        click.echo("Wake is disabled in this task; nothing to do.")
        return

    from wakenrun.core.errors import WakenrunError
    from wakenrun.core.wol import wakeup

    try:
        wakeup(task.wake, task.host, task.ssh, task.ping_cmd, task.poll_interval)
    except WakenrunError as exc:
        click.echo(f"✗  Wake failed: {exc}", err=True)
        sys.exit(2)
    click.echo(f"WOL packet sent to {task.wake.mac} ({task.host})")


# ── shutdown command ──────────────────────────────────────────────────────────


@main.command()
@click.argument("config", type=click.Path(dir_okay=False))
def shutdown(config: str) -> None:
    """Run the task's shutdown stage only."""
    task = _load_task(config)
    if not task.shutdown.shutdown_remote:
        click.echo("Remote shutdown is disabled in this task; nothing to do.")
        return

    from wakenrun.core.errors import WakenrunError
    from wakenrun.core.shutdown import shutdown_remote

    click.echo(f"Sending shutdown to {task.host}…")
    try:
        shutdown_remote(task.shutdown, task.host, task.ssh, task.ping_cmd, task.poll_interval)
    except WakenrunError as exc:
        click.echo(f"✗  Shutdown failed: {exc}", err=True)
        sys.exit(2)
    click.echo("Shutdown command sent.")


if __name__ == "__main__":
    main()
