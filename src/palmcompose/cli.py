# cli.py
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from palmcompose.config import DEFAULT_WORKFLOW_FILE, ENV_WORKERS, ENV_WORKFLOW_FILE
from palmcompose.dag import resolve_waves
from palmcompose.env import EnvProvider, StaticEnvProvider
from palmcompose.errors import WorkflowError, WorkflowNotFoundError
from palmcompose.loader import find_workflow_file, load_workflow, write_sample_workflow
from palmcompose.model import WorkflowSpec
from palmcompose.runner import run_workflow
from palmcompose.ui.console import Console, get_console, set_console


def _load(ctx: click.Context, workflow_file: str) -> tuple[Path, WorkflowSpec]:
    """Find and load the workflow, or print a structured error and exit 1."""
    console = get_console()
    try:
        path = find_workflow_file(workflow_file)
        return path, load_workflow(path)
    except WorkflowNotFoundError as e:
        console.print_error(
            "Workflow file not found",
            str(e),
            suggestion=f"Create one with:\n  palm-compose init\n\nOr specify a workflow explicitly:\n  palm-compose run --file {DEFAULT_WORKFLOW_FILE}",
        )
    except WorkflowError as e:
        console.print_error(
            "Failed to load workflow",
            f"Could not load workflow from {workflow_file}",
            details=[str(e)],
        )
        if ctx.obj.get("debug", False):
            console.print_exception(e)
    sys.exit(1)


def _env_provider(ctx: click.Context) -> EnvProvider:
    # embedders pass obj={"env_provider": ...} to inject secrets
    return ctx.obj.get("env_provider") or StaticEnvProvider()


def _plan_or_exit(spec: WorkflowSpec, allow_cycles: bool):
    try:
        return resolve_waves(spec, allow_cycles=allow_cycles)
    except WorkflowError as e:
        get_console().print_error(
            "Invalid workflow",
            str(e),
            suggestion="Fix the depends_on entries, or pass --allow-cycles to run the stuck steps together.",
        )
        sys.exit(1)


file_option = click.option(
    "--file",
    "-f",
    "workflow_file",
    default=DEFAULT_WORKFLOW_FILE,
    show_default=True,
    envvar=ENV_WORKFLOW_FILE,
    help="Workflow file path (searched upward from the current directory)",
)
cycles_option = click.option(
    "--allow-cycles",
    is_flag=True,
    default=False,
    help="Run steps stuck in a dependency cycle together in a final wave instead of failing",
)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """palm-compose: run multi-step tool workflows defined in TOML."""
    console = Console(debug=debug)
    set_console(console)
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@file_option
@click.option("--dry-run", is_flag=True, default=False, help="Show what would run without executing")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show step output")
@click.option("--workers", default=None, type=click.IntRange(min=1), envvar=ENV_WORKERS, help="Max concurrent steps per wave (default: all)")
@cycles_option
@click.pass_context
def run(ctx, workflow_file, dry_run, verbose, workers, allow_cycles):
    """Run a workflow."""
    console = get_console()
    path, spec = _load(ctx, workflow_file)
    console.print_debug(f"workflow file: {path}")

    console.print_run_started(workflow=spec.name, description=spec.description, step_count=len(spec.steps))
    plan = _plan_or_exit(spec, allow_cycles)

    if dry_run:
        console.print_plan(plan)
        return

    try:
        results = run_workflow(plan, _env_provider(ctx).env(), verbose=verbose, max_workers=workers, console=console)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)

    console.print_results(results)

    if any(not r.ok for r in results):
        console.print_error("Some steps failed", f"{sum(not r.ok for r in results)} of {len(spec.steps)} step(s) failed")
        sys.exit(1)


@cli.command()
@file_option
@cycles_option
@click.pass_context
def plan(ctx, workflow_file, allow_cycles):
    """Show the execution plan (same as run --dry-run)."""
    console = get_console()
    path, spec = _load(ctx, workflow_file)
    console.print_debug(f"workflow file: {path}")
    console.print_run_started(workflow=spec.name, description=spec.description, step_count=len(spec.steps))
    console.print_plan(_plan_or_exit(spec, allow_cycles))


@cli.command()
@click.argument("path", default=DEFAULT_WORKFLOW_FILE, type=click.Path(dir_okay=False))
def init(path):
    """Create a sample workflow file."""
    console = get_console()
    try:
        written = write_sample_workflow(path)
    except FileExistsError:
        console.print_warning(f"{path} already exists")
        return
    except OSError as e:
        console.print_error("Could not create workflow", f"Failed to create {path}", details=[str(e)])
        sys.exit(1)

    console.print_info(f"  Created {written}")
    console.print_info("  Edit it, then run: palm-compose run")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
