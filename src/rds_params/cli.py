"""Typer CLI for rds-params.

Commands:
  plan            Diff a desired parameter group and show the chunk plan (offline or live)
  apply           Reconcile a parameter group against RDS
  destroy         Delete a parameter group unless it is retained on destroy
  list-couplings  Show the coupled setting groups for an engine family
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path  # noqa: TC003 Typer evaluates type hints at runtime
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from rds_params.client import RDSParameterGroupClient
from rds_params.config import ReconcilerConfig
from rds_params.coupling import build_default_coupling_table
from rds_params.errors import InvalidConfigurationError, ParamsError
from rds_params.lifecycle import ParameterGroupManager, build_plan
from rds_params.models import Applied, Failed, ParameterSet, ReconcilePlan

app = typer.Typer(
    name="rds-params",
    help="Reconcile RDS parameter groups in bounded, coupling-aware chunks",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_parameter_set(path: Path) -> ParameterSet:
    try:
        return ParameterSet.model_validate_json(path.read_text())
    except Exception as e:
        console.print(f"[red]Error reading {path}: {e}[/red]")
        raise typer.Exit(1) from None


def _build_config(region: str | None, max_chunk_size: int | None) -> ReconcilerConfig:
    config = ReconcilerConfig()
    updates: dict[str, object] = {}
    if region:
        updates["aws_region"] = region
    if max_chunk_size is not None:
        if max_chunk_size <= 0:
            console.print(f"[red]--max-chunk-size must be positive, got {max_chunk_size}[/red]")
            raise typer.Exit(1)
        updates["max_chunk_size"] = max_chunk_size
    return config.model_copy(update=updates)


def _build_manager(config: ReconcilerConfig) -> ParameterGroupManager:
    client = RDSParameterGroupClient(config.aws_region, timeout=config.submit_timeout_sec)
    return ParameterGroupManager(client, config=config)


def _print_plan(plan: ReconcilePlan) -> None:
    if plan.is_empty:
        console.print(f"[green]{plan.resource_id} is up to date[/green]")
        return

    for label, chunks in (("Set", plan.set_chunks), ("Reset", plan.reset_chunks)):
        if not chunks:
            continue
        table = Table(title=f"{label} chunks for {plan.resource_id}")
        table.add_column("#", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("Value", style="green")
        table.add_column("Apply")
        table.add_column("Notes")
        for index, chunk in enumerate(chunks):
            notes = (
                "oversized coupled group" if chunk.oversized else "coupled" if chunk.coupled else ""
            )
            for s in chunk.settings:
                table.add_row(str(index), s.name, s.value, s.apply_timing.value, notes)
        console.print(table)

    reboot = plan.diff.pending_reboot_names()
    if reboot:
        console.print(f"[yellow]Reboot required for:[/yellow] {', '.join(reboot)}")


@app.command()
def plan(
    desired_json: Annotated[Path, typer.Argument(help="Desired parameter group JSON")],
    observed_json: Annotated[
        Path | None,
        typer.Option("--observed", help="Observed parameter group JSON (omit to describe live)"),
    ] = None,
    region: Annotated[str | None, typer.Option("--region", "-r", help="AWS region")] = None,
    max_chunk_size: Annotated[
        int | None, typer.Option("--max-chunk-size", help="Maximum settings per call")
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Show the settings that would change and how they are chunked."""
    config = _build_config(region, max_chunk_size)
    desired = _load_parameter_set(desired_json)

    try:
        if observed_json:
            observed = _load_parameter_set(observed_json)
            result = build_plan(
                desired,
                observed,
                max_chunk_size=config.max_chunk_size,
                coupling=build_default_coupling_table(
                    desired.family or observed.family or config.engine_family
                ),
            )
        else:
            result = asyncio.run(_build_manager(config).plan(desired))
    except ParamsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if format == "json":
        console.print(result.model_dump_json(indent=2))
    else:
        _print_plan(result)


@app.command()
def apply(
    desired_json: Annotated[Path, typer.Argument(help="Desired parameter group JSON")],
    region: Annotated[str | None, typer.Option("--region", "-r", help="AWS region")] = None,
    max_chunk_size: Annotated[
        int | None, typer.Option("--max-chunk-size", help="Maximum settings per call")
    ] = None,
    create: Annotated[
        bool, typer.Option("--create", help="Create the parameter group first")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show the plan without submitting it")
    ] = False,
) -> None:
    """Reconcile a parameter group against RDS."""
    config = _build_config(region, max_chunk_size)
    desired = _load_parameter_set(desired_json)
    manager = _build_manager(config)

    try:
        if dry_run:
            _print_plan(asyncio.run(manager.plan(desired)))
            return
        if create:
            outcome = asyncio.run(manager.create(desired))
        else:
            outcome = asyncio.run(manager.update(desired))
    except InvalidConfigurationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(1) from None
    except ParamsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    for result in (outcome.set_result, outcome.reset_result):
        if result is None:
            continue
        for warning in result.warnings:
            console.print(f"  [yellow]warning[/yellow]: {warning}")

    match outcome.result:
        case Applied():
            console.print(
                f"[green]Applied {len(outcome.diff.to_set)} setting(s), "
                f"reset {len(outcome.diff.to_reset)} on {desired.name}[/green]"
            )
            if outcome.pending_reboot:
                console.print(
                    f"[yellow]Reboot required for:[/yellow] {', '.join(outcome.pending_reboot)}"
                )
        case Failed(chunk_index=index, cause=cause, submitted=submitted):
            step = outcome.failed_pass or "set"
            console.print(f"[red]{step.capitalize()} pass failed at chunk {index}: {cause}[/red]")
            if submitted:
                console.print(f"  Already submitted: {', '.join(submitted)}")
            raise typer.Exit(1)


@app.command()
def destroy(
    desired_json: Annotated[Path, typer.Argument(help="Desired parameter group JSON")],
    region: Annotated[str | None, typer.Option("--region", "-r", help="AWS region")] = None,
) -> None:
    """Delete a parameter group, unless retain_on_destroy is set."""
    config = _build_config(region, None)
    desired = _load_parameter_set(desired_json)

    try:
        outcome = asyncio.run(_build_manager(config).delete(desired))
    except ParamsError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if outcome.deleted:
        console.print(f"[green]Deleted {outcome.resource_id}[/green]")
    elif outcome.already_gone:
        console.print(f"[dim]{outcome.resource_id} was already deleted[/dim]")
    else:
        console.print(f"[yellow]Retained {outcome.resource_id}[/yellow]")


@app.command("list-couplings")
def list_couplings(
    family: Annotated[
        str | None, typer.Option("--family", help="Engine family, e.g. mysql8.0")
    ] = None,
) -> None:
    """List setting groups that must be changed in the same call."""
    table = Table(title=f"Coupled settings ({family or 'all families'})")
    table.add_column("Group", style="cyan")
    table.add_column("Members", style="green")
    for group in build_default_coupling_table(family).all_groups():
        table.add_row(group.name, ", ".join(sorted(group.members)))
    console.print(table)
