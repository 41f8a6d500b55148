#!/usr/bin/env python3
"""
Command-line interface for template and fleet provisioning.

    pvefleet provision 3     # build the template, then clone 3 workers
    pvefleet template        # only (re)build the template
    pvefleet fleet 3         # only clone 3 workers from an existing template

Run on the Proxmox host itself; settings come from the environment or .env.
"""

import logging
from typing import Callable, List

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pvefleet.exceptions import CommandError, ProvisioningError
from pvefleet.fleet import FleetMember
from pvefleet.main import build_template, clone_fleet, provision
from pvefleet.runner import CommandRunner

# Initialize CLI app and console
app = typer.Typer(
    name="pvefleet",
    help="Proxmox cloud-image template and fleet provisioning",
    add_completion=False
)
console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s [%(levelname)8s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

DryRunOption = typer.Option(False, "--dry-run", help="Print the commands instead of running them")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def _configure(verbose: bool) -> None:
    logging.getLogger("pvefleet").setLevel(logging.DEBUG if verbose else logging.INFO)


def report_failure(error: ProvisioningError) -> None:
    """Print the failing command and its captured stderr in red."""
    if isinstance(error, CommandError):
        err_console.print(
            f"[red]Error\n Command '{escape(error.command.display())}' failed with output:[/red]",
            highlight=False,
        )
        for line in error.stderr.splitlines():
            err_console.print(f" [red]{escape(line)}[/red]", highlight=False)
    else:
        err_console.print(f"[red]Error: {escape(str(error))}[/red]", highlight=False)


def _run(action: Callable[[], object]) -> object:
    try:
        return action()
    except ProvisioningError as e:
        report_failure(e)
        err_console.print("[red]The script exited with status 1.[/red]")
        raise typer.Exit(1)


def _print_fleet(members: List[FleetMember]) -> None:
    if not members:
        return
    table = Table(title="Fleet")
    table.add_column("Name", style="cyan")
    table.add_column("VMID", style="blue")
    table.add_column("VLAN", style="yellow")
    table.add_column("Snippet", style="green")
    for member in members:
        table.add_row(member.name, str(member.vmid), str(member.vlan_tag), member.snippet_name)
    console.print(table)


@app.command("provision")
def provision_command(
    count: int = typer.Argument(..., min=0, help="Number of VMs to clone from the template"),
    dry_run: bool = DryRunOption,
    verbose: bool = VerboseOption,
) -> None:
    """Build the template and clone COUNT VMs from it."""
    _configure(verbose)
    runner = CommandRunner(console=console, dry_run=dry_run)
    members = _run(lambda: provision(runner, count))
    _print_fleet(members)  # type: ignore[arg-type]
    console.print("✅ Provisioning complete")


@app.command("template")
def template_command(
    dry_run: bool = DryRunOption,
    verbose: bool = VerboseOption,
) -> None:
    """Download, customize and convert the cloud image into the base template."""
    _configure(verbose)
    runner = CommandRunner(console=console, dry_run=dry_run)
    _run(lambda: build_template(runner))
    console.print("✅ Template ready")


@app.command("fleet")
def fleet_command(
    count: int = typer.Argument(..., min=0, help="Number of VMs to clone from the template"),
    dry_run: bool = DryRunOption,
    verbose: bool = VerboseOption,
) -> None:
    """Clone COUNT VMs from an existing template and start them."""
    _configure(verbose)
    runner = CommandRunner(console=console, dry_run=dry_run)
    members = _run(lambda: clone_fleet(runner, count))
    _print_fleet(members)  # type: ignore[arg-type]
    console.print("✅ Fleet ready")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
