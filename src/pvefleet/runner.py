"""
src/pvefleet/runner.py

Execute external commands on the Proxmox host. Any failure is fatal.
"""

import logging
import subprocess
from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape

from pvefleet.commands import Command, Step
from pvefleet.exceptions import CommandError

logger = logging.getLogger(__name__)


class CommandRunner:
    """Runs commands one at a time, discarding stdout and capturing stderr."""

    def __init__(self, console: Optional[Console] = None, dry_run: bool = False) -> None:
        self.console = console or Console()
        self.dry_run = dry_run

    def _execute(self, command: Command, capture_stdout: bool) -> str:
        logger.debug(f"Running: {command.display()}")
        if self.dry_run:
            self.console.print(f"[dim]would run: {escape(command.display())}[/dim]", highlight=False)
            return ""

        try:
            result = subprocess.run(
                list(command.argv),
                stdout=subprocess.PIPE if capture_stdout else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            # missing or non-executable tool, reported like a shell's "command not found"
            if command.allow_failure:
                logger.info(f"Ignoring failure to start '{command.display()}': {e}")
                return ""
            raise CommandError(command, 127, str(e)) from e
        if result.returncode != 0:
            if command.allow_failure:
                logger.info(f"Ignoring exit status {result.returncode} from '{command.display()}'")
                return result.stdout or ""
            raise CommandError(command, result.returncode, result.stderr or "")
        return result.stdout or ""

    def run(self, command: Command) -> None:
        """Run a command; raise CommandError on a non-zero exit."""
        self._execute(command, capture_stdout=False)

    def capture(self, command: Command) -> str:
        """Run a command and return its stdout."""
        return self._execute(command, capture_stdout=True)

    def run_step(self, step: Step) -> None:
        """Run every command of a step, reporting '<label>... OK'."""
        self.console.print(f"{step.label}...", end="", highlight=False)
        try:
            for command in step.commands:
                self.run(command)
        except CommandError:
            self.console.print()
            raise
        self.console.print("[green]OK[/green]")

    def run_steps(self, steps: Iterable[Step]) -> None:
        for step in steps:
            self.run_step(step)
