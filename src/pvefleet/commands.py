"""
Typed descriptors for the external commands the provisioning pipeline runs.

Stages build ordered lists of ``Step`` objects; a single ``CommandRunner``
executes them with uniform failure handling.
"""

import shlex
from dataclasses import dataclass, field
from typing import List, Sequence


@dataclass(frozen=True)
class Command:
    """A single external command invocation."""

    argv: Sequence[str]
    # destroy-before-create commands may legitimately fail on a fresh host
    allow_failure: bool = False

    def display(self) -> str:
        return shlex.join(str(arg) for arg in self.argv)


@dataclass
class Step:
    """A labelled group of commands reported as one progress line."""

    label: str
    commands: List[Command] = field(default_factory=list)


def qm(*args: object, allow_failure: bool = False) -> Command:
    """Build a ``qm`` (Proxmox VM manager) command."""
    return Command(["qm", *(str(arg) for arg in args)], allow_failure=allow_failure)


def virt_customize(image: str, script: str, *, trace: bool = False) -> Command:
    """Build a ``virt-customize --run-command`` against an offline disk image."""
    argv = ["virt-customize"]
    if trace:
        argv.append("-x")
    argv += ["-a", image, "--run-command", script]
    return Command(argv)
