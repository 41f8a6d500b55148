"""
src/pvefleet/fleet.py

Clone worker VMs from the template, one VLAN and one cloud-init network
snippet per clone.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Collection, Iterator, List, Optional, Union

import yaml
from rich.console import Console
from rich.markup import escape

from pvefleet.cluster import ClusterInventory
from pvefleet.commands import Step, qm
from pvefleet.exceptions import SnippetError
from pvefleet.runner import CommandRunner

logger = logging.getLogger(__name__)

IPADDR_PLACEHOLDER = "<IPADDR>"


@dataclass(frozen=True)
class FleetMember:
    """Identifiers derived for one clone."""

    index: int
    vmid: int
    vlan_tag: int
    name: str

    @property
    def snippet_name(self) -> str:
        return f"{self.vmid}-network.yaml"


def derive_members(base_vmid: int, count: int, name_template: str = "worker-{index}") -> Iterator[FleetMember]:
    """Yield members 1..count with vmid = base + i and VLAN tag i + 1."""
    if count < 0:
        raise ValueError(f"Fleet size must not be negative, got {count}")
    for index in range(1, count + 1):
        yield FleetMember(
            index=index,
            vmid=base_vmid + index,
            vlan_tag=index + 1,
            name=name_template.format(index=index),
        )


def render_network_config(template: str, value: int) -> str:
    """
    Replace every <IPADDR> token in *template* with *value*.

    Raises:
        SnippetError: If the rendered text is not valid YAML
    """
    rendered = template.replace(IPADDR_PLACEHOLDER, str(value))
    try:
        yaml.safe_load(rendered)
    except yaml.YAMLError as e:
        raise SnippetError(f"Rendered network config is not valid YAML: {e}") from e
    return rendered


class FleetCloner:
    """Clones the template N times, strictly one VM after another."""

    def __init__(
        self,
        runner: CommandRunner,
        template_vmid: int,
        base_vmid: int,
        *,
        bridge: str,
        snippets_dir: Union[str, Path],
        network_template: Union[str, Path],
        cicustom: Callable[[str], str],
        name_template: str = "worker-{index}",
        console: Optional[Console] = None,
    ) -> None:
        self.runner = runner
        self.template_vmid = template_vmid
        self.base_vmid = base_vmid
        self.bridge = bridge
        self.snippets_dir = Path(snippets_dir)
        self.network_template = Path(network_template)
        self.cicustom = cicustom
        self.name_template = name_template
        self.console = console or runner.console
        self.inventory = ClusterInventory(runner)

    def load_template(self) -> str:
        try:
            return self.network_template.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SnippetError(f"Network template not found at {self.network_template}")
        except OSError as e:
            raise SnippetError(f"Cannot read network template {self.network_template}: {e}") from e

    def write_snippet(self, member: FleetMember, template: str) -> Path:
        """Render and write the member's network snippet; returns its path."""
        rendered = render_network_config(template, member.vlan_tag)
        path = self.snippets_dir / member.snippet_name
        if self.runner.dry_run:
            self.console.print(f"[dim]would write: {escape(str(path))}[/dim]", highlight=False)
            return path
        try:
            self.snippets_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(rendered, encoding="utf-8")
        except OSError as e:
            raise SnippetError(f"Cannot write network snippet {path}: {e}") from e
        logger.info(f"Wrote network snippet {path}")
        return path

    def clone_member(self, member: FleetMember, template: str, existing: Collection[int]) -> None:
        vmid = member.vmid
        clone_cmds = []
        if vmid in existing:
            clone_cmds.append(qm("destroy", vmid, "--purge", allow_failure=True))
        clone_cmds.append(qm("clone", self.template_vmid, vmid, "--name", member.name, "--full"))

        self.runner.run_step(Step(f"Cloning {member.name} (vmid={vmid})", clone_cmds))
        self.runner.run_step(
            Step(
                f"Assigning VLAN {member.vlan_tag}",
                [qm("set", vmid, "--net0", f"virtio,bridge={self.bridge},tag={member.vlan_tag}")],
            )
        )
        self.write_snippet(member, template)
        self.runner.run_step(
            Step("Attaching cloud-init network", [qm("set", vmid, "--cicustom", self.cicustom(member.snippet_name))])
        )
        self.runner.run_step(Step(f"Starting {member.name}", [qm("start", vmid)]))

    def clone(self, count: int) -> List[FleetMember]:
        """
        Clone and start *count* VMs.

        A failure aborts the remaining fleet; clones already started keep running.

        Returns:
            The members that were cloned and started
        """
        members = list(derive_members(self.base_vmid, count, self.name_template))
        if not members:
            logger.info("Fleet size is 0, nothing to clone")
            return []

        template = self.load_template()
        existing = self.inventory.vm_ids()

        started = []
        for member in members:
            self.clone_member(member, template, existing)
            started.append(member)
        return started
