"""Shared test fixtures for pvefleet tests."""

import io
import json
from typing import Callable, Dict, List, Optional, Tuple

import pytest
from rich.console import Console

from pvefleet.cluster import RESOURCES_QUERY
from pvefleet.commands import Command
from pvefleet.config import Config
from pvefleet.exceptions import CommandError
from pvefleet.runner import CommandRunner


class RecordingRunner(CommandRunner):
    """CommandRunner that records commands instead of executing them."""

    def __init__(
        self,
        outputs: Optional[Dict[Tuple[str, ...], str]] = None,
        fail_on: Optional[Callable[[Command], bool]] = None,
        dry_run: bool = False,
    ) -> None:
        super().__init__(console=Console(file=io.StringIO(), width=200), dry_run=dry_run)
        self.commands: List[Command] = []
        self.outputs = outputs or {}
        self.fail_on = fail_on

    def _execute(self, command: Command, capture_stdout: bool) -> str:
        self.commands.append(command)
        if self.fail_on and self.fail_on(command) and not command.allow_failure:
            raise CommandError(command, 1, "simulated failure\nsecond line")
        return self.outputs.get(tuple(command.argv), "")

    @property
    def argvs(self) -> List[List[str]]:
        return [list(command.argv) for command in self.commands]

    @property
    def output(self) -> str:
        return self.console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def make_runner():
    """Factory for recording runners; cluster_vms seeds the pvesh resource query."""

    def _make(cluster_vms: Optional[List[int]] = None, **kwargs) -> RecordingRunner:
        outputs = kwargs.pop("outputs", {})
        resources = [{"id": f"qemu/{vmid}", "type": "qemu", "vmid": vmid} for vmid in cluster_vms or []]
        outputs.setdefault(tuple(RESOURCES_QUERY.argv), json.dumps(resources))
        return RecordingRunner(outputs=outputs, **kwargs)

    return _make


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=200)


@pytest.fixture
def network_template(tmp_path):
    """Write a small network template containing the <IPADDR> placeholder."""
    path = tmp_path / "network-template.yaml"
    path.write_text(
        "version: 2\n"
        "ethernets:\n"
        "  eth0:\n"
        "    addresses:\n"
        "      - 10.0.<IPADDR>.10/24\n"
        "    routes:\n"
        "      - to: default\n"
        "        via: 10.0.<IPADDR>.1\n"
    )
    return path


@pytest.fixture
def test_config(monkeypatch, tmp_path, network_template):
    """Point every host path in Config at a temporary directory."""
    iso_dir = tmp_path / "iso"
    iso_dir.mkdir()
    settings = {
        "IMAGE_URL": "https://images.example.com/releases/24.04/release/ubuntu-24.04-server-cloudimg-amd64.img",
        "ISO_DIR": str(iso_dir),
        "WORK_DIR": str(tmp_path / "work"),
        "SNIPPETS_DIR": str(tmp_path / "snippets"),
        "NETWORK_TEMPLATE": str(network_template),
        "TEMPLATE_VMID": 9000,
        "TEMPLATE_NAME": "Ubuntu-2404",
        "TEMPLATE_MEMORY": 2048,
        "TEMPLATE_CORES": 1,
        "FLEET_BASE_VMID": 8000,
        "FLEET_NAME_TEMPLATE": "worker-{index}",
        "VM_DISK_STORAGE": "local-lvm",
        "VM_BRIDGE": "vmbr0",
        "DISK_GROW_SIZE": "+2G",
        "GUEST_PACKAGES": "zsh,qemu-guest-agent,moreutils",
        "HOST_PACKAGES": "libguestfs-tools",
        "SNIPPETS_STORAGE": "local",
        "USER_SNIPPET": "100-users.yaml",
        "NETWORK_SNIPPET": "100-network.yaml",
    }
    for key, value in settings.items():
        monkeypatch.setattr(Config, key, value)
    return settings
