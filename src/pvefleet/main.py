"""Provisioning pipeline: image, customization, template, fleet."""

import logging
from pathlib import Path
from typing import List

from pvefleet.cluster import ClusterInventory
from pvefleet.config import Config
from pvefleet.customize import customization_steps, host_setup_steps
from pvefleet.fleet import FleetCloner, FleetMember
from pvefleet.image import ImageFetcher
from pvefleet.runner import CommandRunner
from pvefleet.template import template_steps
from pvefleet.workspace import working_directory

logger = logging.getLogger(__name__)


def acquire_image(runner: CommandRunner, work_dir: Path) -> Path:
    """Phase 1: place a verified cloud image in the working directory."""
    fetcher = ImageFetcher(
        Config.IMAGE_URL,
        Config.ISO_DIR,
        console=runner.console,
        chunk_size=Config.DOWNLOAD_CHUNK_SIZE,
    )
    if runner.dry_run:
        runner.console.print(f"[dim]would fetch: {Config.IMAGE_URL}[/dim]", highlight=False)
        return work_dir / fetcher.filename
    return fetcher.fetch(work_dir)


def build_template(runner: CommandRunner) -> None:
    """
    Phases 1-3: fetch and customize the cloud image, then convert it into
    the base template. The working directory is removed on every exit path
    and left alone in dry-run mode.
    """
    with working_directory(Config.WORK_DIR, dry_run=runner.dry_run) as work_dir:
        runner.run_steps(host_setup_steps(Config.host_packages()))

        image = acquire_image(runner, work_dir)
        runner.run_steps(customization_steps(str(image), Config.DISK_GROW_SIZE, Config.guest_packages()))

        existing = ClusterInventory(runner).vm_ids()
        runner.run_steps(
            template_steps(
                str(image),
                Config.TEMPLATE_VMID,
                Config.TEMPLATE_NAME,
                memory=Config.TEMPLATE_MEMORY,
                cores=Config.TEMPLATE_CORES,
                bridge=Config.VM_BRIDGE,
                storage=Config.VM_DISK_STORAGE,
                cicustom=Config.cicustom(Config.NETWORK_SNIPPET),
                existing=existing,
            )
        )


def clone_fleet(runner: CommandRunner, count: int) -> List[FleetMember]:
    """Phase 4: clone *count* VMs from the template."""
    cloner = FleetCloner(
        runner,
        Config.TEMPLATE_VMID,
        Config.FLEET_BASE_VMID,
        bridge=Config.VM_BRIDGE,
        snippets_dir=Config.SNIPPETS_DIR,
        network_template=Config.NETWORK_TEMPLATE,
        cicustom=Config.cicustom,
        name_template=Config.FLEET_NAME_TEMPLATE,
    )
    return cloner.clone(count)


def provision(runner: CommandRunner, count: int) -> List[FleetMember]:
    """Build the template and then clone the fleet from it."""
    build_template(runner)
    return clone_fleet(runner, count)
