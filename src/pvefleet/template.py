"""Create the base VM template from a customized cloud image."""

from typing import Collection, List

from pvefleet.commands import Step, qm


def template_steps(
    image_path: str,
    vmid: int,
    name: str,
    *,
    memory: int,
    cores: int,
    bridge: str,
    storage: str,
    cicustom: str,
    existing: Collection[int] = (),
) -> List[Step]:
    """
    Build the qm command sequence that turns *image_path* into template *vmid*.

    Args:
        image_path: Customized cloud image on the host
        vmid: Template VM id
        name: Template name
        memory: Memory in MB
        cores: CPU cores
        bridge: Bridge for net0
        storage: Storage for the imported disk and the cloud-init drive
        cicustom: Value for --cicustom
        existing: VM ids already present in the cluster

    Returns:
        Steps to run in order
    """
    steps: List[Step] = []
    if vmid in existing:
        steps.append(Step("Destroying old template", [qm("destroy", vmid, "--purge", allow_failure=True)]))

    steps += [
        Step(
            "Creating VM",
            [
                qm(
                    "create", vmid,
                    "--name", name,
                    "--memory", memory,
                    f"--cores={cores}",
                    "--net0", f"virtio,bridge={bridge}",
                )
            ],
        ),
        Step(
            "Importing disk",
            [
                qm("set", vmid, "--scsihw", "virtio-scsi-single"),
                qm("set", vmid, "--virtio0", f"{storage}:0,import-from={image_path}"),
                qm("set", vmid, "--boot", "c", "--bootdisk", "virtio0"),
            ],
        ),
        Step(
            "Creating hardware",
            [
                qm("set", vmid, "--ide2", f"{storage}:cloudinit"),
                qm("set", vmid, "--cicustom", cicustom),
                qm("set", vmid, "--serial0", "socket", "--vga", "serial0"),
                qm("set", vmid, "--agent", "enabled=1,fstrim_cloned_disks=1"),
            ],
        ),
        Step("Converting to template", [qm("template", vmid)]),
    ]
    return steps
