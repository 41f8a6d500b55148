"""Offline image customization with qemu-img and virt-customize."""

import shlex
from typing import List, Sequence

from pvefleet.commands import Command, Step, virt_customize

HOTPLUG_RULE = 'SUBSYSTEM=="cpu", ACTION=="add", TEST=="online", ATTR{online}=="0", ATTR{online}="1"'
HOTPLUG_RULE_PATH = "/lib/udev/rules.d/80-hotplug-cpu.rules"


def host_setup_steps(packages: Sequence[str]) -> List[Step]:
    """Install the host-side tooling (libguestfs-tools) with apt."""
    if not packages:
        return []
    return [
        Step(
            f"Installing {' '.join(packages)}",
            [
                Command(["apt", "update"]),
                Command(["apt", "install", "-y", *packages]),
            ],
        )
    ]


def customization_steps(image: str, grow_size: str, guest_packages: Sequence[str]) -> List[Step]:
    """
    Build the ordered in-image modifications for a cloud image.

    Args:
        image: Path of the local image copy
        grow_size: qemu-img resize argument, e.g. "+2G"
        guest_packages: Extra packages to install inside the guest

    Returns:
        Steps to run in order
    """
    steps = [
        Step(
            "Expanding hard drive",
            [
                Command(["qemu-img", "resize", image, grow_size]),
                virt_customize(image, "apt update -y && apt install cloud-guest-utils -y"),
                virt_customize(image, "growpart /dev/sda 1"),
                virt_customize(image, "resize2fs /dev/sda1"),
            ],
        ),
        Step("Installing all updates", [virt_customize(image, "apt upgrade -y")]),
    ]

    if guest_packages:
        packages = " ".join(shlex.quote(pkg) for pkg in guest_packages)
        steps.append(
            Step(
                "Installing custom utilities and guest agent",
                [virt_customize(image, f"apt install {packages} -y")],
            )
        )

    steps += [
        Step(
            "Enabling CPU hotplug",
            [virt_customize(image, f"echo {shlex.quote(HOTPLUG_RULE)} > {HOTPLUG_RULE_PATH}")],
        ),
        Step(
            "Resetting the machine ID",
            [virt_customize(image, "echo -n >/etc/machine-id", trace=True)],
        ),
    ]
    return steps
