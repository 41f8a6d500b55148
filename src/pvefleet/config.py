import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

PACKAGE_DIR = Path(__file__).resolve().parent


def _split_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Loads and manages configuration from environment variables."""

    load_dotenv()

    UBUNTU_VERSION = os.getenv("UBUNTU_VERSION", "24.04")
    IMAGE_URL = os.getenv(
        "IMAGE_URL",
        f"https://cloud-images.ubuntu.com/releases/{UBUNTU_VERSION}/release/"
        f"ubuntu-{UBUNTU_VERSION}-server-cloudimg-amd64.img",
    )
    DOWNLOAD_CHUNK_SIZE = int(os.getenv("DOWNLOAD_CHUNK_SIZE", "8192"))

    TEMPLATE_VMID = int(os.getenv("TEMPLATE_VMID", "9000"))
    TEMPLATE_NAME = os.getenv("TEMPLATE_NAME", "Ubuntu-2404")
    TEMPLATE_MEMORY = int(os.getenv("TEMPLATE_MEMORY", "2048"))
    TEMPLATE_CORES = int(os.getenv("TEMPLATE_CORES", "1"))

    FLEET_BASE_VMID = int(os.getenv("FLEET_BASE_VMID", "8000"))
    FLEET_NAME_TEMPLATE = os.getenv("FLEET_NAME_TEMPLATE", "worker-{index}")

    VM_DISK_STORAGE = os.getenv("VM_DISK_STORAGE", "local-lvm")
    VM_BRIDGE = os.getenv("VM_BRIDGE", "vmbr0")
    DISK_GROW_SIZE = os.getenv("DISK_GROW_SIZE", "+2G")

    # Comma-separated, e.g. "zsh,qemu-guest-agent,moreutils"
    GUEST_PACKAGES = os.getenv("GUEST_PACKAGES", "zsh,qemu-guest-agent,moreutils")
    HOST_PACKAGES = os.getenv("HOST_PACKAGES", "libguestfs-tools")

    ISO_DIR = os.getenv("ISO_DIR", "/var/lib/vz/template/iso")
    WORK_DIR = os.getenv("WORK_DIR", "/tmp/proxmox-scripts")

    SNIPPETS_DIR = os.getenv("SNIPPETS_DIR", "/var/lib/vz/snippets")
    SNIPPETS_STORAGE = os.getenv("SNIPPETS_STORAGE", "local")
    USER_SNIPPET = os.getenv("USER_SNIPPET", "100-users.yaml")
    NETWORK_SNIPPET = os.getenv("NETWORK_SNIPPET", "100-network.yaml")
    NETWORK_TEMPLATE = os.getenv("NETWORK_TEMPLATE", str(PACKAGE_DIR / "snippets" / "network.yaml"))

    @classmethod
    def guest_packages(cls) -> List[str]:
        return _split_list(cls.GUEST_PACKAGES)

    @classmethod
    def host_packages(cls) -> List[str]:
        return _split_list(cls.HOST_PACKAGES)

    @classmethod
    def cicustom(cls, network_snippet: str) -> str:
        """
        Build the --cicustom value pointing the guest at the shared user
        snippet and the given network snippet.
        """
        storage = cls.SNIPPETS_STORAGE
        return f"user={storage}:snippets/{cls.USER_SNIPPET},network={storage}:snippets/{network_snippet}"
