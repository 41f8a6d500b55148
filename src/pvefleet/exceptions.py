"""Exceptions raised while provisioning templates and clones."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pvefleet.commands import Command


class ProvisioningError(Exception):
    """Base class for every fatal provisioning failure."""


class CommandError(ProvisioningError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: "Command", returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Command '{command.display()}' failed with exit status {returncode}")


class ImageDownloadError(ProvisioningError):
    """The checksum manifest or the cloud image could not be fetched."""


class SnippetError(ProvisioningError):
    """A cloud-init snippet template is missing or renders to invalid YAML."""


class ClusterQueryError(ProvisioningError):
    """The cluster resource listing could not be parsed."""
