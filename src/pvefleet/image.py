"""
Cloud image acquisition.

The image is taken from the Proxmox ISO storage when the cached copy matches
the published SHA256SUMS manifest, otherwise it is downloaded again and the
cache refreshed.
"""

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Optional, Union

import requests
from rich.console import Console

from pvefleet.exceptions import ImageDownloadError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "SHA256SUMS"


def sha256_file(path: Union[str, Path], chunk_size: int = 8192) -> str:
    """Compute SHA256 hash of a file."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        while chunk := f.read(chunk_size):
            h.update(chunk)
    return h.hexdigest()


def parse_checksum_manifest(text: str, filename: str) -> Optional[str]:
    """
    Return the digest listed for *filename* in a ``sha256sum`` style manifest.

    Lines look like ``<hex>  <name>`` or ``<hex> *<name>`` (binary mode).
    """
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        digest, name = parts[0], parts[-1].lstrip("*")
        if name == filename:
            return digest.lower()
    return None


class ImageFetcher:
    """Fetches a cloud image into a working directory, reusing a verified cache."""

    def __init__(
        self,
        image_url: str,
        cache_dir: Union[str, Path],
        console: Optional[Console] = None,
        chunk_size: int = 8192,
    ) -> None:
        self.image_url = image_url
        self.cache_dir = Path(cache_dir)
        self.console = console or Console()
        self.chunk_size = chunk_size

    @property
    def base_url(self) -> str:
        """Directory URL holding the image and its SHA256SUMS manifest."""
        return self.image_url.rstrip("/").rsplit("/", 1)[0]

    @property
    def filename(self) -> str:
        """Basename of the image URL, e.g. ubuntu-24.04-server-cloudimg-amd64.img."""
        return self.image_url.rstrip("/").rsplit("/", 1)[-1]

    @property
    def manifest_url(self) -> str:
        return f"{self.base_url}/{MANIFEST_NAME}"

    @property
    def cached_path(self) -> Path:
        return self.cache_dir / self.filename

    def remote_checksum(self) -> Optional[str]:
        """Fetch the manifest and return the published digest for the image."""
        logger.debug(f"Fetching checksum manifest {self.manifest_url}")
        try:
            response = requests.get(self.manifest_url)
            response.raise_for_status()
        except requests.RequestException as e:
            raise ImageDownloadError(f"Failed to fetch {self.manifest_url}: {e}") from e
        return parse_checksum_manifest(response.text, self.filename)

    def cache_is_valid(self, expected: Optional[str]) -> bool:
        if expected is None or not self.cached_path.is_file():
            return False
        return sha256_file(self.cached_path, self.chunk_size) == expected

    def download(self, destination: Path) -> None:
        """Stream the image to *destination*."""
        try:
            response = requests.get(self.image_url, stream=True)
            response.raise_for_status()
            with open(destination, "wb") as image_file:
                for chunk in response.iter_content(chunk_size=self.chunk_size):
                    if chunk:
                        image_file.write(chunk)
        except requests.RequestException as e:
            raise ImageDownloadError(f"Failed to download {self.image_url}: {e}") from e

    def fetch(self, work_dir: Union[str, Path]) -> Path:
        """
        Place the image in *work_dir* and return its path.

        Args:
            work_dir: Temporary working directory

        Returns:
            Path of the local image copy

        Raises:
            ImageDownloadError: If the manifest or image cannot be downloaded
        """
        local_path = Path(work_dir) / self.filename
        expected = self.remote_checksum()

        if self.cache_is_valid(expected):
            self.console.print("The image file exists in Proxmox ISO storage. Copying...", end="")
            shutil.copyfile(self.cached_path, local_path)
            self.console.print("[green]OK[/green]")
            return local_path

        self.console.print("The image file does not exist in Proxmox ISO storage. Downloading...", end="")
        self.download(local_path)
        self.console.print("[green]OK[/green]")

        self.console.print("Copying the image to Proxmox ISO storage...", end="")
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, self.cached_path)
        self.console.print("[green]OK[/green]")
        return local_path
