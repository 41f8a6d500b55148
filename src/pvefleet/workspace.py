"""Temporary working directory with guaranteed removal."""

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

logger = logging.getLogger(__name__)


def cleanup(path: Union[str, Path]) -> None:
    """Remove the working directory if it exists."""
    logger.info(f"Performing cleanup of {path}")
    shutil.rmtree(path, ignore_errors=True)


@contextmanager
def working_directory(path: Union[str, Path], dry_run: bool = False) -> Iterator[Path]:
    """
    Provide a fresh working directory and remove it on every exit path.

    Any stale directory left by an earlier run is removed first. With
    *dry_run* the path is yielded and the filesystem is left untouched.
    """
    work_dir = Path(path)
    if dry_run:
        yield work_dir
        return

    cleanup(work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    try:
        yield work_dir
    finally:
        cleanup(work_dir)
