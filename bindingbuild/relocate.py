"""Moves the toolchain output to the path the runtime loader expects."""
from __future__ import annotations

from pathlib import Path
import errno
import os
import shutil

from .binary import BinaryLocation
from .console import Console
from .errors import ArtifactMissingError, RelocationError


def _replace(target: Path, install: Path) -> None:
    """Move ``target`` over ``install``, overwriting an existing binary."""
    try:
        os.replace(target, install)
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
        # Different filesystems: copy then delete, still overwriting.
        shutil.move(str(target), str(install))


class ArtifactRelocator:
    def __init__(self, console: Console, *, dry_run: bool = False) -> None:
        self._console = console
        self._dry_run = dry_run

    def relocate(self, location: BinaryLocation) -> Path:
        install = location.install_path
        target = location.build_output_path

        if self._dry_run:
            self._console.dry(f"move {target} -> {install}")
            return install

        try:
            install.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RelocationError(str(exc)) from exc

        if not target.is_file():
            raise ArtifactMissingError("Build succeeded but target not found")

        try:
            _replace(target, install)
        except OSError as exc:
            raise RelocationError(str(exc)) from exc

        self._console.info(f'Installed in "{install}"')
        return install
