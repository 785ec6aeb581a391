"""Git operations that make the libsass sources available to the toolchain."""
from __future__ import annotations

from pathlib import Path

from .command_runner import CommandResult, CommandRunner
from .config_loader import ProjectSettings
from .console import Console
from .environment import BuildConfig
from .errors import SourceAcquisitionError


class SourceAcquirer:
    def __init__(self, runner: CommandRunner, console: Console) -> None:
        self._runner = runner
        self._console = console

    def ensure_sources(self, config: BuildConfig, settings: ProjectSettings) -> bool:
        """Make sure the libsass checkout exists.

        Returns ``True`` when a clone was performed. Nothing happens when the
        library is supplied externally or the directory is already present.
        """

        if config.external_sources:
            self._console.debug("Using externally supplied libsass; skipping source checkout")
            return False

        source_path = settings.source_path(config.package_root)
        if source_path.exists():
            self._console.debug(f"libsass sources found at '{source_path}'")
            return False

        if not settings.libsass:
            raise SourceAcquisitionError(
                "No libsass revision is pinned in the manifest; set 'libsass' or supply LIBSASS_EXT"
            )

        self._console.info("Detected a git install")
        self._console.info(f"Cloning libSass into {settings.source_dir}")
        self._run_git(
            ["git", "clone", settings.libsass_url, str(source_path)],
            cwd=config.package_root,
        )

        self._console.info(f"Checking out libsass to {settings.libsass}")
        self._run_git(["git", "checkout", settings.libsass], cwd=source_path)
        return True

    def _run_git(self, command: list[str], *, cwd: Path) -> CommandResult:
        try:
            result = self._runner.run(command, cwd=cwd, note="git")
        except FileNotFoundError as exc:
            raise SourceAcquisitionError(f"Unable to run '{command[0]}': {exc}") from exc

        error = result.error
        if error is not None:
            raise SourceAcquisitionError(str(error)) from error
        return result
