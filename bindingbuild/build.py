"""Provisioning state machine: test the existing binding, otherwise build it."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List

from .binary import BinaryLocation, BinaryValidator, resolve_binary_location
from .command_runner import CommandRunner
from .config_loader import ProjectSettings
from .console import Console
from .environment import BuildConfig
from .errors import BinaryInvalidError, ProvisionError
from .relocate import ArtifactRelocator
from .sources import SourceAcquirer
from .toolchains import ToolchainInvoker


class PipelineState(str, Enum):
    START = "start"
    CHECK_FORCE = "check-force"
    CHECK_EXISTS = "check-exists"
    CHECK_VALID = "check-valid"
    BUILD = "build"
    ACQUIRE_SOURCE = "acquire-source"
    INVOKE_TOOLCHAIN = "invoke-toolchain"
    RELOCATE = "relocate"
    DONE = "done"
    FAIL = "fail"


@dataclass(slots=True)
class PipelineResult:
    location: BinaryLocation
    built: bool
    states: List[PipelineState] = field(default_factory=list)

    @property
    def install_path(self) -> Path:
        return self.location.install_path


class BuildPipeline:
    def __init__(
        self,
        *,
        config: BuildConfig,
        settings: ProjectSettings,
        command_runner: CommandRunner,
        console: Console,
        validator: BinaryValidator | None = None,
        dry_run: bool = False,
    ) -> None:
        self._config = config
        self._settings = settings
        self._console = console
        self._validator = validator or BinaryValidator(settings.probe)
        self._sources = SourceAcquirer(command_runner, console)
        self._toolchain = ToolchainInvoker(command_runner, console, dry_run=dry_run)
        self._relocator = ArtifactRelocator(console, dry_run=dry_run)
        self._location = resolve_binary_location(config, settings)
        self.states: List[PipelineState] = []

    def run(self) -> PipelineResult:
        self.states = []
        self._enter(PipelineState.START)
        try:
            if self._needs_build():
                self._build()
                built = True
            else:
                built = False
        except ProvisionError:
            self._enter(PipelineState.FAIL)
            raise
        self._enter(PipelineState.DONE)
        return PipelineResult(location=self._location, built=built, states=list(self.states))

    def _enter(self, state: PipelineState) -> None:
        self._console.debug(f"state: {state.value}")
        self.states.append(state)

    def _needs_build(self) -> bool:
        install = self._location.install_path

        self._enter(PipelineState.CHECK_FORCE)
        if self._config.force_requested:
            self._console.debug("Rebuild forced")
            return True

        self._enter(PipelineState.CHECK_EXISTS)
        if not self._validator.has_binary(install):
            self._console.debug(f'No binary at "{install}"')
            return True

        self._enter(PipelineState.CHECK_VALID)
        self._console.info(f'"{install}" exists. testing binary.')
        try:
            self._validator.validate(install)
        except BinaryInvalidError as exc:
            self._console.info(f"Problem with the binary: {exc}. Manual build incoming.")
            return True

        self._console.info("Binary is fine; exiting.")
        return False

    def _build(self) -> None:
        self._enter(PipelineState.BUILD)

        self._enter(PipelineState.ACQUIRE_SOURCE)
        self._sources.ensure_sources(self._config, self._settings)

        self._enter(PipelineState.INVOKE_TOOLCHAIN)
        self._toolchain.invoke(self._config, self._settings.toolchain)

        self._enter(PipelineState.RELOCATE)
        self._relocator.relocate(self._location)
