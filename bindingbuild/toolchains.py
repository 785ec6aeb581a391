"""Toolchain settings and invocation of the external native-build driver."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable, List, Mapping, Sequence
import importlib.util

from .errors import ToolchainBuildError, ToolchainNotFoundError

if TYPE_CHECKING:
    from .command_runner import CommandRunner
    from .console import Console
    from .environment import BuildConfig


NOT_FOUND_EXIT_CODE = 127


@dataclass(slots=True)
class ToolchainSettings:
    name: str = "gyp-build"
    entry_point: str = "gyp_build"
    default_configuration: str | None = None
    incompatible_runtimes: frozenset[str] = field(default_factory=lambda: frozenset({"PyPy"}))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ToolchainSettings":
        allowed_keys = {"name", "entry_point", "default_configuration", "incompatible_runtimes"}
        unknown = {str(key) for key in data.keys() if str(key) not in allowed_keys}
        if unknown:
            joined = ", ".join(sorted(unknown))
            raise ValueError(f"Toolchain settings contain unknown keys: {joined}")

        settings = cls()
        name = data.get("name")
        if isinstance(name, str) and name.strip():
            settings.name = name.strip()
        entry_point = data.get("entry_point")
        if isinstance(entry_point, str) and entry_point.strip():
            settings.entry_point = entry_point.strip()
        default_configuration = data.get("default_configuration")
        if isinstance(default_configuration, str) and default_configuration.strip():
            settings.default_configuration = default_configuration.strip()

        runtimes = data.get("incompatible_runtimes")
        if isinstance(runtimes, str):
            settings.incompatible_runtimes = frozenset({runtimes.strip()}) if runtimes.strip() else frozenset()
        elif isinstance(runtimes, Iterable):
            settings.incompatible_runtimes = frozenset(str(item).strip() for item in runtimes if str(item).strip())
        elif runtimes is not None:
            raise TypeError("toolchain.incompatible_runtimes must be a string or a list of strings")
        return settings

    @property
    def entry_point_is_script(self) -> bool:
        return self.entry_point.endswith(".py")

    def release_configuration(self) -> str:
        return self.default_configuration or "Release"


@dataclass(slots=True)
class ToolchainCommand:
    executable: str
    args: List[str]
    installed: bool = False

    @property
    def command(self) -> List[str]:
        return [self.executable, *self.args]


def build_arguments(config: "BuildConfig") -> List[str]:
    """Return the ordered argument list handed to the toolchain."""

    args = ["rebuild", "--verbose"]
    args.extend(f"--{name}={value}" for name, value in config.build_parameters)
    args.extend(config.args)
    return args


def _has_installed_toolchain(config: "BuildConfig", settings: ToolchainSettings) -> bool:
    interpreter_dir = str(Path(config.executable).parent) if config.executable else ""
    if not interpreter_dir:
        return False
    suffix = f"{settings.name}-bin"
    for entry in config.search_path:
        normalized = entry.rstrip("/\\")
        if normalized.startswith(interpreter_dir) and normalized.endswith(suffix):
            return True
    return False


def _script_path(config: "BuildConfig", settings: ToolchainSettings) -> Path:
    script = Path(settings.entry_point)
    if not script.is_absolute():
        script = config.package_root / script
    return script


def entry_point_available(config: "BuildConfig", settings: ToolchainSettings) -> bool:
    """Return whether the bundled entry point can be launched.

    Modules are looked up in the running interpreter, which is also the
    one that launches them.
    """

    if settings.entry_point_is_script:
        return _script_path(config, settings).is_file()
    try:
        return importlib.util.find_spec(settings.entry_point) is not None
    except (ImportError, ValueError):
        return False


def resolve_command(
    config: "BuildConfig",
    settings: ToolchainSettings,
    arguments: Sequence[str],
) -> ToolchainCommand:
    """Pick the installed toolchain or the bundled entry point.

    Runtimes listed in ``incompatible_runtimes`` cannot run the bundled
    entry point; they use a ``<name>-bin`` directory below the interpreter
    when ``PATH`` has one.
    """

    if config.runtime in settings.incompatible_runtimes and _has_installed_toolchain(config, settings):
        return ToolchainCommand(executable=settings.name, args=list(arguments), installed=True)

    if settings.entry_point_is_script:
        prefix = [str(_script_path(config, settings))]
    else:
        prefix = ["-m", settings.entry_point]
    return ToolchainCommand(executable=config.executable, args=[*prefix, *arguments])


class ToolchainInvoker:
    def __init__(self, runner: "CommandRunner", console: "Console", *, dry_run: bool = False) -> None:
        self._runner = runner
        self._console = console
        self._dry_run = dry_run

    def invoke(self, config: "BuildConfig", settings: ToolchainSettings) -> None:
        toolchain = resolve_command(config, settings, build_arguments(config))
        if not toolchain.installed and not self._dry_run and not entry_point_available(config, settings):
            self._console.debug(f"Entry point {settings.entry_point!r} is not installed")
            raise ToolchainNotFoundError(f"{settings.name} not found!")

        self._console.info(" ".join(["Building:", *toolchain.command]))

        try:
            result = self._runner.run(
                toolchain.command,
                cwd=config.package_root,
                note="toolchain",
                stream=True,
            )
        except FileNotFoundError as exc:
            raise ToolchainNotFoundError(f"{settings.name} not found!") from exc

        self.classify(result.returncode, settings)

    @staticmethod
    def classify(returncode: int, settings: ToolchainSettings) -> None:
        if returncode == 0:
            return
        if returncode == NOT_FOUND_EXIT_CODE:
            raise ToolchainNotFoundError(f"{settings.name} not found!")
        raise ToolchainBuildError("Build failed", returncode=returncode)


__all__ = [
    "NOT_FOUND_EXIT_CODE",
    "ToolchainCommand",
    "ToolchainInvoker",
    "ToolchainSettings",
    "build_arguments",
    "entry_point_available",
    "resolve_command",
]
