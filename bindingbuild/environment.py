"""Build configuration derived once from command line flags and the process environment."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping
import os
import platform
import sys


BUILD_PARAMETERS: tuple[str, ...] = (
    "libsass_ext",
    "libsass_cflags",
    "libsass_ldflags",
    "libsass_library",
)
"""Toolchain parameters whose values come from the uppercased environment variable."""

FORCE_BUILD_ENV = "SASS_FORCE_BUILD"
EXTERNAL_SOURCES_ENV = "LIBSASS_EXT"
BINARY_PATH_ENV = "SASS_BINARY_PATH"


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Immutable configuration shared by every pipeline component."""

    package_root: Path
    arch: str
    platform: str
    abi: str
    debug: bool = False
    force: bool = False
    libsass_ext: bool = False
    args: tuple[str, ...] = ()
    force_env: bool = False
    libsass_ext_env: bool = False
    build_parameters: tuple[tuple[str, str], ...] = ()
    binary_path_env: str | None = None
    search_path: tuple[str, ...] = ()
    executable: str = ""
    runtime: str = "CPython"

    @property
    def force_requested(self) -> bool:
        return self.force or self.force_env

    @property
    def external_sources(self) -> bool:
        return self.libsass_ext or self.libsass_ext_env


@dataclass(slots=True)
class ParsedFlags:
    force: bool = False
    debug: bool = False
    arch: str | None = None
    libsass_ext: bool = False
    args: List[str] = field(default_factory=list)


def _flag_value(arg: str, name: str) -> str | None:
    """Return the value of ``--name[=value]`` or ``None`` when ``arg`` is another flag."""
    if arg == name:
        return ""
    prefix = f"{name}="
    if arg.startswith(prefix):
        return arg[len(prefix):]
    return None


def parse_build_flags(argv: Iterable[str]) -> ParsedFlags:
    """Pick out the recognised build flags.

    Everything except ``-f``/``--force`` stays in ``args`` in its original
    order so that the toolchain sees the flags it understands as well.
    """

    flags = ParsedFlags()
    for raw in argv:
        arg = str(raw)
        if arg in {"-f", "--force"}:
            flags.force = True
            continue

        if arg in {"-d", "--debug"}:
            flags.debug = True
        else:
            arch = _flag_value(arg, "--target_arch")
            if arch is not None:
                flags.arch = arch or None
            else:
                ext = _flag_value(arg, "--libsass_ext")
                if ext is not None and ext != "no":
                    flags.libsass_ext = True

        flags.args.append(arg)
    return flags


@dataclass(slots=True)
class SystemContext:
    platform: str
    architecture: str
    abi: str
    executable: str
    runtime: str


class ConfigBuilder:
    """Builds :class:`BuildConfig` from flags and a snapshot of the environment."""

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env = dict(env) if env is not None else dict(os.environ)

    def system(self) -> SystemContext:
        return SystemContext(
            platform=sys.platform,
            architecture=platform.machine().lower() or "unknown",
            abi=sys.implementation.cache_tag or sys.implementation.name,
            executable=sys.executable,
            runtime=platform.python_implementation(),
        )

    def build_parameters(self) -> tuple[tuple[str, str], ...]:
        return tuple((name, self._env.get(name.upper(), "")) for name in BUILD_PARAMETERS)

    def search_path(self) -> tuple[str, ...]:
        raw = self._env.get("PATH") or self._env.get("Path") or ""
        return tuple(entry for entry in raw.split(os.pathsep) if entry)

    def build_config(
        self,
        argv: Iterable[str],
        *,
        package_root: Path,
        system: SystemContext | None = None,
    ) -> BuildConfig:
        flags = parse_build_flags(argv)
        system_ctx = system or self.system()
        return BuildConfig(
            package_root=package_root.resolve(),
            arch=flags.arch or system_ctx.architecture,
            platform=system_ctx.platform,
            abi=system_ctx.abi,
            debug=flags.debug,
            force=flags.force,
            libsass_ext=flags.libsass_ext,
            args=tuple(flags.args),
            force_env=bool(self._env.get(FORCE_BUILD_ENV)),
            libsass_ext_env=bool(self._env.get(EXTERNAL_SOURCES_ENV)),
            build_parameters=self.build_parameters(),
            binary_path_env=self._env.get(BINARY_PATH_ENV) or None,
            search_path=self.search_path(),
            executable=system_ctx.executable,
            runtime=system_ctx.runtime,
        )
