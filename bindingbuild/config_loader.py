"""Loading of the package manifest that describes the native binding."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping
import json
import tomllib

import yaml

from .toolchains import ToolchainSettings


ConfigLoader = Callable[[Any], Mapping[str, Any]]

MANIFEST_NAME = "bindingbuild"
PYPROJECT_FILE = "pyproject.toml"

DEFAULT_LIBSASS_URL = "https://github.com/sass/libsass.git"
DEFAULT_SOURCE_DIR = "src/libsass"
DEFAULT_BUILD_DIR = "build"
DEFAULT_VENDOR_DIR = "vendor"
DEFAULT_BINARY_NAME = "binding"
DEFAULT_PROBE_FUNCTION = "render_sync"
DEFAULT_PROBE_DATA = "s { a: ss }"


FILE_LOADERS: Dict[str, ConfigLoader] = {
    ".toml": lambda stream: tomllib.load(stream),
    ".json": lambda stream: json.load(stream),
    ".yaml": lambda stream: yaml.safe_load(stream),
    ".yml": lambda stream: yaml.safe_load(stream),
}
"""Mapping of file suffixes to loader callables."""


def load_config_file(path: Path) -> Mapping[str, Any]:
    """Load and decode a configuration mapping from ``path``."""

    suffix = path.suffix.lower()
    loader = FILE_LOADERS.get(suffix)
    if loader is None:
        supported = ", ".join(sorted(FILE_LOADERS)) or "<none>"
        raise ValueError(
            f"Unsupported configuration file extension: {suffix}. Supported: {supported}"
        )

    mode = "rb" if suffix == ".toml" else "r"
    kwargs: Dict[str, Any] = {}
    if mode == "r":
        kwargs["encoding"] = "utf-8"

    with path.open(mode, **kwargs) as handle:
        data = loader(handle)

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration file '{path}' must contain a mapping at the root")

    return data


def _reject_unknown_keys(data: Mapping[str, Any], allowed: set[str], *, section: str) -> None:
    unknown = {str(key) for key in data.keys() if str(key) not in allowed}
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"{section} contains unknown keys: {joined}")


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class ProbeSettings:
    """Function called on the freshly loaded binding to prove that it works."""

    function: str = DEFAULT_PROBE_FUNCTION
    data: str = DEFAULT_PROBE_DATA

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProbeSettings":
        _reject_unknown_keys(data, {"function", "data"}, section="[probe]")
        function = _optional_str(data.get("function")) or DEFAULT_PROBE_FUNCTION
        raw_data = data.get("data")
        return cls(function=function, data=DEFAULT_PROBE_DATA if raw_data is None else str(raw_data))


@dataclass(slots=True)
class ProjectSettings:
    libsass: str | None = None
    libsass_url: str = DEFAULT_LIBSASS_URL
    source_dir: str = DEFAULT_SOURCE_DIR
    build_dir: str = DEFAULT_BUILD_DIR
    vendor_dir: str = DEFAULT_VENDOR_DIR
    binary_name: str = DEFAULT_BINARY_NAME
    binary_path: str | None = None
    toolchain: ToolchainSettings = field(default_factory=ToolchainSettings)
    probe: ProbeSettings = field(default_factory=ProbeSettings)
    origin: Path | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, origin: Path | None = None) -> "ProjectSettings":
        allowed = {
            "libsass",
            "libsass_url",
            "source_dir",
            "build_dir",
            "vendor_dir",
            "binary_name",
            "binary_path",
            "toolchain",
            "probe",
        }
        _reject_unknown_keys(data, allowed, section=f"[tool.{MANIFEST_NAME}]")

        toolchain_section = data.get("toolchain", {})
        if not isinstance(toolchain_section, Mapping):
            raise TypeError("toolchain must be a table")
        probe_section = data.get("probe", {})
        if not isinstance(probe_section, Mapping):
            raise TypeError("probe must be a table")

        binary_name = _optional_str(data.get("binary_name")) or DEFAULT_BINARY_NAME
        if "/" in binary_name or "\\" in binary_name:
            raise ValueError("binary_name must be a bare module name, not a path")

        return cls(
            libsass=_optional_str(data.get("libsass")),
            libsass_url=_optional_str(data.get("libsass_url")) or DEFAULT_LIBSASS_URL,
            source_dir=_optional_str(data.get("source_dir")) or DEFAULT_SOURCE_DIR,
            build_dir=_optional_str(data.get("build_dir")) or DEFAULT_BUILD_DIR,
            vendor_dir=_optional_str(data.get("vendor_dir")) or DEFAULT_VENDOR_DIR,
            binary_name=binary_name,
            binary_path=_optional_str(data.get("binary_path")),
            toolchain=ToolchainSettings.from_mapping(toolchain_section),
            probe=ProbeSettings.from_mapping(probe_section),
            origin=origin,
        )

    def source_path(self, package_root: Path) -> Path:
        return (package_root / self.source_dir).resolve()

    def build_path(self, package_root: Path) -> Path:
        return (package_root / self.build_dir).resolve()


def _manifest_from_pyproject(path: Path) -> Mapping[str, Any] | None:
    data = load_config_file(path)
    tool_section = data.get("tool")
    if not isinstance(tool_section, Mapping):
        return None
    section = tool_section.get(MANIFEST_NAME)
    if section is None:
        return None
    if not isinstance(section, Mapping):
        raise TypeError(f"[tool.{MANIFEST_NAME}] in '{path}' must be a table")
    return section


def find_manifest(package_root: Path) -> Path | None:
    """Return the standalone manifest file in ``package_root``, if any."""

    candidates = [
        package_root / f"{MANIFEST_NAME}{suffix}"
        for suffix in FILE_LOADERS
        if (package_root / f"{MANIFEST_NAME}{suffix}").is_file()
    ]
    if len(candidates) > 1:
        names = ", ".join(f"'{path.name}'" for path in candidates)
        raise ValueError(
            f"Multiple configuration files found for '{MANIFEST_NAME}': {names}. "
            "Only one format per configuration entry is allowed."
        )
    return candidates[0] if candidates else None


def load_settings(package_root: Path) -> ProjectSettings:
    """Load settings from ``pyproject.toml`` or a standalone manifest.

    ``[tool.bindingbuild]`` in ``pyproject.toml`` wins; otherwise a single
    ``bindingbuild.{toml,json,yaml,yml}`` file is used. Without either the
    defaults apply.
    """

    pyproject = package_root / PYPROJECT_FILE
    if pyproject.is_file():
        section = _manifest_from_pyproject(pyproject)
        if section is not None:
            return ProjectSettings.from_mapping(section, origin=pyproject)

    manifest = find_manifest(package_root)
    if manifest is not None:
        return ProjectSettings.from_mapping(load_config_file(manifest), origin=manifest)

    return ProjectSettings()


__all__ = [
    "FILE_LOADERS",
    "ProbeSettings",
    "ProjectSettings",
    "find_manifest",
    "load_config_file",
    "load_settings",
]
