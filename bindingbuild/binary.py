"""Location and live validation of the native binding binary."""
from __future__ import annotations

from dataclasses import dataclass
from importlib.machinery import EXTENSION_SUFFIXES, ExtensionFileLoader
from pathlib import Path
from types import ModuleType
from typing import Callable
import importlib.util

from .config_loader import ProbeSettings, ProjectSettings
from .environment import BuildConfig
from .errors import BinaryInvalidError


ModuleLoader = Callable[[str, Path], ModuleType]


def extension_suffix() -> str:
    """Return the plain extension-module suffix (``.so`` or ``.pyd``)."""
    return EXTENSION_SUFFIXES[-1]


@dataclass(frozen=True, slots=True)
class BinaryLocation:
    install_path: Path
    build_output_path: Path


def binary_dir_name(config: BuildConfig) -> str:
    return f"{config.platform}-{config.arch}-{config.abi}"


def variant_dir_name(config: BuildConfig, settings: ProjectSettings) -> str:
    if config.debug:
        return "Debug"
    return settings.toolchain.release_configuration()


def resolve_binary_location(config: BuildConfig, settings: ProjectSettings) -> BinaryLocation:
    """Single rule for where the binding is installed and where the toolchain leaves it."""

    filename = f"{settings.binary_name}{extension_suffix()}"
    root = config.package_root

    if config.binary_path_env:
        install_path = Path(config.binary_path_env).expanduser()
        if not install_path.is_absolute():
            install_path = root / install_path
    elif settings.binary_path:
        install_path = root / settings.binary_path
    else:
        install_path = root / settings.vendor_dir / binary_dir_name(config) / filename

    build_output_path = settings.build_path(root) / variant_dir_name(config, settings) / filename
    return BinaryLocation(install_path=install_path.resolve(), build_output_path=build_output_path)


def load_extension(module_name: str, path: Path) -> ModuleType:
    """Load ``path`` as the extension module ``module_name`` without registering it."""

    loader = ExtensionFileLoader(module_name, str(path))
    spec = importlib.util.spec_from_file_location(module_name, path, loader=loader)
    if spec is None:
        raise ImportError(f"Cannot create a module spec for '{path}'")
    module = importlib.util.module_from_spec(spec)
    loader.exec_module(module)
    return module


def module_name_for(path: Path) -> str:
    """Return the import name an extension file initializes.

    ``_binding.cpython-312-x86_64-linux-gnu.so`` exports ``PyInit__binding``,
    so everything from the first dot on is dropped.
    """
    return path.name.partition(".")[0]


class BinaryValidator:
    def __init__(self, probe: ProbeSettings, *, loader: ModuleLoader = load_extension) -> None:
        self._probe = probe
        self._loader = loader

    @staticmethod
    def has_binary(path: Path) -> bool:
        return path.exists()

    def validate(self, path: Path) -> None:
        """Load the binary and run the probe function on its fixed input.

        The module name follows the file name, so a binary installed from
        ``SASS_BINARY_PATH`` or ``binary_path`` loads under its own name.
        Raises :class:`BinaryInvalidError` for any failure, whether the load
        itself or the probe call.
        """

        try:
            module = self._loader(module_name_for(path), path)
            probe = getattr(module, self._probe.function)
            probe(self._probe.data)
        except Exception as exc:
            raise BinaryInvalidError(f"{type(exc).__name__}: {exc}") from exc
