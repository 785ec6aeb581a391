"""Command line interface for provisioning the native binding."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List, Mapping
import sys

import yaml

from .build import BuildPipeline
from .command_runner import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from .config_loader import load_settings
from .console import Console
from .environment import ConfigBuilder
from .errors import ProvisionError


def _emit_dry_run_output(runner: RecordingCommandRunner, *, workspace: Path) -> None:
    for line in runner.iter_formatted(workspace=workspace):
        print(line)


def _parse_arguments(argv: Iterable[str]) -> tuple[Namespace, List[str]]:
    """Split tool options from the build flags.

    Unknown arguments are returned untouched; they are the build flags and
    the toolchain passthrough arguments.
    """

    parser = ArgumentParser(
        prog="bindingbuild",
        description="Test the native binding and rebuild it when missing or broken",
        allow_abbrev=False,
        epilog=(
            "Build flags: -f/--force, -d/--debug, --target_arch=ARCH, --libsass_ext[=no]. "
            "Any other argument is passed to the toolchain."
        ),
    )
    parser.add_argument("--package-root", type=Path, default=None, help="Package directory (default: current directory)")
    parser.add_argument(
        "--log-level",
        choices=sorted(Console.LEVELS, key=Console.LEVELS.__getitem__),
        default="info",
        help="Console verbosity",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print commands without executing them")
    return parser.parse_known_args(list(argv))


def main(argv: Iterable[str] | None = None, *, environ: Mapping[str, str] | None = None) -> int:
    args, build_flags = _parse_arguments(sys.argv[1:] if argv is None else argv)
    package_root = (args.package_root or Path.cwd()).resolve()
    console = Console(args.log_level, dry_run=args.dry_run)

    try:
        settings = load_settings(package_root)
    except (OSError, TypeError, ValueError, yaml.YAMLError) as exc:
        console.error(f"Invalid configuration: {exc}")
        return 2

    config = ConfigBuilder(environ).build_config(build_flags, package_root=package_root)

    runner: CommandRunner
    if args.dry_run:
        runner = RecordingCommandRunner()
    else:
        runner = SubprocessCommandRunner()

    pipeline = BuildPipeline(
        config=config,
        settings=settings,
        command_runner=runner,
        console=console,
        dry_run=args.dry_run,
    )

    try:
        pipeline.run()
    except ProvisionError as exc:
        console.error(str(exc))
        console.debug(f"failure kind: {exc.code.value}")
        return 1
    finally:
        if isinstance(runner, RecordingCommandRunner):
            _emit_dry_run_output(runner, workspace=package_root)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
