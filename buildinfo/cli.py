"""Command line interface for the buildinfo tool."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import json
import sys
import tempfile

from core.command_runner import CommandError, RecordingCommandRunner, SubprocessCommandRunner
from core.console import Console

from .build_config import BuildConfiguration, BuildField
from .dotnet import (
    DEFAULT_SOURCE_NAME,
    MIN_DOTNET_SDK_CORE_VERSION_FOR_ADD_SOURCE,
    DotnetCoreCliCommand,
    NugetSource,
    ToolchainType,
    get_toolchain_version,
)
from .errors import BuildInfoError


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(description="Resolve build information and run .NET toolchain commands")
    parser.add_argument("--verbose", action="store_true", help="Enable debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser("config", help="Resolve build name, number, module and project")
    config_parser.add_argument("--build-name", default="", help="Build name (overrides environment and project config)")
    config_parser.add_argument("--build-number", default="", help="Build number (overrides environment and project config)")
    config_parser.add_argument("--module", default="", help="Build module")
    config_parser.add_argument("--project", default="", help="Project key (overrides environment)")
    config_parser.add_argument(
        "--validate",
        action="store_true",
        help="Fail when build name and number are not provided together",
    )

    subparsers.add_parser("dotnet-version", help="Show the .NET SDK version and whether add-source is supported")

    dotnet_parser = subparsers.add_parser("dotnet", help="Run a dotnet command with an optional NuGet source")
    dotnet_parser.add_argument("-n", "--dry-run", action="store_true", help="Print commands without executing them")
    dotnet_parser.add_argument("--source-url", help="NuGet source URL to register for the command")
    dotnet_parser.add_argument("--source-name", default=DEFAULT_SOURCE_NAME, help="Name of the registered NuGet source")
    dotnet_parser.add_argument("--source-user", help="Username for the NuGet source")
    dotnet_parser.add_argument("--source-password", help="Password or token for the NuGet source")
    dotnet_parser.add_argument("--config-dir", help="Directory for the generated NuGet configuration")
    dotnet_parser.add_argument("dotnet_args", nargs="*", help="dotnet subcommand and its arguments (after --)")

    return parser.parse_args(list(argv))


def _handle_config(args: Namespace) -> int:
    build_config = BuildConfiguration(args.build_name, args.build_number, args.module, args.project)
    if args.validate:
        build_config.validate_build_and_module_params()
    report = {
        "name": build_config.get_build_name(),
        "number": build_config.get_build_number(),
        "module": build_config.get_module(),
        "project": build_config.get_project(),
        "collect_build_info": build_config.is_collect_build_info(),
        "loaded_from_config_file": build_config.is_loaded_from_config_file(),
        "sources": {field.value: build_config.source_of(field).value for field in BuildField},
    }
    print(json.dumps(report, indent=2))
    return 0


def _handle_dotnet_version(console: Console) -> int:
    version = get_toolchain_version(ToolchainType.DOTNET_CORE, SubprocessCommandRunner())
    supported = version.at_least(MIN_DOTNET_SDK_CORE_VERSION_FOR_ADD_SOURCE)
    console.debug(f"minimum version for add-source: {MIN_DOTNET_SDK_CORE_VERSION_FOR_ADD_SOURCE}")
    print(f"{version} (add-source: {'yes' if supported else 'no'})")
    return 0


def _emit_dry_run_output(runner: RecordingCommandRunner, console: Console) -> None:
    for line in runner.iter_formatted():
        console.dry(line)


def _handle_dotnet(args: Namespace, console: Console) -> int:
    dotnet_args: List[str] = list(args.dotnet_args)
    if not dotnet_args:
        console.error("No dotnet command given")
        return 1

    version_runner = SubprocessCommandRunner()
    runner = RecordingCommandRunner() if args.dry_run else version_runner
    command = DotnetCoreCliCommand(runner, version_runner=version_runner, console=console)
    command.set_command(dotnet_args[0]).set_args(dotnet_args[1:])
    if args.source_url:
        command.set_source(
            NugetSource(
                url=args.source_url,
                name=args.source_name,
                username=args.source_user,
                password=args.source_password,
            )
        )

    with tempfile.TemporaryDirectory(prefix="buildinfo-nuget-") as temp_dir:
        config_dir = Path(args.config_dir) if args.config_dir and not args.dry_run else Path(temp_dir)
        command.set_config_dir(config_dir)
        command.run()

    if isinstance(runner, RecordingCommandRunner):
        _emit_dry_run_output(runner, console)
    return 0


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    dry_run = bool(getattr(args, "dry_run", False))
    console = Console.from_verbosity(args.verbose, dry_run=dry_run)

    try:
        if args.command == "config":
            return _handle_config(args)
        if args.command == "dotnet-version":
            return _handle_dotnet_version(console)
        if args.command == "dotnet":
            return _handle_dotnet(args, console)
    except (BuildInfoError, CommandError) as exc:
        console.error(str(exc))
        return 1

    console.error(f"Unknown command: {args.command}")
    return 1


__all__ = ["main"]
