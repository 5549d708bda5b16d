""".NET toolchain invocation and the SDK version gate for NuGet source setup."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Sequence
import xml.etree.ElementTree as ET

from core.command_runner import CommandError, CommandResult, CommandRunner
from core.console import Console

from .errors import ExternalCommandError
from .version import Version

MIN_DOTNET_SDK_CORE_VERSION_FOR_ADD_SOURCE = "3.1.200"
NUGET_CONFIG_FILE_NAME = "NuGet.Config"
DEFAULT_SOURCE_NAME = "BuildInfoSource"


class ToolchainType(Enum):
    DOTNET_CORE = ("dotnet", "--", ("nuget", "add", "source"))

    def __init__(self, executable: str, flag_prefix: str, add_source_args: tuple[str, ...]) -> None:
        self.executable = executable
        self.flag_prefix = flag_prefix
        self.add_source_args = add_source_args

    def flag(self, name: str) -> str:
        return f"{self.flag_prefix}{name}"


@dataclass(slots=True)
class ToolchainCommand:
    toolchain: ToolchainType
    command: str = ""
    command_flags: List[str] = field(default_factory=list)

    def to_argv(self) -> List[str]:
        return [self.toolchain.executable, *self.command.split(), *self.command_flags]


def _run_toolchain(
    runner: CommandRunner,
    argv: Sequence[str],
    *,
    stream: bool = False,
    note: str | None = None,
) -> CommandResult:
    try:
        return runner.run(argv, stream=stream, note=note)
    except CommandError as exc:
        raise ExternalCommandError(str(exc), command=argv, result=exc.result) from exc
    except OSError as exc:
        raise ExternalCommandError(
            f"Failed to run '{runner.format_command(argv)}': {exc}",
            command=argv,
        ) from exc


def get_toolchain_version(toolchain: ToolchainType, runner: CommandRunner) -> Version:
    version_cmd = ToolchainCommand(toolchain, command_flags=["--version"])
    argv = version_cmd.to_argv()
    result = _run_toolchain(runner, argv)
    try:
        return Version.parse(result.stdout)
    except ValueError as exc:
        raise ExternalCommandError(
            f"Unexpected output from '{runner.format_command(argv)}': {result.stdout.strip()!r}",
            command=argv,
            result=result,
        ) from exc


def is_dotnet_version_above_min(runner: CommandRunner, console: Console | None = None) -> bool:
    """Return True when the installed .NET SDK supports ``dotnet nuget add source``."""

    version = get_toolchain_version(ToolchainType.DOTNET_CORE, runner)
    if console is not None:
        console.debug(f"using .NET SDK Core {version}")
    return version.at_least(MIN_DOTNET_SDK_CORE_VERSION_FOR_ADD_SOURCE)


@dataclass(slots=True)
class NugetSource:
    url: str
    name: str = DEFAULT_SOURCE_NAME
    username: str | None = None
    password: str | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and self.password is not None


def _write_xml(root: ET.Element, path: Path) -> None:
    tree = ET.ElementTree(root)
    ET.indent(tree, space="  ")
    path.parent.mkdir(parents=True, exist_ok=True)
    tree.write(path, encoding="utf-8", xml_declaration=True)


def write_empty_nuget_config(path: Path) -> None:
    _write_xml(ET.Element("configuration"), path)


def write_nuget_config(path: Path, source: NugetSource) -> None:
    """Write a NuGet configuration that registers ``source`` directly."""

    root = ET.Element("configuration")
    sources = ET.SubElement(root, "packageSources")
    ET.SubElement(sources, "add", key=source.name, value=source.url, protocolVersion="3")
    if source.has_credentials:
        credentials = ET.SubElement(root, "packageSourceCredentials")
        entry = ET.SubElement(credentials, source.name)
        ET.SubElement(entry, "add", key="Username", value=source.username or "")
        ET.SubElement(entry, "add", key="ClearTextPassword", value=source.password or "")
    _write_xml(root, path)


class DotnetCommand:
    """A user command for the ``dotnet`` toolchain.

    When a source is set the command gets its own NuGet configuration in
    ``config_dir``.  ``use_nuget_add_source`` selects how the source is
    registered: through the toolchain's add-source command, or by writing the
    configuration file directly for SDKs that predate it.
    """

    def __init__(
        self,
        toolchain: ToolchainType,
        runner: CommandRunner,
        *,
        console: Console | None = None,
    ) -> None:
        self.toolchain = toolchain
        self.runner = runner
        self.console = console or Console()
        self.command = ""
        self.args: List[str] = []
        self.source: NugetSource | None = None
        self.config_dir: Path | None = None
        self.use_nuget_add_source = False
        self.config_path: Path | None = None

    def set_command(self, command: str) -> "DotnetCommand":
        self.command = command
        return self

    def set_args(self, args: Sequence[str]) -> "DotnetCommand":
        self.args = list(args)
        return self

    def set_source(self, source: NugetSource | None) -> "DotnetCommand":
        self.source = source
        return self

    def set_config_dir(self, config_dir: Path | None) -> "DotnetCommand":
        self.config_dir = config_dir
        return self

    def add_source_command(self, config_path: Path) -> List[str]:
        if self.source is None:
            raise ValueError("No NuGet source configured")
        flags = [self.source.url]
        flags.extend([self.toolchain.flag("configfile"), str(config_path)])
        flags.extend([self.toolchain.flag("name"), self.source.name])
        if self.source.has_credentials:
            flags.extend([self.toolchain.flag("username"), self.source.username or ""])
            flags.extend([self.toolchain.flag("password"), self.source.password or ""])
            flags.append("--store-password-in-clear-text")
        command = ToolchainCommand(self.toolchain, " ".join(self.toolchain.add_source_args), flags)
        return command.to_argv()

    def prepare_config(self, config_dir: Path) -> Path | None:
        if self.source is None:
            return None
        config_path = config_dir / NUGET_CONFIG_FILE_NAME
        if self.use_nuget_add_source:
            write_empty_nuget_config(config_path)
            self.console.debug(f"registering source '{self.source.name}' with {self.toolchain.executable}")
            _run_toolchain(self.runner, self.add_source_command(config_path), note="add-source")
        else:
            self.console.debug(f"writing source '{self.source.name}' to {config_path}")
            write_nuget_config(config_path, self.source)
        self.config_path = config_path
        return config_path

    def _has_config_flag(self) -> bool:
        flag = self.toolchain.flag("configfile")
        return any(arg.lower() == flag for arg in self.args)

    def build_command(self) -> List[str]:
        flags = list(self.args)
        if self.config_path is not None and not self._has_config_flag():
            flags.extend([self.toolchain.flag("configfile"), str(self.config_path)])
        return ToolchainCommand(self.toolchain, self.command, flags).to_argv()

    def exec(self) -> CommandResult:
        if self.config_dir is not None:
            self.prepare_config(self.config_dir)
        argv = self.build_command()
        self.console.debug(self.runner.format_command(argv))
        return _run_toolchain(self.runner, argv, stream=True)


class DotnetCoreCliCommand(DotnetCommand):
    def __init__(
        self,
        runner: CommandRunner,
        *,
        version_runner: CommandRunner | None = None,
        console: Console | None = None,
    ) -> None:
        super().__init__(ToolchainType.DOTNET_CORE, runner, console=console)
        self.version_runner = version_runner or runner

    def run(self) -> CommandResult:
        self.use_nuget_add_source = is_dotnet_version_above_min(self.version_runner, self.console)
        return self.exec()


__all__ = [
    "DEFAULT_SOURCE_NAME",
    "MIN_DOTNET_SDK_CORE_VERSION_FOR_ADD_SOURCE",
    "NUGET_CONFIG_FILE_NAME",
    "DotnetCommand",
    "DotnetCoreCliCommand",
    "NugetSource",
    "ToolchainCommand",
    "ToolchainType",
    "get_toolchain_version",
    "is_dotnet_version_above_min",
    "write_empty_nuget_config",
    "write_nuget_config",
]
