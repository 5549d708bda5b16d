from __future__ import annotations

from io import StringIO
from pathlib import Path
from unittest.mock import patch
import tempfile
import unittest
import xml.etree.ElementTree as ET

from buildinfo.dotnet import (
    NUGET_CONFIG_FILE_NAME,
    DotnetCommand,
    DotnetCoreCliCommand,
    NugetSource,
    ToolchainCommand,
    ToolchainType,
    is_dotnet_version_above_min,
)
from buildinfo.errors import ExternalCommandError
from core.command_runner import ScriptedCommandRunner
from core.console import Console


class VersionGateTests(unittest.TestCase):
    def _gate(self, output: str) -> bool:
        runner = ScriptedCommandRunner()
        runner.queue(stdout=output)
        result = is_dotnet_version_above_min(runner)
        self.assertEqual(runner.commands[0].command, ["dotnet", "--version"])
        return result

    def test_threshold(self) -> None:
        self.assertTrue(self._gate("3.1.200\n"))
        self.assertFalse(self._gate("3.1.199\n"))
        self.assertTrue(self._gate("3.2.0\n"))

    def test_logs_observed_version(self) -> None:
        runner = ScriptedCommandRunner()
        runner.queue(stdout="6.0.400\n")
        with patch("sys.stdout", new=StringIO()) as fake_out:
            is_dotnet_version_above_min(runner, Console("debug"))
        self.assertIn("[DEBUG] using .NET SDK Core 6.0.400", fake_out.getvalue())

    def test_non_zero_exit_raises(self) -> None:
        runner = ScriptedCommandRunner()
        runner.queue(returncode=1, stderr="boom")
        with self.assertRaises(ExternalCommandError) as ctx:
            is_dotnet_version_above_min(runner)
        self.assertEqual(ctx.exception.command, ["dotnet", "--version"])
        self.assertIsNotNone(ctx.exception.result)

    def test_missing_executable_raises(self) -> None:
        runner = ScriptedCommandRunner()
        runner.queue_error(FileNotFoundError(2, "No such file or directory", "dotnet"))
        with self.assertRaises(ExternalCommandError):
            is_dotnet_version_above_min(runner)

    def test_unparseable_output_raises(self) -> None:
        runner = ScriptedCommandRunner()
        runner.queue(stdout="command not found\n")
        with self.assertRaises(ExternalCommandError):
            is_dotnet_version_above_min(runner)


class ToolchainCommandTests(unittest.TestCase):
    def test_to_argv(self) -> None:
        command = ToolchainCommand(ToolchainType.DOTNET_CORE, "nuget add source", ["https://repo"])
        self.assertEqual(command.to_argv(), ["dotnet", "nuget", "add", "source", "https://repo"])

    def test_only_dotnet_toolchain(self) -> None:
        self.assertEqual(list(ToolchainType), [ToolchainType.DOTNET_CORE])
        self.assertEqual(ToolchainType.DOTNET_CORE.flag("configfile"), "--configfile")


class DotnetCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_dir = Path(self.temp_dir.name)
        self.source = NugetSource(url="https://repo.example.com/api/nuget/v3/nuget", username="user", password="secret")

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_without_source_runs_command_as_is(self) -> None:
        runner = ScriptedCommandRunner()
        command = DotnetCommand(ToolchainType.DOTNET_CORE, runner)
        command.set_command("restore").set_args(["--no-cache"]).set_config_dir(self.config_dir)

        command.exec()

        self.assertEqual(len(runner.commands), 1)
        self.assertEqual(runner.commands[0].command, ["dotnet", "restore", "--no-cache"])
        self.assertTrue(runner.commands[0].stream)
        self.assertFalse((self.config_dir / NUGET_CONFIG_FILE_NAME).exists())

    def test_add_source_when_supported(self) -> None:
        runner = ScriptedCommandRunner()
        command = DotnetCommand(ToolchainType.DOTNET_CORE, runner)
        command.set_command("restore").set_source(self.source).set_config_dir(self.config_dir)
        command.use_nuget_add_source = True

        command.exec()

        config_path = self.config_dir / NUGET_CONFIG_FILE_NAME
        add_source, restore = (record.command for record in runner.commands)
        self.assertEqual(add_source[:5], ["dotnet", "nuget", "add", "source", self.source.url])
        self.assertIn("--configfile", add_source)
        self.assertIn("--store-password-in-clear-text", add_source)
        self.assertEqual(restore, ["dotnet", "restore", "--configfile", str(config_path)])
        self.assertEqual(ET.parse(config_path).getroot().tag, "configuration")

    def test_writes_config_for_older_sdk(self) -> None:
        runner = ScriptedCommandRunner()
        command = DotnetCommand(ToolchainType.DOTNET_CORE, runner)
        command.set_command("restore").set_source(self.source).set_config_dir(self.config_dir)

        command.exec()

        config_path = self.config_dir / NUGET_CONFIG_FILE_NAME
        self.assertEqual(len(runner.commands), 1)
        root = ET.parse(config_path).getroot()
        source_entry = root.find("packageSources/add")
        self.assertIsNotNone(source_entry)
        self.assertEqual(source_entry.get("value"), self.source.url)
        password = root.find(f"packageSourceCredentials/{self.source.name}/add[@key='ClearTextPassword']")
        self.assertEqual(password.get("value"), "secret")

    def test_user_config_flag_is_kept(self) -> None:
        runner = ScriptedCommandRunner()
        command = DotnetCommand(ToolchainType.DOTNET_CORE, runner)
        command.set_command("restore").set_args(["--configfile", "mine.config"])
        command.set_source(self.source).set_config_dir(self.config_dir)

        command.exec()

        self.assertEqual(runner.commands[-1].command, ["dotnet", "restore", "--configfile", "mine.config"])

    def test_add_source_arguments_without_credentials(self) -> None:
        command = DotnetCommand(ToolchainType.DOTNET_CORE, ScriptedCommandRunner())
        command.set_source(NugetSource(url="https://repo", name="local"))

        argv = command.add_source_command(Path("cfg"))

        self.assertEqual(
            argv,
            ["dotnet", "nuget", "add", "source", "https://repo", "--configfile", "cfg", "--name", "local"],
        )

    def test_exec_echoes_command_at_debug_level(self) -> None:
        runner = ScriptedCommandRunner()
        command = DotnetCommand(ToolchainType.DOTNET_CORE, runner, console=Console("debug"))
        command.set_command("build").set_args(["-c", "Release"])

        with patch("sys.stdout", new=StringIO()) as fake_out:
            command.exec()

        self.assertEqual(fake_out.getvalue(), "[DEBUG] dotnet build -c Release\n")

    def test_command_failure_raises(self) -> None:
        runner = ScriptedCommandRunner()
        runner.queue(returncode=3)
        command = DotnetCommand(ToolchainType.DOTNET_CORE, runner)
        command.set_command("build")

        with self.assertRaises(ExternalCommandError):
            command.exec()


class DotnetCoreCliCommandTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.config_dir = Path(self.temp_dir.name)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _run(self, sdk_version: str) -> ScriptedCommandRunner:
        runner = ScriptedCommandRunner()
        runner.queue(stdout=f"{sdk_version}\n")
        command = DotnetCoreCliCommand(runner)
        command.set_command("restore").set_source(NugetSource(url="https://repo")).set_config_dir(self.config_dir)
        command.run()
        return runner

    def test_recent_sdk_uses_add_source(self) -> None:
        runner = self._run("3.1.200")
        commands = [record.command for record in runner.commands]
        self.assertEqual(commands[0], ["dotnet", "--version"])
        self.assertEqual(commands[1][:4], ["dotnet", "nuget", "add", "source"])
        self.assertEqual(commands[2][:2], ["dotnet", "restore"])

    def test_old_sdk_writes_config_directly(self) -> None:
        runner = self._run("3.1.199")
        commands = [record.command for record in runner.commands]
        self.assertEqual(len(commands), 2)
        self.assertEqual(commands[1][:2], ["dotnet", "restore"])

    def test_separate_version_runner(self) -> None:
        version_runner = ScriptedCommandRunner()
        version_runner.queue(stdout="8.0.100")
        runner = ScriptedCommandRunner()
        command = DotnetCoreCliCommand(runner, version_runner=version_runner)
        command.set_command("build")

        command.run()

        self.assertTrue(command.use_nuget_add_source)
        self.assertEqual([record.command for record in version_runner.commands], [["dotnet", "--version"]])
        self.assertEqual([record.command for record in runner.commands], [["dotnet", "build"]])


if __name__ == "__main__":
    unittest.main()
