from __future__ import annotations

from pathlib import Path
import sys
import tempfile
import unittest

from bindingbuild.command_runner import (
    CommandError,
    CommandResult,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)


class CommandResultTests(unittest.TestCase):
    def test_zero_exit_has_no_error_even_with_stderr_output(self) -> None:
        result = CommandResult(command=["git", "clone"], returncode=0, stderr="Cloning into 'x'...\n")
        self.assertIsNone(result.error)

    def test_nonzero_exit_with_empty_stderr_is_still_an_error(self) -> None:
        result = CommandResult(command=["git", "checkout", "v1"], returncode=1, stderr="")
        error = result.error
        self.assertIsInstance(error, CommandError)
        self.assertEqual(error.stderr, "")
        self.assertIn("exit code 1", str(error))

    def test_error_message_carries_stderr_text(self) -> None:
        result = CommandResult(command=["git", "checkout", "nope"], returncode=1, stderr="error: pathspec 'nope'\n")
        self.assertIn("error: pathspec 'nope'", str(result.error))

    def test_streamed_failure_points_at_the_console(self) -> None:
        result = CommandResult(command=["gyp-build", "rebuild"], returncode=2, stderr="", streamed=True)
        self.assertIn("output already streamed above.", str(result.error))


class SubprocessCommandRunnerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = SubprocessCommandRunner()

    def test_collects_stderr_and_ignores_stdout(self) -> None:
        script = "import sys; print('to stdout'); sys.stderr.write('first '); sys.stderr.write('second')"
        result = self.runner.run([sys.executable, "-c", script])
        self.assertEqual(result.returncode, 0)
        self.assertEqual(result.stderr, "first second")
        self.assertIsNone(result.error)

    def test_failure_is_returned_not_raised(self) -> None:
        script = "import sys; sys.stderr.write('boom'); sys.exit(3)"
        result = self.runner.run([sys.executable, "-c", script])
        self.assertEqual(result.returncode, 3)
        self.assertIsInstance(result.error, CommandError)
        self.assertEqual(result.error.stderr, "boom")

    def test_runs_in_requested_directory(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            script = "import os, sys; sys.stderr.write(os.getcwd())"
            result = self.runner.run([sys.executable, "-c", script], cwd=Path(temp_dir))
            self.assertEqual(Path(result.stderr).resolve(), Path(temp_dir).resolve())

    def test_streamed_run_captures_nothing(self) -> None:
        result = self.runner.run([sys.executable, "-c", "raise SystemExit(0)"], stream=True)
        self.assertTrue(result.streamed)
        self.assertEqual(result.stderr, "")

    def test_missing_executable_raises_file_not_found(self) -> None:
        with self.assertRaises(FileNotFoundError):
            self.runner.run(["bindingbuild-no-such-tool-xyz"])


class RecordingCommandRunnerTests(unittest.TestCase):
    def test_records_commands_and_formats_them(self) -> None:
        runner = RecordingCommandRunner()
        result = runner.run(["git", "clone", "https://example.com/libsass.git", "src/lib sass"], note="git")
        runner.run(["gyp-build", "rebuild"], cwd=Path("/work"), stream=True)

        self.assertEqual(result.returncode, 0)
        self.assertEqual(len(runner.commands), 2)
        self.assertTrue(runner.commands[1].stream)
        lines = list(runner.iter_formatted(workspace=Path("/pkg")))
        self.assertEqual(
            lines[0],
            "[dry-run] git (cwd=/pkg) git clone https://example.com/libsass.git 'src/lib sass'",
        )
        self.assertEqual(lines[1], "[dry-run] (cwd=/work) gyp-build rebuild")


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
