from __future__ import annotations

from contextlib import redirect_stdout
from pathlib import Path
import errno
import io
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from bindingbuild.binary import BinaryLocation
from bindingbuild.console import Console
from bindingbuild.errors import ArtifactMissingError, RelocationError
from bindingbuild.relocate import ArtifactRelocator


class ArtifactRelocatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        root = Path(self.temp_dir.name)
        self.output = root / "build" / "Release" / "binding.so"
        self.install = root / "vendor" / "linux-x86_64-cpython-312" / "binding.so"
        self.location = BinaryLocation(install_path=self.install, build_output_path=self.output)

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def _write_output(self, content: bytes = b"ELF") -> None:
        self.output.parent.mkdir(parents=True)
        self.output.write_bytes(content)

    def test_moves_output_and_creates_install_directory(self) -> None:
        self._write_output()
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            installed = ArtifactRelocator(Console("info")).relocate(self.location)

        self.assertEqual(installed, self.install)
        self.assertEqual(self.install.read_bytes(), b"ELF")
        self.assertFalse(self.output.exists())
        self.assertIn(f'Installed in "{self.install}"', buffer.getvalue())

    def test_replaces_a_broken_installed_binary(self) -> None:
        self._write_output(b"new")
        self.install.parent.mkdir(parents=True)
        self.install.write_bytes(b"old")
        with patch("bindingbuild.relocate.shutil.move") as move:
            ArtifactRelocator(Console("none")).relocate(self.location)
        move.assert_not_called()
        self.assertEqual(self.install.read_bytes(), b"new")
        self.assertFalse(self.output.exists())

    def test_cross_device_move_falls_back_to_copy(self) -> None:
        self._write_output(b"new")
        self.install.parent.mkdir(parents=True)
        self.install.write_bytes(b"old")
        cross_device = OSError(errno.EXDEV, os.strerror(errno.EXDEV))
        with patch("bindingbuild.relocate.os.replace", side_effect=cross_device), \
                patch("bindingbuild.relocate.shutil.move", wraps=shutil.move) as move:
            ArtifactRelocator(Console("none")).relocate(self.location)
        move.assert_called_once_with(str(self.output), str(self.install))
        self.assertEqual(self.install.read_bytes(), b"new")
        self.assertFalse(self.output.exists())

    def test_missing_output_is_reported_without_moving(self) -> None:
        with patch("bindingbuild.relocate.os.replace") as replace:
            with self.assertRaises(ArtifactMissingError) as ctx:
                ArtifactRelocator(Console("none")).relocate(self.location)
        self.assertEqual(str(ctx.exception), "Build succeeded but target not found")
        replace.assert_not_called()
        self.assertFalse(self.install.exists())

    def test_filesystem_error_during_move(self) -> None:
        self._write_output()
        with patch("bindingbuild.relocate.os.replace", side_effect=PermissionError(13, "Permission denied")), \
                patch("bindingbuild.relocate.shutil.move") as move:
            with self.assertRaises(RelocationError) as ctx:
                ArtifactRelocator(Console("none")).relocate(self.location)
        self.assertIn("Permission denied", str(ctx.exception))
        move.assert_not_called()

    def test_install_directory_blocked_by_file(self) -> None:
        self._write_output()
        self.install.parent.parent.mkdir(parents=True)
        self.install.parent.write_text("not a directory")
        with self.assertRaises(RelocationError):
            ArtifactRelocator(Console("none")).relocate(self.location)

    def test_dry_run_only_reports_the_move(self) -> None:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            installed = ArtifactRelocator(Console("info", dry_run=True), dry_run=True).relocate(self.location)
        self.assertEqual(installed, self.install)
        self.assertFalse(self.install.parent.exists())
        self.assertIn(f"[DRY] move {self.output} -> {self.install}", buffer.getvalue())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
