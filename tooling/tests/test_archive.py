"""Tests for bots_tooling.publish.archive (save, gzip, temp-then-rename)."""

import gzip
import io
from pathlib import Path
from unittest.mock import MagicMock, patch

from bots_tooling.publish.archive import run, stream_compressed

TAG = "docker.io/bots:latest"


def _proc(data: bytes, returncode: int = 0) -> MagicMock:
    proc = MagicMock()
    proc.stdout = io.BytesIO(data)
    proc.wait.return_value = returncode
    return proc


class TestStreamCompressed:
    def test_gzips_stdout_deterministically(self) -> None:
        outs = []
        for _ in range(2):
            buf = io.BytesIO()
            with patch("subprocess.Popen", return_value=_proc(b"image-tar")):
                assert stream_compressed(["podman", "save", TAG], buf) == 0
            outs.append(buf.getvalue())
        assert gzip.decompress(outs[0]) == b"image-tar"
        assert outs[0] == outs[1]

    def test_returns_process_status(self) -> None:
        with patch("subprocess.Popen", return_value=_proc(b"", returncode=3)):
            assert stream_compressed(["podman", "save", TAG], io.BytesIO()) == 3


class TestArchiveRun:
    def test_missing_parent_dir_fails_without_creating(self, tmp_path: Path, capsys) -> None:
        out = tmp_path / "missing" / "bots.tar.gz"
        assert run("podman", TAG, out) == 1
        assert not out.parent.exists()
        assert "does not exist" in capsys.readouterr().err

    def test_unwritable_parent_fails(self, tmp_path: Path) -> None:
        with patch("os.access", return_value=False):
            assert run("podman", TAG, tmp_path / "bots.tar.gz") == 1
        assert list(tmp_path.iterdir()) == []

    def test_missing_image_fails(self, tmp_path: Path, capsys) -> None:
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=125)),
            patch("subprocess.Popen") as popen,
        ):
            assert run("podman", TAG, tmp_path / "bots.tar.gz") == 1
        assert not popen.called
        assert "Image not found" in capsys.readouterr().err
        assert list(tmp_path.iterdir()) == []

    def test_writes_archive_atomically(self, tmp_path: Path) -> None:
        out = tmp_path / "bots.tar.gz"
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
            patch("subprocess.Popen", return_value=_proc(b"image-tar")) as popen,
        ):
            assert run("podman", TAG, out) == 0
        assert popen.call_args[0][0] == ["podman", "save", "--format", "docker-archive", TAG]
        assert gzip.decompress(out.read_bytes()) == b"image-tar"
        assert [p.name for p in tmp_path.iterdir()] == ["bots.tar.gz"]

    def test_rerun_overwrites(self, tmp_path: Path) -> None:
        out = tmp_path / "bots.tar.gz"
        out.write_bytes(gzip.compress(b"old"))
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
            patch("subprocess.Popen", return_value=_proc(b"new")),
        ):
            assert run("podman", TAG, out) == 0
        assert gzip.decompress(out.read_bytes()) == b"new"

    def test_failed_save_keeps_previous_archive(self, tmp_path: Path) -> None:
        out = tmp_path / "bots.tar.gz"
        previous = gzip.compress(b"previous")
        out.write_bytes(previous)
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
            patch("subprocess.Popen", return_value=_proc(b"partial", returncode=1)),
        ):
            assert run("podman", TAG, out) == 1
        assert out.read_bytes() == previous
        assert [p.name for p in tmp_path.iterdir()] == ["bots.tar.gz"]

    def test_write_error_leaves_no_partial_file(self, tmp_path: Path, capsys) -> None:
        out = tmp_path / "bots.tar.gz"
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
            patch("subprocess.Popen", return_value=_proc(b"data")),
            patch("shutil.copyfileobj", side_effect=OSError(28, "No space left on device")),
        ):
            assert run("podman", TAG, out) == 1
        assert list(tmp_path.iterdir()) == []
        assert "No space left" in capsys.readouterr().err

    def test_temp_file_creation_denied(self, tmp_path: Path) -> None:
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
            patch("tempfile.NamedTemporaryFile", side_effect=PermissionError(13, "denied")),
        ):
            assert run("podman", TAG, tmp_path / "bots.tar.gz") == 1
        assert list(tmp_path.iterdir()) == []

    def test_directory_synced_after_rename(self, tmp_path: Path) -> None:
        out = tmp_path / "bots.tar.gz"
        seen: list[bool] = []
        with (
            patch("shutil.which", return_value="/usr/bin/podman"),
            patch("subprocess.run", return_value=MagicMock(returncode=0)),
            patch("subprocess.Popen", return_value=_proc(b"image-tar")),
            patch(
                "bots_tooling.publish.archive._fsync_dir",
                side_effect=lambda p: seen.append(out.is_file()),
            ) as m,
        ):
            assert run("podman", TAG, out) == 0
        m.assert_called_once_with(tmp_path)
        assert seen == [True]
