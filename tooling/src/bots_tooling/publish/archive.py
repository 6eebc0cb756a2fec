"""Save a built image to a gzip-compressed docker-archive on disk.

The engine's save stream is gzipped into a temp file next to the output, then renamed
over it, so the published path is always either the previous archive or a complete new one.
Two concurrent runs against the same output path race; the last rename wins.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import IO

from bots_tooling.docker.engine import image_exists, save_command
from bots_tooling.helpers import format_command

log = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024


def stream_compressed(cmd: list[str], fileobj: IO[bytes]) -> int:
    """Run cmd, gzip its stdout into fileobj. Returns cmd's exit status.

    gzip mtime is pinned to 0 and no filename is embedded, so equal input streams give equal bytes.
    """
    log.debug("Running %s", format_command(cmd))
    proc = subprocess.Popen(cmd, stdout=subprocess.PIPE)
    try:
        with gzip.GzipFile(filename="", mode="wb", fileobj=fileobj, mtime=0) as gz:
            shutil.copyfileobj(proc.stdout, gz, _CHUNK_SIZE)
    finally:
        proc.stdout.close()
        returncode = proc.wait()
    return returncode


def _fsync_dir(path: Path) -> None:
    """fsync a directory so a rename inside it survives a crash."""
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def run(
    engine: str,
    tag: str,
    output_path: Path,
    cache_dir: Path | None = None,
) -> int:
    """Save tag to output_path as .tar.gz. Returns 0 on success, else non-zero; the output is never left partial."""
    parent = output_path.parent
    if not parent.is_dir():
        print(f"❌ Output directory does not exist: {parent}", file=sys.stderr)
        return 1
    if not os.access(parent, os.W_OK):
        print(f"❌ Output directory is not writable: {parent}", file=sys.stderr)
        return 1
    if not shutil.which(engine):
        print(f"❌ {engine} is not installed", file=sys.stderr)
        return 1
    if not image_exists(engine, tag, cache_dir):
        print(f"❌ Image not found: {tag}", file=sys.stderr)
        print("   Build the image first", file=sys.stderr)
        return 1

    try:
        tmp = tempfile.NamedTemporaryFile(
            prefix=f".{output_path.name}.", suffix=".tmp", dir=str(parent), delete=False
        )
    except OSError as e:
        print(f"❌ Cannot write to {parent}: {e}", file=sys.stderr)
        return 1

    tmp_path = Path(tmp.name)
    published = False
    try:
        with tmp:
            rc = stream_compressed(save_command(engine, tag, cache_dir), tmp)
            if rc == 0:
                tmp.flush()
                os.fsync(tmp.fileno())
        if rc != 0:
            print(f"❌ {engine} save failed (exit {rc})", file=sys.stderr)
            return rc
        tmp_path.chmod(0o644)
        os.replace(tmp_path, output_path)
        published = True
        _fsync_dir(parent)
    except OSError as e:
        print(f"❌ Failed to write {output_path}: {e}", file=sys.stderr)
        return 1
    finally:
        if not published:
            tmp_path.unlink(missing_ok=True)

    size_mb = output_path.stat().st_size / (1024 * 1024)
    print(f"📦 Saved {tag} -> {output_path} ({size_mb:.1f} MiB)")
    return 0
