"""Image engine command lines (podman or docker) with an explicit build-cache location.

podman keeps layers in its storage root, so cache_dir becomes `podman --root <dir>` for
every call. docker keeps the daemon store and takes no cache_dir; build_image rejects the pair.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from bots_tooling.helpers import format_command

log = logging.getLogger(__name__)


def engine_command(engine: str, cache_dir: Path | None = None) -> list[str]:
    """Base argv for engine: ['podman', '--root', dir] or ['docker']."""
    if engine == "podman" and cache_dir is not None:
        return ["podman", "--root", str(cache_dir)]
    return [engine]


def build_command(
    engine: str,
    tag: str,
    dockerfile: Path,
    context: Path,
    cache_dir: Path | None = None,
    source_date_epoch: int | None = None,
) -> list[str]:
    """argv that builds dockerfile in context and tags the final stage."""
    cmd = [*engine_command(engine, cache_dir), "build"]
    cmd += ["-t", tag, "-f", str(dockerfile)]
    if source_date_epoch is not None:
        if engine == "podman":
            cmd += ["--timestamp", str(source_date_epoch)]
        else:
            cmd += ["--build-arg", f"SOURCE_DATE_EPOCH={source_date_epoch}"]
    cmd.append(str(context))
    return cmd


def save_command(engine: str, tag: str, cache_dir: Path | None = None) -> list[str]:
    """argv that writes the image as an uncompressed docker-archive to stdout."""
    cmd = [*engine_command(engine, cache_dir), "save"]
    if engine == "podman":
        cmd += ["--format", "docker-archive"]
    cmd.append(tag)
    return cmd


def image_exists(engine: str, tag: str, cache_dir: Path | None = None) -> bool:
    """True if `<engine> image inspect <tag>` succeeds."""
    cmd = [*engine_command(engine, cache_dir), "image", "inspect", tag]
    log.debug("Running %s", format_command(cmd))
    r = subprocess.run(cmd, capture_output=True, text=True)
    return r.returncode == 0
