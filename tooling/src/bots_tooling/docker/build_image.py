"""Build the two-stage image for the target binary and tag it."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import Any

from bots_tooling.config import resolve_cache_dir
from bots_tooling.docker.engine import build_command
from bots_tooling.docker.generate_dockerfile import render_dockerfile
from bots_tooling.helpers import format_command, missing_inputs
from bots_tooling.image import ImageSpec, ImageSpecError, default_image_spec

log = logging.getLogger(__name__)


def run(
    config: dict[str, Any],
    project_root: Path,
    cache_dir: Path | None = None,
    spec: ImageSpec | None = None,
) -> int:
    """Render the Dockerfile into a temp dir outside the build context and run the engine build.

    Returns 0 on success, 1 on a pre-flight failure (inputs, image spec, temp Dockerfile,
    docker with a cache dir), else the engine's exit status.
    The manifests and source dir are only read; the temp Dockerfile is always removed.
    """
    root = project_root
    engine = config["engine"]
    if not shutil.which(engine):
        print(f"❌ {engine} is not installed", file=sys.stderr)
        return 1

    missing = missing_inputs(root, [*config["manifests"], config["source_dir"]])
    if missing:
        for m in missing:
            print(f"❌ Build input not found: {m}", file=sys.stderr)
        return 1

    try:
        content = render_dockerfile(spec or default_image_spec(config))
    except ImageSpecError as e:
        print(f"❌ Invalid image spec: {e}", file=sys.stderr)
        return 1

    cache = resolve_cache_dir(config, root, cache_dir)
    if engine == "docker" and cache is not None:
        print("❌ docker's default builder cannot export a local build cache", file=sys.stderr)
        print("   Use engine: podman, or drop cache_dir / --cache-dir", file=sys.stderr)
        return 1
    tag = config["image_tag"]
    try:
        tmp_dir = tempfile.TemporaryDirectory(prefix="bots-dockerfile-")
    except OSError as e:
        print(f"❌ Cannot create a temporary Dockerfile: {e}", file=sys.stderr)
        return 1

    with tmp_dir:
        dockerfile_path = Path(tmp_dir.name) / "Dockerfile"
        try:
            dockerfile_path.write_text(content)
        except OSError as e:
            print(f"❌ Cannot write {dockerfile_path}: {e}", file=sys.stderr)
            return 1
        cmd = build_command(
            engine,
            tag,
            dockerfile_path,
            root,
            cache_dir=cache,
            source_date_epoch=config["source_date_epoch"],
        )
        print(f"🔨 Building {tag} with {engine}...")
        log.debug("Running %s", format_command(cmd))
        build = subprocess.run(cmd, cwd=str(root))
        if build.returncode != 0:
            print(f"❌ Image build failed (exit {build.returncode})", file=sys.stderr)
            return build.returncode
    print(f"✅ Image built: {tag}")
    return 0
