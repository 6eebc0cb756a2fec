"""Build the image, then save it to the compressed archive. All-or-nothing per invocation."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from bots_tooling.config import ConfigError, load_build_config, resolve_cache_dir
from bots_tooling.docker.build_image import run as run_build_image
from bots_tooling.helpers import resolve_under
from bots_tooling.publish.archive import run as run_archive


def run(
    project_root: Path,
    config: dict[str, Any] | None = None,
    cache_dir: Path | None = None,
) -> int:
    """Build then publish. Returns 0, or the first failing step's status; nothing is saved after a failed build."""
    if config is None:
        try:
            config = load_build_config(project_root)
        except (ConfigError, FileNotFoundError) as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1

    cache = resolve_cache_dir(config, project_root, cache_dir)
    rc = run_build_image(config, project_root, cache_dir=cache)
    if rc != 0:
        print("❌ Build failed; archive left untouched", file=sys.stderr)
        return rc

    output = resolve_under(project_root, config["output_path"])
    rc = run_archive(config["engine"], config["image_tag"], output, cache_dir=cache)
    if rc != 0:
        return rc
    print(f"🎉 Published {config['image_tag']} to {output}")
    return 0
