"""Shared CLI arguments (--project-root, --config, --cache-dir, codec toggle) and config loading."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

from bots_tooling.config import ConfigError, load_build_config


def path_resolver(s: str) -> Path:
    """Resolve a path argument to absolute Path (e.g. --project-root, --cache-dir)."""
    return Path(s).resolve()


def add_common_args(ap: argparse.ArgumentParser, cache: bool = True) -> None:
    ap.add_argument(
        "--project-root",
        type=path_resolver,
        default=Path.cwd(),
        help="Build context with Cargo.toml, Cargo.lock and src/ (default: cwd)",
    )
    ap.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Config YAML (default: <project-root>/bots-tooling.yaml if present)",
    )
    if cache:
        ap.add_argument(
            "--cache-dir",
            type=path_resolver,
            default=None,
            help="Image-builder cache location (default: engine default)",
        )


def add_codec_flag(ap: argparse.ArgumentParser) -> None:
    """--codec-runtime / --no-codec-runtime; dest with_codec_runtime stays None when neither is given."""
    group = ap.add_mutually_exclusive_group()
    group.add_argument(
        "--codec-runtime",
        dest="with_codec_runtime",
        action="store_const",
        const=True,
        default=None,
        help="Install the image-codec runtime library and CA bundle in the runtime stage",
    )
    group.add_argument(
        "--no-codec-runtime",
        dest="with_codec_runtime",
        action="store_const",
        const=False,
        help="Runtime stage gets the binary only",
    )


def load_config_or_exit(args: argparse.Namespace, **overrides: Any) -> dict[str, Any]:
    """load_build_config for parsed args; prints and exits 1 on a bad config."""
    try:
        return load_build_config(args.project_root, args.config, overrides or None)
    except (ConfigError, FileNotFoundError) as e:
        print(f"❌ {e}", file=sys.stderr)
        sys.exit(1)
