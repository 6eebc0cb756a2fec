"""`bots-publish` and `bots-tooling publish|verify`."""

import argparse
import sys
from pathlib import Path

from bots_tooling.cli.parse_common import add_codec_flag, add_common_args, load_config_or_exit
from bots_tooling.helpers import resolve_under
from bots_tooling.publish.pipeline import run as run_pipeline
from bots_tooling.publish.verify import run as run_verify


def main() -> None:
    """bots-publish: build and save from the current directory. No flags."""
    ap = argparse.ArgumentParser(
        prog="bots-publish",
        description="Build the image from the current directory and save it as a .tar.gz",
    )
    ap.parse_args()
    sys.exit(run_pipeline(Path.cwd()))


def run_publish_argv(argv: list[str] | None = None) -> None:
    """Build then save, with the shared flags."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="bots-tooling publish", description="Build the image and save it as a .tar.gz"
    )
    add_common_args(ap)
    add_codec_flag(ap)
    args = ap.parse_args(argv)
    config = load_config_or_exit(args, with_codec_runtime=args.with_codec_runtime)
    sys.exit(run_pipeline(args.project_root, config=config, cache_dir=args.cache_dir))


def run_verify_argv(argv: list[str] | None = None) -> None:
    """Inspect a published archive."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="bots-tooling verify",
        description="Check binary containment and entrypoint; optionally compare with another archive",
    )
    add_common_args(ap, cache=False)
    ap.add_argument("archive", type=Path, nargs="?", default=None, help="Default: configured output")
    ap.add_argument("--against", type=Path, default=None, help="Archive from a previous run")
    args = ap.parse_args(argv)
    config = load_config_or_exit(args)
    archive = resolve_under(args.project_root, args.archive or config["output_path"])
    sys.exit(run_verify(archive, config, against=args.against))
