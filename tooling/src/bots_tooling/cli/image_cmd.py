"""`bots-tooling dockerfile|build|save` subcommands."""

import argparse
import sys
from pathlib import Path

from bots_tooling.cli.parse_common import add_codec_flag, add_common_args, load_config_or_exit
from bots_tooling.config import resolve_cache_dir
from bots_tooling.docker.build_image import run as run_build_image
from bots_tooling.docker.generate_dockerfile import run as run_generate_dockerfile
from bots_tooling.helpers import resolve_under
from bots_tooling.publish.archive import run as run_archive


def run_dockerfile_argv(argv: list[str] | None = None) -> None:
    """Render the two-stage Dockerfile to a file or stdout."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="bots-tooling dockerfile", description="Render the builder/runtime Dockerfile"
    )
    add_common_args(ap, cache=False)
    add_codec_flag(ap)
    ap.add_argument("--output", type=Path, default=None, help="Write here (default: ./Dockerfile)")
    ap.add_argument("--stdout", action="store_true", help="Print instead of writing a file")
    args = ap.parse_args(argv)
    output = resolve_under(args.project_root, args.output) if args.output else None
    rc = run_generate_dockerfile(
        args.project_root,
        output_path=output,
        config_path=args.config,
        with_codec_runtime=args.with_codec_runtime,
        stdout=args.stdout,
    )
    sys.exit(rc)


def run_build_argv(argv: list[str] | None = None) -> None:
    """Build and tag the image only."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(prog="bots-tooling build", description="Build the runtime image")
    add_common_args(ap)
    add_codec_flag(ap)
    args = ap.parse_args(argv)
    config = load_config_or_exit(args, with_codec_runtime=args.with_codec_runtime)
    rc = run_build_image(config, args.project_root, cache_dir=args.cache_dir)
    sys.exit(rc)


def run_save_argv(argv: list[str] | None = None) -> None:
    """Save an already built image to the compressed archive."""
    if argv is None:
        argv = sys.argv[2:] if len(sys.argv) > 2 else []
    ap = argparse.ArgumentParser(
        prog="bots-tooling save", description="Save the built image as .tar.gz"
    )
    add_common_args(ap)
    ap.add_argument("--output", type=Path, default=None, help="Archive path (default: from config)")
    args = ap.parse_args(argv)
    config = load_config_or_exit(args)
    output = resolve_under(args.project_root, args.output or config["output_path"])
    cache = resolve_cache_dir(config, args.project_root, args.cache_dir)
    rc = run_archive(config["engine"], config["image_tag"], output, cache_dir=cache)
    sys.exit(rc)
