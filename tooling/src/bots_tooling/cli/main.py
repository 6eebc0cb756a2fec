"""Main CLI entry point for bots tooling."""

import logging
import sys

from bots_tooling.cli import image_cmd, publish_cmd


def _usage() -> None:
    print("Usage: bots-tooling [--verbose] <command> [args...]", file=sys.stderr)
    print("Commands:", file=sys.stderr)
    print("  dockerfile  - Render the builder/runtime Dockerfile", file=sys.stderr)
    print("  build       - Build and tag the runtime image", file=sys.stderr)
    print("  save        - Save the built image to the .tar.gz archive", file=sys.stderr)
    print("  publish     - build, then save (same as bots-publish)", file=sys.stderr)
    print(
        "  verify      - Check an archive: binary once, no build files, entrypoint",
        file=sys.stderr,
    )


def main() -> None:
    """Main CLI entry point."""
    argv = sys.argv[1:]
    if argv and argv[0] in ("-v", "--verbose"):
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
        argv = argv[1:]
    if not argv:
        _usage()
        sys.exit(1)

    command, rest = argv[0], argv[1:]
    if command == "dockerfile":
        image_cmd.run_dockerfile_argv(rest)
    elif command == "build":
        image_cmd.run_build_argv(rest)
    elif command == "save":
        image_cmd.run_save_argv(rest)
    elif command == "publish":
        publish_cmd.run_publish_argv(rest)
    elif command == "verify":
        publish_cmd.run_verify_argv(rest)
    elif command in ("-h", "--help"):
        _usage()
    else:
        print(f"Error: Unknown command: {command}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
