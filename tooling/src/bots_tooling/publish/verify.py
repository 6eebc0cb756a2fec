"""Check a published archive: binary contained once, no build leftovers, entrypoint, reproducibility."""

from __future__ import annotations

import sys
from pathlib import Path, PurePosixPath
from typing import Any

from bots_tooling.config import runtime_binary_path
from bots_tooling.publish.inspect_archive import (
    ArchiveFormatError,
    check_containment,
    layer_fingerprints,
    read_archive,
)


def forbidden_prefixes(config: dict[str, Any]) -> list[str]:
    """Builder-only locations: the source workdir and the cargo home above cargo_bin_dir."""
    cargo_home = str(PurePosixPath(config["cargo_bin_dir"]).parent)
    return [config["workdir"], cargo_home]


def run(archive_path: Path, config: dict[str, Any], against: Path | None = None) -> int:
    """Verify archive_path against config; with against, also compare layer fingerprints. Returns 0 or 1."""
    if not archive_path.is_file():
        print(f"❌ Archive not found: {archive_path}", file=sys.stderr)
        return 1
    try:
        archive = read_archive(archive_path)
        other = read_archive(against) if against is not None else None
    except (ArchiveFormatError, OSError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    binary = runtime_binary_path(config)
    problems = check_containment(archive, binary, forbidden_prefixes(config))
    if archive.entrypoint != [binary]:
        problems.append(f"entrypoint is {archive.entrypoint or 'unset'}, expected [{binary!r}]")
    if config["image_tag"] not in archive.repo_tags:
        # podman may store short names; warn only.
        print(f"⚠️  {config['image_tag']} not among archive tags {list(archive.repo_tags)}")

    if other is not None:
        mine, theirs = layer_fingerprints(archive), layer_fingerprints(other)
        if mine != theirs:
            changed = sum(1 for a, b in zip(mine, theirs) if a != b) + abs(len(mine) - len(theirs))
            problems.append(f"{changed} layer(s) differ from {against}")
        else:
            print(f"✅ {len(mine)} layers match {against} (timestamps ignored)")

    if problems:
        for p in problems:
            print(f"❌ {p}", file=sys.stderr)
        return 1
    print(f"✅ {archive_path}: {binary} present once, entrypoint ok, no build files")
    return 0
