"""Shared helpers for bots_tooling (path resolution, YAML load, command formatting, prefix checks).

Used by config, docker, publish and cli modules.
"""

from __future__ import annotations

import posixpath
import shlex
from pathlib import Path
from typing import Any

import yaml

# --- Path ---


def resolve_under(root: Path, p: str | Path) -> Path:
    """Return p unchanged if absolute, else root / p."""
    path = Path(p)
    return path if path.is_absolute() else root / path


def is_under(path: str, prefix: str) -> bool:
    """True if image path equals prefix or lives below it (e.g. /app/src/main.rs under /app)."""
    base = prefix.rstrip("/") or "/"
    if base == "/":
        return True
    return path == base or path.startswith(base + "/")


def normalize_image_path(name: str) -> str:
    """Normalize a tar member name (./usr/bin/x, usr/bin/x/, .) to an absolute image path."""
    return posixpath.normpath("/" + name.lstrip("/"))


def missing_inputs(root: Path, names: list[str]) -> list[Path]:
    """Paths under root (files or dirs) that do not exist, in the given order."""
    return [root / n for n in names if not (root / n).exists()]


# --- YAML ---


def load_yaml_file(p: Path) -> Any:
    """Load YAML from path (safe_load). Empty file -> None."""
    with p.open() as f:
        return yaml.safe_load(f)


# --- Commands ---


def format_command(cmd: list[str]) -> str:
    """Shell-quoted command line for logs and dry-run output."""
    return shlex.join(cmd)
