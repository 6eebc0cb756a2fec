"""Build layout configuration (engine, image names, package lists, paths).

Defaults mirror the original build: podman, rust builder, debian:stable-slim runtime,
image docker.io/bots:latest saved to /mnt/docker/bots.tar.gz. An optional
bots-tooling.yaml at the project root overrides any key; unknown keys are ignored.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from bots_tooling.helpers import load_yaml_file, resolve_under

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "bots-tooling.yaml"

SUPPORTED_ENGINES = ("podman", "docker")

DEFAULT_BUILD_LAYOUT: dict[str, Any] = {
    "engine": "podman",
    "image_tag": "docker.io/bots:latest",
    "output_path": "/mnt/docker/bots.tar.gz",
    "binary_name": "bots",
    "builder_image": "rust",
    "runtime_image": "debian:stable-slim",
    # cmake is the build-system generator; libheif-dev the image-codec headers.
    "build_packages": ["cmake", "libheif-dev"],
    "runtime_packages": ["libheif1", "ca-certificates"],
    # False reproduces the bare runtime variant (no codec library, no CA bundle).
    "with_codec_runtime": True,
    "manifests": ["Cargo.toml", "Cargo.lock"],
    "source_dir": "src",
    "workdir": "/app",
    "cargo_bin_dir": "/usr/local/cargo/bin",
    "runtime_bin_dir": "/usr/bin",
    "source_date_epoch": 0,
    "cache_dir": None,
}

_LIST_KEYS = frozenset({"build_packages", "runtime_packages", "manifests"})
_OPTIONAL_KEYS = frozenset({"cache_dir", "source_date_epoch"})


class ConfigError(ValueError):
    """Config file or override has an invalid shape or value."""


def _coerce(key: str, value: Any) -> Any:
    if value is None:
        if key in _OPTIONAL_KEYS:
            return None
        msg = f"{key} must not be empty"
        raise ConfigError(msg)
    if key in _LIST_KEYS:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
            msg = f"{key} must be a list of non-empty strings"
            raise ConfigError(msg)
        return list(value)
    if key == "with_codec_runtime":
        if not isinstance(value, bool):
            msg = f"with_codec_runtime must be true or false, got {value!r}"
            raise ConfigError(msg)
        return value
    if key == "source_date_epoch":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            msg = f"source_date_epoch must be a non-negative integer, got {value!r}"
            raise ConfigError(msg)
        return value
    if not isinstance(value, (str, Path)) or not str(value).strip():
        msg = f"{key} must be a non-empty string"
        raise ConfigError(msg)
    value = str(value)
    if key == "engine" and value not in SUPPORTED_ENGINES:
        msg = f"Unsupported engine {value!r}; use one of {', '.join(SUPPORTED_ENGINES)}"
        raise ConfigError(msg)
    return value


def resolve_build_layout(layout: dict[str, Any] | None) -> dict[str, Any]:
    """Return layout dict with defaults filled and values validated. Raises ConfigError."""
    out = {k: (list(v) if isinstance(v, list) else v) for k, v in DEFAULT_BUILD_LAYOUT.items()}
    if layout is None:
        return out
    for k, v in layout.items():
        if k not in out:
            log.debug("Ignoring unknown config key %s", k)
            continue
        out[k] = _coerce(k, v)
    return out


def load_build_config(
    project_root: Path,
    config_path: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load bots-tooling.yaml (or config_path) from project_root, apply overrides, fill defaults.

    A missing default config file is not an error; a missing explicit config_path is.
    """
    path = resolve_under(project_root, config_path) if config_path else project_root / CONFIG_FILE_NAME
    data: dict[str, Any] = {}
    if path.is_file():
        loaded = load_yaml_file(path)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            msg = f"{path}: top level must be a mapping"
            raise ConfigError(msg)
        data.update(loaded)
        log.debug("Loaded build config from %s", path)
    elif config_path is not None:
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return resolve_build_layout(data)


def runtime_binary_path(config: dict[str, Any]) -> str:
    """Fixed path of the binary inside the runtime image (e.g. /usr/bin/bots)."""
    return f"{config['runtime_bin_dir'].rstrip('/')}/{config['binary_name']}"


def builder_binary_path(config: dict[str, Any]) -> str:
    """Path cargo install leaves the binary at inside the builder stage."""
    return f"{config['cargo_bin_dir'].rstrip('/')}/{config['binary_name']}"


def resolve_cache_dir(
    config: dict[str, Any], project_root: Path, override: Path | None = None
) -> Path | None:
    """Explicit build-cache location: override, else config cache_dir (relative to project_root), else None."""
    if override is not None:
        return resolve_under(project_root, override)
    if config.get("cache_dir"):
        return resolve_under(project_root, config["cache_dir"])
    return None
