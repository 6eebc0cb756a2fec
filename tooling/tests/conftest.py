"""Pytest fixtures for bots tooling tests."""

from __future__ import annotations

import gzip
import io
import json
import tarfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Minimal cargo build context: Cargo.toml, Cargo.lock, src/main.rs."""
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "Cargo.toml").write_text('[package]\nname = "bots"\nversion = "0.1.0"\n')
    (root / "Cargo.lock").write_text("version = 3\n")
    (root / "src" / "main.rs").write_text("fn main() {}\n")
    return root


@pytest.fixture
def config() -> dict[str, Any]:
    from bots_tooling.config import resolve_build_layout

    return resolve_build_layout(None)


def _add(tar: tarfile.TarFile, name: str, data: bytes | None, mtime: int, mode: int) -> None:
    info = tarfile.TarInfo(name)
    info.mtime = mtime
    if data is None:
        info.type = tarfile.DIRTYPE
        info.mode = 0o755
        tar.addfile(info)
        return
    info.size = len(data)
    info.mode = mode
    tar.addfile(info, io.BytesIO(data))


def _layer_bytes(files: dict[str, bytes | None], mtime: int) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, data in files.items():
            _add(tar, name, data, mtime, 0o755 if name.endswith("bin/bots") else 0o644)
    return buf.getvalue()


@pytest.fixture
def make_archive(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a gzipped docker-archive. Layers map tar member names to bytes (None = dir)."""

    def _make(
        layers: list[dict[str, bytes | None]],
        name: str = "bots.tar.gz",
        entrypoint: list[str] | None = None,
        repo_tags: list[str] | None = None,
        mtime: int = 0,
        gzip_layers: bool = False,
    ) -> Path:
        layer_names = [f"layer{i}/layer.tar" for i in range(len(layers))]
        image_config = {
            "architecture": "amd64",
            "os": "linux",
            "config": {"Entrypoint": entrypoint if entrypoint is not None else ["/usr/bin/bots"]},
        }
        manifest = [
            {
                "Config": "config.json",
                "RepoTags": repo_tags if repo_tags is not None else ["docker.io/bots:latest"],
                "Layers": layer_names,
            }
        ]
        out = tmp_path / name
        with tarfile.open(out, mode="w:gz") as tar:
            _add(tar, "manifest.json", json.dumps(manifest).encode(), mtime, 0o644)
            _add(tar, "config.json", json.dumps(image_config).encode(), mtime, 0o644)
            for layer_name, files in zip(layer_names, layers):
                data = _layer_bytes(files, mtime)
                if gzip_layers:
                    data = gzip.compress(data, mtime=0)
                _add(tar, layer_name, data, mtime, 0o644)
        return out

    return _make


@pytest.fixture
def runtime_layers() -> list[dict[str, bytes | None]]:
    """Base layer plus the single binary layer of a well-formed runtime image."""
    return [
        {"etc/": None, "etc/os-release": b"ID=debian\n", "usr/bin/sh": b"sh"},
        {"usr/bin/bots": b"\x7fELF-bots"},
    ]
