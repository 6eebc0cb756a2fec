"""Read a published image archive without an engine: files per layer, entrypoint, fingerprints.

Understands the docker-archive layout written by `podman save` and `docker save`:
a tar (here gzipped) holding manifest.json, an image config JSON and one tar per layer.
"""

from __future__ import annotations

import gzip
import hashlib
import json
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bots_tooling.helpers import is_under, normalize_image_path

WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"


class ArchiveFormatError(ValueError):
    """Archive is not a readable docker-archive."""


@dataclass(frozen=True)
class LayerEntry:
    path: str
    kind: str
    mode: int
    size: int
    uid: int
    gid: int
    digest: str = ""


@dataclass(frozen=True)
class ImageArchive:
    repo_tags: tuple[str, ...]
    config: dict[str, Any]
    layers: tuple[tuple[LayerEntry, ...], ...]

    @property
    def entrypoint(self) -> list[str]:
        cfg = self.config.get("config") or {}
        return list(cfg.get("Entrypoint") or [])

    def merged_files(self) -> set[str]:
        """Non-directory paths visible in the final filesystem, honoring whiteouts."""
        visible: set[str] = set()
        for layer in self.layers:
            added: set[str] = set()
            for e in layer:
                parent, _, base = e.path.rpartition("/")
                parent = parent or "/"
                if base == OPAQUE_WHITEOUT:
                    visible = {p for p in visible if not is_under(p, parent)}
                elif base.startswith(WHITEOUT_PREFIX):
                    target = f"{parent.rstrip('/')}/{base[len(WHITEOUT_PREFIX):]}"
                    visible = {p for p in visible if not is_under(p, target)}
                elif e.kind != "dir":
                    added.add(e.path)
            # Whiteouts only hide lower layers.
            visible |= added
        return visible

    def occurrences(self, path: str) -> int:
        """How many layers write a non-directory entry at path."""
        return sum(1 for layer in self.layers for e in layer if e.path == path and e.kind != "dir")


def _kind(member: tarfile.TarInfo) -> str:
    if member.isdir():
        return "dir"
    if member.issym():
        return "symlink"
    if member.islnk():
        return "hardlink"
    if member.isfile():
        return "file"
    return "other"


def _read_json_member(tar: tarfile.TarFile, name: str) -> Any:
    try:
        f = tar.extractfile(name)
    except KeyError as e:
        msg = f"Archive has no {name}"
        raise ArchiveFormatError(msg) from e
    if f is None:
        msg = f"Archive member {name} is not a file"
        raise ArchiveFormatError(msg)
    with f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            msg = f"Archive member {name} is not valid JSON"
            raise ArchiveFormatError(msg) from e


def _digest(f: Any) -> str:
    h = hashlib.sha256()
    for chunk in iter(lambda: f.read(1024 * 1024), b""):
        h.update(chunk)
    return h.hexdigest()


def _read_layer(tar: tarfile.TarFile, name: str) -> tuple[LayerEntry, ...]:
    try:
        raw = tar.extractfile(name)
    except KeyError as e:
        msg = f"Archive has no layer {name}"
        raise ArchiveFormatError(msg) from e
    if raw is None:
        msg = f"Layer {name} is not a file"
        raise ArchiveFormatError(msg)
    entries: list[LayerEntry] = []
    with raw, tarfile.open(fileobj=raw, mode="r|*") as layer:
        for m in layer:
            digest = ""
            if m.isfile():
                f = layer.extractfile(m)
                digest = _digest(f) if f is not None else ""
            elif m.issym() or m.islnk():
                digest = hashlib.sha256(m.linkname.encode()).hexdigest()
            entries.append(
                LayerEntry(
                    path=normalize_image_path(m.name),
                    kind=_kind(m),
                    mode=m.mode,
                    size=m.size,
                    uid=m.uid,
                    gid=m.gid,
                    digest=digest,
                )
            )
    return tuple(entries)


def read_archive(path: Path) -> ImageArchive:
    """Parse a (gzipped) docker-archive. Raises ArchiveFormatError or OSError.

    Truncated or corrupt compression anywhere in the file is an ArchiveFormatError.
    """
    try:
        with tarfile.open(path, "r:*") as outer:
            manifest = _read_json_member(outer, "manifest.json")
            if not isinstance(manifest, list) or not manifest or not isinstance(manifest[0], dict):
                msg = "manifest.json must list at least one image"
                raise ArchiveFormatError(msg)
            entry = manifest[0]
            if "Config" not in entry:
                msg = "manifest.json entry has no Config"
                raise ArchiveFormatError(msg)
            config = _read_json_member(outer, entry["Config"])
            layers = tuple(_read_layer(outer, name) for name in entry.get("Layers") or [])
    except (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile) as e:
        msg = f"{path} is not a readable docker-archive: {e}"
        raise ArchiveFormatError(msg) from e
    return ImageArchive(
        repo_tags=tuple(entry.get("RepoTags") or []),
        config=config if isinstance(config, dict) else {},
        layers=layers,
    )


def check_containment(
    archive: ImageArchive, binary_path: str, forbidden_prefixes: list[str]
) -> list[str]:
    """Problems with the runtime image contents; empty when the binary is present once and nothing leaked."""
    problems: list[str] = []
    files = archive.merged_files()
    if binary_path not in files:
        problems.append(f"binary missing at {binary_path}")
    count = archive.occurrences(binary_path)
    if count > 1:
        problems.append(f"binary written {count} times at {binary_path}")
    for prefix in forbidden_prefixes:
        leaked = sorted(p for p in files if is_under(p, prefix))
        if leaked:
            shown = ", ".join(leaked[:5])
            more = f" (+{len(leaked) - 5} more)" if len(leaked) > 5 else ""
            problems.append(f"build files leaked under {prefix}: {shown}{more}")
    return problems


def layer_fingerprints(archive: ImageArchive) -> list[str]:
    """sha256 per layer over (path, kind, mode, size, owner, content digest); mtimes are ignored."""
    out: list[str] = []
    for layer in archive.layers:
        h = hashlib.sha256()
        for e in sorted(layer, key=lambda x: x.path):
            h.update(
                f"{e.path}\0{e.kind}\0{e.mode:o}\0{e.size}\0{e.uid}:{e.gid}\0{e.digest}\n".encode()
            )
        out.append(h.hexdigest())
    return out
