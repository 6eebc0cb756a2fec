"""Publish: save the built image to a .tar.gz, inspect and verify published archives."""

from .archive import run as run_archive
from .archive import stream_compressed
from .inspect_archive import (
    ArchiveFormatError,
    ImageArchive,
    LayerEntry,
    check_containment,
    layer_fingerprints,
    read_archive,
)
from .pipeline import run as run_pipeline
from .verify import forbidden_prefixes
from .verify import run as run_verify

__all__ = [
    "ArchiveFormatError",
    "ImageArchive",
    "LayerEntry",
    "check_containment",
    "forbidden_prefixes",
    "layer_fingerprints",
    "read_archive",
    "run_archive",
    "run_pipeline",
    "run_verify",
    "stream_compressed",
]
