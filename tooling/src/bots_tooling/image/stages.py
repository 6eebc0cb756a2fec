"""Canonical two-stage (builder/runtime) image for the target binary."""

from __future__ import annotations

import shlex
from typing import Any

from bots_tooling.config import builder_binary_path, runtime_binary_path
from bots_tooling.image.spec import CopyOp, ImageSpec, Stage

BUILDER_STAGE = "builder"
RUNTIME_STAGE = "runtime"


def apt_install_command(packages: list[str]) -> str:
    """Single RUN line: update index, install without recommends, drop the lists."""
    pkgs = " ".join(shlex.quote(p) for p in packages)
    return (
        "apt-get update"
        f" && apt-get install -y --no-install-recommends {pkgs}"
        " && rm -rf /var/lib/apt/lists/*"
    )


def builder_stage(config: dict[str, Any]) -> Stage:
    """Toolchain stage: system build deps, manifests before sources, cargo install --locked."""
    setup = (apt_install_command(config["build_packages"]),) if config["build_packages"] else ()
    source_dir = config["source_dir"].strip("/")
    return Stage(
        name=BUILDER_STAGE,
        base_image=config["builder_image"],
        setup_commands=setup,
        workdir=config["workdir"],
        # Manifests first so a source-only change reuses the dependency layers.
        copies=(
            CopyOp(sources=tuple(config["manifests"]), dest="./"),
            CopyOp(sources=(source_dir,), dest=source_dir),
        ),
        build_commands=("cargo install --locked --path .",),
        outputs=(builder_binary_path(config),),
    )


def runtime_stage(config: dict[str, Any], with_codec_runtime: bool | None = None) -> Stage:
    """Slim stage: optional runtime libs, the compiled binary and nothing else."""
    codec = config["with_codec_runtime"] if with_codec_runtime is None else with_codec_runtime
    setup = ()
    if codec and config["runtime_packages"]:
        setup = (apt_install_command(config["runtime_packages"]),)
    binary = runtime_binary_path(config)
    return Stage(
        name=RUNTIME_STAGE,
        base_image=config["runtime_image"],
        setup_commands=setup,
        copies=(
            CopyOp(
                sources=(builder_binary_path(config),),
                dest=binary,
                from_stage=BUILDER_STAGE,
            ),
        ),
        entrypoint=(binary,),
    )


def default_image_spec(config: dict[str, Any], with_codec_runtime: bool | None = None) -> ImageSpec:
    """Builder then runtime stage. with_codec_runtime overrides config['with_codec_runtime']."""
    return ImageSpec(stages=(builder_stage(config), runtime_stage(config, with_codec_runtime)))
