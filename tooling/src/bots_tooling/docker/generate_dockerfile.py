"""Render an ImageSpec to Dockerfile text and write it for the project."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from bots_tooling.config import ConfigError, load_build_config
from bots_tooling.image import ImageSpec, ImageSpecError, default_image_spec, validate_image_spec


def _copy_line(sources: tuple[str, ...], dest: str, from_stage: str | None) -> str:
    flag = f"--from={from_stage} " if from_stage else ""
    return f"COPY {flag}{' '.join(sources)} {dest}"


def render_dockerfile(spec: ImageSpec) -> str:
    """Dockerfile text for spec; validates first (raises ImageSpecError)."""
    validate_image_spec(spec)
    blocks: list[str] = []
    for stage in spec.stages:
        lines = [f"FROM {stage.base_image} AS {stage.name}"]
        lines += [f"RUN {c}" for c in stage.setup_commands]
        if stage.workdir:
            lines.append(f"WORKDIR {stage.workdir}")
        lines += [_copy_line(op.sources, op.dest, op.from_stage) for op in stage.copies]
        lines += [f"RUN {c}" for c in stage.build_commands]
        if stage.entrypoint:
            lines.append(f"ENTRYPOINT {json.dumps(list(stage.entrypoint))}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


def generate_dockerfile(
    config: dict[str, Any],
    project_root: Path | None = None,
    output_path: Path | None = None,
    with_codec_runtime: bool | None = None,
) -> Path:
    """Write the two-stage Dockerfile to output_path (default: <project_root>/Dockerfile). Returns the path."""
    root = Path(project_root) if project_root is not None else Path.cwd()
    out = output_path or (root / "Dockerfile")
    content = render_dockerfile(default_image_spec(config, with_codec_runtime))
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(content)
    print(f"✅ Generated: {out}")
    return out


def run(
    project_root: Path,
    output_path: Path | None = None,
    config_path: Path | None = None,
    with_codec_runtime: bool | None = None,
    stdout: bool = False,
) -> int:
    """CLI entry: generate Dockerfile (or print it with stdout=True). Returns 0 on success, 1 on error."""
    try:
        config = load_build_config(project_root, config_path)
        if stdout:
            print(render_dockerfile(default_image_spec(config, with_codec_runtime)), end="")
            return 0
        generate_dockerfile(
            config,
            project_root=project_root,
            output_path=output_path,
            with_codec_runtime=with_codec_runtime,
        )
        return 0
    except (ConfigError, ImageSpecError, FileNotFoundError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
