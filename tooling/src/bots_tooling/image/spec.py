"""Image specification: an ordered sequence of build stages as plain frozen records."""

from __future__ import annotations

from dataclasses import dataclass, field


class ImageSpecError(ValueError):
    """Image specification breaks a stage or copy invariant."""


@dataclass(frozen=True)
class CopyOp:
    """Copy sources to dest. With from_stage, sources are absolute paths inside that stage."""

    sources: tuple[str, ...]
    dest: str
    from_stage: str | None = None


@dataclass(frozen=True)
class Stage:
    """One build stage.

    Rendered in order: base image, setup_commands, workdir, copies, build_commands, entrypoint.
    outputs lists the artifact paths this stage produces for later stages to copy.
    """

    name: str
    base_image: str
    setup_commands: tuple[str, ...] = ()
    workdir: str | None = None
    copies: tuple[CopyOp, ...] = ()
    build_commands: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    entrypoint: tuple[str, ...] = ()


@dataclass(frozen=True)
class ImageSpec:
    stages: tuple[Stage, ...] = field(default_factory=tuple)

    @property
    def final_stage(self) -> Stage:
        if not self.stages:
            msg = "Image spec has no stages"
            raise ImageSpecError(msg)
        return self.stages[-1]

    def stage(self, name: str) -> Stage:
        for s in self.stages:
            if s.name == name:
                return s
        msg = f"No stage named {name!r}"
        raise KeyError(msg)


def validate_image_spec(spec: ImageSpec) -> None:
    """Check stage and copy invariants. Raises ImageSpecError on the first breach.

    - at least one stage, names unique and non-empty, base image set
    - from_stage names an earlier stage, its sources are absolute and declared in that stage's outputs
    - the final stage copies nothing from the build context
    """
    if not spec.stages:
        msg = "Image spec has no stages"
        raise ImageSpecError(msg)

    earlier: dict[str, Stage] = {}
    last = len(spec.stages) - 1
    for i, stage in enumerate(spec.stages):
        if not stage.name:
            msg = f"Stage {i} has no name"
            raise ImageSpecError(msg)
        if stage.name in earlier:
            msg = f"Duplicate stage name: {stage.name}"
            raise ImageSpecError(msg)
        if not stage.base_image:
            msg = f"Stage {stage.name} has no base image"
            raise ImageSpecError(msg)

        for op in stage.copies:
            if not op.sources or not op.dest:
                msg = f"Stage {stage.name}: copy needs sources and a destination"
                raise ImageSpecError(msg)
            if op.from_stage is None:
                if i == last:
                    msg = (
                        f"Final stage {stage.name} copies {', '.join(op.sources)} from the build "
                        "context; it may only copy artifacts from earlier stages"
                    )
                    raise ImageSpecError(msg)
                continue
            src_stage = earlier.get(op.from_stage)
            if src_stage is None:
                msg = f"Stage {stage.name} copies from {op.from_stage!r}, which is not an earlier stage"
                raise ImageSpecError(msg)
            for src in op.sources:
                if not src.startswith("/"):
                    msg = f"Stage {stage.name}: cross-stage source must be absolute: {src}"
                    raise ImageSpecError(msg)
                if src not in src_stage.outputs:
                    msg = f"Stage {stage.name}: {src} is not an output of stage {op.from_stage}"
                    raise ImageSpecError(msg)

        earlier[stage.name] = stage
