"""Image specification model and the canonical builder/runtime stages."""

from .spec import CopyOp, ImageSpec, ImageSpecError, Stage, validate_image_spec
from .stages import (
    BUILDER_STAGE,
    RUNTIME_STAGE,
    apt_install_command,
    default_image_spec,
)

__all__ = [
    "BUILDER_STAGE",
    "RUNTIME_STAGE",
    "CopyOp",
    "ImageSpec",
    "ImageSpecError",
    "Stage",
    "apt_install_command",
    "default_image_spec",
    "validate_image_spec",
]
