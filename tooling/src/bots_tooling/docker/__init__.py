"""Docker/podman helpers: render the Dockerfile, build the image, engine command lines."""

from .build_image import run as run_build_image
from .engine import build_command, engine_command, image_exists, save_command
from .generate_dockerfile import generate_dockerfile, render_dockerfile
from .generate_dockerfile import run as run_generate_dockerfile

__all__ = [
    "build_command",
    "engine_command",
    "generate_dockerfile",
    "image_exists",
    "render_dockerfile",
    "run_build_image",
    "run_generate_dockerfile",
    "save_command",
]
