"""Build the bots container image (builder/runtime stages) and publish it as a .tar.gz archive."""

__version__ = "0.1.0"
