"""Command-line entry points: bots-tooling and bots-publish."""
