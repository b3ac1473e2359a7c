"""Command-line interface for autotag."""

from __future__ import annotations

from autotag.cli.main import cli

__all__ = ["cli"]
