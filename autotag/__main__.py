"""CLI entry point for autotag package.

Allows running via: python -m autotag
"""

from __future__ import annotations

from autotag.cli.main import cli

if __name__ == "__main__":
    cli()
