"""Allow ``python -m csalt`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m csalt`` behaves identically to the ``csalt`` console
script.
"""

from __future__ import annotations

from csalt.cli.app import cli

if __name__ == "__main__":
    cli()
