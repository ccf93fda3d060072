"""Styled terminal status messages.

The validation report itself is plain text (see ``bundlecheck.report``).
These helpers are for the short status lines the CLI prints around it,
so a run's outcome stands out even when the report goes to a file.

Usage:
    from bundlecheck.output import success, info, warn, error, detail

    success("Bundle passed validation")
    info("Validating bundle_a (12 targets)")
    warn("--bundle-label is deprecated, use --label-pattern")
    error("Validation failed: 3 error(s)")
    detail("Report written to report.txt")
"""

from __future__ import annotations

import sys
from typing import TextIO

import click

_STYLES = {
    "success": {"fg": "green"},
    "info": {"fg": "blue"},
    "warn": {"fg": "yellow"},
    "error": {"fg": "red"},
    "detail": {"fg": "bright_black"},
}

_PREFIXES = {
    "success": "✓",  # checkmark
    "info": "→",  # arrow
    "warn": "⚠",  # warning
    "error": "✗",  # X
    "detail": " ",
}


def _output(message: str, style: str, *, file: TextIO | None = None, nl: bool = True) -> None:
    """Write ``message`` with the prefix and color of ``style``."""
    fg_color = _STYLES[style]["fg"]
    styled_prefix = click.style(_PREFIXES[style], fg=fg_color)
    styled_message = click.style(message, fg=fg_color)
    click.echo(f"{styled_prefix} {styled_message}", file=file, nl=nl)


def success(message: str, *, file: TextIO | None = None, nl: bool = True) -> None:
    """Print a success message with green checkmark (default: stderr).

    Example:
        >>> success("Bundle passed validation")
        ✓ Bundle passed validation
    """
    _output(message, "success", file=file or sys.stderr, nl=nl)


def info(message: str, *, file: TextIO | None = None, nl: bool = True) -> None:
    """Print an info message with blue arrow (default: stderr)."""
    _output(message, "info", file=file or sys.stderr, nl=nl)


def warn(message: str, *, file: TextIO | None = None, nl: bool = True) -> None:
    """Print a warning message with yellow warning symbol (default: stderr)."""
    _output(message, "warn", file=file or sys.stderr, nl=nl)


def error(message: str, *, file: TextIO | None = None, nl: bool = True) -> None:
    """Print an error message with red X (default: stderr).

    Example:
        >>> error("Validation failed: 2 error(s)")
        ✗ Validation failed: 2 error(s)
    """
    _output(message, "error", file=file or sys.stderr, nl=nl)


def detail(message: str, *, file: TextIO | None = None, nl: bool = True) -> None:
    """Print a detail message in dimmed text (default: stderr)."""
    _output(message, "detail", file=file or sys.stderr, nl=nl)
