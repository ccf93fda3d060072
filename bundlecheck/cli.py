"""bundlecheck CLI - Command-line interface for validating archive bundles.

The CLI is a thin wrapper around the Python API (see validation/runner.py
and report.py). All business logic lives in the library; the CLI resolves
settings, owns the report stream and turns the outcome into an exit code.

Exit codes:
    0: No ERROR or FATAL problems were reported
    1: At least one ERROR or FATAL problem was reported
    2: The bundle or the configuration could not be used
"""

from __future__ import annotations

import contextlib
import io
import logging
import sys
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import click

from bundlecheck.config import CONFIG_DIRNAME, ReportSettings, resolve_settings
from bundlecheck.crawler import DirectoryCrawler, to_location
from bundlecheck.errors import BundlecheckError, BundleNotFoundError
from bundlecheck.json_output import ErrorDetail, error_envelope, report_envelope
from bundlecheck.output import detail, error, info, success, warn
from bundlecheck.report import Report
from bundlecheck.validation.problems import Severity
from bundlecheck.validation.runner import validate_bundle

PACKAGE_NAME = "bundlecheck"


def should_output_json(ctx: click.Context, json_flag: bool = False) -> bool:
    """Determine if JSON output should be used.

    Global --format=json takes precedence, but per-command --json also works.
    """
    obj = ctx.find_root().obj or {}
    global_format = obj.get("format", "text")
    return global_format == "json" or json_flag


def output_json_envelope(envelope: Any) -> None:
    """Output a JSON envelope to stdout."""
    click.echo(envelope.to_json())


def _tool_version() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "unknown"


def _describe_run(report: Report, path: Path, settings: ReportSettings, config: Path | None) -> None:
    """Fill the Configuration and Parameters blocks of the report header."""
    now = datetime.now(timezone.utc).replace(microsecond=0)
    report.add_configuration(f"   Version                       {_tool_version()}")
    report.add_configuration(f"   Date                          {now.isoformat()}")
    if config is not None:
        report.add_configuration(f"   Config File                   {config}")

    report.add_parameter(f"   Targets                       [{to_location(path)}]")
    report.add_parameter(f"   Severity Level                {settings.level.label}")
    report.add_parameter(
        f"   Integrity Check               {str(settings.integrity_check).lower()}"
    )
    report.add_parameter(f"   Label Pattern                 {settings.label_pattern}")
    report.add_parameter(f"   Label Globs                   {', '.join(settings.label_globs)}")


def _fail_setup(command: str, err: BundlecheckError, *, use_json: bool) -> None:
    """Report a setup error and exit with status 2."""
    if use_json:
        output_json_envelope(error_envelope(command, [ErrorDetail.from_exception(err)]))
    else:
        error(str(err))
    raise SystemExit(2) from err


@click.group()
@click.version_option(package_name=PACKAGE_NAME)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.pass_context
def cli(ctx: click.Context, output_format: str) -> None:
    """bundlecheck - Validate the layout of structured data archive bundles."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format


@cli.command()
@click.argument("path", type=click.Path(path_type=Path), default=".")
@click.option(
    "--level",
    type=click.Choice([s.value for s in Severity], case_sensitive=False),
    default=None,
    help="Lowest severity that is counted and listed (default: info).",
)
@click.option(
    "--integrity-check/--no-integrity-check",
    default=None,
    help="Count targets as referential integrity checks instead of products.",
)
@click.option(
    "--label-pattern",
    default=None,
    help="Regular expression for the bundle label file name.",
)
@click.option(
    "--bundle-label",
    "deprecated_bundle_label",
    default=None,
    hidden=True,
    help="Deprecated alias of --label-pattern.",
)
@click.option(
    "--report-file",
    "-r",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the report to this file instead of stdout.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML config file (default: <bundle>/.bundlecheck/config.yaml).",
)
@click.option(
    "--include-hidden/--no-include-hidden",
    default=None,
    help="Also inspect files and directories whose names start with a dot.",
)
@click.option("--json", "json_output", is_flag=True, help="Output the summary as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr")
@click.pass_context
def validate(
    ctx: click.Context,
    path: Path,
    level: str | None,
    integrity_check: bool | None,
    label_pattern: str | None,
    deprecated_bundle_label: str | None,
    report_file: Path | None,
    config_path: Path | None,
    include_hidden: bool | None,
    json_output: bool,
    verbose: bool,
) -> None:
    """Validate a bundle and write a problem report.

    PATH is the bundle directory to validate (default: current directory).
    """
    use_json = should_output_json(ctx, json_output)

    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    deprecated_flag_warning = None
    if deprecated_bundle_label is not None:
        deprecated_flag_warning = True
        if label_pattern is None:
            label_pattern = deprecated_bundle_label
        if not use_json:
            warn("--bundle-label is deprecated, use --label-pattern")

    try:
        if not path.exists():
            raise BundleNotFoundError(str(path))
        settings = resolve_settings(
            path if path.is_dir() else None,
            config_path=config_path,
            level=level,
            integrity_check=integrity_check,
            label_pattern=label_pattern,
            include_hidden=include_hidden,
            deprecated_flag_warning=deprecated_flag_warning,
        )
    except BundlecheckError as err:
        _fail_setup("validate", err, use_json=use_json)
        return

    if report_file is not None:
        stream_cm: Any = click.open_file(str(report_file), "w", encoding="utf-8")
    elif use_json:
        # Only the envelope goes to stdout in JSON mode
        stream_cm = contextlib.nullcontext(io.StringIO())
    else:
        stream_cm = click.open_file("-", "w")

    if not use_json:
        info(f"Validating {path}")

    with stream_cm as stream:
        report = Report(
            output=stream,
            level=settings.level,
            integrity_check=settings.integrity_check,
        )
        if settings.deprecated_flag_warning:
            report.enable_deprecated_flag_warning()
        _describe_run(report, path, settings, config_path)

        report.print_header()
        validate_bundle(
            path,
            report,
            crawler=DirectoryCrawler(
                include_hidden=settings.include_hidden, exclude=(CONFIG_DIRNAME,)
            ),
            label_pattern=settings.label_pattern,
            label_globs=settings.label_globs,
        )
        report.print_footer()

    if use_json:
        output_json_envelope(report_envelope("validate", report, root=path.resolve()))
    else:
        if report.has_errors:
            error(
                f"Validation failed: {report.total_errors} error(s), "
                f"{report.total_warnings} warning(s)"
            )
        else:
            success(f"Validation passed with {report.total_warnings} warning(s)")
        if report_file is not None:
            detail(f"Report written to {report_file}")

    # Exit code: 1 if any errors (not warnings)
    if report.has_errors:
        raise SystemExit(1)
