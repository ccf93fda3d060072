"""Aggregation of validation problems into a bundle report.

A ``Report`` is created once per run. Every inspected target is fed to it
exactly once, through ``record`` (problems found, PASS or FAIL) or
``record_skip`` (target not inspected, SKIP). The report keeps running
totals and a frequency table of problem type keys, writes one record per
target through its ``ReportSink``, and renders a summary in
``print_footer``.

Usage:
    from bundlecheck.report import Report

    report = Report(output=sys.stdout)
    report.add_parameter("   Targets                       [file:///archive/b1/]")
    report.print_header()
    report.record(location, problems)
    report.print_footer()

The report is not thread-safe; callers running rules concurrently must
serialize calls into it. The output stream is owned by the caller, who
closes it after ``print_footer`` returns.
"""

from __future__ import annotations

import logging
import sys
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, TextIO

from bundlecheck.crawler import is_directory_location
from bundlecheck.report_output import TextReportSink
from bundlecheck.validation.problems import (
    Severity,
    Status,
    ValidationProblem,
    severity_from_key,
)

logger = logging.getLogger(__name__)

REPORT_TITLE = "Bundle Validation Report"
RECORDS_TITLE = "Product Level Validation Results"

DEPRECATED_FLAG_WARNING_MSG = (
    "NOTE: The following flags have been deprecated and will be removed in a future release.\n"
    "      Update execution as soon as possible to avoid issues.\n"
    "\n"
    "      --bundle-label has been replaced by --label-pattern. Both take a regular\n"
    "      expression for the name of the bundle label file; only the option name\n"
    "      changed."
)

DEFAULT_LEVEL = Severity.INFO


class ReportSink(Protocol):
    """Format-specific rendering of the customizable parts of a report."""

    def format_header(self, writer: TextIO, title: str) -> None:
        """Write the title block that precedes the records."""
        ...

    def format_record(
        self,
        writer: TextIO,
        status: Status,
        source: str,
        problems: Sequence[ValidationProblem],
        level: Severity,
    ) -> None:
        """Write one PASS or FAIL record."""
        ...

    def format_record_skip(
        self,
        writer: TextIO,
        source: str,
        problem: ValidationProblem | None,
        level: Severity,
    ) -> None:
        """Write one SKIP record."""
        ...

    def format_footer(self, writer: TextIO) -> None:
        """Write the custom section that precedes the summary."""
        ...


@dataclass
class ReportCounters:
    """Running totals of a report.

    Product tallies exclude directory targets. Whether a non-directory
    target lands in the product or the integrity-check tallies depends on
    the report's integrity-check mode, never both.
    """

    total_errors: int = 0
    total_warnings: int = 0
    total_infos: int = 0
    num_passed: int = 0
    num_failed: int = 0
    num_skipped: int = 0
    num_passed_prods: int = 0
    num_failed_prods: int = 0
    num_skipped_prods: int = 0
    num_passed_integrity_checks: int = 0
    num_failed_integrity_checks: int = 0
    num_skipped_integrity_checks: int = 0
    num_products: int = 0
    ignored_from_product_counts: int = 0
    total_products: int = 0
    total_integrity_checks: int = 0

    def recompute_totals(self) -> None:
        """Refresh the derived totals from the current tallies."""
        self.total_products = (
            self.num_failed_prods + self.num_passed_prods - self.ignored_from_product_counts
        )
        self.total_integrity_checks = (
            self.num_failed_integrity_checks
            + self.num_passed_integrity_checks
            + self.num_skipped_integrity_checks
        )


def sort_message_summary(summary: dict[str, int] | Counter[str]) -> dict[str, int]:
    """Order a message summary for display.

    Entries are sorted by descending severity inferred from the key prefix,
    then by descending count. The input is not modified.
    """
    ordered = sorted(
        summary.items(),
        key=lambda item: (-severity_from_key(item[0]).rank, -item[1]),
    )
    return dict(ordered)


class Report:
    """Aggregates per-target problems into counters and a text report.

    Args:
        sink: Renders header, records and footer; defaults to the text format.
        output: Stream the report is written to; defaults to stdout.
        level: Problems below this severity are not counted or listed.
        integrity_check: Count non-directory targets as integrity checks
            rather than products.
    """

    def __init__(
        self,
        sink: ReportSink | None = None,
        *,
        output: TextIO | None = None,
        level: Severity = DEFAULT_LEVEL,
        integrity_check: bool = False,
    ) -> None:
        self.sink: ReportSink = sink if sink is not None else TextReportSink()
        self.writer: TextIO = output if output is not None else sys.stdout
        self.level = level
        self.integrity_check = integrity_check
        self.counters = ReportCounters()
        self.message_summary: Counter[str] = Counter()
        self.parameters: list[str] = []
        self.configurations: list[str] = []
        self._deprecated_flag_warning = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def set_output(self, output: TextIO) -> None:
        """Write the rest of the report to ``output`` (caller closes it)."""
        self.writer = output

    def add_parameter(self, parameter: str) -> None:
        """Add a line to the Parameters block of the header."""
        self.parameters.append(parameter)

    def add_configuration(self, configuration: str) -> None:
        """Add a line to the Configuration block of the header."""
        self.configurations.append(configuration)

    def enable_deprecated_flag_warning(self) -> None:
        """Print the deprecated-flag banner after the summary."""
        self._deprecated_flag_warning = True

    @property
    def deprecated_flag_warning(self) -> bool:
        return self._deprecated_flag_warning

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def _reported(self, severity: Severity) -> bool:
        return severity >= self.level

    def _status_for(self, problems: Sequence[ValidationProblem]) -> Status:
        if any(p.severity.is_failure and self._reported(p.severity) for p in problems):
            return Status.FAIL
        return Status.PASS

    def record_problem(self, source: str | Path | None, problem: ValidationProblem) -> Status:
        """Record a target that has exactly one problem."""
        logger.debug("Recording single problem for %s", source)
        return self.record(source, [problem])

    def record(
        self, source: str | Path | None, problems: Sequence[ValidationProblem]
    ) -> Status:
        """Record one inspected target and the problems found in it.

        Args:
            source: Location of the target.
            problems: Everything rules reported for the target (may be empty).

        Returns:
            FAIL if a reported problem is ERROR or FATAL, otherwise PASS.
        """
        if source is None:
            status = self._status_for(problems)
            logger.error(
                "Cannot record %d problem(s) without a source location; "
                "nothing counted, returning %s",
                len(problems),
                status.value,
            )
            return status

        location = str(source)
        logger.debug("Recording %s with %d problem(s)", location, len(problems))

        num_errors = 0
        num_warnings = 0
        num_infos = 0
        ignored = 0
        for problem in problems:
            severity = problem.severity
            if self._reported(severity):
                if severity.is_failure:
                    num_errors += 1
                elif severity is Severity.WARNING:
                    num_warnings += 1
                elif severity is Severity.INFO:
                    num_infos += 1
                self.message_summary[problem.key] += 1

            if problem.category.excluded_from_product_counts:
                ignored += 1

        counters = self.counters
        counters.total_errors += num_errors
        counters.total_warnings += num_warnings
        counters.total_infos += num_infos
        counters.ignored_from_product_counts += ignored

        is_dir = is_directory_location(source)
        if num_errors > 0:
            status = Status.FAIL
            counters.num_failed += 1
            if not is_dir:
                if self.integrity_check:
                    counters.num_failed_integrity_checks += 1
                else:
                    counters.num_failed_prods += 1
        else:
            status = Status.PASS
            counters.num_passed += 1
            if not is_dir:
                if self.integrity_check:
                    counters.num_passed_integrity_checks += 1
                else:
                    counters.num_passed_prods += 1

        counters.num_products += 1
        counters.recompute_totals()

        self.sink.format_record(self.writer, status, location, problems, self.level)
        self.writer.flush()
        return status

    def record_skip(
        self, source: str | Path | None, problem: ValidationProblem | None = None
    ) -> Status:
        """Record a target that was not inspected.

        Severity totals and the message summary are left untouched.

        Returns:
            Always SKIP.
        """
        if source is None:
            logger.error("Cannot record a skipped target without a source location")
            return Status.SKIP

        location = str(source)
        counters = self.counters
        counters.num_skipped += 1
        logger.debug("Skipping %s (%d skipped so far)", location, counters.num_skipped)

        if not is_directory_location(source):
            if self.integrity_check:
                counters.num_skipped_integrity_checks += 1
            else:
                counters.num_skipped_prods += 1

        counters.num_products += 1
        counters.recompute_totals()

        self.sink.format_record_skip(self.writer, location, problem, self.level)
        self.writer.flush()
        return Status.SKIP

    def sort_message_summary(self) -> dict[str, int]:
        """Message summary ordered for the footer (see ``sort_message_summary``)."""
        return sort_message_summary(self.message_summary)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _println(self, line: str = "") -> None:
        self.writer.write(f"{line}\n")

    def print_header(self) -> None:
        """Write the standard header: title, configuration and parameters."""
        self._println()
        self._println(REPORT_TITLE)
        self._println()
        self._println("Configuration:")
        for configuration in self.configurations:
            self._println(configuration)
        self._println()
        self._println("Parameters:")
        for parameter in self.parameters:
            self._println(parameter)
        self._println()
        self.print_header_title(RECORDS_TITLE)

    def print_header_title(self, title: str) -> None:
        """Write a sink-rendered title block, e.g. to start a new section."""
        self.sink.format_header(self.writer, title)

    def print_footer(self) -> None:
        """Write the custom footer and the summary, then flush."""
        counters = self.counters
        self.sink.format_footer(self.writer)
        self._println()

        self._println("Summary:")
        self._println()
        self._println(f"  {counters.total_errors} error(s)")
        self._println(f"  {counters.total_warnings} warning(s)")
        self._println()
        self._println("  Product Validation Summary:")
        self._println(f"    {counters.num_passed_prods:<10d} product(s) passed")
        self._println(f"    {counters.num_failed_prods:<10d} product(s) failed")
        self._println(f"    {counters.num_skipped_prods:<10d} product(s) skipped")
        self._println()
        self._println("  Referential Integrity Check Summary:")
        self._println(f"    {counters.num_passed_integrity_checks:<10d} check(s) passed")
        self._println(f"    {counters.num_failed_integrity_checks:<10d} check(s) failed")
        self._println(f"    {counters.num_skipped_integrity_checks:<10d} check(s) skipped")
        self._println()

        if self.message_summary:
            self._println("  Message Types:")
            for key, count in self.sort_message_summary().items():
                self._println(f"    {count:<10d}   {key}")
        self._println()
        self._println("End of Report")

        if self._deprecated_flag_warning:
            self._println()
            self._println(DEPRECATED_FLAG_WARNING_MSG)
            self._println()
        self.writer.flush()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def num_passed(self) -> int:
        """Targets recorded without errors."""
        return self.counters.num_passed

    @property
    def num_failed(self) -> int:
        """Targets recorded with one or more errors."""
        return self.counters.num_failed

    @property
    def num_skipped(self) -> int:
        """Targets that were not inspected."""
        return self.counters.num_skipped

    @property
    def total_products(self) -> int:
        return self.counters.total_products

    @property
    def total_integrity_checks(self) -> int:
        return self.counters.total_integrity_checks

    @property
    def total_errors(self) -> int:
        return self.counters.total_errors

    @property
    def total_warnings(self) -> int:
        return self.counters.total_warnings

    @property
    def total_infos(self) -> int:
        return self.counters.total_infos

    @property
    def has_errors(self) -> bool:
        return self.counters.total_errors > 0

    @property
    def has_warnings(self) -> bool:
        return self.counters.total_warnings > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert the summary to a JSON-serializable dict."""
        c = self.counters
        return {
            "passed": not self.has_errors,
            "level": self.level.value,
            "integrity_check": self.integrity_check,
            "totals": {
                "errors": c.total_errors,
                "warnings": c.total_warnings,
                "infos": c.total_infos,
            },
            "targets": {
                "passed": c.num_passed,
                "failed": c.num_failed,
                "skipped": c.num_skipped,
                "recorded": c.num_products,
            },
            "products": {
                "passed": c.num_passed_prods,
                "failed": c.num_failed_prods,
                "skipped": c.num_skipped_prods,
                "total": c.total_products,
            },
            "integrity_checks": {
                "passed": c.num_passed_integrity_checks,
                "failed": c.num_failed_integrity_checks,
                "skipped": c.num_skipped_integrity_checks,
                "total": c.total_integrity_checks,
            },
            "message_types": self.sort_message_summary(),
        }
