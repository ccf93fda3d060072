"""Plain-text rendering of report records.

Example record block:

      FAIL: file:///archive/b1/notes.doc
          ERROR    [error.bundle.unexpected_file]   Unexpected file found in ...
      SKIP: file:///archive/b1/data/image.img
          INFO     [info.file.skipped]   File is not a recognized label ...
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TextIO

from bundlecheck.validation.problems import Severity, Status, ValidationProblem

RECORD_INDENT = "  "
PROBLEM_INDENT = "      "


def format_problem(problem: ValidationProblem) -> str:
    """Render one problem as a single report line (without indentation)."""
    position = ""
    if problem.line is not None:
        position = f"line {problem.line}"
        if problem.column is not None:
            position += f", {problem.column}"
        position += ": "
    return f"{problem.severity.label:<8} [{problem.key}]   {position}{problem.text}"


class TextReportSink:
    """Default report sink writing one status line per target.

    Problems below the report's level are left out of the listing, matching
    what the summary counts.
    """

    def format_header(self, writer: TextIO, title: str) -> None:
        writer.write(f"{title}\n\n")

    def format_record(
        self,
        writer: TextIO,
        status: Status,
        source: str,
        problems: Sequence[ValidationProblem],
        level: Severity,
    ) -> None:
        writer.write(f"{RECORD_INDENT}{status.value}: {source}\n")
        for problem in problems:
            if problem.severity >= level:
                writer.write(f"{PROBLEM_INDENT}{format_problem(problem)}\n")

    def format_record_skip(
        self,
        writer: TextIO,
        source: str,
        problem: ValidationProblem | None,
        level: Severity,
    ) -> None:
        writer.write(f"{RECORD_INDENT}{Status.SKIP.value}: {source}\n")
        if problem is not None and problem.severity >= level:
            writer.write(f"{PROBLEM_INDENT}{format_problem(problem)}\n")

    def format_footer(self, writer: TextIO) -> None:
        # Nothing beyond the standard summary in plain text
        return None
