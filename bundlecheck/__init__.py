"""bundlecheck - Validate the layout of structured data archive bundles."""

from bundlecheck.report import Report, ReportSink
from bundlecheck.report_output import TextReportSink
from bundlecheck.validation import (
    ProblemCategory,
    ProblemDefinition,
    Severity,
    Status,
    ValidationProblem,
    validate_bundle,
)

__all__ = [
    "ProblemCategory",
    "ProblemDefinition",
    "Report",
    "ReportSink",
    "Severity",
    "Status",
    "TextReportSink",
    "ValidationProblem",
    "validate_bundle",
]
