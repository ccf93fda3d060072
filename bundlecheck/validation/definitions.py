"""Problem definitions reported by the built-in rules and the runner."""

from __future__ import annotations

from bundlecheck.validation.problems import ProblemCategory, ProblemDefinition, Severity

# Tool-level conditions
UNCAUGHT_EXCEPTION = ProblemDefinition(
    key="error.validation.internal_error",
    severity=Severity.ERROR,
    category=ProblemCategory.EXECUTION,
    message="An unexpected error occurred while validating this location",
)

SKIPPED_FILE = ProblemDefinition(
    key="info.file.skipped",
    severity=Severity.INFO,
    category=ProblemCategory.GENERAL,
    message="File is not a recognized label and was not validated",
)

# Bundle root layout
UNEXPECTED_FILE_IN_BUNDLE_ROOT = ProblemDefinition(
    key="error.bundle.unexpected_file",
    severity=Severity.ERROR,
    category=ProblemCategory.CONTENT,
    message="Unexpected file found in the bundle root directory",
)

INVALID_COLLECTION_NAME = ProblemDefinition(
    key="error.bundle.invalid_collection_name",
    severity=Severity.ERROR,
    category=ProblemCategory.CONTENT,
    message="Directory name in the bundle root is not a valid collection name",
)
