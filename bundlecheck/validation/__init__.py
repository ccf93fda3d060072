"""Validation framework for archive bundles.

This module provides the public API for rules and their results:
- validate_bundle(): Run rules against a bundle and record every target
- ValidationRule: Base class for custom rules
- ValidationProblem / ProblemDefinition: What rules report
"""

from bundlecheck.validation.problems import (
    ProblemCategory,
    ProblemDefinition,
    Severity,
    Status,
    ValidationProblem,
    severity_from_key,
)
from bundlecheck.validation.rules import (
    BundleContentsNamingRule,
    ValidationContext,
    ValidationRule,
    validation_test,
)
from bundlecheck.validation.runner import validate_bundle

__all__ = [
    "BundleContentsNamingRule",
    "ProblemCategory",
    "ProblemDefinition",
    "Severity",
    "Status",
    "ValidationContext",
    "ValidationProblem",
    "ValidationRule",
    "severity_from_key",
    "validate_bundle",
]
