"""Validation rule base class and built-in rules.

A rule inspects one location of a bundle and reports problems through the
listener held by its ``ValidationContext``. The checks a rule performs are
ordinary methods marked with ``@validation_test``; ``ValidationRule.run``
calls them in definition order.

Rules never raise past ``run``: an unexpected exception inside a test is
converted to a single ``UNCAUGHT_EXCEPTION`` problem for the target.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from bundlecheck.crawler import Crawler, is_directory_location, location_name
from bundlecheck.validation.definitions import (
    INVALID_COLLECTION_NAME,
    UNCAUGHT_EXCEPTION,
    UNEXPECTED_FILE_IN_BUNDLE_ROOT,
)
from bundlecheck.validation.problems import ProblemDefinition, ValidationProblem

logger = logging.getLogger(__name__)

_VALIDATION_TEST_ATTR = "_bundlecheck_validation_test"

F = TypeVar("F", bound=Callable[..., None])


def validation_test(func: F) -> F:
    """Mark a rule method as a test to be run by ``ValidationRule.run``."""
    setattr(func, _VALIDATION_TEST_ATTR, True)
    return func


class ProblemListener(Protocol):
    """Receives problems as rules report them."""

    def add_problem(self, problem: ValidationProblem) -> None: ...


@dataclass
class ValidationContext:
    """Everything a rule needs to inspect one location.

    Attributes:
        crawler: Lists the contents of directory locations.
        target: Location (URI) being inspected.
        bundle_label_pattern: Allowed name of the bundle's own label file.
        listener: Where reported problems go.
    """

    crawler: Crawler
    target: str
    bundle_label_pattern: re.Pattern[str] | None
    listener: ProblemListener


class ValidationRule:
    """Base class for all validation rules.

    Subclasses must define:
        name: Unique identifier for the rule
        description: Human-readable explanation

    and mark one or more methods taking a ``ValidationContext`` with
    ``@validation_test``.
    """

    name: str
    description: str

    def is_applicable(self, location: str) -> bool:
        """Whether this rule should run against ``location``."""
        return True

    def validation_tests(self) -> Iterator[Callable[[ValidationContext], None]]:
        """Yield the bound test methods, base classes first."""
        seen: set[str] = set()
        for klass in reversed(type(self).__mro__):
            for attr_name, attr in vars(klass).items():
                if attr_name in seen or not getattr(attr, _VALIDATION_TEST_ATTR, False):
                    continue
                seen.add(attr_name)
                yield getattr(self, attr_name)

    def run(self, context: ValidationContext) -> None:
        """Run every validation test of this rule against the context target."""
        for test in self.validation_tests():
            logger.debug("Running %s.%s on %s", self.name, test.__name__, context.target)
            try:
                test(context)
            except Exception as e:
                logger.exception("Rule %s failed on %s", self.name, context.target)
                self.report_error(context, UNCAUGHT_EXCEPTION, context.target, message=str(e))

    def report_error(
        self,
        context: ValidationContext,
        definition: ProblemDefinition,
        location: str,
        *,
        line: int | None = None,
        column: int | None = None,
        message: str | None = None,
    ) -> None:
        """Report a problem at ``location`` to the context's listener."""
        context.listener.add_problem(
            ValidationProblem(
                definition=definition,
                source=location,
                message=message,
                line=line,
                column=column,
            )
        )


# Characters allowed after a collection directory prefix
DIRECTORY_ALLOWED_CHARACTERS = "[A-Za-z0-9_-]"

ALLOWED_BUNDLE_NAME_PREFIXES: tuple[str, ...] = (
    "browse",
    "calibration",
    "context",
    "data",
    "document",
    "geometry",
    "miscellaneous",
    "xml_schema",
    "spice_kernels",
)

ALLOWED_DIRECTORY_NAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(f"{prefix}({DIRECTORY_ALLOWED_CHARACTERS}*)?")
    for prefix in ALLOWED_BUNDLE_NAME_PREFIXES
)

ALLOWED_FILE_NAMES: tuple[str, ...] = (
    "readme.html",
    r"readme([A-Za-z0-9_.-]*)?\.txt",
)

ALLOWED_FILE_NAME_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(name) for name in ALLOWED_FILE_NAMES
)


def matches_any(name: str, patterns: Sequence[re.Pattern[str]]) -> bool:
    """True if a pattern matches the whole of ``name``; first match wins."""
    return any(pattern.fullmatch(name) for pattern in patterns)


class BundleContentsNamingRule(ValidationRule):
    """Check that only allowed files and directories appear in a bundle root.

    Directories must be named after a known collection prefix, optionally
    followed by letters, digits, ``_`` or ``-``. Files must be a readme or
    the bundle's own label.
    """

    name = "bundle_contents_naming"
    description = "Verify files and directories in the bundle root are allowed names"

    def is_applicable(self, location: str) -> bool:
        return is_directory_location(location)

    def file_name_patterns(
        self, bundle_label_pattern: re.Pattern[str] | None
    ) -> tuple[re.Pattern[str], ...]:
        """Fixed readme patterns followed by the bundle label pattern."""
        if bundle_label_pattern is None:
            return ALLOWED_FILE_NAME_PATTERNS
        return (*ALLOWED_FILE_NAME_PATTERNS, bundle_label_pattern)

    @validation_test
    def check_naming(self, context: ValidationContext) -> None:
        """Check every file and immediate subdirectory of the bundle root."""
        file_patterns = self.file_name_patterns(context.bundle_label_pattern)
        try:
            targets = context.crawler.crawl(context.target)
        except OSError as e:
            self.report_error(context, UNCAUGHT_EXCEPTION, context.target, message=str(e))
            return

        for target in targets:
            if target.is_dir:
                self.check_name(
                    context, target.url, INVALID_COLLECTION_NAME, ALLOWED_DIRECTORY_NAME_PATTERNS
                )
            else:
                self.check_name(context, target.url, UNEXPECTED_FILE_IN_BUNDLE_ROOT, file_patterns)

    def check_name(
        self,
        context: ValidationContext,
        location: str,
        definition: ProblemDefinition,
        allowed_patterns: Sequence[re.Pattern[str]],
    ) -> bool:
        """Report ``definition`` unless the location's name is allowed.

        Returns:
            True if the name matched one of ``allowed_patterns``.
        """
        if matches_any(location_name(location), allowed_patterns):
            return True
        self.report_error(context, definition, location)
        return False
