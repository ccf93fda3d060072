"""Validation runner that executes rules against a bundle and fills a report."""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from bundlecheck.crawler import Crawler, DirectoryCrawler, to_location
from bundlecheck.errors import BundleNotFoundError
from bundlecheck.validation.definitions import SKIPPED_FILE, UNCAUGHT_EXCEPTION
from bundlecheck.validation.problems import Status, ValidationProblem
from bundlecheck.validation.rules import (
    BundleContentsNamingRule,
    ValidationContext,
    ValidationRule,
)

if TYPE_CHECKING:
    from bundlecheck.report import Report

logger = logging.getLogger(__name__)

# Immutable tuple to prevent accidental mutation
DEFAULT_RULES: tuple[ValidationRule, ...] = (BundleContentsNamingRule(),)

DEFAULT_LABEL_PATTERN = r"bundle([A-Za-z0-9_.-]*)?\.xml"

# Files matching none of these are skipped rather than validated
DEFAULT_LABEL_GLOBS: tuple[str, ...] = ("*.xml", "*.lblx")


class ProblemCollector:
    """Problem listener that groups problems by location, in first-seen order."""

    def __init__(self) -> None:
        self._problems: dict[str, list[ValidationProblem]] = {}

    def add_problem(self, problem: ValidationProblem) -> None:
        self._problems.setdefault(problem.source, []).append(problem)

    def pop(self, location: str) -> list[ValidationProblem]:
        """Remove and return the problems reported for ``location``."""
        return self._problems.pop(location, [])

    def remaining(self) -> list[str]:
        """Locations that still have problems waiting to be recorded."""
        return list(self._problems)


def _is_label(name: str, label_globs: Sequence[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in label_globs)


def validate_bundle(
    root: Path,
    report: Report,
    *,
    rules: Sequence[ValidationRule] | None = None,
    crawler: Crawler | None = None,
    label_pattern: str | re.Pattern[str] | None = None,
    label_globs: Sequence[str] | None = None,
) -> dict[str, Status]:
    """Run rules against a bundle and record every target in the report.

    The bundle root is recorded first, then every file and directory below
    it, depth-first. Directories and files matching ``label_globs`` (or
    carrying problems) are recorded; other files are recorded as skipped.

    Args:
        root: Bundle directory (or a single file) to validate.
        report: Report receiving one record per target.
        rules: Rules to run. Defaults to DEFAULT_RULES.
        crawler: Lists directory contents. Defaults to DirectoryCrawler().
        label_pattern: Allowed name of the bundle label file.
        label_globs: Shell patterns naming the files that are validated.

    Returns:
        Location to status, in the order the targets were recorded.

    Raises:
        BundleNotFoundError: If ``root`` does not exist.
    """
    if not root.exists():
        raise BundleNotFoundError(str(root))

    if rules is None:
        rules = DEFAULT_RULES
    if crawler is None:
        crawler = DirectoryCrawler()
    if label_pattern is None:
        label_pattern = DEFAULT_LABEL_PATTERN
    if isinstance(label_pattern, str):
        label_pattern = re.compile(label_pattern)
    if label_globs is None:
        label_globs = DEFAULT_LABEL_GLOBS

    collector = ProblemCollector()
    root_location = to_location(root)
    context = ValidationContext(
        crawler=crawler,
        target=root_location,
        bundle_label_pattern=label_pattern,
        listener=collector,
    )

    for rule in rules:
        if rule.is_applicable(root_location):
            logger.debug("Running rule %s on %s", rule.name, root_location)
            rule.run(context)
        else:
            logger.debug("Rule %s not applicable to %s", rule.name, root_location)

    statuses: dict[str, Status] = {}
    if root.is_dir():
        _record_directory(report, crawler, collector, root_location, label_globs, statuses)
    else:
        statuses[root_location] = report.record(root_location, collector.pop(root_location))

    # Problems reported against locations the crawl never reached
    for location in collector.remaining():
        statuses[location] = report.record(location, collector.pop(location))

    return statuses


def _record_directory(
    report: Report,
    crawler: Crawler,
    collector: ProblemCollector,
    location: str,
    label_globs: Sequence[str],
    statuses: dict[str, Status],
) -> None:
    """Record a directory, then everything below it, depth-first.

    The directory is listed before it is recorded so a listing failure ends
    up in the directory's own record.
    """
    problems = collector.pop(location)
    try:
        targets = crawler.crawl(location)
    except OSError as e:
        targets = []
        # A rule may already have reported the same failure
        if not any(p.definition == UNCAUGHT_EXCEPTION for p in problems):
            problems.append(ValidationProblem(UNCAUGHT_EXCEPTION, location, message=str(e)))

    statuses[location] = report.record(location, problems)

    for target in targets:
        if target.is_dir and not target.path.is_symlink():
            _record_directory(report, crawler, collector, target.url, label_globs, statuses)
            continue

        target_location = target.url
        target_problems = collector.pop(target_location)
        if target.is_dir or target_problems or _is_label(target.name, label_globs):
            statuses[target_location] = report.record(target_location, target_problems)
        else:
            skip = ValidationProblem(SKIPPED_FILE, target_location)
            statuses[target_location] = report.record_skip(target_location, skip)
