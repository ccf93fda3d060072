"""Problem model shared by rules and the validation report.

Rules describe what they found as ``ValidationProblem`` instances. Each
problem is bound to a ``ProblemDefinition`` which carries the type key,
severity and category; many problems share one definition.

Type keys follow the convention ``"<severity>.<area>.<name>"``, for example
``"error.bundle.unexpected_file"``. The report relies on the leading
segment when it orders the message summary (see ``severity_from_key``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import Any

from bundlecheck.errors import InvalidLevelError


@total_ordering
class Severity(Enum):
    """Severity of a validation problem.

    DEBUG: Tracing detail, hidden unless the reporting level is lowered
    INFO: Informational finding
    WARNING: Non-blocking issue
    ERROR: Blocking issue (target fails)
    FATAL: Blocking issue that stopped inspection of the target

    Members compare by the explicit rank in ``_SEVERITY_RANKS``, never by
    declaration order.
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def rank(self) -> int:
        """Position in the total order, DEBUG lowest and FATAL highest."""
        return _SEVERITY_RANKS[self]

    @property
    def is_failure(self) -> bool:
        """True for severities that make a target FAIL."""
        return self in (Severity.ERROR, Severity.FATAL)

    @property
    def label(self) -> str:
        """Upper-case display name used in reports."""
        return self.name

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, name: str | Severity) -> Severity:
        """Look up a severity by name, case-insensitively.

        Args:
            name: Severity name such as "warning" or "ERROR", or a Severity.

        Returns:
            The matching Severity.

        Raises:
            InvalidLevelError: If the name is not a known severity.
        """
        if isinstance(name, Severity):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise InvalidLevelError(str(name)) from None


_SEVERITY_RANKS: dict[Severity, int] = {
    Severity.DEBUG: 0,
    Severity.INFO: 1,
    Severity.WARNING: 2,
    Severity.ERROR: 3,
    Severity.FATAL: 4,
}

# Checked in order; a key matching none of them is treated as DEBUG
_KEY_PREFIXES: tuple[tuple[str, Severity], ...] = (
    ("error", Severity.ERROR),
    ("warning", Severity.WARNING),
    ("info", Severity.INFO),
)


def severity_from_key(key: str) -> Severity:
    """Infer a severity from the leading segment of a problem type key.

    Only ``error``, ``warning`` and ``info`` prefixes are recognized;
    every other key (including ``fatal.*``) maps to DEBUG.

    Example:
        >>> severity_from_key("warning.label.missing_title")
        <Severity.WARNING: 'warning'>
    """
    for prefix, severity in _KEY_PREFIXES:
        if key.startswith(prefix):
            return severity
    return Severity.DEBUG


class ProblemCategory(Enum):
    """Broad grouping of problem definitions.

    GENERAL and EXECUTION describe conditions of the tool run rather than
    defects of a data product, so they are left out of product totals.
    """

    GENERAL = "general"
    EXECUTION = "execution"
    LABEL = "label"
    CONTENT = "content"

    @property
    def excluded_from_product_counts(self) -> bool:
        """True if problems of this category don't count against products."""
        return self in (ProblemCategory.GENERAL, ProblemCategory.EXECUTION)


class Status(Enum):
    """Outcome of recording one target."""

    PASS = "PASS"
    FAIL = "FAIL"
    SKIP = "SKIP"


@dataclass(frozen=True)
class ProblemDefinition:
    """A kind of problem a rule can report.

    Attributes:
        key: Unique type key, conventionally prefixed by the severity name.
        severity: How serious the problem is.
        category: Which group the problem belongs to.
        message: Default human-readable description.
    """

    key: str
    severity: Severity
    category: ProblemCategory
    message: str = ""


@dataclass(frozen=True)
class ValidationProblem:
    """A problem definition bound to the location where it was found.

    Attributes:
        definition: The kind of problem.
        source: Location (URI string) of the offending target.
        message: Specific message; falls back to the definition's message.
        line: Optional 1-based line number.
        column: Optional 1-based column number.
    """

    definition: ProblemDefinition
    source: str
    message: str | None = None
    line: int | None = None
    column: int | None = None

    @property
    def key(self) -> str:
        return self.definition.key

    @property
    def severity(self) -> Severity:
        return self.definition.severity

    @property
    def category(self) -> ProblemCategory:
        return self.definition.category

    @property
    def text(self) -> str:
        """Message to display, preferring the instance-specific one."""
        return self.message if self.message else self.definition.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        d: dict[str, Any] = {
            "key": self.key,
            "severity": self.severity.value,
            "category": self.category.value,
            "source": self.source,
            "message": self.text,
        }
        if self.line is not None:
            d["line"] = self.line
        if self.column is not None:
            d["column"] = self.column
        return d
