"""JSON output envelope for ``--format json``.

Envelope Structure:
    {
        "success": true|false,
        "command": "validate",
        "data": { ... report summary ... },
        "errors": [ ... ]  # Only present when success=false
    }

Usage:
    from bundlecheck.json_output import error_envelope, report_envelope

    print(report_envelope("validate", report, root=bundle_path).to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bundlecheck.errors import BundlecheckError
    from bundlecheck.report import Report

# Leading key segments of message types that fail a report
FAILURE_KEY_PREFIXES = frozenset({"error", "fatal"})


@dataclass
class ErrorDetail:
    """One entry of the errors array.

    Attributes:
        type: Error class name or problem type key.
        message: Human-readable error description.
        code: Structured error code, when the error has one.
    """

    type: str
    message: str
    code: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        d = {"type": self.type, "message": self.message}
        if self.code is not None:
            d["code"] = self.code
        return d

    @classmethod
    def from_exception(cls, exc: BundlecheckError) -> ErrorDetail:
        """Describe a bundlecheck exception."""
        return cls(type=type(exc).__name__, message=exc.message, code=exc.code)


@dataclass
class OutputEnvelope:
    """The wrapper structure for all JSON command output.

    Attributes:
        success: True if the command completed and found no errors.
        command: Name of the command that produced this output.
        data: Command-specific payload.
        errors: Present only when success=False.
    """

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, leaving out errors when None."""
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }
        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]
        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        """Convert to a JSON string (compact when indent is None)."""
        return json.dumps(self.to_dict(), indent=indent)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    """Create a success envelope with the given command and data."""
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Create an error envelope; data defaults to an empty dict."""
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )


def report_envelope(command: str, report: Report, **extra: Any) -> OutputEnvelope:
    """Wrap a finished report's summary.

    The envelope fails when the report has errors; each error or fatal
    message type becomes one ErrorDetail with its occurrence count.

    Args:
        command: Command name.
        report: Report whose footer has been produced.
        **extra: Additional top-level data entries (stringified).
    """
    data = report.to_dict()
    for key, value in extra.items():
        data[key] = str(value)

    if not report.has_errors:
        return success_envelope(command, data)

    errors = [
        ErrorDetail(type=key, message=f"{count} occurrence(s)")
        for key, count in data["message_types"].items()
        if key.split(".", 1)[0] in FAILURE_KEY_PREFIXES
    ]
    return error_envelope(command, errors, data=data)
