"""Structured error codes for bundlecheck.

All errors follow the format BNDL-{category}{number}:
- BNDL-CFG*: Configuration errors
- BNDL-BND*: Bundle (inspection root) errors

Problems found *in* a bundle are never raised; they are reported through
the validation report. These exceptions only cover failures to set up a
run at all.
"""

from __future__ import annotations

from typing import Any


class BundlecheckError(Exception):
    """Base class for all bundlecheck errors.

    All errors have:
    - code: Structured error code (e.g., BNDL-CFG001)
    - message: Human-readable error message
    """

    code: str = "BNDL-000"

    # Reserved attribute names that cannot be overwritten by context
    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize a bundlecheck error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# Configuration Errors (BNDL-CFG*)
class ConfigError(BundlecheckError):
    """Base class for configuration-related errors."""

    code = "BNDL-CFG000"


class ConfigParseError(ConfigError):
    """Raised when a configuration file cannot be parsed.

    Error code: BNDL-CFG001
    """

    code = "BNDL-CFG001"

    def __init__(self, path: str, parse_error: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {parse_error}",
            path=path,
            parse_error=parse_error,
        )


class ConfigInvalidStructureError(ConfigError):
    """Raised when a configuration file has an invalid structure.

    Error code: BNDL-CFG002
    """

    code = "BNDL-CFG002"

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(
            f"Invalid config structure in {path}: {detail}",
            path=path,
            detail=detail,
        )


class InvalidLevelError(ConfigError):
    """Raised when a reporting level name is not a known severity.

    Error code: BNDL-CFG003
    """

    code = "BNDL-CFG003"

    def __init__(self, level: str) -> None:
        super().__init__(
            f"Unknown reporting level '{level}' "
            "(expected one of: debug, info, warning, error, fatal)",
            level=level,
        )


class InvalidSettingError(ConfigError):
    """Raised when a setting has a value of the wrong shape.

    Error code: BNDL-CFG004
    """

    code = "BNDL-CFG004"

    def __init__(self, key: str, value: object, expected: str) -> None:
        super().__init__(
            f"Invalid value {value!r} for setting '{key}': expected {expected}",
            key=key,
            value=value,
            expected=expected,
        )


# Bundle Errors (BNDL-BND*)
class BundleError(BundlecheckError):
    """Base class for errors about the inspection root itself."""

    code = "BNDL-BND000"


class BundleNotFoundError(BundleError):
    """Raised when the bundle to validate does not exist.

    Error code: BNDL-BND001
    """

    code = "BNDL-BND001"

    def __init__(self, path: str) -> None:
        super().__init__(f"No bundle found at {path}", path=path)
