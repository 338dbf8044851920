"""
Custom exception hierarchy for rscpatch.

This module defines structured exception types used across rscpatch.
All exceptions inherit from :class:`RscPatchError` and support optional
structured metadata via the ``details`` attribute to improve diagnostics
and logging.

Version strings that cannot be parsed are *not* errors: they are reported
through :func:`rscpatch.utils.version_utils.is_unparseable_spec` and
handled by the resolver.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence


class RscPatchError(Exception):
    """Base exception for all rscpatch errors.

    Args:
        message: Human-readable error message.
        details: Optional structured metadata describing the error.
    """

    __slots__ = ("message", "details")

    def __init__(
        self,
        message: str,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.message: str = message
        self.details: MutableMapping[str, Any] = dict(details) if details else {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.details:
            return self.message
        formatted = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({formatted})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, details={dict(self.details)!r})"
        )


def _add_if(details: MutableMapping[str, Any], key: str, value: Any) -> None:
    """Add a key to ``details`` only if ``value`` is not ``None``."""
    if value is not None:
        details[key] = value


class ParseError(RscPatchError):
    """Raised when a manifest cannot be parsed.

    Args:
        message: Error description.
        file_path: Path to the file being parsed.
        line_number: Line number where parsing failed, if known.
    """

    __slots__ = ("file_path", "line_number")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "file", file_path)
        _add_if(details, "line", line_number)

        super().__init__(message, details)

        self.file_path = file_path
        self.line_number = line_number


class FileOperationError(RscPatchError):
    """Raised when file system operations fail.

    Args:
        message: Error description.
        file_path: Path to the file involved.
        operation: Operation being performed (read/write/backup/restore).
        original_error: Original exception that triggered this error.
    """

    __slots__ = ("file_path", "operation", "original_error")

    def __init__(
        self,
        message: str,
        *,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "path", file_path)
        _add_if(details, "operation", operation)
        _add_if(
            details,
            "original_error",
            str(original_error) if original_error else None,
        )

        super().__init__(message, details)

        self.file_path = file_path
        self.operation = operation
        self.original_error = original_error


class ConfigError(RscPatchError):
    """Raised when a configuration file is missing, malformed or invalid.

    Args:
        message: Error description.
        config_path: Path of the configuration file.
        option: Offending option name, if any.
    """

    __slots__ = ("config_path", "option")

    def __init__(
        self,
        message: str,
        *,
        config_path: Optional[str] = None,
        option: Optional[str] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "config", config_path)
        _add_if(details, "option", option)

        super().__init__(message, details)

        self.config_path = config_path
        self.option = option


class PackageManagerError(RscPatchError):
    """Raised when a package manager command fails.

    Args:
        message: Error description.
        package_manager: Package manager name (npm, yarn, pnpm, bun).
        command: Command line that was executed.
        returncode: Process exit status, if the process ran.
    """

    __slots__ = ("package_manager", "command", "returncode")

    def __init__(
        self,
        message: str,
        *,
        package_manager: Optional[str] = None,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
    ) -> None:
        details: MutableMapping[str, Any] = {}
        _add_if(details, "package_manager", package_manager)
        _add_if(details, "command", " ".join(command) if command else None)
        _add_if(details, "returncode", returncode)

        super().__init__(message, details)

        self.package_manager = package_manager
        self.command = list(command) if command else None
        self.returncode = returncode
