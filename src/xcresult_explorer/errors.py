"""XCResult Explorer error types and error code registry.

Exceptions raised by the tool wrapper and the document loader live here,
together with structured, user-facing error codes. Each code has:
- Code: XCR-EXXX format
- Message: Human-readable description
- Next step: Actionable command or instruction
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class XCResultError(Exception):
    """Base class for errors raised while exploring an .xcresult bundle."""


class ExternalToolFailed(XCResultError):
    """xcresulttool exited with a non-zero status."""

    def __init__(self, exit_code: int, command: Sequence[str] = (), stderr: str = ""):
        self.exit_code = exit_code
        self.command = list(command)
        self.stderr = stderr
        message = f"xcresulttool exited with status {exit_code}"
        if stderr.strip():
            message += f": {stderr.strip().splitlines()[-1]}"
        super().__init__(message)


class ExternalToolTimeout(XCResultError):
    """xcresulttool did not finish within its timeout."""

    def __init__(self, timeout: float, command: Sequence[str] = ()):
        self.timeout = timeout
        self.command = list(command)
        super().__init__(f"xcresulttool timed out after {timeout:g}s")


class ExternalToolMissing(XCResultError):
    """The xcrun executable could not be found."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(f"Executable not found: {executable}")


class MalformedDocument(XCResultError):
    """A primary result document could not be decoded."""

    def __init__(self, document: str, reason: str):
        self.document = document
        self.reason = reason
        super().__init__(f"Malformed {document} document: {reason}")


class HintsConfigError(XCResultError):
    """The suite hints configuration file is invalid."""


class ErrorCode(Enum):
    """XCResult Explorer error codes."""

    # Input/configuration errors (E001-E099)
    E001 = "E001"  # Result bundle path not found
    E002 = "E002"  # Invalid configuration value
    E003 = "E003"  # Suite hints file invalid

    # External tool errors (E100-E199)
    E100 = "E100"  # xcresulttool failed
    E101 = "E101"  # xcresulttool timed out
    E102 = "E102"  # xcrun not available

    # Document errors (E200-E299)
    E200 = "E200"  # Malformed result document

    # File/IO errors (E300-E399)
    E300 = "E300"  # Cannot read file


@dataclass
class XCRError:
    """Structured error with code, message, and next step."""

    code: ErrorCode
    message: str
    next_step: str
    details: Optional[str] = None

    def __str__(self) -> str:
        lines = [
            f"XCR-{self.code.value}: {self.message}",
        ]
        if self.details:
            lines.append(f"  Details: {self.details}")
        lines.append(f"  Next step: {self.next_step}")
        return "\n".join(lines)

    def print(self, file=None) -> None:
        """Print the error to stderr (or specified file)."""
        print(str(self), file=file or sys.stderr)


# (message_template, next_step)
ERROR_TEMPLATES: dict[ErrorCode, tuple[str, str]] = {
    ErrorCode.E001: (
        "Result bundle not found: {details}",
        "Pass a path to an .xcresult bundle, or use --project to search a directory"
    ),
    ErrorCode.E002: (
        "Invalid configuration value: {details}",
        "Check XCR_* variables in your environment or .env file"
    ),
    ErrorCode.E003: (
        "Suite hints file is invalid: {details}",
        "Fix the file passed with --hints (or XCR_HINTS_FILE)"
    ),
    ErrorCode.E100: (
        "xcresulttool failed: {details}",
        "Check that the bundle was produced by a compatible Xcode version"
    ),
    ErrorCode.E101: (
        "xcresulttool timed out: {details}",
        "Raise XCR_QUERY_TIMEOUT or try again with a smaller bundle"
    ),
    ErrorCode.E102: (
        "xcrun is not available: {details}",
        "Install the Xcode command line tools or set XCR_XCRUN_PATH"
    ),
    ErrorCode.E200: (
        "Result document could not be decoded: {details}",
        "Re-run with --verbose and check the xcresulttool output"
    ),
    ErrorCode.E300: (
        "Cannot read file: {details}",
        "Check file permissions and path"
    ),
}


def make_error(code: ErrorCode, details: Optional[str] = None) -> XCRError:
    """Create an XCRError from a code with optional details.

    Args:
        code: The error code
        details: Optional details to include in the message

    Returns:
        XCRError instance ready to print
    """
    template = ERROR_TEMPLATES.get(code, ("Unknown error", "Re-run with --verbose"))
    message_template, next_step = template

    if details and "{details}" in message_template:
        message = message_template.format(details=details)
    elif details:
        message = f"{message_template}: {details}"
    else:
        message = message_template.replace(": {details}", "")

    return XCRError(
        code=code,
        message=message,
        next_step=next_step,
        details=details if "{details}" not in message_template else None,
    )


def error_code_for(exc: BaseException) -> ErrorCode:
    """Map an exception to the error code reported by the CLI."""
    if isinstance(exc, ExternalToolTimeout):
        return ErrorCode.E101
    if isinstance(exc, ExternalToolMissing):
        return ErrorCode.E102
    if isinstance(exc, ExternalToolFailed):
        return ErrorCode.E100
    if isinstance(exc, MalformedDocument):
        return ErrorCode.E200
    if isinstance(exc, HintsConfigError):
        return ErrorCode.E003
    if isinstance(exc, FileNotFoundError):
        return ErrorCode.E001
    if isinstance(exc, ValueError):
        return ErrorCode.E002
    return ErrorCode.E300


# Verbose mode flag (set by CLI)
_verbose_mode: bool = False


def set_verbose(verbose: bool) -> None:
    """Set verbose mode for error output."""
    global _verbose_mode
    _verbose_mode = verbose


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose_mode


def handle_exception(exc: Exception, code: ErrorCode, details: Optional[str] = None) -> None:
    """Handle an exception with proper error formatting.

    In verbose mode, prints the full traceback.
    Otherwise, prints a formatted error message.
    """
    import traceback

    err = make_error(code, details or str(exc))
    err.print()

    if _verbose_mode:
        print("\n--- Full Traceback ---", file=sys.stderr)
        traceback.print_exc()
