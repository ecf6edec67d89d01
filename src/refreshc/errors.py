"""Exception hierarchy and exit codes for refreshc.

This module defines the exception classes used throughout refreshc:
- RefreshcError: Base exception for all refreshc errors
- UsageError: Bad or missing command line arguments
- ValidationError: Missing I/O paths, unsupported stages, disabled backends
- ExternalToolError: An external compiler exited with a non-zero status
- IoError: Reading an artifact or creating an output file failed
- ContainerFormatError: A .refresh container could not be parsed

User-facing messages are safe to display. Technical details (tool output,
OS error strings) are logged via structlog and never shown to the user.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, NoReturn

import structlog

from refreshc.output import error

if TYPE_CHECKING:
    from pathlib import Path

    from pydantic import ValidationError as PydanticValidationError
    from pydantic_core import ErrorDetails

logger = structlog.get_logger(__name__)

# Every failure maps to the same exit status.
EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class RefreshcError(Exception):
    """Base exception for refreshc.

    Args:
        user_message: Safe message to display to the user.
        internal_details: Optional technical details. Logged, never displayed.

    Example:
        >>> raise RefreshcError(
        ...     "Could not compile GLSL code",
        ...     internal_details="glslc: error: 'main' : missing entry point",
        ... )
    """

    def __init__(
        self,
        user_message: str,
        *,
        internal_details: str | None = None,
    ) -> None:
        """Initialize RefreshcError with user message and optional internal details.

        Args:
            user_message: Safe message to display to the user.
            internal_details: Technical details for internal logging only.
        """
        super().__init__(user_message)
        self.user_message = user_message
        self.internal_details = internal_details

        if internal_details:
            logger.debug(
                "refreshc_error",
                error_type=self.__class__.__name__,
                user_message=user_message,
                internal_details=internal_details,
            )


class UsageError(RefreshcError):
    """Raised when the command line is malformed.

    Use this exception when:
    - No backend flag was selected
    - The input path is missing or given twice
    - A backend is requested that this installation cannot produce
    """

    pass


class ValidationError(RefreshcError):
    """Raised when a request refers to something that cannot be used.

    Use this exception when:
    - The output directory or input path does not exist
    - The platform backend is requested but no platform compiler is configured
    """

    pass


class UnsupportedStageError(ValidationError):
    """Raised when a source file extension does not name a shader stage.

    Attributes:
        path: The offending source file.
    """

    def __init__(self, path: Path) -> None:
        """Initialize UnsupportedStageError.

        Args:
            path: The source file whose extension was not recognized.
        """
        super().__init__(
            "Expected glsl source file with extension '.vert', '.frag', or '.comp'",
            internal_details=f"unsupported source: {path}",
        )
        self.path = path


class ExternalToolError(RefreshcError):
    """Raised when an external compiler exits with a non-zero status.

    Attributes:
        tool: Executable that was invoked.
        returncode: Exit status of the process (None if it never started).
    """

    def __init__(
        self,
        user_message: str,
        *,
        tool: str,
        returncode: int | None = None,
        internal_details: str | None = None,
    ) -> None:
        """Initialize ExternalToolError.

        Args:
            user_message: Tool-specific failure message.
            tool: Executable that was invoked.
            returncode: Exit status of the process.
            internal_details: Captured process output for logging.
        """
        super().__init__(user_message, internal_details=internal_details)
        self.tool = tool
        self.returncode = returncode


class IoError(RefreshcError):
    """Raised when an artifact cannot be read or an output cannot be written.

    Attributes:
        path: File that could not be accessed.
    """

    def __init__(
        self,
        user_message: str,
        *,
        path: Path,
        internal_details: str | None = None,
    ) -> None:
        """Initialize IoError.

        Args:
            user_message: Safe message to display to the user.
            path: File that could not be accessed.
            internal_details: OS error text for logging.
        """
        super().__init__(user_message, internal_details=internal_details)
        self.path = path


class ContainerFormatError(RefreshcError):
    """Raised when a .refresh container is malformed or lacks a backend."""

    pass


def format_pydantic_error(err: PydanticValidationError) -> str:
    """Format a Pydantic validation error into a user-friendly message.

    Args:
        err: Pydantic ValidationError instance.

    Returns:
        Formatted error message with field paths and issues.

    Example:
        >>> format_pydantic_error(err)
        "Validation failed:\\n  - platform_extension: Input should be a valid string"
    """
    errors: list[ErrorDetails] = err.errors()
    lines = ["Validation failed:"]

    for e in errors:
        loc = ".".join(str(x) for x in e["loc"])
        lines.append(f"  - {loc}: {e['msg']}")

    return "\n".join(lines)


def exit_with_error(message: str, exit_code: int = EXIT_FAILURE) -> NoReturn:
    """Exit the CLI with an error message.

    Args:
        message: Error message to display.
        exit_code: Exit code for the CLI.

    Note:
        This function never returns - it always calls sys.exit().
    """
    error(f"refreshc: {message}", soft_wrap=True)
    sys.exit(exit_code)
