"""
Custom exceptions for eps2img.

This module defines all custom exceptions used throughout the library.
"""

from typing import Optional, Sequence


class Eps2ImgError(Exception):
    """Base exception for all eps2img errors."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    @property
    def default_message(self) -> str:
        return "An unknown eps2img error occurred."


class InputNotFoundError(Eps2ImgError):
    """Raised when neither a .ps nor an .eps variant of an input exists."""

    @property
    def default_message(self) -> str:
        return "PS/EPS input file not found."


class ExternalToolError(Eps2ImgError):
    """Raised when an external program exits with a non-zero status."""

    def __init__(
        self,
        message: str = "",
        *,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.returncode = returncode

    @property
    def default_message(self) -> str:
        return "External program failed."


class ToolTimeoutError(ExternalToolError):
    """Raised when an external program exceeds the configured timeout."""

    @property
    def default_message(self) -> str:
        return "External program timed out."


class BoundingBoxError(Eps2ImgError):
    """Raised when the bounding-box probe output cannot be parsed."""

    @property
    def default_message(self) -> str:
        return "No bounding box reported by the interpreter."


class OutputDirectoryError(Eps2ImgError):
    """Raised when an output directory cannot be created."""

    @property
    def default_message(self) -> str:
        return "Unable to create output directory."
