"""Runner protocol and shared value types for external programs."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

from ..exceptions import ExternalToolError, ToolTimeoutError
from ..utils import run_subprocess

_LOGGER = logging.getLogger("eps2img.backends")


@dataclass(frozen=True)
class BoundingBox:
    """Page bounding box in PostScript points."""

    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.x0, other.x0),
            min(self.y0, other.y0),
            max(self.x1, other.x1),
            max(self.y1, other.y1),
        )

    @classmethod
    def enclosing(cls, boxes: Iterable["BoundingBox"]) -> Optional["BoundingBox"]:
        result: Optional[BoundingBox] = None
        for box in boxes:
            result = box if result is None else result.union(box)
        return result

    def as_postscript(self) -> str:
        return "[{:g} {:g} {:g} {:g}]".format(self.x0, self.y0, self.x1, self.y1)


class CommandRunner(Protocol):
    """Protocol for executing one external command synchronously."""

    def run(
        self,
        command: Sequence[str],
        *,
        merge_stderr: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        """Run *command* to completion and return the finished process."""


class SubprocessRunner:
    """Runner backed by :func:`subprocess.run`.

    Missing executables and timeouts are converted into
    :class:`~eps2img.exceptions.ExternalToolError` subclasses; a non-zero exit
    status is returned to the caller untouched.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self.timeout = timeout

    def run(
        self,
        command: Sequence[str],
        *,
        merge_stderr: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        try:
            return run_subprocess(command, timeout=self.timeout, merge_stderr=merge_stderr)
        except subprocess.TimeoutExpired as exc:
            _LOGGER.warning("Command timed out after %ss: %s", self.timeout, command[0])
            raise ToolTimeoutError(
                f"{command[0]} timed out after {self.timeout}s",
                command=command,
            ) from exc
        except OSError as exc:
            raise ExternalToolError(
                f"Unable to run {command[0]}: {exc}",
                command=command,
            ) from exc
