"""Inkscape command construction for SVG, EMF and WMF export."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Sequence

from ..exceptions import ExternalToolError, ToolTimeoutError
from ..types import FormatTag
from .base import CommandRunner

_LOGGER = logging.getLogger("eps2img.backends")

INKSCAPE_CANDIDATES: Sequence[str] = ("inkscape", "inkscape.com")

MODERN = 1

# Inkscape 0.x short flags; output naming follows the flag argument.
_LEGACY_FLAGS = {
    FormatTag.SVG: "-l",
    FormatTag.EMF: "-M",
    FormatTag.WMF: "-m",
}

_VERSION_RE = re.compile(r"Inkscape\s+(\d+)\.(\d+)")


def detect_generation(runner: CommandRunner, executable: str) -> int:
    """Return the major version of *executable*, assuming 1.x when unknown."""

    try:
        completed = runner.run([executable, "--version"], merge_stderr=True)
    except ToolTimeoutError as exc:
        _LOGGER.warning("Inkscape version check timed out, assuming 1.x: %s", exc)
        return MODERN
    except ExternalToolError as exc:
        _LOGGER.debug("Inkscape version probe failed: %s", exc)
        return MODERN
    match = _VERSION_RE.search(completed.stdout or "")
    if not match:
        return MODERN
    return int(match.group(1))


class InkscapeCommands:
    """Build vector-export invocations for the detected Inkscape generation."""

    def __init__(self, executable: str, generation: int = MODERN) -> None:
        self.executable = executable
        self.generation = generation

    @property
    def is_legacy(self) -> bool:
        return self.generation < MODERN

    def export(self, tag: FormatTag, source: Path, output: Path) -> List[str]:
        if not tag.is_vector_export:
            raise ValueError(f"Inkscape does not export {tag.value}")
        if self.is_legacy:
            return [self.executable, str(source), _LEGACY_FLAGS[tag], str(output)]
        return [
            self.executable,
            str(source),
            f"--export-type={tag.extension}",
            f"--export-filename={output}",
        ]
