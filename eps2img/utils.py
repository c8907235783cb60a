"""Utility helpers for :mod:`eps2img`."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

_LOGGER = logging.getLogger("eps2img")

PS_SUFFIXES = (".ps", ".eps")

_PAGES_RE = re.compile(rb"^%%Pages:\s*(\(atend\)|\d+)")


def configure_logging(verbose: bool = False) -> None:
    """Configure package-wide logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def is_ps_name(name: str) -> bool:
    """Return True when *name* carries a .ps or .eps suffix."""
    return name.lower().endswith(PS_SUFFIXES)


def unique(items: Iterable[str], key: Callable[[str], str] = os.path.normpath) -> List[str]:
    """Drop duplicates from *items*, keeping the first occurrence."""

    seen: set[str] = set()
    result: List[str] = []
    for item in items:
        key_value = key(item)
        if key_value in seen:
            continue
        seen.add(key_value)
        result.append(item)
    return result


def ensure_directory(path: Path) -> Path:
    """Create *path* if it does not exist yet."""

    path.mkdir(parents=True, exist_ok=True)
    return path


def which(executables: Sequence[str]) -> str | None:
    """Return the first executable from *executables* found on ``PATH``."""

    for candidate in executables:
        found = shutil.which(candidate)
        if found:
            _LOGGER.debug("Detected external tool: %s -> %s", candidate, found)
            return found
    return None


def run_subprocess(
    command: Sequence[str],
    *,
    timeout: Optional[float] = None,
    merge_stderr: bool = False,
) -> subprocess.CompletedProcess[str]:
    """Run *command* capturing output.

    Parameters
    ----------
    command:
        Command and arguments to execute.
    timeout:
        Seconds to wait before the child is killed.
    merge_stderr:
        Fold stderr into stdout, as needed for the bounding-box device.
    """

    _LOGGER.debug("Executing command: %s", " ".join(command))
    completed = subprocess.run(
        list(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
        check=False,
        text=True,
        errors="replace",
        timeout=timeout,
    )
    _LOGGER.debug(
        "Command finished with exit code %s\nstdout: %s\nstderr: %s",
        completed.returncode,
        completed.stdout,
        completed.stderr,
    )
    return completed


def read_page_count(path: Path) -> int:
    """Scan the DSC comments of a PS/EPS file for ``%%Pages:``.

    Returns 1 when the comment is missing. ``%%Pages: (atend)`` defers to the
    last numeric ``%%Pages:`` comment in the trailer.
    """

    pages: Optional[int] = None
    deferred = False
    with path.open("rb") as handle:
        for line in handle:
            match = _PAGES_RE.match(line)
            if not match:
                continue
            value = match.group(1)
            if value == b"(atend)":
                deferred = True
                continue
            pages = int(value)
            if not deferred:
                break
    if pages is None or pages < 1:
        return 1
    return pages
