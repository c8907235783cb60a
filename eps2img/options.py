"""
Command-line option resolution for eps2img.

The click declarations live in :func:`run_options` so the CLI command and
:func:`parse_argv` share one definition. Resolution rules:

- a later occurrence of a flag overrides an earlier one;
- positional tokens ending in ``.ps``/``.eps`` that exist become inputs,
  anything else positional is ignored with a warning;
- duplicate inputs (repeated names, ``--all`` overlapping explicit names)
  keep their first position.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence

import click

from .types import (
    ALL_FORMATS,
    DEFAULT_DPI,
    DEFAULT_FORMATS,
    DEFAULT_PDF_VERSION,
    FormatTag,
    RunConfig,
)
from .utils import is_ps_name, unique

LOGGER = logging.getLogger("eps2img.options")

PDF_VERSION_RE = re.compile(r"^1\.[0-9]$")

# Advisory only; values outside still run.
SANE_DPI_RANGE = (100, 600)

FORMAT_ALIASES: Dict[str, FrozenSet[FormatTag]] = {
    "all": frozenset(ALL_FORMATS),
    "png": frozenset({FormatTag.PNG}),
    "png_trn": frozenset({FormatTag.PNG_TRANSPARENT}),
    "png_transparent": frozenset({FormatTag.PNG_TRANSPARENT}),
    "jpg": frozenset({FormatTag.JPEG}),
    "jpeg": frozenset({FormatTag.JPEG}),
    "pdf": frozenset({FormatTag.PDF}),
    "svg": frozenset({FormatTag.SVG}),
    "emf": frozenset({FormatTag.EMF}),
    "wmf": frozenset({FormatTag.WMF}),
}


class FormatListParamType(click.ParamType):
    """Comma-separated list of output formats."""

    name = "format[,format...]"

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> FrozenSet[FormatTag]:
        if isinstance(value, frozenset):
            return value

        tags: set[FormatTag] = set()
        for token in str(value).split(","):
            token = token.strip().lower()
            if not token:
                continue
            if token not in FORMAT_ALIASES:
                choices = ", ".join(FORMAT_ALIASES)
                self.fail(f"unknown output format '{token}' (choose from {choices})", param, ctx)
            tags.update(FORMAT_ALIASES[token])

        if not tags:
            self.fail("at least one output format is required", param, ctx)
        return frozenset(tags)


FORMAT_LIST = FormatListParamType()


def run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach every eps2img argument and option to a click command."""

    decorators = [
        click.argument("files", nargs=-1, type=click.Path()),
        click.option(
            "--fmt", "--out", "formats",
            type=FORMAT_LIST,
            default=None,
            help="Output formats: all, png, png_trn, jpg|jpeg, pdf, svg, emf, wmf. [default: png,pdf]",
        ),
        click.option(
            "--dpi", "--raster_dpi", "raster_dpi",
            type=click.IntRange(min=1),
            default=DEFAULT_DPI,
            show_default=True,
            help="Raster resolution; sane range 100-600.",
        ),
        click.option(
            "--pdfversion", "pdf_version",
            default=DEFAULT_PDF_VERSION,
            show_default=True,
            help="Target PDF version (1.0-1.9).",
        ),
        click.option("--nocrop", is_flag=True, help="Do not crop pages to the bounding box."),
        click.option(
            "--legacy_epscrop", is_flag=True,
            help="Crop with Ghostscript's -dEPSCrop instead of the bounding-box probe.",
        ),
        click.option("--norotate", is_flag=True, help="Do not rotate to landscape."),
        click.option("--verbose", is_flag=True, help="Echo external command lines before running them."),
        click.option("--nopause", is_flag=True, help="Do not wait for enter at exit."),
        click.option(
            "-a", "--all", "all_files", is_flag=True,
            help="Convert every .eps/.ps file in the current directory.",
        ),
        click.option(
            "--timeout",
            type=click.FloatRange(min=0, min_open=True),
            default=None,
            help="Seconds before an external program is killed.",
        ),
        click.option(
            "--gs", "gs_executable",
            envvar="EPS2IMG_GS",
            default=None,
            help="Ghostscript executable (env: EPS2IMG_GS).",
        ),
        click.option(
            "--inkscape", "inkscape_executable",
            envvar="EPS2IMG_INKSCAPE",
            default=None,
            help="Inkscape executable (env: EPS2IMG_INKSCAPE).",
        ),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def normalize_pdf_version(value: str) -> str:
    """Return *value* when it looks like ``1.X``; otherwise warn and use the default."""

    if PDF_VERSION_RE.match(value or ""):
        return value
    LOGGER.warning(
        "Invalid PDF version '%s'; falling back to %s.", value, DEFAULT_PDF_VERSION
    )
    return DEFAULT_PDF_VERSION


def find_ps_files(directory: Path) -> List[Path]:
    """Every ``*.eps`` then every ``*.ps`` file of *directory*, each sorted."""

    found: List[Path] = []
    for pattern in ("*.eps", "*.ps"):
        found.extend(sorted(path for path in directory.glob(pattern) if path.is_file()))
    return found


def collect_input_files(
    tokens: Iterable[str],
    *,
    all_files: bool = False,
    cwd: Optional[os.PathLike[str] | str] = None,
) -> List[str]:
    """Select the PS/EPS inputs from positional *tokens* and ``--all``.

    Relative names are checked against *cwd* (the process working directory
    when omitted); with an explicit *cwd* the returned paths are joined to it.
    """

    base = Path(cwd) if cwd is not None else None

    def locate(token: str) -> Path:
        return Path(token) if base is None else base / token

    selected: List[str] = []
    for token in tokens:
        if not is_ps_name(token):
            LOGGER.warning("Ignoring '%s': not a .ps or .eps file.", token)
            continue
        path = locate(token)
        if not path.is_file():
            LOGGER.warning("Ignoring '%s': file not found.", token)
            continue
        selected.append(str(path))

    if all_files:
        directory = base if base is not None else Path(".")
        for path in find_ps_files(directory):
            selected.append(str(path) if base is not None else path.name)

    return unique(selected, key=os.path.abspath)


def resolve_run_config(
    *,
    files: Sequence[str] = (),
    formats: Optional[FrozenSet[FormatTag]] = None,
    raster_dpi: int = DEFAULT_DPI,
    pdf_version: str = DEFAULT_PDF_VERSION,
    nocrop: bool = False,
    legacy_epscrop: bool = False,
    norotate: bool = False,
    verbose: bool = False,
    nopause: bool = False,
    all_files: bool = False,
    timeout: Optional[float] = None,
    gs_executable: Optional[str] = None,
    inkscape_executable: Optional[str] = None,
    cwd: Optional[os.PathLike[str] | str] = None,
) -> RunConfig:
    """Turn parsed option values into a validated :class:`RunConfig`."""

    low, high = SANE_DPI_RANGE
    if not low <= raster_dpi <= high:
        LOGGER.warning("DPI %s is outside the sane range %s-%s.", raster_dpi, low, high)

    return RunConfig(
        input_files=tuple(collect_input_files(files, all_files=all_files, cwd=cwd)),
        output_formats=formats or DEFAULT_FORMATS,
        raster_dpi=raster_dpi,
        pdf_version=normalize_pdf_version(pdf_version),
        crop_enabled=not nocrop,
        legacy_crop_mode=legacy_epscrop,
        rotate_enabled=not norotate,
        verbose=verbose,
        pause_at_exit=not nopause,
        timeout=timeout,
        gs_executable=gs_executable,
        inkscape_executable=inkscape_executable,
    )


@click.command(name="eps2img", add_help_option=False)
@run_options
def _resolver(**params: Any) -> None:
    """Parser-only twin of the CLI command."""


def parse_argv(
    tokens: Sequence[str],
    *,
    cwd: Optional[os.PathLike[str] | str] = None,
) -> RunConfig:
    """Resolve raw argv-style *tokens* into a :class:`RunConfig`.

    Raises :class:`click.UsageError` for malformed options.
    """

    with _resolver.make_context("eps2img", list(tokens)) as ctx:
        return resolve_run_config(cwd=cwd, **ctx.params)


__all__ = [
    "FORMAT_ALIASES",
    "FormatListParamType",
    "collect_input_files",
    "find_ps_files",
    "normalize_pdf_version",
    "parse_argv",
    "resolve_run_config",
    "run_options",
]
