"""Ghostscript command construction for :mod:`eps2img`.

All builders return argument lists; nothing here runs a process. The ``-c``
PostScript fragments are placed after ``-sOutputFile`` and before ``-f`` as
Ghostscript requires.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Sequence

from ..exceptions import BoundingBoxError
from ..types import FormatTag, RunConfig
from .base import BoundingBox

GS_CANDIDATES: Sequence[str] = ("gs", "gswin64c", "gswin32c")

INTERACTION_PARAMS = ["-dSAFER", "-dBATCH", "-dNOPAUSE", "-dQUIET"]
EPSCROP = "-dEPSCrop"
USE_CROPBOX = "-dUseCropBox"

# Subsample antialiasing; values below 4 are ignored by the raster devices.
TEXT_ALPHA_BITS = 4
GRAPHICS_ALPHA_BITS = 4

# setpagedevice /Orientation: 0 portrait, 1 seascape, 2 upside down, 3 landscape
LANDSCAPE = 3

DEVICES = {
    FormatTag.PNG: "png16m",
    FormatTag.PNG_TRANSPARENT: "pngalpha",
    FormatTag.JPEG: "jpeg",
    FormatTag.PDF: "pdfwrite",
}
BBOX_DEVICE = "bbox"

_HIRES_RE = re.compile(
    r"^%%HiResBoundingBox:\s*([-\d.]+)\s+([-\d.]+)\s+([-\d.]+)\s+([-\d.]+)", re.MULTILINE
)
_BBOX_RE = re.compile(
    r"^%%BoundingBox:\s*(-?\d+)\s+(-?\d+)\s+(-?\d+)\s+(-?\d+)", re.MULTILINE
)


def parse_bounding_box(output: str) -> BoundingBox:
    """Parse the bbox device report, one box per page, into a single box.

    ``%%HiResBoundingBox`` lines win over the integer ``%%BoundingBox`` ones.
    """

    matches = _HIRES_RE.findall(output) or _BBOX_RE.findall(output)
    box = BoundingBox.enclosing(
        BoundingBox(*(float(value) for value in match)) for match in matches
    )
    if box is None:
        raise BoundingBoxError("Interpreter reported no %%BoundingBox for the input.")
    return box


def orientation_override(orientation: int = LANDSCAPE) -> str:
    return f"<</Orientation {orientation}>> setpagedevice"


def cropbox_pdfmark(box: BoundingBox) -> str:
    return f"[/CropBox {box.as_postscript()} /PAGES pdfmark"


class GhostscriptCommands:
    """Build Ghostscript invocations for one run configuration."""

    def __init__(self, executable: str, config: RunConfig) -> None:
        self.executable = executable
        self.config = config

    def _base(self, device: str, extra: Sequence[str] = ()) -> List[str]:
        return [self.executable, *INTERACTION_PARAMS, *extra, f"-sDEVICE={device}"]

    def _finish(
        self,
        command: List[str],
        output: Optional[Path],
        source: Path,
        postscript: Optional[str] = None,
    ) -> List[str]:
        if output is not None:
            command.append(f"-sOutputFile={output}")
        if postscript:
            command.extend(["-c", postscript])
        command.extend(["-f", str(source)])
        return command

    def device_options(self, tag: FormatTag) -> List[str]:
        if tag is FormatTag.PDF:
            return [
                f"-dCompatibilityLevel={self.config.pdf_version}",
                "-dPDFSETTINGS=/prepress",
                "-dSubsetFonts=true",
                "-dEmbedAllFonts=true",
            ]
        return [
            f"-dTextAlphaBits={TEXT_ALPHA_BITS}",
            f"-dGraphicsAlphaBits={GRAPHICS_ALPHA_BITS}",
            f"-r{self.config.raster_dpi}",
        ]

    def probe_bbox(self, source: Path) -> List[str]:
        """Bounding-box probe; the report arrives on stderr."""
        return self._finish(self._base(BBOX_DEVICE), None, source)

    def crop_to_pdf(
        self,
        source: Path,
        output: Path,
        box: Optional[BoundingBox] = None,
        *,
        epscrop: bool = False,
    ) -> List[str]:
        """Write *source* to a PDF whose pages carry *box* as the crop box.

        Never combined with the orientation override: the rotation runs as a
        separate pass so the unrotated box cannot leak into the final page.
        """
        extra = [EPSCROP] if epscrop else []
        command = self._base(DEVICES[FormatTag.PDF], extra)
        command.extend(self.device_options(FormatTag.PDF))
        postscript = cropbox_pdfmark(box) if box is not None else None
        return self._finish(command, output, source, postscript)

    def rotate_pdf(self, source: Path, output: Path) -> List[str]:
        command = self._base(DEVICES[FormatTag.PDF], [USE_CROPBOX])
        command.extend(self.device_options(FormatTag.PDF))
        command.append("-dAutoRotatePages=/None")
        return self._finish(command, output, source, orientation_override())

    def render(
        self,
        tag: FormatTag,
        source: Path,
        output: Path,
        *,
        epscrop: bool = False,
        rotate: bool = False,
        from_pdf: bool = False,
    ) -> List[str]:
        """Final-format invocation for a raster format or PDF."""
        extra: List[str] = []
        if from_pdf:
            extra.append(USE_CROPBOX)
        elif epscrop:
            extra.append(EPSCROP)
        command = self._base(DEVICES[tag], extra)
        command.extend(self.device_options(tag))
        postscript = orientation_override() if rotate else None
        return self._finish(command, output, source, postscript)
