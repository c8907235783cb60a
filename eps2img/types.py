"""
Type definitions and dataclasses for eps2img.

This module defines data structures used throughout the library.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple


class FormatTag(str, Enum):
    """Output formats understood by the converter."""

    PNG = "png"
    PNG_TRANSPARENT = "png_transparent"
    JPEG = "jpeg"
    PDF = "pdf"
    SVG = "svg"
    EMF = "emf"
    WMF = "wmf"

    @property
    def extension(self) -> str:
        return _EXTENSIONS[self]

    @property
    def fname_flag(self) -> str:
        """Suffix token placed between the base name and the extension."""
        return "_trn" if self is FormatTag.PNG_TRANSPARENT else ""

    @property
    def is_raster(self) -> bool:
        return self in RASTER_FORMATS

    @property
    def is_vector_export(self) -> bool:
        return self in VECTOR_EXPORT_FORMATS

    @property
    def label(self) -> str:
        return _LABELS[self]


_EXTENSIONS = {
    FormatTag.PNG: "png",
    FormatTag.PNG_TRANSPARENT: "png",
    FormatTag.JPEG: "jpg",
    FormatTag.PDF: "pdf",
    FormatTag.SVG: "svg",
    FormatTag.EMF: "emf",
    FormatTag.WMF: "wmf",
}

_LABELS = {
    FormatTag.PNG: "PNG",
    FormatTag.PNG_TRANSPARENT: "PNG_TRN",
    FormatTag.JPEG: "JPEG",
    FormatTag.PDF: "PDF",
    FormatTag.SVG: "SVG",
    FormatTag.EMF: "EMF",
    FormatTag.WMF: "WMF",
}

# Declaration order of FormatTag is the processing order.
ALL_FORMATS: Tuple[FormatTag, ...] = tuple(FormatTag)
RASTER_FORMATS = frozenset({FormatTag.PNG, FormatTag.PNG_TRANSPARENT, FormatTag.JPEG})
VECTOR_EXPORT_FORMATS = frozenset({FormatTag.SVG, FormatTag.EMF, FormatTag.WMF})
DEFAULT_FORMATS = frozenset({FormatTag.PNG, FormatTag.PDF})

DEFAULT_DPI = 300
DEFAULT_PDF_VERSION = "1.4"


@dataclass(frozen=True)
class RunConfig:
    """
    Normalized run configuration produced by the option resolver.

    Attributes:
        input_files: Unique input paths in first-seen order
        output_formats: Requested output formats (never empty)
        raster_dpi: Raster resolution in dots per inch
        pdf_version: Target PDF compatibility level, e.g. "1.4"
        crop_enabled: Whether the page is cropped to the bounding box
        legacy_crop_mode: Use the interpreter's native EPS crop flag
        rotate_enabled: Apply the landscape rotation
        verbose: Echo external command lines before running them
        pause_at_exit: Prompt before the program exits
        timeout: Per-invocation timeout in seconds, None for no limit
        gs_executable: Interpreter executable override
        inkscape_executable: Vector-export executable override
    """
    input_files: Tuple[str, ...] = ()
    output_formats: FrozenSet[FormatTag] = DEFAULT_FORMATS
    raster_dpi: int = DEFAULT_DPI
    pdf_version: str = DEFAULT_PDF_VERSION
    crop_enabled: bool = True
    legacy_crop_mode: bool = False
    rotate_enabled: bool = True
    verbose: bool = False
    pause_at_exit: bool = True
    timeout: Optional[float] = None
    gs_executable: Optional[str] = None
    inkscape_executable: Optional[str] = None

    def ordered_formats(self) -> List[FormatTag]:
        """Requested formats in processing order."""
        return [tag for tag in ALL_FORMATS if tag in self.output_formats]


@dataclass(frozen=True)
class EmbeddedModeOptions:
    """
    Behaviour switches for callers that embed the converter in a larger batch.

    Attributes:
        output_subdir: Directory (relative to the source) receiving the outputs
        always_rotate: Rotate even when the run configuration disables it
        treat_as_multipage: Treat every input as a multi-page document
        always_page_box: Always run the crop/rotate pre-pass for PDF output
    """
    output_subdir: Optional[str] = None
    always_rotate: bool = False
    treat_as_multipage: bool = False
    always_page_box: bool = False


@dataclass
class ConversionJob:
    """
    State of a single input file while it is being converted.

    Attributes:
        source_path: Resolved .ps or .eps input
        base_name: Output path stem (directory plus name without extension)
        page_count: Number of pages announced by the %%Pages: comment
        intermediate_pdf_path: Cropped/rotated PDF, once the pre-pass ran
        outputs_produced: (format, path) pairs in completion order
    """
    source_path: Path
    base_name: Path
    page_count: int = 1
    intermediate_pdf_path: Optional[Path] = None
    outputs_produced: List[Tuple[FormatTag, Path]] = field(default_factory=list)
    force_multipage: bool = False

    @property
    def is_multi_page(self) -> bool:
        return self.force_multipage or self.page_count >= 2

    @property
    def conversion_source(self) -> Path:
        return self.intermediate_pdf_path or self.source_path

    def output_path(self, tag: FormatTag) -> Path:
        """Return the output path for *tag* following the naming pattern."""

        page_token = "-%03d" if tag.is_raster and self.is_multi_page else ""
        name = f"{self.base_name.name}{page_token}{tag.fname_flag}.{tag.extension}"
        return self.base_name.with_name(name)


@dataclass
class FormatOutcome:
    """
    Result of producing one output format.

    Attributes:
        format: Output format
        status: One of "produced", "skipped" or "failed"
        path: Output path, when one was targeted
        message: Human-readable detail
    """
    format: FormatTag
    status: str
    path: Optional[Path] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "produced"


@dataclass
class JobResult:
    """
    Result of converting a single input file.

    Attributes:
        source: Input path as requested
        status: "success", "partial", "failure" or "not-found"
        outcomes: Per-format outcomes in processing order
        page_count: Pages detected for the input
        intermediate_pdf: Intermediate PDF path when the pre-pass ran
        error: Job-level error message
    """
    source: str
    status: str = "pending"
    outcomes: List[FormatOutcome] = field(default_factory=list)
    page_count: int = 0
    intermediate_pdf: Optional[Path] = None
    error: Optional[str] = None

    @property
    def produced(self) -> List[FormatOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "produced"]

    @property
    def failed(self) -> List[FormatOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    def __str__(self) -> str:
        return (
            f"JobResult(source='{self.source}', status={self.status}, "
            f"produced={len(self.produced)}, failed={len(self.failed)})"
        )


@dataclass
class BatchResult:
    """
    Result of a whole conversion run.

    Attributes:
        total: Number of input files
        success: Files whose every format was produced
        failure: Files with at least one failed format or a job error
        skipped: Files that were not found
        results: Individual job results
    """
    total: int = 0
    success: int = 0
    failure: int = 0
    skipped: int = 0
    results: List[JobResult] = field(default_factory=list)

    @property
    def outputs_produced(self) -> int:
        return sum(len(result.produced) for result in self.results)

    def add(self, result: JobResult) -> None:
        self.results.append(result)
        self.total += 1
        if result.status == "success":
            self.success += 1
        elif result.status == "not-found":
            self.skipped += 1
        else:
            self.failure += 1

    def __str__(self) -> str:
        return (
            "BatchResult(total={total}, success={success}, failure={failure}, "
            "skipped={skipped}, outputs={outputs})"
        ).format(
            total=self.total,
            success=self.success,
            failure=self.failure,
            skipped=self.skipped,
            outputs=self.outputs_produced,
        )
