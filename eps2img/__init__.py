"""
eps2img - Convert PS/EPS files to raster and vector images.

eps2img wraps Ghostscript and Inkscape: it resolves command-line options into
a :class:`RunConfig`, then builds and runs the external invocations for every
input file and requested format.

Quick Start:
    >>> from eps2img import parse_argv, Converter
    >>> config = parse_argv(['tiger.eps', '--fmt=png,pdf', '--dpi=600'])
    >>> results = Converter(config).convert_all()

Main Classes:
    - Converter: Per-file conversion orchestration
    - ConversionContext: State shared by all jobs of a run

Data Classes:
    - RunConfig: Resolved options
    - EmbeddedModeOptions: Switches for callers embedding the converter
    - ConversionJob, FormatOutcome, JobResult, BatchResult

For CLI usage, use the 'eps2img' command after installation.
"""

__version__ = "1.2.0"

from eps2img.types import (
    BatchResult,
    ConversionJob,
    EmbeddedModeOptions,
    FormatOutcome,
    FormatTag,
    JobResult,
    RunConfig,
)
from eps2img.exceptions import (
    BoundingBoxError,
    Eps2ImgError,
    ExternalToolError,
    InputNotFoundError,
    OutputDirectoryError,
    ToolTimeoutError,
)
from eps2img.options import parse_argv, resolve_run_config
from eps2img.converter import ConversionContext, Converter, convert

__author__ = "eps2img Contributors"
__license__ = "MIT"

__all__ = [
    # Main classes
    "Converter",
    "ConversionContext",
    "convert",
    # Option resolution
    "parse_argv",
    "resolve_run_config",
    # Data types
    "FormatTag",
    "RunConfig",
    "EmbeddedModeOptions",
    "ConversionJob",
    "FormatOutcome",
    "JobResult",
    "BatchResult",
    # Exceptions
    "Eps2ImgError",
    "InputNotFoundError",
    "ExternalToolError",
    "ToolTimeoutError",
    "BoundingBoxError",
    "OutputDirectoryError",
    # Version info
    "__version__",
]
