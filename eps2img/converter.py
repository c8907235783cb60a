"""PS/EPS conversion orchestration built around Ghostscript and Inkscape."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from .backends.base import CommandRunner, SubprocessRunner
from .backends.ghostscript import GS_CANDIDATES, GhostscriptCommands, parse_bounding_box
from .backends.inkscape import INKSCAPE_CANDIDATES, InkscapeCommands, detect_generation
from .exceptions import (
    BoundingBoxError,
    Eps2ImgError,
    ExternalToolError,
    InputNotFoundError,
    OutputDirectoryError,
    ToolTimeoutError,
)
from .types import (
    BatchResult,
    ConversionJob,
    EmbeddedModeOptions,
    FormatOutcome,
    FormatTag,
    JobResult,
    RunConfig,
)
from .utils import ensure_directory, is_ps_name, read_page_count, which

LOGGER = logging.getLogger("eps2img.converter")

Echo = Callable[[str], None]


def _log_echo(message: str) -> None:
    LOGGER.info(message)


class ConversionContext:
    """State shared by every job of one run.

    Executables are looked up once, the Inkscape generation is probed at most
    once, and the start-of-run notice is emitted only for the first job.
    """

    def __init__(
        self,
        config: RunConfig,
        runner: Optional[CommandRunner] = None,
        embedded: Optional[EmbeddedModeOptions] = None,
    ) -> None:
        self.config = config
        self.runner: CommandRunner = runner or SubprocessRunner(timeout=config.timeout)
        self.embedded = embedded or EmbeddedModeOptions()
        self.gs_executable = config.gs_executable or self._lookup(GS_CANDIDATES)
        self.inkscape_executable = config.inkscape_executable or self._lookup(INKSCAPE_CANDIDATES)
        self.gs = GhostscriptCommands(self.gs_executable, config)
        self._inkscape: Optional[InkscapeCommands] = None
        self.first_run = True

    @staticmethod
    def _lookup(candidates: Sequence[str]) -> str:
        found = which(candidates)
        if found is None:
            LOGGER.warning("None of %s found on PATH; using '%s'", ", ".join(candidates), candidates[0])
            return candidates[0]
        return found

    @property
    def inkscape(self) -> InkscapeCommands:
        if self._inkscape is None:
            generation = detect_generation(self.runner, self.inkscape_executable)
            LOGGER.debug("Inkscape generation detected: %s", generation)
            self._inkscape = InkscapeCommands(self.inkscape_executable, generation)
        return self._inkscape

    @property
    def rotate(self) -> bool:
        return self.config.rotate_enabled or self.embedded.always_rotate

    def tools_in_use(self) -> List[str]:
        tools = []
        formats = self.config.output_formats
        if any(not tag.is_vector_export for tag in formats):
            tools.append(self.gs_executable)
        if any(tag.is_vector_export for tag in formats):
            tools.append(self.inkscape_executable)
        return tools


class Converter:
    """Convert PS/EPS files into the formats requested by a :class:`RunConfig`."""

    def __init__(
        self,
        config: RunConfig,
        *,
        runner: Optional[CommandRunner] = None,
        embedded: Optional[EmbeddedModeOptions] = None,
        echo: Optional[Echo] = None,
    ) -> None:
        self.config = config
        self.context = ConversionContext(config, runner=runner, embedded=embedded)
        self.echo: Echo = echo or _log_echo

    # ------------------------------------------------------------------
    # Batch level
    # ------------------------------------------------------------------
    def convert_all(
        self,
        progress_callback: Optional[Callable[[str, int, int], None]] = None,
    ) -> BatchResult:
        batch = BatchResult()
        files = self.config.input_files
        if not files:
            self.echo("Nothing to convert.")
            return batch

        for index, name in enumerate(files, start=1):
            batch.add(self.convert_file(name))
            if progress_callback:
                progress_callback(Path(name).name, index, len(files))
        return batch

    def convert_file(self, name: str) -> JobResult:
        result = JobResult(source=name)
        self._announce_start()

        try:
            source = self.resolve_source(name)
        except InputNotFoundError as exc:
            result.status = "not-found"
            result.error = exc.message
            self.echo(f"[{name}] not found; skipped.")
            return result

        try:
            job = self.create_job(source)
            result.page_count = job.page_count
            self._run_job(job, result)
        except (Eps2ImgError, OSError) as exc:
            LOGGER.debug("Job for %s aborted", name, exc_info=True)
            result.error = str(exc)

        self._finalize(result)
        return result

    def _announce_start(self) -> None:
        if not self.context.first_run:
            return
        tools = " and ".join(self.context.tools_in_use())
        self.echo(f"Converting the PS/EPS files using [{tools}]...")
        self.context.first_run = False

    @staticmethod
    def _finalize(result: JobResult) -> None:
        if result.error is not None and not result.produced:
            result.status = "failure"
        elif result.error is not None or result.failed:
            result.status = "partial" if result.produced else "failure"
        else:
            result.status = "success"

    # ------------------------------------------------------------------
    # Job setup
    # ------------------------------------------------------------------
    @staticmethod
    def resolve_source(name: str) -> Path:
        """Return the input to convert; ``.ps`` wins over ``.eps``."""

        path = Path(name)
        stem = path.with_suffix("") if is_ps_name(path.name) else path
        for candidate in (stem.with_name(stem.name + ".ps"), stem.with_name(stem.name + ".eps"), path):
            if candidate.is_file():
                return candidate
        raise InputNotFoundError(f"Neither {stem}.ps nor {stem}.eps exists.")

    def create_job(self, source: Path) -> ConversionJob:
        out_dir = source.parent
        subdir = self.context.embedded.output_subdir
        if subdir:
            out_dir = out_dir / subdir
            existed = out_dir.is_dir()
            try:
                ensure_directory(out_dir)
            except OSError as exc:
                raise OutputDirectoryError(f"Cannot create {out_dir}: {exc}") from exc
            if not existed:
                self.echo(f"[{out_dir}] created.")

        return ConversionJob(
            source_path=source,
            base_name=out_dir / source.stem,
            page_count=read_page_count(source),
            force_multipage=self.context.embedded.treat_as_multipage,
        )

    def needs_prepass(self, job: ConversionJob) -> bool:
        """Whether the crop/rotate pre-pass producing the intermediate PDF runs."""

        if FormatTag.PDF not in self.config.output_formats:
            return False
        return (
            job.is_multi_page
            or (self.config.crop_enabled and not self.config.legacy_crop_mode)
            or self.context.embedded.always_page_box
        )

    # ------------------------------------------------------------------
    # Job execution
    # ------------------------------------------------------------------
    def _run_job(self, job: ConversionJob, result: JobResult) -> None:
        pending = self.config.ordered_formats()

        try:
            if self.needs_prepass(job):
                pending.remove(FormatTag.PDF)
                self._run_prepass(job, result)
                result.page_count = job.page_count

            for tag in list(pending):
                pending.remove(tag)
                if tag.is_vector_export:
                    self._export_vector(job, tag, result)
                else:
                    self._render(job, tag, result)
        except ToolTimeoutError:
            for tag in pending:
                result.outcomes.append(
                    FormatOutcome(tag, "skipped", job.output_path(tag), "skipped after a timeout")
                )

    def _run_prepass(self, job: ConversionJob, result: JobResult) -> None:
        config = self.config
        gs = self.context.gs
        final = job.output_path(FormatTag.PDF)
        temp = self._working_copy(final)
        rotated = self._working_copy(final)

        # -dEPSCrop only handles genuinely single-page input.
        use_epscrop = config.crop_enabled and config.legacy_crop_mode and not job.is_multi_page
        use_cropbox = config.crop_enabled and not use_epscrop

        try:
            box = None
            if use_cropbox:
                probe = self._invoke(gs.probe_bbox(job.source_path), merge_stderr=True)
                box = parse_bounding_box(probe.stdout or "")
                LOGGER.debug("Bounding box of %s: %s", job.source_path, box)

            self._invoke(gs.crop_to_pdf(job.source_path, temp, box, epscrop=use_epscrop))
            if self.context.rotate:
                self._invoke(gs.rotate_pdf(temp, rotated))
                rotated.replace(temp)
            temp.replace(final)
        except (ExternalToolError, BoundingBoxError) as exc:
            result.outcomes.append(FormatOutcome(FormatTag.PDF, "failed", final, exc.message))
            self.echo(f"[{job.source_path}] --> PDF failed: {exc.message}")
            if isinstance(exc, ToolTimeoutError):
                raise
            return
        finally:
            for leftover in (temp, rotated):
                leftover.unlink(missing_ok=True)

        job.intermediate_pdf_path = final
        result.intermediate_pdf = final
        pages = self._pdf_page_count(final)
        if pages is not None:
            job.page_count = pages
        self.echo(
            f"[{job.source_path}] --> intermediate PDF ready "
            f"({job.page_count} page(s), PDF {config.pdf_version})"
        )
        self._record(job, result, FormatTag.PDF, final)

    @staticmethod
    def _working_copy(final: Path) -> Path:
        """Reserve a hidden, unique scratch PDF next to *final*."""
        fd, name = tempfile.mkstemp(dir=final.parent, prefix=f".{final.stem}.", suffix=".pdf")
        os.close(fd)
        return Path(name)

    @staticmethod
    def _pdf_page_count(path: Path) -> Optional[int]:
        try:
            return len(PdfReader(str(path)).pages)
        except (PdfReadError, OSError, ValueError) as exc:
            LOGGER.debug("Could not read page count from %s: %s", path, exc)
            return None

    def _render(self, job: ConversionJob, tag: FormatTag, result: JobResult) -> None:
        config = self.config
        output = job.output_path(tag)
        from_pdf = job.intermediate_pdf_path is not None

        if tag is FormatTag.PDF and job.intermediate_pdf_path == output:
            return

        if from_pdf:
            epscrop = False
        else:
            epscrop = config.crop_enabled and config.legacy_crop_mode and not job.is_multi_page

        command = self.context.gs.render(
            tag,
            job.conversion_source,
            output,
            epscrop=epscrop,
            rotate=self.context.rotate and not from_pdf,
            from_pdf=from_pdf,
        )
        if self._attempt(job, tag, output, command, result):
            self._record(job, result, tag, output)

    def _export_vector(self, job: ConversionJob, tag: FormatTag, result: JobResult) -> None:
        output = job.output_path(tag)
        command = self.context.inkscape.export(tag, job.conversion_source, output)
        if self._attempt(job, tag, output, command, result):
            self._record(job, result, tag, output)

    def _attempt(
        self,
        job: ConversionJob,
        tag: FormatTag,
        output: Path,
        command: Sequence[str],
        result: JobResult,
    ) -> bool:
        try:
            self._invoke(command)
        except ExternalToolError as exc:
            result.outcomes.append(FormatOutcome(tag, "failed", output, exc.message))
            self.echo(f"[{job.source_path}] --> {tag.label} failed: {exc.message}")
            if isinstance(exc, ToolTimeoutError):
                raise
            return False
        return True

    def _record(self, job: ConversionJob, result: JobResult, tag: FormatTag, output: Path) -> None:
        job.outputs_produced.append((tag, output))
        result.outcomes.append(FormatOutcome(tag, "produced", output))
        self.echo(self.completion_line(job, tag))

    def completion_line(self, job: ConversionJob, tag: FormatTag) -> str:
        if tag.is_raster:
            return f"[{job.source_path}] --> {tag.label} rasterized. (DPI: {self.config.raster_dpi})"
        if tag is FormatTag.PDF:
            return f"[{job.source_path}] --> PDF converted. (version {self.config.pdf_version})"
        return f"[{job.source_path}] --> {tag.label} converted."

    def _invoke(
        self,
        command: Sequence[str],
        *,
        merge_stderr: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        if self.config.verbose:
            self.echo(shlex.join(command))
        completed = self.context.runner.run(command, merge_stderr=merge_stderr)
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip().splitlines()
            reason = detail[-1] if detail else "no output"
            raise ExternalToolError(
                f"{Path(command[0]).name} exited with status {completed.returncode}: {reason}",
                command=command,
                returncode=completed.returncode,
            )
        return completed


def convert(
    config: RunConfig,
    *,
    runner: Optional[CommandRunner] = None,
    embedded: Optional[EmbeddedModeOptions] = None,
    echo: Optional[Echo] = None,
) -> BatchResult:
    """Convert every input of *config*; convenience wrapper around :class:`Converter`."""

    return Converter(config, runner=runner, embedded=embedded, echo=echo).convert_all()


__all__ = ["ConversionContext", "Converter", "convert"]
