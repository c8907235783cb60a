"""
Test cases for Ghostscript and Inkscape command construction.
"""

import logging
import subprocess
from pathlib import Path

import pytest

from eps2img.backends.base import BoundingBox
from eps2img.backends.ghostscript import GhostscriptCommands, parse_bounding_box
from eps2img.backends.inkscape import InkscapeCommands, detect_generation
from eps2img.exceptions import BoundingBoxError, ToolTimeoutError
from eps2img.types import FormatTag, RunConfig


@pytest.fixture()
def gs():
    return GhostscriptCommands("gs", RunConfig(raster_dpi=450, pdf_version="1.5"))


class TestBoundingBoxParsing:
    def test_hires_box_preferred(self):
        box = parse_bounding_box(
            "%%BoundingBox: 10 20 200 300\n%%HiResBoundingBox: 10.5 20.25 199.75 299.5\n"
        )
        assert box == BoundingBox(10.5, 20.25, 199.75, 299.5)

    def test_integer_box_fallback(self):
        box = parse_bounding_box("GPL Ghostscript 10.02.1\n%%BoundingBox: 0 0 612 792\n")
        assert box == BoundingBox(0, 0, 612, 792)

    def test_pages_are_merged(self):
        report = (
            "%%HiResBoundingBox: 10 10 100 100\n"
            "%%HiResBoundingBox: 5 20 90 150\n"
        )
        assert parse_bounding_box(report) == BoundingBox(5, 10, 100, 150)

    def test_missing_box_raises(self):
        with pytest.raises(BoundingBoxError):
            parse_bounding_box("Error: /undefined in foo\n")

    def test_postscript_array(self):
        assert BoundingBox(10.5, 20, 199.75, 300).as_postscript() == "[10.5 20 199.75 300]"


class TestGhostscriptCommands:
    def test_raster_command_layout(self, gs):
        command = gs.render(FormatTag.PNG, Path("in.eps"), Path("out.png"), epscrop=True, rotate=True)

        assert command[:5] == ["gs", "-dSAFER", "-dBATCH", "-dNOPAUSE", "-dQUIET"]
        assert "-dEPSCrop" in command
        assert "-sDEVICE=png16m" in command
        assert "-r450" in command
        assert "-dTextAlphaBits=4" in command and "-dGraphicsAlphaBits=4" in command
        output = command.index("-sOutputFile=out.png")
        assert command[output + 1:] == ["-c", "<</Orientation 3>> setpagedevice", "-f", "in.eps"]

    def test_device_per_format(self, gs):
        devices = {
            FormatTag.PNG: "-sDEVICE=png16m",
            FormatTag.PNG_TRANSPARENT: "-sDEVICE=pngalpha",
            FormatTag.JPEG: "-sDEVICE=jpeg",
            FormatTag.PDF: "-sDEVICE=pdfwrite",
        }
        for tag, device in devices.items():
            assert device in gs.render(tag, Path("in.eps"), Path("out"))

    def test_pdf_options(self, gs):
        command = gs.render(FormatTag.PDF, Path("in.eps"), Path("out.pdf"))

        assert "-dCompatibilityLevel=1.5" in command
        assert "-dSubsetFonts=true" in command
        assert "-dEmbedAllFonts=true" in command
        assert not any(arg.startswith("-r") for arg in command)
        assert "-c" not in command

    def test_render_from_pdf_uses_cropbox(self, gs):
        command = gs.render(FormatTag.JPEG, Path("in.pdf"), Path("out.jpg"), epscrop=True, from_pdf=True)
        assert "-dUseCropBox" in command
        assert "-dEPSCrop" not in command

    def test_probe(self, gs):
        assert gs.probe_bbox(Path("in.eps")) == [
            "gs", "-dSAFER", "-dBATCH", "-dNOPAUSE", "-dQUIET", "-sDEVICE=bbox", "-f", "in.eps",
        ]

    def test_crop_and_rotate_are_separate(self, gs):
        crop = gs.crop_to_pdf(Path("in.eps"), Path("tmp.pdf"), BoundingBox(1, 2, 3, 4))
        rotate = gs.rotate_pdf(Path("tmp.pdf"), Path("rot.pdf"))

        assert "[/CropBox [1 2 3 4] /PAGES pdfmark" in crop
        assert not any("Orientation" in arg for arg in crop)
        assert "<</Orientation 3>> setpagedevice" in rotate
        assert not any("CropBox [" in arg for arg in rotate)

    def test_crop_with_epscrop_has_no_pdfmark(self, gs):
        command = gs.crop_to_pdf(Path("in.eps"), Path("tmp.pdf"), epscrop=True)
        assert "-dEPSCrop" in command
        assert "-c" not in command


class _VersionRunner:
    def __init__(self, stdout):
        self.stdout = stdout

    def run(self, command, *, merge_stderr=False):
        return subprocess.CompletedProcess(command, 0, stdout=self.stdout, stderr="")


class TestInkscapeCommands:
    def test_modern_export(self):
        commands = InkscapeCommands("inkscape")
        assert commands.export(FormatTag.SVG, Path("in.pdf"), Path("out.svg")) == [
            "inkscape", "in.pdf", "--export-type=svg", "--export-filename=out.svg",
        ]

    def test_legacy_export(self):
        commands = InkscapeCommands("inkscape", generation=0)
        assert commands.export(FormatTag.EMF, Path("in.eps"), Path("out.emf")) == [
            "inkscape", "in.eps", "-M", "out.emf",
        ]
        assert commands.export(FormatTag.WMF, Path("in.eps"), Path("out.wmf"))[2] == "-m"

    def test_rejects_ghostscript_formats(self):
        with pytest.raises(ValueError):
            InkscapeCommands("inkscape").export(FormatTag.PNG, Path("in.eps"), Path("out.png"))

    @pytest.mark.parametrize(
        "banner, expected",
        [
            ("Inkscape 0.92.4 (5da689c313, 2019-01-14)", 0),
            ("Inkscape 1.3.2 (091e20e, 2023-11-25)", 1),
            ("something unexpected", 1),
        ],
    )
    def test_detect_generation(self, banner, expected):
        assert detect_generation(_VersionRunner(banner), "inkscape") == expected

    def test_detect_generation_timeout_is_reported(self, caplog):
        class _HangingRunner:
            def run(self, command, *, merge_stderr=False):
                raise ToolTimeoutError("inkscape timed out after 5s", command=command)

        with caplog.at_level(logging.WARNING, logger="eps2img.backends"):
            assert detect_generation(_HangingRunner(), "inkscape") == 1

        assert "timed out" in caplog.text
