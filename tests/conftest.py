from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

import pytest
from pypdf import PdfReader, PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from eps2img.exceptions import ToolTimeoutError  # noqa: E402
from eps2img.types import RunConfig  # noqa: E402
from eps2img.utils import read_page_count  # noqa: E402

BBOX_REPORT = (
    "%%BoundingBox: 10 20 200 300\n"
    "%%HiResBoundingBox: 10.5 20.25 199.75 299.5\n"
)


def _arg_value(command: Sequence[str], prefix: str) -> Optional[str]:
    for arg in command:
        if arg.startswith(prefix):
            return arg[len(prefix):]
    return None


def device_of(command: Sequence[str]) -> Optional[str]:
    """Return the Ghostscript device, 'inkscape' for exports, None otherwise."""
    if "inkscape" in Path(command[0]).name:
        return "inkscape-version" if "--version" in command else "inkscape"
    return _arg_value(command, "-sDEVICE=")


class FakeRunner:
    """Records commands and writes plausible outputs instead of running them."""

    def __init__(self) -> None:
        self.commands: List[List[str]] = []
        self.returncodes: Dict[str, int] = {}
        self.timeouts: set[str] = set()
        self.bbox_report = BBOX_REPORT
        self.inkscape_version = "Inkscape 1.2.2 (b0a8486541, 2022-12-01)"

    def run(self, command: Sequence[str], *, merge_stderr: bool = False) -> subprocess.CompletedProcess[str]:
        command = list(command)
        self.commands.append(command)
        device = device_of(command)

        if device in self.timeouts:
            raise ToolTimeoutError(f"{command[0]} timed out after 1s", command=command)
        returncode = self.returncodes.get(device, 0)
        if returncode:
            return subprocess.CompletedProcess(command, returncode, stdout="", stderr="Error: /undefined\n")

        stdout = ""
        if device == "bbox":
            stdout = self.bbox_report
        elif device == "inkscape-version":
            stdout = self.inkscape_version
        elif device == "pdfwrite":
            self._write_pdf(command)
        elif device == "inkscape":
            output = _arg_value(command, "--export-filename=") or command[-1]
            Path(output).write_text("<vector/>")
        else:
            output = _arg_value(command, "-sOutputFile=")
            Path(output.replace("%03d", "001")).write_bytes(b"\x89PNG\r\n")
        return subprocess.CompletedProcess(command, 0, stdout=stdout, stderr="")

    @staticmethod
    def _write_pdf(command: List[str]) -> None:
        source = Path(command[command.index("-f") + 1])
        if source.suffix == ".pdf":
            pages = len(PdfReader(str(source)).pages)
        else:
            pages = read_page_count(source)
        writer = PdfWriter()
        for _ in range(pages):
            writer.add_blank_page(width=200, height=200)
        with open(_arg_value(command, "-sOutputFile="), "wb") as stream:
            writer.write(stream)

    # helpers for assertions
    def by_device(self, device: str) -> List[List[str]]:
        return [command for command in self.commands if device_of(command) == device]


@pytest.fixture()
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture()
def eps_factory(tmp_path: Path) -> Callable[..., Path]:
    def _create(name: str = "tiger.eps", pages: Optional[int] = None, directory: Optional[Path] = None) -> Path:
        path = (directory or tmp_path) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        lines = ["%!PS-Adobe-3.0 EPSF-3.0", "%%BoundingBox: 0 0 100 100"]
        if pages is not None:
            lines.append(f"%%Pages: {pages}")
        lines += ["%%EndComments", "newpath 0 0 moveto 100 100 lineto stroke", "showpage", "%%EOF"]
        path.write_text("\n".join(lines) + "\n")
        return path

    return _create


@pytest.fixture()
def make_config() -> Callable[..., RunConfig]:
    def _make(*files: Path, **overrides) -> RunConfig:
        overrides.setdefault("gs_executable", "gs")
        overrides.setdefault("inkscape_executable", "inkscape")
        overrides.setdefault("pause_at_exit", False)
        return RunConfig(input_files=tuple(str(path) for path in files), **overrides)

    return _make
