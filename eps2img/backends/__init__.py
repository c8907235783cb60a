"""External program backends for eps2img."""

from .base import BoundingBox, CommandRunner, SubprocessRunner
from .ghostscript import GhostscriptCommands, parse_bounding_box
from .inkscape import InkscapeCommands, detect_generation

__all__ = [
    "BoundingBox",
    "CommandRunner",
    "SubprocessRunner",
    "GhostscriptCommands",
    "parse_bounding_box",
    "InkscapeCommands",
    "detect_generation",
]
