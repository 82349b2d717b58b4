"""Module builder contract and the shifter-backed implementation."""

from .base import BuildError, BuildOptions, ModuleBuilder
from .shifter import BUILD_DESCRIPTOR_NAME, ShifterBuilder

__all__ = [
    "BUILD_DESCRIPTOR_NAME",
    "BuildError",
    "BuildOptions",
    "ModuleBuilder",
    "ShifterBuilder",
]
