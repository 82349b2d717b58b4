"""Contract for the external module builder."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..models import ModuleMeta


class BuildError(RuntimeError):
    """Raised when building one or more files fails."""

    def __init__(self, message: str, files: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.files = list(files)


@dataclass
class BuildOptions:
    """Settings applied uniformly to every file in one build invocation."""

    build_directory: str
    args: List[str] = field(default_factory=list)
    cache: bool = True


class ModuleBuilder(ABC):
    """Validates module files and build descriptors, and builds them."""

    @abstractmethod
    def check_module_file(self, path: str) -> Optional[ModuleMeta]:
        """Return the metadata for a module file, or None when it is not a module."""

    @abstractmethod
    def check_build_descriptor(self, path: str) -> Optional[ModuleMeta]:
        """Return the metadata for a build descriptor, or None when it is invalid."""

    @abstractmethod
    def build_files(self, paths: Sequence[str], options: BuildOptions) -> None:
        """Build every path into ``options.build_directory``; raise BuildError on failure."""
