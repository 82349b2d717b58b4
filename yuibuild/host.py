"""Host runtime collaborators: bundle file listing and artifact writes."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from .logging import get_logger
from .models import Bundle

DEFAULT_BUILD_DIRNAME = "build"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".idea",
}


class HostAPI(Protocol):
    """Services the plugin consumes from the bundle host."""

    def get_bundle_files(
        self, bundle_name: str, *, extensions: Sequence[str] | str | None = None
    ) -> List[str]:
        ...

    async def write_file_in_bundle(
        self, bundle_name: str, relative_path: str, content: str | None
    ) -> Optional[str]:
        ...


class FileSystemHost:
    """Serves bundles that live in local directories."""

    def __init__(self) -> None:
        self._bundles: Dict[str, Bundle] = {}
        self.logger = get_logger("host")

    def add_bundle(
        self,
        path: str | Path,
        *,
        name: str | None = None,
        build_directory: str | Path | None = None,
    ) -> Bundle:
        root = Path(path).expanduser().resolve()
        if not root.is_dir():
            raise FileNotFoundError(f"Bundle directory not found: {root}")
        build_dir = (
            Path(build_directory).expanduser().resolve()
            if build_directory
            else root / DEFAULT_BUILD_DIRNAME
        )
        existing = self._bundles.get(name or root.name)
        if (
            existing is not None
            and existing.path == str(root)
            and existing.build_directory == str(build_dir)
        ):
            return existing
        bundle = Bundle(name=name or root.name, path=str(root), build_directory=str(build_dir))
        self._bundles[bundle.name] = bundle
        self.logger.debug("Registered bundle %s at %s", bundle.name, root)
        return bundle

    def get_bundle(self, bundle_name: str) -> Bundle:
        try:
            return self._bundles[bundle_name]
        except KeyError:
            raise KeyError(f"Unknown bundle: {bundle_name}") from None

    def get_bundle_files(
        self, bundle_name: str, *, extensions: Sequence[str] | str | None = None
    ) -> List[str]:
        bundle = self.get_bundle(bundle_name)
        suffixes = _normalise_extensions(extensions)
        build_dir = os.path.normpath(bundle.build_directory)
        files: List[str] = []
        for current, dirnames, filenames in os.walk(bundle.path):
            dirnames[:] = sorted(
                d
                for d in dirnames
                if d not in _EXCLUDED_DIRS
                and os.path.normpath(os.path.join(current, d)) != build_dir
            )
            for filename in filenames:
                if suffixes and os.path.splitext(filename)[1] not in suffixes:
                    continue
                files.append(os.path.join(current, filename))
        return sorted(files)

    async def write_file_in_bundle(
        self, bundle_name: str, relative_path: str, content: str | None
    ) -> Optional[str]:
        if not content:
            return None
        bundle = self.get_bundle(bundle_name)
        target = Path(bundle.build_directory) / relative_path
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, _write_text, target, content)
        self.logger.debug("Wrote %s", target)
        return str(target)


def _write_text(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


def _normalise_extensions(extensions: Iterable[str] | str | None) -> set[str]:
    if extensions is None:
        return set()
    if isinstance(extensions, str):
        extensions = [extensions]
    return {ext if ext.startswith(".") else f".{ext}" for ext in extensions}


__all__ = ["DEFAULT_BUILD_DIRNAME", "FileSystemHost", "HostAPI"]
