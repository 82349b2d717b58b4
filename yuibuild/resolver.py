"""Classification of changed files into the set of build targets."""

from __future__ import annotations

import os
from typing import Iterable, List, Optional, Set

from .builders.base import ModuleBuilder
from .builders.shifter import BUILD_DESCRIPTOR_NAME
from .config import FileFilter
from .loader.metamodule import meta_module_name
from .logging import get_logger
from .models import Bundle
from .stores.registry import ModuleRegistry


class BuildSetResolver:
    """Infers which module files and build descriptors must be rebuilt.

    Module files are targeted when they were modified and are recognised by the
    module builder. A ``build.json`` descriptor is targeted when it was modified
    itself, or when any modified ``.js`` file lives under its directory and
    outside the bundle build directory. The descriptor's real dependency scope
    is unknown here, so every contained change rebuilds it. A bundle without a
    build directory has no generated output to exclude.

    Every recognised module and descriptor is written into the registry, even
    when it is not targeted, so later loader compilations see the whole bundle.
    """

    def __init__(self, registry: ModuleRegistry, builder: ModuleBuilder) -> None:
        self.registry = registry
        self.builder = builder
        self.logger = get_logger("resolver")

    def resolve(
        self,
        bundle: Bundle,
        modified_files: Optional[Iterable[str]],
        descriptor_files: Optional[Iterable[str]],
    ) -> List[str]:
        bundle_name = bundle.name
        loader_file = f"{meta_module_name(bundle_name)}.js"
        build_directory = bundle.build_directory
        builds: Set[str] = set()

        # Registration order feeds the generated meta-module, so inputs are
        # processed in sorted order to keep its content stable across runs.
        modified = sorted(modified_files or [])
        descriptors = sorted(descriptor_files or [])

        for file in modified:
            if not _is_js(file) or os.path.basename(file) == loader_file:
                continue
            record = self.builder.check_module_file(file)
            if record is None:
                self.logger.debug("Skipping %s; not a module", file)
                continue
            self.registry.register(bundle_name, file, record)
            builds.add(file)

        for descriptor in descriptors:
            if os.path.basename(descriptor) != BUILD_DESCRIPTOR_NAME:
                continue
            record = self.builder.check_build_descriptor(descriptor)
            if record is None:
                self.logger.debug("Skipping %s; invalid build descriptor", descriptor)
                continue
            directory = os.path.dirname(descriptor)
            for file in modified:
                if file == descriptor:
                    builds.add(descriptor)
                elif (
                    _is_js(file)
                    and (not directory or _is_within(file, directory))
                    and not _is_within(file, build_directory)
                ):
                    builds.add(descriptor)
            self.registry.register(bundle_name, descriptor, record)

        targets = sorted(builds)
        self.logger.debug(
            "Resolved %d build target(s) for bundle %s", len(targets), bundle_name
        )
        return targets


def filter_files_in_bundle(
    bundle: Bundle, files: Optional[Iterable[str]], predicate: Optional[FileFilter]
) -> List[str]:
    """Keep the files accepted by ``predicate(bundle, relative_path)``."""
    candidates = list(files or [])
    if predicate is None:
        return candidates
    return [
        file
        for file in candidates
        if predicate(bundle, os.path.relpath(file, bundle.path))
    ]


def _is_js(path: str) -> bool:
    return os.path.splitext(path)[1] == ".js"


def _is_within(path: str, directory: str) -> bool:
    if not directory:
        return False
    prefix = directory if directory.endswith(os.sep) else directory + os.sep
    return path == directory or path.startswith(prefix)


__all__ = ["BuildSetResolver", "filter_files_in_bundle"]
