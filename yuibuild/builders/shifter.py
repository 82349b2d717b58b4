"""Module builder backed by the ``shifter`` command line tool."""

from __future__ import annotations

import json
import os
import re
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..logging import get_logger
from ..models import ModuleMeta
from ..stores.build_cache import BuildCache, directory_fingerprint, file_fingerprint
from .base import BuildError, BuildOptions, ModuleBuilder

BUILD_DESCRIPTOR_NAME = "build.json"

_YUI_ADD_RE = re.compile(r"YUI\.add\(\s*(['\"])(?P<name>[^'\"]+)\1")
_REQUIRES_RE = re.compile(r"requires\s*:\s*\[(?P<items>[^\]]*)\]")
_AFFINITY_RE = re.compile(r"affinity\s*:\s*(['\"])(?P<affinity>[^'\"]+)\1")
_QUOTED_RE = re.compile(r"(['\"])([^'\"]+)\1")


class ShifterBuilder(ModuleBuilder):
    """Recognises YUI modules and ``build.json`` descriptors and shifts them."""

    def __init__(
        self,
        executable: str = "shifter",
        *,
        runner: Callable[..., object] | None = None,
        cache_factory: Callable[[str], BuildCache] | None = None,
    ) -> None:
        self.executable = executable
        self._runner = runner or self._default_runner
        self._cache_factory = cache_factory or BuildCache.for_build_directory
        self.logger = get_logger("builders.shifter")

    # ------------------------------------------------------------------
    # Validity checks

    def check_module_file(self, path: str) -> Optional[ModuleMeta]:
        try:
            source = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.debug("Skipping unreadable module %s: %s", path, exc)
            return None

        matches = list(_YUI_ADD_RE.finditer(source))
        if not matches:
            return None

        record = ModuleMeta(name=matches[0].group("name"), buildfile=path)
        for index, match in enumerate(matches):
            end = matches[index + 1].start() if index + 1 < len(matches) else len(source)
            name = match.group("name")
            record.builds[name] = {
                "name": name,
                "config": _registration_config(source[match.end():end]),
            }
        return record

    def check_build_descriptor(self, path: str) -> Optional[ModuleMeta]:
        try:
            content = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            self.logger.debug("Skipping invalid build descriptor %s: %s", path, exc)
            return None
        if not isinstance(content, dict):
            return None
        builds = content.get("builds")
        if not isinstance(builds, dict) or not builds:
            return None

        directory = os.path.dirname(path)
        name = content.get("name") if isinstance(content.get("name"), str) else None
        record = ModuleMeta(name=name or os.path.basename(directory), buildfile=path)
        meta = _load_meta_configs(Path(directory) / "meta")
        for build_name, build in builds.items():
            config: Dict[str, Any] = dict(meta.get(build_name, {}))
            if isinstance(build, dict) and isinstance(build.get("config"), dict):
                config.update(build["config"])
            record.builds[build_name] = {"name": build_name, "config": config}
        return record

    # ------------------------------------------------------------------
    # Building

    def build_files(self, paths: Sequence[str], options: BuildOptions) -> None:
        cache = self._cache_factory(options.build_directory) if options.cache else None
        signature = " ".join([options.build_directory, *options.args])
        try:
            for path in paths:
                fingerprint = self._fingerprint(path, options)
                if cache is not None and fingerprint is not None:
                    if cache.is_fresh(path, fingerprint=fingerprint, signature=signature):
                        self.logger.debug("Skipping %s; unchanged since last build", path)
                        continue
                self._shift(path, options)
                if cache is not None and fingerprint is not None:
                    cache.store(path, fingerprint=fingerprint, signature=signature)
        finally:
            if cache is not None:
                removed = cache.prune(key for key in cache.keys() if os.path.exists(key))
                if removed:
                    self.logger.debug("Dropped %d stale cache entries", len(removed))
                cache.persist()

    @staticmethod
    def _fingerprint(path: str, options: BuildOptions) -> Optional[str]:
        # a descriptor builds the sources around it, so its whole directory counts
        if os.path.basename(path) == BUILD_DESCRIPTOR_NAME:
            return directory_fingerprint(
                os.path.dirname(path) or ".", exclude=[options.build_directory]
            )
        return file_fingerprint(path)

    def _shift(self, path: str, options: BuildOptions) -> None:
        directory = os.path.dirname(path) or "."
        args: List[str] = [self.executable]
        if os.path.splitext(path)[1] == ".js":
            args.extend(["--yui-module", path])
        elif os.path.basename(path) != BUILD_DESCRIPTOR_NAME:
            raise BuildError(f"Unsupported build target: {path}", [path])
        args.extend(["--build-dir", options.build_directory])
        args.extend(options.args)

        self.logger.debug("Shifting %s", path)
        try:
            self._runner(args, cwd=Path(directory))
        except FileNotFoundError as exc:
            raise BuildError(
                f"Unable to locate '{self.executable}'. Install shifter or provide a custom runner.",
                [path],
            ) from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip() if isinstance(exc.stderr, str) else ""
            raise BuildError(
                f"shifter failed for {path} with exit code {exc.returncode}: {stderr}",
                [path],
            ) from exc

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> None:
        # stderr is kept so a failure can be reported through BuildError
        subprocess.run(list(args), cwd=str(cwd), check=True, text=True, stderr=subprocess.PIPE)


def _registration_config(segment: str) -> Dict[str, Any]:
    # the config literal closes the registration, so the last match wins
    config: Dict[str, Any] = {}
    requires = [match.group("items") for match in _REQUIRES_RE.finditer(segment)]
    if requires:
        config["requires"] = [name for _, name in _QUOTED_RE.findall(requires[-1])]
    affinities = [match.group("affinity") for match in _AFFINITY_RE.finditer(segment)]
    if affinities:
        config["affinity"] = affinities[-1]
    return config


def _load_meta_configs(meta_dir: Path) -> Dict[str, Dict[str, Any]]:
    if not meta_dir.is_dir():
        return {}
    configs: Dict[str, Dict[str, Any]] = {}
    for meta_file in sorted(meta_dir.glob("*.json")):
        try:
            data = json.loads(meta_file.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            continue
        if not isinstance(data, dict):
            continue
        for name, config in data.items():
            if isinstance(name, str) and isinstance(config, dict):
                configs[name] = config
    return configs


__all__ = ["BUILD_DESCRIPTOR_NAME", "ShifterBuilder"]
