"""Configuration loading for the yuibuild plugin (.yuibuild.yml)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import yaml

from .models import Bundle

CONFIG_FILENAME = ".yuibuild.yml"

DEBUG_ENV_VAR = "YUIBUILD_DEBUG"

FileFilter = Callable[[Bundle, str], bool]


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class PluginConfig:
    """Options recognised by the plugin and passed through to the module builder.

    ``filter`` may be a regex string, a compiled pattern, or a predicate taking
    the bundle and the file path relative to the bundle root. Patterns are
    adapted into a predicate once, see :attr:`file_filter`.
    """

    cache: bool = True
    args: List[str] = field(default_factory=list)
    lint: bool = False
    coverage: bool = False
    silent: bool = False
    quiet: bool = False
    cssproc: Optional[str] = None
    filter: Union[str, re.Pattern[str], FileFilter, None] = None

    @property
    def file_filter(self) -> Optional[FileFilter]:
        return make_file_filter(self.filter)

    def builder_args(self, *, debug: bool | None = None) -> List[str]:
        """Compute the shifter command line arguments for these options."""
        if debug is None:
            debug = debug_mode()
        args = ["--no-global-config"]
        if not self.coverage:
            args.append("--no-coverage")
        if not self.lint:
            args.append("--no-lint")
        # outside of debug mode shifter always runs silent and quiet
        if not debug or self.silent:
            args.append("--silent")
        if not debug or self.quiet:
            args.append("--quiet")
        return args + list(self.args)


def make_file_filter(value: Union[str, re.Pattern[str], FileFilter, None]) -> Optional[FileFilter]:
    """Adapt a pattern or predicate into a single ``(bundle, relative_path)`` predicate."""
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = re.compile(value)
        except re.error as exc:
            raise ConfigError(f"Invalid filter pattern {value!r}: {exc}") from exc
    if isinstance(value, re.Pattern):
        pattern = value

        def _matches(bundle: Bundle, relative_path: str) -> bool:
            return pattern.search(relative_path) is not None

        return _matches
    if callable(value):
        return value
    raise ConfigError("filter must be a regular expression or a callable")


def debug_mode() -> bool:
    value = os.getenv(DEBUG_ENV_VAR)
    return bool(_as_bool(value)) if value is not None else False


def load_config(config_path: Path) -> PluginConfig:
    """Load plugin options from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return PluginConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = PluginConfig()
    cache = _as_bool(data.get("cache"))
    if cache is not None:
        config.cache = cache
    config.args = _as_str_list(data.get("args"))
    for flag in ("lint", "coverage", "silent", "quiet"):
        value = _as_bool(data.get(flag))
        if value is not None:
            setattr(config, flag, value)
    config.cssproc = _as_str(data.get("cssproc"))

    raw_filter = _as_str(data.get("filter"))
    if raw_filter:
        # compile eagerly so a bad pattern fails at load time
        make_file_filter(raw_filter)
        config.filter = raw_filter

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "FileFilter",
    "PluginConfig",
    "debug_mode",
    "load_config",
    "make_file_filter",
]
