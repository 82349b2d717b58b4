"""State kept by the plugin between change events."""

from .build_cache import BuildCache
from .registry import ModuleRegistry

__all__ = ["BuildCache", "ModuleRegistry"]
