"""In-memory registry of module build metadata."""

from __future__ import annotations

from typing import Dict, Iterator, List, Mapping

from ..models import ModuleMeta


class ModuleRegistry:
    """Stores module metadata keyed by bundle name and cache key.

    The cache key is the filesystem path of the module file or build
    descriptor that produced the record. A later registration for the same
    key replaces the earlier record.
    """

    def __init__(self) -> None:
        self._bundles: Dict[str, Dict[str, ModuleMeta]] = {}

    def register(self, bundle_name: str, cache_key: str, record: ModuleMeta) -> None:
        self._bundles.setdefault(bundle_name, {})[cache_key] = record

    def lookup(self, bundle_name: str) -> Mapping[str, ModuleMeta]:
        return self._bundles.get(bundle_name, {})

    def bundles(self) -> List[str]:
        return [name for name, entries in self._bundles.items() if entries]

    def __contains__(self, bundle_name: object) -> bool:
        return bool(self._bundles.get(bundle_name)) if isinstance(bundle_name, str) else False

    def __iter__(self) -> Iterator[str]:
        return iter(self.bundles())


__all__ = ["ModuleRegistry"]
