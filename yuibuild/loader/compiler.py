"""Affinity-filtered compilation of registry metadata into loader data."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from ..logging import get_logger
from ..models import Bundle, LoaderData, ModuleMeta
from ..stores.registry import ModuleRegistry
from .metamodule import MetaModuleBuilder, build_config, meta_module_name

AffinityFilter = Callable[[str, Mapping[str, Any]], bool]


def server_affinity(name: str, config: Mapping[str, Any]) -> bool:
    return config.get("affinity") != "client"


def client_affinity(name: str, config: Mapping[str, Any]) -> bool:
    return config.get("affinity") != "server"


class LoaderMetadataCompiler:
    """Builds server and client loader views from the module registry."""

    def __init__(self, registry: ModuleRegistry) -> None:
        self.registry = registry
        self.logger = get_logger("loader.compiler")

    def compile(
        self, bundle_name: str, affinity_filter: Optional[AffinityFilter] = None
    ) -> Optional[LoaderData]:
        """Return loader data for the variants accepted by ``affinity_filter``.

        Returns None when no build variant survives the filter.
        """
        meta = self.registry.lookup(bundle_name)
        build_meta: Dict[str, ModuleMeta] = {}

        for key, record in meta.items():
            for build_name, build in record.builds.items():
                # the filter decides by affinity or any other build config
                if affinity_filter is not None and not affinity_filter(
                    record.name, build_config(build)
                ):
                    continue
                entry = build_meta.setdefault(
                    key, ModuleMeta(name=record.name, buildfile=record.buildfile)
                )
                entry.builds[build_name] = build

        if not build_meta:
            self.logger.debug("No modules in bundle %s passed the filter", bundle_name)
            return None

        builder = MetaModuleBuilder(name=meta_module_name(bundle_name), group=bundle_name)
        data = builder.compile(build_meta)
        return data if data.json else None

    async def server_view(self, bundle: Bundle) -> Optional[LoaderData]:
        return self.compile(bundle.name, server_affinity)

    async def client_view(self, bundle: Bundle, module_name: str) -> Optional[LoaderData]:
        data = self.compile(bundle.name, client_affinity)
        if data is not None:
            # the meta-module describes itself to the browser-side loader
            data.json[module_name] = {
                "group": bundle.name,
                "affinity": "client",
            }
        return data


__all__ = [
    "AffinityFilter",
    "LoaderMetadataCompiler",
    "client_affinity",
    "server_affinity",
]
