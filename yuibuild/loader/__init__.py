"""Loader metadata compilation and meta-module generation."""

from .compiler import (
    AffinityFilter,
    LoaderMetadataCompiler,
    client_affinity,
    server_affinity,
)
from .metamodule import MetaModuleBuilder, build_config, meta_module_name

__all__ = [
    "AffinityFilter",
    "LoaderMetadataCompiler",
    "MetaModuleBuilder",
    "build_config",
    "client_affinity",
    "meta_module_name",
    "server_affinity",
]
