"""Incremental YUI module builds and loader metadata for bundles."""

__version__ = "0.1.0"
