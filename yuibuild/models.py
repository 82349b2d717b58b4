"""Core data models shared across yuibuild components."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class BundleYUI:
    """Loader metadata attached to a bundle for server and client integrations."""

    server: Optional[Dict[str, Any]] = None
    client: Optional[Dict[str, Any]] = None
    meta_module_fullpath: Optional[str] = None
    meta_module_name: Optional[str] = None


@dataclass
class Bundle:
    """A named collection of source files with one build output directory."""

    name: str
    path: str
    build_directory: str
    yui: BundleYUI = field(default_factory=BundleYUI)


@dataclass
class BundleEvent:
    """Change notification for a bundle, as reported by the host."""

    bundle: Bundle
    files: List[str] = field(default_factory=list)


@dataclass
class ModuleMeta:
    """Build metadata for one module file or one build descriptor."""

    name: str
    buildfile: str
    builds: Dict[str, Dict[str, Any]] = field(default_factory=dict)


@dataclass
class LoaderData:
    """Affinity-filtered loader manifest plus the generated meta-module source."""

    json: Dict[str, Dict[str, Any]]
    js: str
