"""Generation of the ``loader-<bundle>`` meta-module."""

from __future__ import annotations

import copy
import json
from typing import Any, Dict, Mapping, Optional

from ..models import LoaderData, ModuleMeta

_TEMPLATE = """YUI.add('{name}', function (Y, NAME) {{
    var groups = Y.config.groups || {{}};
    Y.applyConfig({{
        groups: {{
            {group}: Y.merge(groups[{group}] || {{}}, {{
                modules: {modules}
            }})
        }}
    }});
}}, '', {{requires: ['loader-base']}});
"""

_MODULES_INDENT = " " * 16


def meta_module_name(bundle_name: str) -> str:
    """Name of the generated loader meta-module for a bundle."""
    return f"loader-{bundle_name}"


def build_config(build: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the loader config of a build variant, or an empty mapping."""
    config = build.get("config") if isinstance(build, Mapping) else None
    return config if isinstance(config, dict) else {}


class MetaModuleBuilder:
    """Compiles module build metadata into loader json and a YUI meta-module."""

    def __init__(self, name: str, group: str) -> None:
        self.name = name
        self.group = group
        self.data: Optional[LoaderData] = None

    def compile(self, records: Mapping[str, ModuleMeta]) -> LoaderData:
        modules: Dict[str, Dict[str, Any]] = {}
        for key in sorted(records):
            for build_name, build in records[key].builds.items():
                modules[build_name] = copy.deepcopy(build_config(build))
        ordered = {name: modules[name] for name in sorted(modules)}
        self.data = LoaderData(json=ordered, js=self.render(ordered))
        return self.data

    def render(self, modules: Mapping[str, Any]) -> str:
        serialised = json.dumps(modules, indent=4, sort_keys=True)
        serialised = serialised.replace("\n", "\n" + _MODULES_INDENT)
        return _TEMPLATE.format(
            name=self.name,
            group=json.dumps(self.group),
            modules=serialised,
        )


__all__ = ["MetaModuleBuilder", "build_config", "meta_module_name"]
