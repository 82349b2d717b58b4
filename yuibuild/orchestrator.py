"""Change-event orchestration: resolve, compile loader views, write, build."""

from __future__ import annotations

import asyncio
import functools
import os
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .builders import BuildOptions, ModuleBuilder, ShifterBuilder
from .config import PluginConfig
from .host import HostAPI
from .loader import LoaderMetadataCompiler, meta_module_name
from .logging import get_logger
from .models import Bundle, BundleEvent, LoaderData
from .pipeline import Pipeline, PipelineResult, PipelineStage
from .resolver import BuildSetResolver, filter_files_in_bundle
from .stores import ModuleRegistry


@dataclass
class EventContext:
    """Mutable state shared by the stages of one change event."""

    bundle: Bundle
    api: HostAPI
    module_name: str
    destination_path: str
    builds: List[str]
    server_data: Optional[LoaderData] = None
    client_data: Optional[LoaderData] = None
    meta_module_path: Optional[str] = None


class Orchestrator:
    """Builds YUI modules and loader metadata for bundles as their files change.

    One instance owns the module registry, so metadata registered while
    handling one event stays available to the following events of the same
    bundle. Events for a bundle must be delivered one at a time.
    """

    def __init__(
        self,
        config: PluginConfig | None = None,
        *,
        builder: ModuleBuilder | None = None,
        registry: ModuleRegistry | None = None,
        debug: bool | None = None,
    ) -> None:
        self.config = config or PluginConfig()
        self.registry = registry or ModuleRegistry()
        self.builder = builder or ShifterBuilder()
        self.resolver = BuildSetResolver(self.registry, self.builder)
        self.compiler = LoaderMetadataCompiler(self.registry)
        self.file_filter = self.config.file_filter
        self.args = self.config.builder_args(debug=debug)
        self.logger = get_logger("orchestrator")
        self.logger.debug("Computed arguments for shifter: %s", " ".join(self.args))
        self._pipeline: Pipeline[EventContext] = Pipeline(
            [
                PipelineStage("compile-server", self._compile_server),
                PipelineStage("attach-server", self._attach_server),
                PipelineStage("compile-client", self._compile_client),
                PipelineStage("attach-client", self._attach_client),
                PipelineStage("attach-meta", self._attach_meta),
                PipelineStage("build", self._build),
            ],
            name="bundle-updated",
        )

    def resolve_targets(
        self, bundle: Bundle, files: Optional[Iterable[str]], api: HostAPI
    ) -> List[str]:
        """Filter the modified files and return the sorted build targets."""
        modified = filter_files_in_bundle(bundle, files, self.file_filter)
        descriptors = api.get_bundle_files(bundle.name, extensions=("json",))
        return self.resolver.resolve(bundle, modified, descriptors)

    async def bundle_updated(self, event: BundleEvent, api: HostAPI) -> PipelineResult:
        """Handle a change event for a bundle."""
        bundle = event.bundle
        module_name = meta_module_name(bundle.name)
        loop = asyncio.get_running_loop()
        # module checks read every modified file
        builds = await loop.run_in_executor(
            None, self.resolve_targets, bundle, event.files, api
        )

        if not self.registry.lookup(bundle.name) or not builds:
            self.logger.debug("No YUI modules queued for bundle %s", bundle.name)
            return PipelineResult.skipped()

        self.logger.info("Building %d target(s) for bundle %s", len(builds), bundle.name)
        context = EventContext(
            bundle=bundle,
            api=api,
            module_name=module_name,
            destination_path=f"{module_name}.js",
            builds=builds,
        )
        result = await self._pipeline.run(context)
        result.targets = list(context.builds)
        if result.ok:
            self.logger.info("Bundle %s built", bundle.name)
        return result

    def build_args(self, bundle: Bundle) -> List[str]:
        """Builder arguments for a bundle, including the cssproc base when configured."""
        args = list(self.args)
        cssproc = self.config.cssproc
        if cssproc:
            # url() in css modules are prefixed with a per-bundle base so they
            # resolve against the bundle build directory when combo loaded
            if not cssproc.endswith("/"):
                cssproc += "/"
            build_dirname = os.path.basename(os.path.normpath(bundle.build_directory))
            args.extend(["--cssproc", cssproc + build_dirname])
        return args

    # ------------------------------------------------------------------
    # Stages

    async def _compile_server(self, context: EventContext) -> None:
        context.server_data = await self.compiler.server_view(context.bundle)

    async def _attach_server(self, context: EventContext) -> None:
        # server integrations read the manifest to use modules on the server side
        if context.server_data is not None:
            context.bundle.yui.server = context.server_data.json

    async def _compile_client(self, context: EventContext) -> None:
        context.client_data = await self.compiler.client_view(
            context.bundle, context.module_name
        )

    async def _attach_client(self, context: EventContext) -> None:
        if context.client_data is None:
            return
        context.bundle.yui.client = context.client_data.json
        context.meta_module_path = await context.api.write_file_in_bundle(
            context.bundle.name, context.destination_path, context.client_data.js
        )

    async def _attach_meta(self, context: EventContext) -> None:
        path = context.meta_module_path
        if not path:
            return
        context.bundle.yui.meta_module_fullpath = path
        context.bundle.yui.meta_module_name = context.module_name
        context.builds.append(path)

    async def _build(self, context: EventContext) -> None:
        options = BuildOptions(
            build_directory=context.bundle.build_directory,
            args=self.build_args(context.bundle),
            cache=self.config.cache,
        )
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            functools.partial(self.builder.build_files, list(context.builds), options),
        )


__all__ = ["EventContext", "Orchestrator"]
