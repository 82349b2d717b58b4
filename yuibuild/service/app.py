"""FastAPI application receiving bundle change events."""

from __future__ import annotations

import asyncio
import functools
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, DefaultDict, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .. import __version__
from ..config import ConfigError, PluginConfig, load_config
from ..host import FileSystemHost
from ..logging import get_logger
from ..models import BundleEvent
from ..orchestrator import Orchestrator
from ..pipeline import PipelineStatus


class UpdateRequest(BaseModel):
    path: str
    name: Optional[str] = None
    build_dir: Optional[str] = None
    files: List[str] = Field(default_factory=list)


class UpdateResponse(BaseModel):
    status: str
    targets: List[str] = Field(default_factory=list)
    meta_module: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


def create_app(
    orchestrator_factory: Callable[[PluginConfig], Orchestrator] = Orchestrator,
    host_factory: Callable[[], FileSystemHost] = FileSystemHost,
) -> FastAPI:
    """Create the FastAPI application exposing the change-event handler."""

    app = FastAPI(title="yuibuild service", version=__version__)
    host = host_factory()
    # one orchestrator per bundle root so its registry spans requests
    orchestrators: Dict[str, Orchestrator] = {}
    locks: DefaultDict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
    logger = get_logger("service")

    def get_orchestrator(bundle_path: str) -> Orchestrator:
        orchestrator = orchestrators.get(bundle_path)
        if orchestrator is None:
            orchestrator = orchestrator_factory(load_config(Path(bundle_path)))
            orchestrators[bundle_path] = orchestrator
        return orchestrator

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/bundles/update", response_model=UpdateResponse)
    async def update_bundle(payload: UpdateRequest) -> UpdateResponse:
        loop = asyncio.get_running_loop()
        bundle = await loop.run_in_executor(
            None,
            functools.partial(
                host.add_bundle, payload.path, name=payload.name, build_directory=payload.build_dir
            ),
        )
        # events of one bundle share its registry and loader state, so they
        # are handled one at a time
        async with locks[bundle.name]:
            orchestrator = get_orchestrator(bundle.path)
            files = list(payload.files) or await loop.run_in_executor(
                None, host.get_bundle_files, bundle.name
            )
            result = await orchestrator.bundle_updated(BundleEvent(bundle, files), host)
            meta_module = bundle.yui.meta_module_fullpath

        if result.status is PipelineStatus.FAILED:
            logger.error("Bundle %s failed at stage %s", bundle.name, result.failed_stage)
            raise HTTPException(
                status_code=500,
                detail={"stage": result.failed_stage, "error": str(result.error)},
            )
        return UpdateResponse(
            status=result.status.value,
            targets=result.targets,
            meta_module=meta_module,
        )

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(
        _: Any, exc: FileNotFoundError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(
        _: Any, exc: ConfigError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app()
    uvicorn.run(app, host=host, port=port)
