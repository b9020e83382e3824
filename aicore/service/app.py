"""FastAPI application entrypoint for aicore service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..errors import ConfigError, InvalidPath
from ..models import AgentsContext
from ..pipeline import Pipeline
from ..router import FallbackOptions
from ..scanner import resolve_workspace

T = TypeVar("T")


class WorkspaceRequest(BaseModel):
    path: str


class PhaseRequest(WorkspaceRequest):
    force_phase: Optional[str] = None


class RouteRequest(WorkspaceRequest):
    user_intent: str
    prompt_id: Optional[str] = None


class RunRequest(RouteRequest):
    force_phase: Optional[str] = None
    project_id: Optional[str] = None
    agent_rules: str = ""


class HealthResponse(BaseModel):
    status: str


class DescriptorResponse(BaseModel):
    language: str
    framework: Optional[str] = None
    capabilities: List[str] = Field(default_factory=list)
    signals: List[str] = Field(default_factory=list)
    project_type: str


class PhaseResponse(BaseModel):
    phase: str
    confidence: float
    scores: Dict[str, int]
    signals: Dict[str, Any]
    recommendations: List[str]


class RouteResponse(BaseModel):
    plan: Dict[str, Any]
    decision: Dict[str, Any]


class RunResponse(BaseModel):
    summary: str
    diagnostics: List[Dict[str, Any]]
    changes: List[Dict[str, Any]]
    memory_reference: str
    status: str
    metadata: Optional[Dict[str, Any]] = None
    plan: Optional[Dict[str, Any]] = None
    decision: Optional[Dict[str, Any]] = None
    phase: Optional[Dict[str, Any]] = None


def _default_pipeline(path: str) -> Pipeline:
    return Pipeline.for_workspace(path)


async def _in_executor(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    pipeline_factory: Callable[[str], Pipeline] = _default_pipeline,
) -> FastAPI:
    """Create the FastAPI application exposing scan, phase, route and run."""

    app = FastAPI(title="aicore", version="0.1.0")

    def get_factory() -> Callable[[str], Pipeline]:
        return pipeline_factory

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/scan", response_model=DescriptorResponse)
    async def scan(
        payload: WorkspaceRequest,
        factory: Callable[[str], Pipeline] = Depends(get_factory),
    ) -> DescriptorResponse:
        def _scan() -> Dict[str, Any]:
            root = resolve_workspace(payload.path)
            return factory(str(root)).scanner.scan(root).to_dict()

        return DescriptorResponse(**await _in_executor(_scan))

    @app.post("/phase", response_model=PhaseResponse)
    async def phase(
        payload: PhaseRequest,
        factory: Callable[[str], Pipeline] = Depends(get_factory),
    ) -> PhaseResponse:
        def _phase() -> Dict[str, Any]:
            root = resolve_workspace(payload.path)
            verdict = factory(str(root)).classifier.detect_phase(root, force_phase=payload.force_phase)
            return verdict.to_dict()

        return PhaseResponse(**await _in_executor(_phase))

    @app.post("/route", response_model=RouteResponse)
    async def route(
        payload: RouteRequest,
        factory: Callable[[str], Pipeline] = Depends(get_factory),
    ) -> RouteResponse:
        def _route() -> RouteResponse:
            root = resolve_workspace(payload.path)
            pipeline = factory(str(root))
            descriptor = pipeline.scanner.scan(root)
            plan = pipeline.router.route(descriptor, payload.user_intent, root)
            signals = pipeline.router.score_signals(descriptor, payload.user_intent, plan, root)
            decision = pipeline.router.apply_fallback_rules(
                FallbackOptions(
                    signals=signals,
                    prompt_id=payload.prompt_id or "unknown",
                    user_intent=payload.user_intent,
                )
            )
            return RouteResponse(plan=plan.to_dict(), decision=decision.to_dict())

        return await _in_executor(_route)

    @app.post("/run", response_model=RunResponse)
    async def run(
        payload: RunRequest,
        factory: Callable[[str], Pipeline] = Depends(get_factory),
    ) -> RunResponse:
        agents_context = None
        if payload.project_id:
            agents_context = AgentsContext(project_id=payload.project_id, rules=payload.agent_rules)

        def _run() -> Dict[str, Any]:
            root = resolve_workspace(payload.path)
            result = factory(str(root)).run(
                root,
                payload.user_intent,
                prompt_id=payload.prompt_id,
                force_phase=payload.force_phase,
                agents_context=agents_context,
            )
            return result.to_dict()

        return RunResponse(**await _in_executor(_run))

    @app.exception_handler(InvalidPath)
    async def invalid_path_handler(_: Any, exc: InvalidPath) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ConfigError)
    async def config_error_handler(_: Any, exc: ConfigError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]
