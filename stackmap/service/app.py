"""FastAPI application entrypoint for stackmap service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..models import AnalysisReport, AnalysisResult
from ..orchestrator import ANALYSIS_VERSION, ReportComposer


class AnalyzeRequest(BaseModel):
    path: str
    enrich: bool = False
    timeout: Optional[float] = None


class AnalyzeResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class InsightsResponse(BaseModel):
    success: bool
    data: List[Dict[str, str]]


class RecommendationsResponse(BaseModel):
    success: bool
    data: Dict[str, Any]


class HealthResponse(BaseModel):
    status: str


def _default_composer() -> ReportComposer:
    return ReportComposer()


def create_app(
    composer_factory: Callable[[], ReportComposer] = _default_composer,
) -> FastAPI:
    """Create the FastAPI application exposing the analysis operations."""

    app = FastAPI(title="Stackmap Service", version=ANALYSIS_VERSION)

    async def get_composer() -> ReportComposer:
        # Lazy-instantiate per request to keep state predictable.
        return composer_factory()

    async def _analyze(composer: ReportComposer, payload: AnalyzeRequest) -> AnalysisResult:
        root = Path(payload.path).expanduser()
        if not root.exists():
            raise FileNotFoundError(f"Project path not found: {payload.path}")

        def _run() -> AnalysisResult:
            return composer.run(root, timeout=payload.timeout, enrich=payload.enrich)

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, _run)

    def _require_report(result: AnalysisResult) -> AnalysisReport:
        if not result.success or result.report is None:
            raise RuntimeError(result.message or "Analysis failed")
        return result.report

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        composer: ReportComposer = Depends(get_composer),
    ) -> AnalyzeResponse:
        result = await _analyze(composer, payload)
        _require_report(result)
        return AnalyzeResponse(**result.to_dict())

    @app.post("/insights", response_model=InsightsResponse)
    async def insights(
        payload: AnalyzeRequest,
        composer: ReportComposer = Depends(get_composer),
    ) -> InsightsResponse:
        report = _require_report(await _analyze(composer, payload))
        return InsightsResponse(success=True, data=composer.quick_insights(report))

    @app.post("/recommendations", response_model=RecommendationsResponse)
    async def recommendations(
        payload: AnalyzeRequest,
        composer: ReportComposer = Depends(get_composer),
    ) -> RecommendationsResponse:
        report = _require_report(await _analyze(composer, payload))
        return RecommendationsResponse(success=True, data=composer.recommendations(report))

    @app.exception_handler(FileNotFoundError)
    async def file_not_found_handler(_: Any, exc: FileNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(host: str = "127.0.0.1", port: int = 8000) -> None:  # pragma: no cover - integration path
    app = create_app()
    uvicorn.run(app, host=host, port=port)
