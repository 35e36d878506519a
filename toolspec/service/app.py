"""FastAPI application exposing analysis, validation and export over HTTP."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ToolSpecConfig, load_config
from ..exporters import ExportError, export_metadata, get_export_format, get_export_formats
from ..github.client import GitHubClient
from ..models import AnalysisState, CheckResult
from ..pipeline import AnalysisPipeline
from ..validators.citation import parse_citation_cff
from ..validators.tool_spec import validate_tool_spec


class HealthResponse(BaseModel):
    status: str


class FormatResponse(BaseModel):
    id: str
    name: str
    description: str
    mime_type: str
    file_extension: str


class AnalyzeRequest(BaseModel):
    repo_url: str
    format: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)


class CheckResponse(BaseModel):
    id: str
    name: str
    status: str
    is_required: bool
    error: Optional[str] = None
    warning: Optional[str] = None
    duration: Optional[float] = None


class ExportResponse(BaseModel):
    format: str
    filename: str
    mime_type: str
    content: str
    validation_errors: List[str]


class AnalyzeResponse(BaseModel):
    state: str
    repo_url: str
    progress: int
    checks: List[CheckResponse]
    warnings: List[str]
    errors: List[str]
    metadata: Optional[Dict[str, Any]] = None
    export: Optional[ExportResponse] = None


class DocumentRequest(BaseModel):
    content: str


class ValidationResponse(BaseModel):
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    document: Optional[Dict[str, Any]] = None


class UnknownFormatError(LookupError):
    """Raised when a request names an export format that is not registered."""


def _default_config() -> ToolSpecConfig:
    return load_config(Path("."))


def create_app(
    pipeline_factory: Optional[Callable[[], AnalysisPipeline]] = None,
    config: Optional[ToolSpecConfig] = None,
) -> FastAPI:
    """Create the FastAPI application exposing toolspec operations."""

    settings = config or _default_config()
    factory = pipeline_factory or (lambda: AnalysisPipeline(GitHubClient(settings.github)))

    app = FastAPI(title="Tool-Spec Converter Service", version="1.0.0")

    async def get_pipeline() -> AnalysisPipeline:
        # One pipeline per request; each owns its AnalysisState.
        return factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.get("/formats", response_model=List[FormatResponse])
    async def formats() -> List[FormatResponse]:
        return [
            FormatResponse(
                id=export_format.id,
                name=export_format.name,
                description=export_format.description,
                mime_type=export_format.exporter.mime_type,
                file_extension=export_format.exporter.file_extension,
            )
            for export_format in get_export_formats()
        ]

    @app.post("/analyze", response_model=AnalyzeResponse)
    async def analyze(
        payload: AnalyzeRequest,
        pipeline: AnalysisPipeline = Depends(get_pipeline),
    ) -> AnalyzeResponse:
        if payload.format is not None and get_export_format(payload.format) is None:
            raise UnknownFormatError(f"Unknown export format '{payload.format}'")

        loop = asyncio.get_running_loop()
        state = await loop.run_in_executor(None, pipeline.run_analysis, payload.repo_url)

        export: Optional[ExportResponse] = None
        if payload.format is not None and state.metadata is not None:
            options = settings.export_options(payload.format)
            options.update(payload.options)
            result = export_metadata(payload.format, state.metadata, options)
            export = ExportResponse(
                format=result.format,
                filename=result.filename,
                mime_type=result.mime_type,
                content=result.content,
                validation_errors=result.validation_errors,
            )
        return _analyze_response(state, export)

    @app.post("/validate/tool", response_model=ValidationResponse)
    async def validate_tool(payload: DocumentRequest) -> ValidationResponse:
        result = validate_tool_spec(payload.content)
        return ValidationResponse(
            is_valid=result.is_valid,
            errors=result.errors,
            warnings=result.warnings,
            document=asdict(result.tool_spec) if result.tool_spec is not None else None,
        )

    @app.post("/validate/citation", response_model=ValidationResponse)
    async def validate_citation(payload: DocumentRequest) -> ValidationResponse:
        result = parse_citation_cff(payload.content)
        return ValidationResponse(
            is_valid=result.is_valid,
            errors=result.errors,
            warnings=result.warnings,
            document=asdict(result.citation_cff) if result.citation_cff is not None else None,
        )

    @app.exception_handler(UnknownFormatError)
    async def unknown_format_handler(_: Any, exc: UnknownFormatError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ExportError)
    async def export_error_handler(_: Any, exc: ExportError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def _check_response(result: CheckResult) -> CheckResponse:
    return CheckResponse(
        id=result.id,
        name=result.name,
        status=result.status,
        is_required=result.is_required,
        error=result.error,
        warning=result.warning,
        duration=result.duration,
    )


def _analyze_response(state: AnalysisState, export: Optional[ExportResponse]) -> AnalyzeResponse:
    return AnalyzeResponse(
        state=state.state,
        repo_url=state.repo_url,
        progress=state.progress,
        checks=[_check_response(result) for result in state.checks.values()],
        warnings=state.warnings,
        errors=state.errors,
        metadata=asdict(state.metadata) if state.metadata is not None else None,
        export=export,
    )


def run_service(
    host: str = "127.0.0.1",
    port: int = 8000,
    config: Optional[ToolSpecConfig] = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
