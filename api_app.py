from __future__ import annotations

from typing import Any, Literal

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api_service import ApiServiceError, JobRecord, QrScanApiService
from app_constants import APP_NAME

app = FastAPI(
    title=f"{APP_NAME} API",
    version="1.0.0",
    description=(
        "Submit scan or scan-and-rename jobs over directories of PDF files, poll "
        "their progress, cancel them, and tag single PDFs with a QR code."
    ),
)

service = QrScanApiService()


class ErrorResponse(BaseModel):
    code: str = Field(description="Stable machine-readable error code")
    message: str = Field(description="User-safe error message")
    details: dict[str, Any] = Field(default_factory=dict)


class JobOptions(BaseModel):
    page: int | None = Field(default=None, ge=1)
    use_cache: bool | None = None
    write_cache: bool | None = None
    max_workers: int | None = Field(default=None, ge=1)
    write_report: bool | None = None
    dpi_ladder: list[int] | None = None


class JobSubmitRequest(BaseModel):
    job_type: Literal["scan", "rename"]
    input_dir: str = Field(min_length=1)
    output_dir: str | None = None
    options: JobOptions = Field(default_factory=JobOptions)
    webhook_url: str | None = None


class JobSubmitResponse(BaseModel):
    job_id: str
    job_type: str
    status: str
    created_at: str


class JobStatusResponse(BaseModel):
    job_id: str
    job_type: str
    status: str
    created_at: str
    updated_at: str
    input_dir: str
    output_dir: str | None
    progress: dict[str, Any]
    messages: list[str]
    summary: dict[str, Any]
    results: list[dict[str, Any]]
    errors: list[dict[str, str]]
    report_path: str | None


class TagRequestBody(BaseModel):
    pdf_path: str = Field(min_length=1)
    code: str


class TagResponseBody(BaseModel):
    pdf_path: str
    code: str | None


def _status_response(job: JobRecord) -> JobStatusResponse:
    return JobStatusResponse(
        job_id=job.job_id,
        job_type=job.job_type,
        status=job.status,
        created_at=job.created_at,
        updated_at=job.updated_at,
        input_dir=job.input_dir,
        output_dir=job.output_dir,
        progress=job.progress,
        messages=list(job.messages),
        summary=job.summary,
        results=list(job.results),
        errors=list(job.errors),
        report_path=job.report_path,
    )


@app.exception_handler(ApiServiceError)
async def handle_api_service_error(_: Request, exc: ApiServiceError):
    body = ErrorResponse(code=exc.code, message=exc.message, details=exc.details).model_dump()
    return JSONResponse(status_code=exc.status_code, content=body)


@app.post(
    "/api/v1/jobs",
    response_model=JobSubmitResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["jobs"],
)
def submit_job(request: JobSubmitRequest):
    job = service.submit_job(
        job_type=request.job_type,
        input_dir=request.input_dir,
        output_dir=request.output_dir,
        options=request.options.model_dump(exclude_none=True),
        webhook_url=request.webhook_url,
    )
    return JobSubmitResponse(
        job_id=job.job_id,
        job_type=job.job_type,
        status=job.status,
        created_at=job.created_at,
    )


@app.get(
    "/api/v1/jobs/{job_id}",
    response_model=JobStatusResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["jobs"],
)
def get_job_status(job_id: str):
    return _status_response(service.get_job(job_id))


@app.post(
    "/api/v1/jobs/{job_id}/cancel",
    response_model=JobStatusResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    tags=["jobs"],
)
def cancel_job(job_id: str):
    return _status_response(service.cancel_job(job_id))


@app.post(
    "/api/v1/tags",
    response_model=TagResponseBody,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    tags=["tags"],
)
def tag_document(request: TagRequestBody):
    return TagResponseBody(**service.tag_document(request.pdf_path, request.code))


@app.get(
    "/api/v1/tags",
    response_model=TagResponseBody,
    responses={404: {"model": ErrorResponse}},
    tags=["tags"],
)
def read_tag(pdf_path: str = Query(..., min_length=1)):
    return TagResponseBody(**service.read_tag(pdf_path))
