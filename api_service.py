from __future__ import annotations

import json
import os
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import requests

from app_constants import JOB_TYPES
from app_logging import log_exception
from app_workers import BatchWorker
from config import API_STORAGE_ROOT
from core_service import (
    CoreApplicationService,
    RenameRequest,
    ScanRequest,
    ScanResponse,
    TagRequest,
    build_scan_config,
)
from qrscan.errors import CacheWriteError, InvalidCodeError


class ApiServiceError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


ACTIVE_STATUSES = {"queued", "running"}
SCAN_OPTION_KEYS = ("page", "use_cache", "write_cache", "max_workers", "write_report", "dpi_ladder")


@dataclass
class JobRecord:
    job_id: str
    job_type: str
    status: str
    created_at: str
    updated_at: str
    input_dir: str
    output_dir: str | None
    webhook_url: str | None
    options: dict[str, Any] = field(default_factory=dict)
    progress: dict[str, Any] = field(default_factory=dict)
    messages: list[str] = field(default_factory=list)
    summary: dict[str, Any] = field(default_factory=dict)
    results: list[dict[str, Any]] = field(default_factory=list)
    errors: list[dict[str, str]] = field(default_factory=list)
    report_path: str | None = None
    audit_path: str | None = None


class QrScanApiService:
    def __init__(
        self,
        storage_root: str = API_STORAGE_ROOT,
        core: CoreApplicationService | None = None,
    ) -> None:
        self.storage_root = Path(storage_root)
        self.storage_root.mkdir(parents=True, exist_ok=True)
        self._core = core
        self._lock = threading.Lock()
        self._jobs: dict[str, JobRecord] = {}
        self._workers: dict[str, BatchWorker] = {}
        self._watchers: dict[str, threading.Thread] = {}

    def _ensure_core(self) -> CoreApplicationService:
        if self._core is None:
            self._core = CoreApplicationService()
        return self._core

    def submit_job(
        self,
        job_type: str,
        input_dir: str,
        output_dir: str | None = None,
        options: dict[str, Any] | None = None,
        webhook_url: str | None = None,
    ) -> JobRecord:
        if job_type not in JOB_TYPES:
            raise ApiServiceError(
                code="unsupported_job_type",
                message="Job type must be one of: scan, rename.",
                details={"job_type": job_type},
            )
        input_dir = os.path.abspath(input_dir)
        if not os.path.isdir(input_dir):
            raise ApiServiceError(
                code="input_dir_not_found",
                message="Input directory does not exist.",
                status_code=404,
                details={"input_dir": input_dir},
            )
        if job_type == "rename" and not output_dir:
            raise ApiServiceError(code="output_dir_required", message="Rename jobs need an output directory.")
        options = dict(options or {})
        unknown = sorted(set(options) - set(SCAN_OPTION_KEYS))
        if unknown:
            raise ApiServiceError(
                code="unknown_options",
                message="Unsupported job options.",
                details={"options": ", ".join(unknown)},
            )
        try:
            config = build_scan_config(**options)
        except (TypeError, ValueError) as exc:
            raise ApiServiceError(code="invalid_options", message=str(exc)) from exc

        now = utc_now_iso()
        job = JobRecord(
            job_id=str(uuid.uuid4()),
            job_type=job_type,
            status="queued",
            created_at=now,
            updated_at=now,
            input_dir=input_dir,
            output_dir=os.path.abspath(output_dir) if output_dir else None,
            webhook_url=webhook_url,
            options=options,
        )
        if job_type == "rename":
            request = RenameRequest(input_dir=input_dir, output_dir=job.output_dir, config=config)
        else:
            request = ScanRequest(input_dir=input_dir, config=config)

        with self._lock:
            for other in self._jobs.values():
                if other.status in ACTIVE_STATUSES and other.input_dir == input_dir:
                    raise ApiServiceError(
                        code="job_in_progress",
                        message="Another job is already processing this input directory.",
                        status_code=409,
                        details={"job_id": other.job_id},
                    )
            self._jobs[job.job_id] = job
            worker = BatchWorker(self._ensure_core(), request)
            watcher = threading.Thread(target=self._watch_job, args=(job, worker), daemon=True)
            self._workers[job.job_id] = worker
            self._watchers[job.job_id] = watcher
        self._write_audit_log(job)
        worker.start()
        watcher.start()
        return job

    def _watch_job(self, job: JobRecord, worker: BatchWorker) -> None:
        self._set_job_status(job, "running")
        while True:
            event = worker.events.get()
            kind = event[0]
            if kind == "progress":
                _, current, total, status = event
                with self._lock:
                    job.progress = {"current": current, "total": total, "status": status}
                    job.updated_at = utc_now_iso()
            elif kind == "message":
                with self._lock:
                    job.messages.append(event[1])
            elif kind == "finished":
                self._complete_job(job, event[1], cancelled=worker.stop_event.is_set())
                break
            elif kind == "failed":
                with self._lock:
                    job.errors.append({"code": "job_failed", "message": str(event[1])})
                self._set_job_status(job, "failed")
                break
        self._finish_job(job)

    def _complete_job(self, job: JobRecord, response: ScanResponse, cancelled: bool) -> None:
        summary: dict[str, Any] = {
            "total": response.summary.total,
            "found": response.summary.found,
            "failed": response.summary.failed,
        }
        if response.rename_summary is not None:
            rename = response.rename_summary
            summary["renamed"] = rename.succeeded
            summary["rename_failed"] = rename.failed
            summary["not_attempted"] = rename.skipped
        with self._lock:
            job.summary = summary
            job.results = [result.to_dict() for result in response.results]
            job.report_path = response.report_path
            if response.rename_error:
                job.errors.append({"code": "destination_unavailable", "message": response.rename_error})
        if response.rename_error:
            status = "failed"
        elif cancelled or response.summary.cancelled:
            status = "cancelled"
        elif response.summary.failed or (response.rename_summary and response.rename_summary.failed):
            status = "needs_review"
        else:
            status = "completed"
        self._set_job_status(job, status)

    def _finish_job(self, job: JobRecord) -> None:
        self._write_audit_log(job)
        if job.webhook_url:
            try:
                self._post_webhook(job)
            except Exception as exc:  # noqa: BLE001
                log_exception(exc, context=f"Webhook for job {job.job_id}")
                with self._lock:
                    job.errors.append({"code": "webhook_delivery_failed", "message": str(exc)})
                self._write_audit_log(job)

    def _set_job_status(self, job: JobRecord, status: str) -> None:
        with self._lock:
            job.status = status
            job.updated_at = utc_now_iso()

    def get_job(self, job_id: str) -> JobRecord:
        job = self._jobs.get(job_id)
        if not job:
            raise ApiServiceError(code="job_not_found", message="Job could not be found.", status_code=404)
        return job

    def cancel_job(self, job_id: str) -> JobRecord:
        job = self.get_job(job_id)
        worker = self._workers.get(job_id)
        if job.status not in ACTIVE_STATUSES or worker is None:
            raise ApiServiceError(
                code="job_not_active",
                message="Only queued or running jobs can be cancelled.",
                status_code=409,
                details={"status": job.status},
            )
        worker.stop()
        return job

    def wait_for_job(self, job_id: str, timeout: float | None = None) -> JobRecord:
        job = self.get_job(job_id)
        watcher = self._watchers.get(job_id)
        if watcher is not None:
            watcher.join(timeout)
        return job

    def tag_document(self, pdf_path: str, code: str) -> dict[str, str]:
        try:
            response = self._ensure_core().tag_document(TagRequest(pdf_path=pdf_path, code=code))
        except InvalidCodeError as exc:
            raise ApiServiceError(code="invalid_code", message=str(exc), details={"code": code}) from exc
        except (FileNotFoundError, ValueError) as exc:
            raise ApiServiceError(code="invalid_pdf", message=str(exc), status_code=404) from exc
        except CacheWriteError as exc:
            raise ApiServiceError(code="tag_not_supported", message=str(exc), status_code=422) from exc
        return {"pdf_path": response.pdf_path, "code": response.code}

    def read_tag(self, pdf_path: str) -> dict[str, Any]:
        try:
            code = self._ensure_core().read_tag(pdf_path)
        except FileNotFoundError as exc:
            raise ApiServiceError(code="invalid_pdf", message=str(exc), status_code=404) from exc
        return {"pdf_path": pdf_path, "code": code}

    def _write_audit_log(self, job: JobRecord) -> None:
        audit_dir = self.storage_root / "audit"
        audit_dir.mkdir(parents=True, exist_ok=True)
        audit_path = audit_dir / f"{job.job_id}_job.json"
        with self._lock:
            snapshot = asdict(job)
        with open(audit_path, "w", encoding="utf-8") as handle:
            json.dump(
                {
                    "job": snapshot,
                    "written_at": utc_now_iso(),
                },
                handle,
                ensure_ascii=False,
                indent=2,
            )
        if not job.audit_path:
            job.audit_path = str(audit_path)

    def _post_webhook(self, job: JobRecord) -> dict[str, Any]:
        payload = {
            "job_id": job.job_id,
            "job_type": job.job_type,
            "status": job.status,
            "summary": job.summary,
            "error_count": len(job.errors),
            "report_path": job.report_path,
            "updated_at": job.updated_at,
        }
        response = requests.post(job.webhook_url, json=payload, timeout=10)
        response.raise_for_status()
        return {
            "status_code": response.status_code,
            "delivered_at": utc_now_iso(),
        }
