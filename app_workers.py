from __future__ import annotations

import queue
import threading

from app_logging import log_exception, log_info
from core_service import CoreApplicationService, RenameRequest, ScanRequest, ScanResponse


class BatchWorker(threading.Thread):
    """Runs one scan (or scan + rename) batch off the calling thread.

    Progress is published on ``events`` as tuples:
    ``("progress", current, total, status)``, ``("message", text)``, and
    finally either ``("finished", ScanResponse)`` or ``("failed", Exception)``.
    """

    def __init__(
        self,
        service: CoreApplicationService,
        request: ScanRequest | RenameRequest,
        events: queue.Queue | None = None,
    ):
        super().__init__(daemon=True)
        self.service = service
        self.request = request
        self.events: queue.Queue = events if events is not None else queue.Queue()
        self.stop_event = threading.Event()
        self.response: ScanResponse | None = None
        self.error: Exception | None = None

        self.request.progress_cb = self._emit_progress
        self.request.log_cb = self._emit_message
        self.request.stop_event = self.stop_event

    def _emit_progress(self, current: int, total: int, status: str) -> None:
        self.events.put(("progress", current, total, status))

    def _emit_message(self, message: str) -> None:
        self.events.put(("message", message))

    def stop(self) -> None:
        self.stop_event.set()

    def run(self):
        kind = "rename" if isinstance(self.request, RenameRequest) else "scan"
        log_info(f"[Worker] Starting {kind} of '{self.request.input_dir}' (page={self.request.config.page})")
        try:
            if isinstance(self.request, RenameRequest):
                self.response = self.service.scan_and_rename(self.request)
            else:
                self.response = self.service.scan(self.request)
        except Exception as e:
            log_exception(e, context=f"Batch on {self.request.input_dir}")
            self.error = e
            self.events.put(("failed", e))
            return
        log_info(f"[Worker] Finished {kind}: {self.response.summary.message()}")
        self.events.put(("finished", self.response))
