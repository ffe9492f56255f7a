from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from .document import QrDocument
from .models import PAGE_COUNT_UNKNOWN, ResultStatus, ScanConfig, ScanResult, ScanSummary
from .resolver import PageCodeResolver

_logger = logging.getLogger(__name__)

PDF_EXTENSION = ".pdf"


def find_input_files(root_dir: str, on_error: Callable[[OSError], None] | None = None) -> list[str]:
    """All ``*.pdf`` files below ``root_dir`` in directory walk order."""
    found: list[str] = []
    for dirpath, _dirnames, filenames in os.walk(root_dir, onerror=on_error):
        for filename in filenames:
            if not filename.lower().endswith(PDF_EXTENSION):
                continue
            path = os.path.join(dirpath, filename)
            if os.path.isfile(path):
                found.append(path)
    return found


class BatchScanner:
    def __init__(
        self,
        resolver: PageCodeResolver,
        *,
        logger: Callable[[str], None] | None = None,
    ) -> None:
        self.resolver = resolver
        self.logger = logger

    def log(self, message: str) -> None:
        if self.logger:
            self.logger(message)

    def _log_walk_error(self, exc: OSError) -> None:
        self.log(f"!Unable to read {exc.filename}: {exc.strerror}")

    def build_result(self, pdf_path: str, config: ScanConfig) -> ScanResult:
        doc = QrDocument(pdf_path)
        try:
            resolution = self.resolver.resolve(
                doc,
                config.page,
                use_cache=config.use_cache,
                write_cache=config.write_cache,
            )
            status = ResultStatus.FOUND if resolution.found else resolution.failure
            code = resolution.code if resolution.found else ""
        except Exception:
            _logger.exception("Unexpected error while scanning %s", pdf_path)
            status = ResultStatus.NO_ACCESS
            code = ""

        page_count = PAGE_COUNT_UNKNOWN
        try:
            page_count = doc.page_count_or_unknown(self.resolver.renderer)
        except Exception:
            _logger.exception("Unexpected error while counting pages of %s", pdf_path)

        if status == ResultStatus.FOUND:
            self.log(f"Found QR code {code} in {doc.name}.")
        elif status == ResultStatus.NO_ACCESS:
            self.log(f"!Unable to access {doc.name} or page not found.")
        else:
            self.log(f"!Unable to find QR code at specified page in {doc.name}.")

        return ScanResult(
            status=status,
            code=code,
            scanned_page=config.page,
            input_path=pdf_path,
            page_count=page_count,
            creation_time=doc.creation_time(),
        )

    def scan(
        self,
        root_dir: str,
        config: ScanConfig,
        *,
        progress_cb: Callable[[int, int, str], None] | None = None,
        stop_event: threading.Event | None = None,
    ) -> tuple[list[ScanResult], ScanSummary]:
        pdf_files = find_input_files(root_dir, on_error=self._log_walk_error)
        total = len(pdf_files)
        self.log(
            "New scan initiated.\n"
            f"  Input directory: {os.path.basename(os.path.normpath(root_dir))}\n"
            f"  Scanning page:   {config.page}\n"
            f"  Number of files: {total}"
        )

        results: list[ScanResult | None] = [None] * total
        cancelled = False

        if config.max_workers < 2 or total < 2:
            for idx, pdf_path in enumerate(pdf_files):
                if stop_event is not None and stop_event.is_set():
                    cancelled = True
                    break
                if progress_cb:
                    progress_cb(idx + 1, total, f"Scanning {idx + 1}/{total}")
                self.log(f"Now scanning file {os.path.basename(pdf_path)}.")
                results[idx] = self.build_result(pdf_path, config)
        else:
            progress_lock = threading.Lock()
            processed = 0

            def scan_one(pdf_path: str) -> ScanResult | None:
                if stop_event is not None and stop_event.is_set():
                    return None
                self.log(f"Now scanning file {os.path.basename(pdf_path)}.")
                return self.build_result(pdf_path, config)

            with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
                future_map = {
                    executor.submit(scan_one, pdf_path): idx
                    for idx, pdf_path in enumerate(pdf_files)
                }
                for future in as_completed(future_map):
                    result = future.result()
                    if result is None:
                        cancelled = True
                        continue
                    results[future_map[future]] = result
                    with progress_lock:
                        processed += 1
                        if progress_cb:
                            progress_cb(processed, total, f"Scanned {processed}/{total}")

        finished = [item for item in results if item is not None]
        found = sum(1 for item in finished if item.found)
        summary = ScanSummary(
            total=len(finished),
            found=found,
            failed=len(finished) - found,
            cancelled=cancelled,
        )
        if cancelled:
            self.log(f"!Scan cancelled after {len(finished)} of {total} files.")
        self.log(summary.message())
        return finished, summary
