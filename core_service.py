from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable

from app_logging import log_exception, log_info
from config import default_scan_settings
from qrscan.attribute_cache import AttributeCache
from qrscan.errors import DestinationUnavailableError
from qrscan.grammar import require_valid_code
from qrscan.models import RenameSummary, ScanConfig, ScanResult, ScanSummary
from qrscan.renamer import Renamer
from qrscan.report import write_report
from qrscan.resolver import PageCodeResolver
from qrscan.scanner import PDF_EXTENSION, BatchScanner


def build_scan_config(**overrides) -> ScanConfig:
    settings = default_scan_settings()
    settings.update({key: value for key, value in overrides.items() if value is not None})
    if "dpi_ladder" in settings:
        settings["dpi_ladder"] = tuple(settings["dpi_ladder"])
    return ScanConfig(**settings)


def build_default_resolver(config: ScanConfig) -> PageCodeResolver:
    from app_runtime import find_poppler_tool
    from qrscan.decoding import ZbarCodeDecoder
    from qrscan.rendering import PopplerPageRenderer

    renderer = PopplerPageRenderer(
        pdftoppm=find_poppler_tool("pdftoppm"),
        pdfinfo=find_poppler_tool("pdfinfo"),
    )
    return PageCodeResolver(
        renderer=renderer,
        decoder=ZbarCodeDecoder(),
        cache=AttributeCache(),
        dpi_ladder=config.dpi_ladder,
    )


@dataclass
class ScanRequest:
    input_dir: str
    config: ScanConfig
    progress_cb: Callable[[int, int, str], None] | None = None
    log_cb: Callable[[str], None] | None = None
    stop_event: object | None = None


@dataclass
class RenameRequest:
    input_dir: str
    output_dir: str
    config: ScanConfig
    progress_cb: Callable[[int, int, str], None] | None = None
    log_cb: Callable[[str], None] | None = None
    stop_event: object | None = None


@dataclass
class ScanResponse:
    results: list[ScanResult]
    summary: ScanSummary
    rename_summary: RenameSummary | None = None
    report_path: str | None = None
    rename_error: str | None = None
    messages: list[str] = field(default_factory=list)


@dataclass
class TagRequest:
    pdf_path: str
    code: str


@dataclass
class TagResponse:
    pdf_path: str
    code: str


class CoreApplicationService:
    def __init__(
        self,
        resolver_factory: Callable[[ScanConfig], PageCodeResolver] | None = None,
        attribute_cache: AttributeCache | None = None,
    ) -> None:
        self.resolver_factory = resolver_factory or build_default_resolver
        self.attribute_cache = attribute_cache or AttributeCache()

    def _narrator(self, log_cb: Callable[[str], None] | None, messages: list[str]) -> Callable[[str], None]:
        def narrate(message: str) -> None:
            messages.append(message)
            if log_cb:
                log_cb(message)
            else:
                log_info(message)

        return narrate

    def _run_scan(self, input_dir: str, config: ScanConfig, progress_cb, stop_event, narrate) -> tuple[list[ScanResult], ScanSummary]:
        scanner = BatchScanner(self.resolver_factory(config), logger=narrate)
        return scanner.scan(input_dir, config, progress_cb=progress_cb, stop_event=stop_event)

    def _write_report(self, results: list[ScanResult], directory: str, narrate) -> str | None:
        try:
            path = write_report(results, directory)
        except OSError as e:
            log_exception(e, context=f"Report directory: {directory}")
            narrate("!Unable to log results in CSV file.")
            return None
        narrate(f"Results were logged to CSV file: {os.path.basename(path)}.")
        return path

    def scan(self, request: ScanRequest) -> ScanResponse:
        if not os.path.isdir(request.input_dir):
            raise NotADirectoryError(f"Input directory not found: {request.input_dir}")
        messages: list[str] = []
        narrate = self._narrator(request.log_cb, messages)
        results, summary = self._run_scan(
            request.input_dir, request.config, request.progress_cb, request.stop_event, narrate
        )
        report_path = None
        if request.config.write_report:
            report_path = self._write_report(results, request.input_dir, narrate)
        return ScanResponse(results=results, summary=summary, report_path=report_path, messages=messages)

    def scan_and_rename(self, request: RenameRequest) -> ScanResponse:
        if not os.path.isdir(request.input_dir):
            raise NotADirectoryError(f"Input directory not found: {request.input_dir}")
        messages: list[str] = []
        narrate = self._narrator(request.log_cb, messages)
        results, summary = self._run_scan(
            request.input_dir, request.config, request.progress_cb, request.stop_event, narrate
        )
        response = ScanResponse(results=results, summary=summary, messages=messages)
        report_dir = request.output_dir
        if summary.cancelled:
            narrate("!Scan was cancelled; no files were renamed.")
            report_dir = request.input_dir
        else:
            renamer = Renamer(logger=narrate)
            try:
                response.rename_summary = renamer.rename(
                    results,
                    request.output_dir,
                    progress_cb=request.progress_cb,
                    stop_event=request.stop_event,
                )
            except DestinationUnavailableError as e:
                log_exception(e, context=f"Output directory: {request.output_dir}")
                narrate("!Unable to create or use output path.")
                response.rename_error = str(e)
                report_dir = request.input_dir
        if request.config.write_report:
            response.report_path = self._write_report(results, report_dir, narrate)
        return response

    def tag_document(self, request: TagRequest) -> TagResponse:
        code = require_valid_code(request.code)
        if not os.path.isfile(request.pdf_path):
            raise FileNotFoundError(f"PDF file not found: {request.pdf_path}")
        if not request.pdf_path.lower().endswith(PDF_EXTENSION):
            raise ValueError(f"Not a PDF file: {request.pdf_path}")
        self.attribute_cache.write(request.pdf_path, code)
        log_info(f"Successfully tagged {os.path.basename(request.pdf_path)} with code {code}.")
        return TagResponse(pdf_path=request.pdf_path, code=code)

    def read_tag(self, pdf_path: str) -> str | None:
        if not os.path.isfile(pdf_path):
            raise FileNotFoundError(f"PDF file not found: {pdf_path}")
        return self.attribute_cache.read(pdf_path)
