from __future__ import annotations

import os
from datetime import datetime
from typing import Iterable

from .models import ScanResult


SEP = ","
QUOTE = '"'
HEADER = ["InputPath", "RenamedPath", "FileCreated", "PageCount", "QRCodeFound", "QRCodePage", "QRcode"]
REPORT_PREFIX = "ScanResults_QRScan_"


def _quoted(value: str) -> str:
    return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE


def format_row(result: ScanResult) -> str:
    renamed = _quoted(os.path.abspath(result.output_path)) if result.renamed else ""
    fields = [
        _quoted(os.path.abspath(result.input_path)),
        renamed,
        _quoted(result.creation_time),
        str(result.page_count),
        _quoted(result.status.value),
        str(result.scanned_page),
        _quoted(result.code),
    ]
    return SEP.join(fields)


def render_report(results: Iterable[ScanResult], line_sep: str = os.linesep) -> str:
    lines = [SEP.join(HEADER)]
    lines.extend(format_row(result) for result in results)
    return line_sep.join(lines) + line_sep


def report_filename(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H-%M-%S")
    return f"{REPORT_PREFIX}{stamp}.csv"


def write_report(results: Iterable[ScanResult], directory: str, now: datetime | None = None) -> str:
    """Write the CSV report into ``directory`` and return its path."""
    path = os.path.join(directory, report_filename(now))
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(render_report(results))
    return path
