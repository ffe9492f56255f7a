from __future__ import annotations

import logging
import os
import shutil
import threading
from typing import Callable

from .errors import DestinationUnavailableError
from .models import RenameSummary, ScanResult


_logger = logging.getLogger(__name__)


def ensure_output_root(output_root: str) -> str:
    output_root = os.path.abspath(os.path.expanduser(output_root))
    if os.path.isdir(output_root):
        return output_root
    try:
        os.makedirs(output_root, exist_ok=True)
    except OSError as exc:
        raise DestinationUnavailableError(output_root, str(exc)) from exc
    return output_root


def find_target_path(code_dir: str, code: str) -> str | None:
    """First free ``<code>_<n>.pdf`` in ``code_dir``.

    With ``N`` entries already present at most ``N + 1`` names are probed,
    which always finds a gap unless another process fills the directory
    concurrently. Returns None in that case.
    """
    existing = len(os.listdir(code_dir))
    for index in range(1, existing + 2):
        candidate = os.path.join(code_dir, f"{code}_{index}.pdf")
        if not os.path.exists(candidate):
            return candidate
    return None


class Renamer:
    def __init__(self, *, logger: Callable[[str], None] | None = None) -> None:
        self.logger = logger

    def log(self, message: str) -> None:
        if self.logger:
            self.logger(message)

    def _move(self, result: ScanResult, output_root: str) -> str:
        code_dir = os.path.join(output_root, result.code)
        os.makedirs(code_dir, exist_ok=True)
        target = find_target_path(code_dir, result.code)
        if target is None:
            raise FileExistsError(f"No free file name for code {result.code} in {code_dir}")
        shutil.move(result.input_path, target)
        return target

    def rename(
        self,
        results: list[ScanResult],
        output_root: str,
        *,
        progress_cb: Callable[[int, int, str], None] | None = None,
        stop_event: threading.Event | None = None,
    ) -> RenameSummary:
        total = len(results)
        self.log(
            "Renaming starts now.\n"
            f"  Output directory: {os.path.basename(os.path.normpath(output_root))}"
        )
        existed = os.path.isdir(output_root)
        output_root = ensure_output_root(output_root)
        if not existed:
            self.log("Output directory did not exist and has been created.")

        summary = RenameSummary()
        for idx, result in enumerate(results):
            if stop_event is not None and stop_event.is_set():
                summary.cancelled = True
                self.log(f"!Renaming cancelled after {idx} of {total} files.")
                break
            if progress_cb:
                progress_cb(idx + 1, total, f"Renaming {idx + 1}/{total}")

            if not result.found:
                summary.skipped += 1
                continue

            summary.attempted += 1
            source_name = os.path.basename(result.input_path)
            try:
                target = self._move(result, output_root)
            except Exception as exc:
                _logger.exception("Failed to move %s", result.input_path)
                summary.failed += 1
                summary.failures.append(result.input_path)
                self.log(f"!Unable to rename {source_name}. ({exc})")
                continue
            result.set_output_path(target)
            summary.succeeded += 1
            self.log(f"Moved {source_name} -> {os.path.relpath(target, output_root)}")

        self.log(summary.message())
        return summary
