from __future__ import annotations

import os
import re
import shutil
import subprocess
import tempfile

from PIL import Image

from .errors import DocumentAccessError


class PageRenderer:
    def page_count(self, pdf_path: str) -> int:
        raise NotImplementedError

    def render_page(self, pdf_path: str, page: int, dpi: int) -> Image.Image:
        """Render a 1-based page as a grayscale image."""
        raise NotImplementedError


def _subprocess_kwargs() -> dict:
    kwargs: dict = {
        "check": True,
        "stdout": subprocess.PIPE,
        "stderr": subprocess.PIPE,
    }
    if hasattr(subprocess, "STARTUPINFO"):
        startupinfo = subprocess.STARTUPINFO()
        startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
        kwargs["startupinfo"] = startupinfo
    if hasattr(subprocess, "CREATE_NO_WINDOW"):
        kwargs["creationflags"] = subprocess.CREATE_NO_WINDOW
    return kwargs


PAGES_PATTERN = re.compile(r"^Pages:\s+(\d+)\s*$", re.MULTILINE)


class PopplerPageRenderer(PageRenderer):
    """Renders pages with poppler's ``pdftoppm`` and counts them with ``pdfinfo``."""

    def __init__(self, pdftoppm: str | None = None, pdfinfo: str | None = None) -> None:
        self.pdftoppm = pdftoppm or shutil.which("pdftoppm")
        self.pdfinfo = pdfinfo or shutil.which("pdfinfo")
        if not self.pdftoppm:
            raise RuntimeError("pdftoppm not found; install poppler or set QRSCAN_POPPLER_PATH")
        if not self.pdfinfo:
            raise RuntimeError("pdfinfo not found; install poppler or set QRSCAN_POPPLER_PATH")

    def page_count(self, pdf_path: str) -> int:
        try:
            result = subprocess.run([self.pdfinfo, pdf_path], **_subprocess_kwargs())
        except (OSError, subprocess.CalledProcessError) as exc:
            raise DocumentAccessError(
                f"Unable to read '{os.path.basename(pdf_path)}': {exc}"
            ) from exc
        output = result.stdout.decode("utf-8", errors="replace")
        match = PAGES_PATTERN.search(output)
        if not match:
            raise DocumentAccessError(
                f"pdfinfo reported no page count for '{os.path.basename(pdf_path)}'"
            )
        return int(match.group(1))

    def render_page(self, pdf_path: str, page: int, dpi: int) -> Image.Image:
        temp_dir = tempfile.mkdtemp(prefix="qrscan_")
        try:
            prefix = os.path.join(temp_dir, "page")
            cmd = [
                self.pdftoppm,
                "-png",
                "-gray",
                "-singlefile",
                "-f",
                str(page),
                "-l",
                str(page),
                "-r",
                str(dpi),
                pdf_path,
                prefix,
            ]
            try:
                subprocess.run(cmd, **_subprocess_kwargs())
            except (OSError, subprocess.CalledProcessError) as exc:
                raise DocumentAccessError(
                    f"Unable to render page {page} of '{os.path.basename(pdf_path)}' at {dpi} dpi: {exc}"
                ) from exc

            image_path = f"{prefix}.png"
            if not os.path.exists(image_path):
                raise DocumentAccessError(
                    f"pdftoppm produced no output image for '{os.path.basename(pdf_path)}'"
                )
            with Image.open(image_path) as image:
                image.load()
                return image.copy()
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
