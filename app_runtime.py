import os
import shutil
import sys

from config import POPPLER_PATH_OVERRIDE


if getattr(sys, "frozen", False):
    BASE_DIR = sys._MEIPASS
else:
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))

POPPLER_PATH = POPPLER_PATH_OVERRIDE or os.path.join(BASE_DIR, "poppler", "Library", "bin")


def find_poppler_tool(name: str) -> str:
    """Bundled poppler binary if present, otherwise the one on PATH."""
    for candidate in (name + ".exe", name):
        bundled = os.path.join(POPPLER_PATH, candidate)
        if os.path.isfile(bundled):
            return bundled
    found = shutil.which(name)
    if not found:
        raise RuntimeError(f"{name} not found in {POPPLER_PATH} or on PATH")
    return found
