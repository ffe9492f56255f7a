import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


LOG_FILE = os.environ.get(
    "QRSCAN_LOG_FILE", os.path.join(os.path.expanduser("~"), "qrscan_error.log")
)

DEFAULT_QR_PAGE = int(os.environ.get("QRSCAN_PAGE", "1"))
USE_FILE_ATTRIBUTE = _env_flag("QRSCAN_USE_ATTRIBUTE", True)     # trust codes stored on the file
WRITE_FILE_ATTRIBUTE = _env_flag("QRSCAN_WRITE_ATTRIBUTE", True)  # store decoded codes on the file
WRITE_REPORT = _env_flag("QRSCAN_WRITE_REPORT", True)
MAX_WORKERS = int(os.environ.get("QRSCAN_MAX_WORKERS", "1"))

POPPLER_PATH_OVERRIDE = os.environ.get("QRSCAN_POPPLER_PATH", "")

API_STORAGE_ROOT = os.environ.get("QRSCAN_API_STORAGE", "api_data")


def default_scan_settings() -> dict:
    return {
        "page": DEFAULT_QR_PAGE,
        "use_cache": USE_FILE_ATTRIBUTE,
        "write_cache": WRITE_FILE_ATTRIBUTE,
        "max_workers": MAX_WORKERS,
        "write_report": WRITE_REPORT,
    }
