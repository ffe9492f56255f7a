"""Scanning PDF files for QR codes and filing them by code."""

from .attribute_cache import AttributeCache
from .errors import (
    CacheWriteError,
    DestinationUnavailableError,
    InvalidCodeError,
    QrScanError,
)
from .grammar import is_valid_code, require_valid_code
from .models import RenameSummary, Resolution, ResultStatus, ScanConfig, ScanResult, ScanSummary
from .renamer import Renamer
from .resolver import PageCodeResolver
from .scanner import BatchScanner, find_input_files

__all__ = [
    "AttributeCache",
    "BatchScanner",
    "CacheWriteError",
    "DestinationUnavailableError",
    "InvalidCodeError",
    "PageCodeResolver",
    "QrScanError",
    "RenameSummary",
    "Renamer",
    "Resolution",
    "ResultStatus",
    "ScanConfig",
    "ScanResult",
    "ScanSummary",
    "find_input_files",
    "is_valid_code",
    "require_valid_code",
]
