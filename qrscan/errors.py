from __future__ import annotations


class QrScanError(Exception):
    """Base class for errors raised by the qrscan package."""


class InvalidCodeError(QrScanError, ValueError):
    def __init__(self, code: str) -> None:
        super().__init__(
            f"Invalid code {code!r}: only A-Z, a-z, 0-9, space, '-' and '_' are allowed."
        )
        self.code = code


class DestinationUnavailableError(QrScanError):
    def __init__(self, path: str, reason: str = "") -> None:
        message = f"Output directory is not available: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.path = path


class CacheWriteError(QrScanError):
    """The file system refused to store the attribute."""


# Raised by renderers and decoders only; the resolver turns them into
# ResultStatus values.
class DocumentAccessError(QrScanError):
    pass


class CodeNotFoundError(QrScanError):
    pass


class ImageUnreadableError(QrScanError):
    pass
