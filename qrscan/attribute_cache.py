from __future__ import annotations

import logging
import os

from .errors import CacheWriteError
from .grammar import is_valid_code, require_valid_code


logger = logging.getLogger(__name__)

FILE_ATTRIBUTE = "user.custom.qrcode"


def xattr_supported() -> bool:
    return hasattr(os, "getxattr") and hasattr(os, "setxattr")


class AttributeCache:
    """Stores the last decoded code as an extended attribute of the PDF itself.

    The value travels with the file when it is moved on the same file system,
    so a renamed document keeps its code. Reads never raise: anything that is
    missing, unsupported or not a valid code is reported as ``None``.
    """

    def __init__(self, attribute: str = FILE_ATTRIBUTE) -> None:
        self.attribute = attribute

    def read(self, path: str) -> str | None:
        if not xattr_supported():
            return None
        try:
            raw = os.getxattr(path, self.attribute)
        except OSError:
            return None
        try:
            value = raw.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Undecodable %s attribute on %s", self.attribute, path)
            return None
        if not is_valid_code(value):
            logger.debug("Ignoring invalid cached code %r on %s", value, path)
            return None
        return value

    def write(self, path: str, code: str) -> None:
        require_valid_code(code)
        if not xattr_supported():
            raise CacheWriteError("Extended file attributes are not supported on this platform.")
        try:
            os.setxattr(path, self.attribute, code.encode("utf-8"))
        except OSError as exc:
            raise CacheWriteError(
                f"Unable to store code for '{os.path.basename(path)}': {exc}"
            ) from exc

    def has_code(self, path: str) -> bool:
        return self.read(path) is not None
