from __future__ import annotations

import re

from .errors import InvalidCodeError


# Codes end up as directory names, file names and attribute values.
CODE_PATTERN = re.compile(r"[A-Za-z0-9 _\-]+")


def is_valid_code(code: str | None) -> bool:
    if not code or not isinstance(code, str):
        return False
    return CODE_PATTERN.fullmatch(code) is not None


def require_valid_code(code: str | None) -> str:
    if not is_valid_code(code):
        raise InvalidCodeError(code or "")
    return code
