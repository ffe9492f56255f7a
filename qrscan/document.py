from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from .errors import DocumentAccessError
from .models import PAGE_COUNT_UNKNOWN

if TYPE_CHECKING:
    from .rendering import PageRenderer


class QrDocument:
    """A PDF expected to carry a QR code.

    The path is the one seen when the document was discovered; it is not
    updated if the file is moved afterwards.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self.codes: dict[int, str] = {}
        self._page_count: int | None = None

    def __repr__(self) -> str:
        return f"QrDocument({self.path!r})"

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    def remembered_code(self, page: int) -> str | None:
        return self.codes.get(page)

    def remember_code(self, page: int, code: str) -> None:
        self.codes[page] = code

    def page_count(self, renderer: PageRenderer) -> int:
        """Number of pages; raises DocumentAccessError if the file can't be read."""
        if self._page_count is None:
            try:
                self._page_count = renderer.page_count(self.path)
            except DocumentAccessError:
                self._page_count = PAGE_COUNT_UNKNOWN
                raise
        if self._page_count == PAGE_COUNT_UNKNOWN:
            raise DocumentAccessError(f"Page count unavailable for '{self.name}'")
        return self._page_count

    def page_count_or_unknown(self, renderer: PageRenderer) -> int:
        try:
            return self.page_count(renderer)
        except DocumentAccessError:
            return PAGE_COUNT_UNKNOWN

    def creation_time(self) -> str:
        try:
            stat = os.stat(self.path)
        except OSError:
            return ""
        created = getattr(stat, "st_birthtime", None) or stat.st_ctime
        return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
