from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from .attribute_cache import AttributeCache
from .document import QrDocument
from .errors import CacheWriteError, CodeNotFoundError, DocumentAccessError, ImageUnreadableError
from .grammar import is_valid_code
from .models import DEFAULT_DPI_LADDER, Resolution, ResultStatus

if TYPE_CHECKING:
    from .decoding import CodeDecoder
    from .rendering import PageRenderer


logger = logging.getLogger(__name__)

SOURCE_MEMO = "memo"
SOURCE_CACHE = "cache"
SOURCE_DECODE = "decode"


class PageCodeResolver:
    """Answers "which QR code is on page N of this document".

    Lookup order, cheapest first:

    1. codes already decoded for this document in the current run,
    2. the code stored in the file attribute (when ``use_cache``),
    3. rendering and decoding the page, at increasing resolutions.

    Only a value obtained by actually decoding the page is written back to
    the file attribute, so a run with ``use_cache=False`` and
    ``write_cache=True`` refreshes stale attributes.
    """

    def __init__(
        self,
        renderer: PageRenderer,
        decoder: CodeDecoder,
        cache: AttributeCache | None = None,
        dpi_ladder: Iterable[int] = DEFAULT_DPI_LADDER,
    ) -> None:
        self.renderer = renderer
        self.decoder = decoder
        self.cache = cache if cache is not None else AttributeCache()
        self.dpi_ladder = tuple(dpi_ladder)

    def resolve(
        self,
        doc: QrDocument,
        page: int,
        *,
        use_cache: bool,
        write_cache: bool,
    ) -> Resolution:
        remembered = doc.remembered_code(page)
        if remembered is not None:
            return Resolution(code=remembered, source=SOURCE_MEMO)

        if use_cache:
            cached = self.cache.read(doc.path)
            if cached is not None:
                return Resolution(code=cached, source=SOURCE_CACHE)

        try:
            page_count = doc.page_count(self.renderer)
        except DocumentAccessError as exc:
            logger.debug("Page count unavailable for %s: %s", doc.path, exc)
            return Resolution(failure=ResultStatus.NO_ACCESS)
        if page < 1 or page > page_count:
            logger.debug("Page %s out of range for %s (%s pages)", page, doc.path, page_count)
            return Resolution(failure=ResultStatus.NO_ACCESS)

        resolution = self._decode_page(doc, page)
        if not resolution.found:
            return resolution

        doc.remember_code(page, resolution.code)
        if write_cache:
            try:
                self.cache.write(doc.path, resolution.code)
            except CacheWriteError as exc:
                logger.debug("Attribute not written for %s: %s", doc.path, exc)
        return resolution

    def _decode_page(self, doc: QrDocument, page: int) -> Resolution:
        for dpi in self.dpi_ladder:
            try:
                image = self.renderer.render_page(doc.path, page, dpi)
                text = self.decoder.decode(image)
            except CodeNotFoundError:
                logger.debug("No QR code on page %s of %s at %s dpi", page, doc.path, dpi)
                continue
            except (DocumentAccessError, ImageUnreadableError) as exc:
                logger.debug("Unable to read page %s of %s at %s dpi: %s", page, doc.path, dpi, exc)
                return Resolution(failure=ResultStatus.NO_ACCESS, dpi=dpi)

            if not is_valid_code(text):
                logger.warning(
                    "Decoded value %r on page %s of %s contains illegal characters", text, page, doc.path
                )
                return Resolution(failure=ResultStatus.NO_CODE_FOUND, dpi=dpi)
            return Resolution(code=text, source=SOURCE_DECODE, dpi=dpi)
        return Resolution(failure=ResultStatus.NO_CODE_FOUND)
