from __future__ import annotations

from PIL import Image, ImageOps
from pyzbar.pyzbar import ZBarSymbol, decode
from pyzbar.pyzbar_error import PyZbarError

from .errors import CodeNotFoundError, ImageUnreadableError


class CodeDecoder:
    def decode(self, image: Image.Image) -> str:
        """Return the text of the QR code in ``image``.

        Raises CodeNotFoundError when the image holds no readable code and
        ImageUnreadableError when the image itself can't be processed.
        """
        raise NotImplementedError


class ZbarCodeDecoder(CodeDecoder):
    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def _variants(self, image: Image.Image):
        gray = image if image.mode == "L" else image.convert("L")
        yield gray
        # Scans are often low contrast; stretch the histogram and retry.
        yield ImageOps.autocontrast(gray)

    def decode(self, image: Image.Image) -> str:
        try:
            for variant in self._variants(image):
                symbols = decode(variant, symbols=[ZBarSymbol.QRCODE])
                for symbol in symbols:
                    try:
                        return symbol.data.decode(self.encoding)
                    except UnicodeDecodeError:
                        continue
        except (OSError, ValueError, TypeError, PyZbarError) as exc:
            raise ImageUnreadableError(f"Unable to process page image: {exc}") from exc
        raise CodeNotFoundError("No QR code found in page image")
