import os

import pytest

import app_logging
from core_service import CoreApplicationService
from qrscan.attribute_cache import AttributeCache
from qrscan.errors import CacheWriteError, CodeNotFoundError, DocumentAccessError, ImageUnreadableError
from qrscan.grammar import is_valid_code, require_valid_code
from qrscan.rendering import PageRenderer
from qrscan.resolver import PageCodeResolver


class FakeRenderer(PageRenderer):
    """Page counts by file name; files it doesn't know are unreadable."""

    def __init__(self):
        self.pages: dict[str, int] = {}
        self.renders: list[tuple[str, int, int]] = []
        self.crashing: set[str] = set()
        self.count_calls: list[str] = []

    def page_count(self, pdf_path):
        name = os.path.basename(pdf_path)
        self.count_calls.append(name)
        if name in self.crashing:
            raise RuntimeError("renderer crashed")
        if name not in self.pages:
            raise DocumentAccessError(f"cannot open {name}")
        return self.pages[name]

    def render_page(self, pdf_path, page, dpi):
        name = os.path.basename(pdf_path)
        self.renders.append((name, page, dpi))
        return (name, page, dpi)


class FakeDecoder:
    """Codes by (file name, page); a file only decodes from ``min_dpi`` upwards."""

    def __init__(self):
        self.codes: dict[tuple[str, int], str] = {}
        self.min_dpi: dict[str, int] = {}
        self.unreadable: set[str] = set()
        self.broken: set[str] = set()
        self.calls: list[tuple[str, int, int]] = []

    def decode(self, image):
        name, page, dpi = image
        self.calls.append(image)
        if name in self.broken:
            raise RuntimeError(f"decoder crashed on {name}")
        if name in self.unreadable:
            raise ImageUnreadableError(f"garbled image for {name}")
        code = self.codes.get((name, page))
        if code is None or dpi < self.min_dpi.get(name, 0):
            raise CodeNotFoundError("nothing here")
        return code


class MemoryAttributeCache(AttributeCache):
    def __init__(self):
        super().__init__()
        self.values: dict[str, str] = {}
        self.writes: list[tuple[str, str]] = []
        self.refuse_writes = False

    def read(self, path):
        value = self.values.get(path)
        return value if is_valid_code(value) else None

    def write(self, path, code):
        require_valid_code(code)
        if self.refuse_writes:
            raise CacheWriteError("attributes not supported")
        self.values[path] = code
        self.writes.append((path, code))


@pytest.fixture(autouse=True)
def app_log_file(tmp_path, monkeypatch):
    log_file = tmp_path / "qrscan.log"
    monkeypatch.setattr(app_logging, "LOG_FILE", str(log_file))
    return log_file


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def decoder():
    return FakeDecoder()


@pytest.fixture
def cache():
    return MemoryAttributeCache()


@pytest.fixture
def resolver(renderer, decoder, cache):
    return PageCodeResolver(renderer=renderer, decoder=decoder, cache=cache)


@pytest.fixture
def core(renderer, decoder, cache):
    return CoreApplicationService(
        resolver_factory=lambda config: PageCodeResolver(
            renderer=renderer,
            decoder=decoder,
            cache=cache,
            dpi_ladder=config.dpi_ladder,
        ),
        attribute_cache=cache,
    )


@pytest.fixture
def make_pdf():
    def _make(path, content="%PDF-1.4 dummy"):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _make
