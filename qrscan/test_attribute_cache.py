import os

import pytest

from qrscan import attribute_cache as attribute_cache_module
from qrscan.attribute_cache import FILE_ATTRIBUTE, AttributeCache
from qrscan.errors import CacheWriteError, InvalidCodeError


@pytest.fixture
def pdf_with_xattrs(tmp_path):
    path = tmp_path / "a.pdf"
    path.write_text("%PDF-1.4")
    if not attribute_cache_module.xattr_supported():
        pytest.skip("extended attributes not available on this platform")
    try:
        os.setxattr(str(path), "user.qrscan.probe", b"1")
    except OSError:
        pytest.skip("file system does not accept user attributes")
    return str(path)


def test_write_then_read(pdf_with_xattrs) -> None:
    cache = AttributeCache()

    cache.write(pdf_with_xattrs, "X1")

    assert cache.read(pdf_with_xattrs) == "X1"
    assert cache.has_code(pdf_with_xattrs)
    assert os.getxattr(pdf_with_xattrs, FILE_ATTRIBUTE) == b"X1"


def test_missing_attribute_reads_as_none(pdf_with_xattrs) -> None:
    assert AttributeCache().read(pdf_with_xattrs) is None


def test_invalid_stored_value_reads_as_none(pdf_with_xattrs) -> None:
    os.setxattr(pdf_with_xattrs, FILE_ATTRIBUTE, b"not/valid")

    assert AttributeCache().read(pdf_with_xattrs) is None


def test_invalid_code_is_rejected_before_touching_file(pdf_with_xattrs) -> None:
    cache = AttributeCache()
    cache.write(pdf_with_xattrs, "X1")

    with pytest.raises(InvalidCodeError):
        cache.write(pdf_with_xattrs, "a/b")

    assert cache.read(pdf_with_xattrs) == "X1"


def test_missing_file_reads_as_none(tmp_path) -> None:
    assert AttributeCache().read(str(tmp_path / "nope.pdf")) is None


def test_unsupported_platform(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(attribute_cache_module, "xattr_supported", lambda: False)
    path = tmp_path / "a.pdf"
    path.write_text("%PDF-1.4")
    cache = AttributeCache()

    assert cache.read(str(path)) is None
    with pytest.raises(CacheWriteError):
        cache.write(str(path), "X1")


def test_write_to_missing_file_raises_cache_error(tmp_path) -> None:
    if not attribute_cache_module.xattr_supported():
        pytest.skip("extended attributes not available on this platform")

    with pytest.raises(CacheWriteError):
        AttributeCache().write(str(tmp_path / "nope.pdf"), "X1")
