import logging
import os

import pytest

from qrscan import renamer as renamer_module
from qrscan.errors import DestinationUnavailableError
from qrscan.models import ResultStatus, ScanResult
from qrscan.renamer import Renamer, ensure_output_root, find_target_path


def found(path, code: str) -> ScanResult:
    return ScanResult(status=ResultStatus.FOUND, code=code, scanned_page=1, input_path=str(path))


def missing(path) -> ScanResult:
    return ScanResult(status=ResultStatus.NO_CODE_FOUND, code="", scanned_page=1, input_path=str(path))


def test_same_code_gets_increasing_suffixes(tmp_path, make_pdf) -> None:
    first = make_pdf(tmp_path / "in" / "a.pdf", "first")
    second = make_pdf(tmp_path / "in" / "b.pdf", "second")
    out = tmp_path / "out"
    results = [found(first, "X1"), found(second, "X1")]

    summary = Renamer().rename(results, str(out))

    assert (out / "X1" / "X1_1.pdf").read_text() == "first"
    assert (out / "X1" / "X1_2.pdf").read_text() == "second"
    assert not first.exists()
    assert not second.exists()
    assert results[0].output_path == str(out / "X1" / "X1_1.pdf")
    assert results[1].renamed
    assert (summary.attempted, summary.succeeded, summary.failed, summary.skipped) == (2, 2, 0, 0)


def test_existing_files_are_never_overwritten(tmp_path, make_pdf) -> None:
    make_pdf(tmp_path / "out" / "X1" / "X1_1.pdf", "already here")
    source = make_pdf(tmp_path / "in" / "a.pdf", "new")

    Renamer().rename([found(source, "X1")], str(tmp_path / "out"))

    assert (tmp_path / "out" / "X1" / "X1_1.pdf").read_text() == "already here"
    assert (tmp_path / "out" / "X1" / "X1_2.pdf").read_text() == "new"


def test_files_without_code_are_left_alone(tmp_path, make_pdf) -> None:
    source = make_pdf(tmp_path / "in" / "b.pdf")
    result = missing(source)
    messages: list[str] = []

    summary = Renamer(logger=messages.append).rename([result], str(tmp_path / "out"))

    assert source.exists()
    assert not result.renamed
    assert summary.skipped == 1
    assert summary.attempted == 0
    assert messages[-1] == (
        "Summary: tried renaming 0 files, 0 successful, 0 unsuccessful, 1 not attempted (unable to find QR code)."
    )


def test_output_root_is_created(tmp_path, make_pdf) -> None:
    source = make_pdf(tmp_path / "in" / "a.pdf")
    messages: list[str] = []

    Renamer(logger=messages.append).rename([found(source, "X1")], str(tmp_path / "new" / "out"))

    assert (tmp_path / "new" / "out" / "X1" / "X1_1.pdf").exists()
    assert "Output directory did not exist and has been created." in messages


def test_unusable_output_root_aborts_before_moving(tmp_path, make_pdf) -> None:
    source = make_pdf(tmp_path / "in" / "a.pdf")
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")

    with pytest.raises(DestinationUnavailableError):
        Renamer().rename([found(source, "X1")], str(blocker / "out"))

    assert source.exists()


def test_ensure_output_root_returns_absolute_path(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)

    assert ensure_output_root("out") == str(tmp_path / "out")
    assert (tmp_path / "out").is_dir()


def test_failed_move_does_not_stop_the_batch(tmp_path, make_pdf) -> None:
    gone = tmp_path / "in" / "gone.pdf"
    present = make_pdf(tmp_path / "in" / "here.pdf")
    results = [found(gone, "X1"), found(present, "X2")]

    summary = Renamer().rename(results, str(tmp_path / "out"))

    assert not results[0].renamed
    assert results[1].renamed
    assert (tmp_path / "out" / "X2" / "X2_1.pdf").exists()
    assert summary.failed == 1
    assert summary.succeeded == 1
    assert summary.failures == [str(gone)]


def test_no_free_name_counts_as_failure(tmp_path, make_pdf, monkeypatch) -> None:
    source = make_pdf(tmp_path / "in" / "a.pdf")
    monkeypatch.setattr(renamer_module.os.path, "exists", lambda _path: True)

    summary = Renamer().rename([found(source, "X1")], str(tmp_path / "out"))

    assert summary.failed == 1
    assert source.exists()


def test_find_target_path_fills_first_gap(tmp_path) -> None:
    code_dir = tmp_path / "X1"
    code_dir.mkdir()
    (code_dir / "X1_1.pdf").write_text("")
    (code_dir / "X1_3.pdf").write_text("")

    assert find_target_path(str(code_dir), "X1") == os.path.join(str(code_dir), "X1_2.pdf")


def test_result_cannot_be_moved_twice(tmp_path) -> None:
    result = found(tmp_path / "a.pdf", "X1")
    result.set_output_path(str(tmp_path / "X1_1.pdf"))

    with pytest.raises(ValueError):
        result.set_output_path(str(tmp_path / "X1_2.pdf"))


def test_failed_move_is_logged_by_module_logger(tmp_path, caplog) -> None:
    gone = tmp_path / "in" / "gone.pdf"

    with caplog.at_level(logging.ERROR, logger="qrscan.renamer"):
        Renamer().rename([found(gone, "X1")], str(tmp_path / "out"))

    assert [record.name for record in caplog.records] == ["qrscan.renamer"]
    assert str(gone) in caplog.records[0].getMessage()
