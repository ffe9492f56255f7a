import pytest

from app_constants import APP_NAME, EXIT_DESTINATION_UNAVAILABLE, EXIT_INVALID_INPUT, EXIT_OK
from main import build_parser, main


@pytest.fixture
def inbox(tmp_path, make_pdf, renderer, decoder):
    make_pdf(tmp_path / "in" / "a.pdf")
    make_pdf(tmp_path / "in" / "b.pdf")
    renderer.pages.update({"a.pdf": 1, "b.pdf": 1})
    decoder.codes[("a.pdf", 1)] = "X1"
    return tmp_path / "in"


def test_parser_maps_flags_to_scan_settings() -> None:
    args = build_parser().parse_args(["scan", "docs", "--page", "2", "--no-cache", "--workers", "3"])

    assert args.page == 2
    assert args.use_cache is False
    assert args.write_cache is None
    assert args.max_workers == 3
    assert args.write_report is None


def test_scan_prints_results_and_summary(core, inbox, capsys) -> None:
    exit_code = main(["scan", str(inbox), "--no-report"], service=core)

    out = capsys.readouterr().out
    assert exit_code == EXIT_OK
    assert "[X1]" in out
    assert "Summary: scanned 2 files: 1 successful, 1 unsuccessful." in out


def test_quiet_scan_prints_only_summary(core, inbox, capsys) -> None:
    main(["scan", str(inbox), "--no-report", "--quiet"], service=core)

    captured = capsys.readouterr()
    assert captured.out.strip() == "Summary: scanned 2 files: 1 successful, 1 unsuccessful."
    assert captured.err == ""


def test_rename_moves_files(core, inbox, tmp_path, capsys) -> None:
    exit_code = main(["rename", str(inbox), str(tmp_path / "out"), "--no-report", "--quiet"], service=core)

    assert exit_code == EXIT_OK
    assert (tmp_path / "out" / "X1" / "X1_1.pdf").exists()
    assert "tried renaming 1 files, 1 successful" in capsys.readouterr().out


def test_rename_to_unusable_destination(core, inbox, tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file")

    exit_code = main(["rename", str(inbox), str(blocker / "out"), "--quiet"], service=core)

    assert exit_code == EXIT_DESTINATION_UNAVAILABLE
    assert (inbox / "a.pdf").exists()


def test_missing_input_dir(core, tmp_path) -> None:
    assert main(["scan", str(tmp_path / "missing")], service=core) == EXIT_INVALID_INPUT


def test_invalid_page(core, inbox) -> None:
    assert main(["scan", str(inbox), "--page", "0"], service=core) == EXIT_INVALID_INPUT


def test_tag_and_show(core, inbox, capsys) -> None:
    pdf_path = str(inbox / "b.pdf")

    assert main(["tag", pdf_path, "B-7"], service=core) == EXIT_OK
    capsys.readouterr()
    assert main(["show", pdf_path], service=core) == EXIT_OK
    assert capsys.readouterr().out.strip() == "B-7"


def test_tag_with_invalid_code(core, inbox, capsys) -> None:
    assert main(["tag", str(inbox / "a.pdf"), "a/b"], service=core) == EXIT_INVALID_INPUT
    assert "Invalid code." in capsys.readouterr().err


def test_tag_refused_by_file_system(core, inbox, cache) -> None:
    cache.refuse_writes = True

    assert main(["tag", str(inbox / "a.pdf"), "X1"], service=core) == EXIT_INVALID_INPUT


def test_help_names_the_application() -> None:
    assert build_parser().description.startswith(APP_NAME)
