import argparse
import os
import sys

from app_constants import (
    APP_NAME,
    EXIT_DESTINATION_UNAVAILABLE,
    EXIT_INVALID_INPUT,
    EXIT_OK,
    INVALID_CODE_HELP,
    STATUS_LABELS,
)
from app_logging import log_exception
from core_service import (
    CoreApplicationService,
    RenameRequest,
    ScanRequest,
    TagRequest,
    build_scan_config,
)
from qrscan.errors import CacheWriteError, InvalidCodeError


def print_progress(current: int, total: int, status: str):
    print(f"[{current}/{total}] {status}", file=sys.stderr)


def add_scan_options(parser: argparse.ArgumentParser):
    parser.add_argument("input_dir", help="Directory searched recursively for PDF files")
    parser.add_argument("--page", type=int, default=None, help="Page holding the QR code (starting at 1)")
    parser.add_argument(
        "--no-cache",
        dest="use_cache",
        action="store_false",
        default=None,
        help="Ignore codes stored in file attributes and decode every page",
    )
    parser.add_argument(
        "--no-write-cache",
        dest="write_cache",
        action="store_false",
        default=None,
        help="Do not store decoded codes in file attributes",
    )
    parser.add_argument("--workers", dest="max_workers", type=int, default=None, help="Parallel decode workers")
    parser.add_argument(
        "--no-report",
        dest="write_report",
        action="store_false",
        default=None,
        help="Do not write the CSV report",
    )
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrscan",
        description=f"{APP_NAME}: find QR codes in PDF files and file them by code.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    scan_parser = commands.add_parser("scan", help="Scan PDF files and report the QR codes found")
    add_scan_options(scan_parser)

    rename_parser = commands.add_parser(
        "rename", help="Scan PDF files, then move them to OUTPUT_DIR/<code>/<code>_<n>.pdf"
    )
    add_scan_options(rename_parser)
    rename_parser.add_argument("output_dir", help="Directory receiving the renamed files")

    tag_parser = commands.add_parser("tag", help="Store a code in the file attribute of one PDF")
    tag_parser.add_argument("pdf")
    tag_parser.add_argument("code")

    show_parser = commands.add_parser("show", help="Print the code stored in the file attribute of one PDF")
    show_parser.add_argument("pdf")
    return parser


def print_results(results):
    for result in results:
        label = STATUS_LABELS.get(result.status.value, result.status.value)
        target = f" -> {result.output_path}" if result.renamed else ""
        code = f" [{result.code}]" if result.code else ""
        print(f"{label}{code}: {result.input_path}{target}")


def run_batch(service: CoreApplicationService, args) -> int:
    try:
        config = build_scan_config(
            page=args.page,
            use_cache=args.use_cache,
            write_cache=args.write_cache,
            max_workers=args.max_workers,
            write_report=args.write_report,
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return EXIT_INVALID_INPUT
    if not os.path.isdir(args.input_dir):
        print(f"Input directory not found: {args.input_dir}", file=sys.stderr)
        return EXIT_INVALID_INPUT

    log_cb = (lambda message: None) if args.quiet else print
    progress_cb = None if args.quiet else print_progress
    if args.command == "rename":
        response = service.scan_and_rename(
            RenameRequest(
                input_dir=args.input_dir,
                output_dir=args.output_dir,
                config=config,
                progress_cb=progress_cb,
                log_cb=log_cb,
            )
        )
    else:
        response = service.scan(
            ScanRequest(input_dir=args.input_dir, config=config, progress_cb=progress_cb, log_cb=log_cb)
        )

    if not args.quiet:
        print_results(response.results)
    print(response.summary.message())
    if response.rename_summary is not None:
        print(response.rename_summary.message())
    if response.report_path:
        print(f"Report: {response.report_path}")
    if response.rename_error:
        print(response.rename_error, file=sys.stderr)
        return EXIT_DESTINATION_UNAVAILABLE
    return EXIT_OK


def run_tag(service: CoreApplicationService, args) -> int:
    try:
        service.tag_document(TagRequest(pdf_path=args.pdf, code=args.code))
    except InvalidCodeError:
        print(f"Invalid code. {INVALID_CODE_HELP}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except (FileNotFoundError, ValueError) as e:
        print(str(e), file=sys.stderr)
        return EXIT_INVALID_INPUT
    except CacheWriteError as e:
        log_exception(e, context=f"Tagging {args.pdf}")
        print(
            "Unable to tag: custom file attributes may not be supported by the file system, "
            "or writing to the file was denied.",
            file=sys.stderr,
        )
        return EXIT_INVALID_INPUT
    print(f"Tagged {os.path.basename(args.pdf)} with code {args.code}.")
    return EXIT_OK


def run_show(service: CoreApplicationService, args) -> int:
    try:
        code = service.read_tag(args.pdf)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        return EXIT_INVALID_INPUT
    print(code if code is not None else "")
    return EXIT_OK


def main(argv=None, service: CoreApplicationService | None = None) -> int:
    args = build_parser().parse_args(argv)
    service = service or CoreApplicationService()
    if args.command == "tag":
        return run_tag(service, args)
    if args.command == "show":
        return run_show(service, args)
    return run_batch(service, args)


if __name__ == "__main__":
    sys.exit(main())
