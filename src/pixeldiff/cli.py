from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import orjson

from pixeldiff import settings
from pixeldiff.compare import compare
from pixeldiff.errors import PixelDiffError, UsageError
from pixeldiff.report import format_report, rating
from pixeldiff.types import ComparisonReport

EXAMPLE = "Example:\n  pixeldiff figma-export.png implementation.png ./output"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="pixeldiff",
        description="Compare a design export against an implementation screenshot.",
        epilog=EXAMPLE,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("original", help="Path to the original design image")
    parser.add_argument("screenshot", help="Path to the implementation screenshot")
    parser.add_argument(
        "output_dir",
        nargs="?",
        default=settings.DEFAULT_OUTPUT_DIR,
        help=f"Directory for {settings.DIFF_FILENAME} (default: %(default)s)",
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=settings.DEFAULT_THRESHOLD,
        help="Per-pixel tolerance, 0 = exact match, 1 = any difference allowed "
        "(default: %(default)s)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    return parser


def _report_json(report: ComparisonReport) -> bytes:
    payload = report.model_dump(mode="json")
    payload["passed"] = report.passed
    payload["rating"] = rating(report.match_percentage)
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2)


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_usage(sys.stderr)
        sys.stderr.write(f"{parser.prog}: error: {e}\n\n{EXAMPLE}\n")
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        report = compare(args.original, args.screenshot, args.output_dir, args.threshold)
    except PixelDiffError as e:
        sys.stderr.write(f"{parser.prog}: {e}\n")
        return 1

    if args.json:
        sys.stdout.write(_report_json(report).decode() + "\n")
    else:
        print(format_report(report))
    return 0 if report.passed else 1


if __name__ == "__main__":
    sys.exit(main())
