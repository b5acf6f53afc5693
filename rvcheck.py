#!/usr/bin/env python3
"""
rvcheck — Instruction encoding conflict checker

Usage:
    python rvcheck.py --catalog <instr_dict.json> [--encoding TOKEN]
                      [--match HEX] [--mask HEX] [--format text|json]
                      [--workers N] [-v] [-q] [--log-file PATH]

The proposal is given as a 32-character token (MSB first, '0' '1' '-'),
as a match/mask pair, or both (then they must agree). Tokens that start
with "-" must be passed as --encoding=TOKEN so argparse does not read them
as an option.

Exit status:
    0  no conflicts
    1  conflicts found
    2  bad proposal or unreadable catalog

Examples:
    python rvcheck.py --catalog examples/riscv_sample.json \\
        --encoding=0010000----------010-----0110011
    python rvcheck.py --catalog examples/riscv_sample.json \\
        --match 0x1800202f --mask 0xf800707f --format json
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from rvconflict import __version__, load_catalog, normalize, validate
from rvconflict.catalog import CatalogError
from rvconflict.config import (
    DEFAULT_WORKERS, EXIT_CONFLICTS, EXIT_INPUT_ERROR, EXIT_OK,
    KIND_LABELS, LOG_FILE_FORMAT, LOG_FORMAT,
)
from rvconflict.normalizer import NormalizationError, format_hex, pattern_to_token

logger = logging.getLogger("rvcheck")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rvcheck",
        description="Check a proposed instruction encoding against an encoding catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--catalog", "-c", required=True,
                        help="Catalog JSON (instr_dict.json or grouped extension catalog)")
    parser.add_argument("--encoding", "-e", default=None,
                        help="Proposed encoding, 32 chars of 0/1/- (MSB first); use --encoding=TOKEN")
    parser.add_argument("--match", default=None, help="Proposed match value (hex)")
    parser.add_argument("--mask", default=None, help="Proposed mask value (hex)")
    parser.add_argument("--format", choices=["text", "json"], default="text",
                        help="Report format (default: text)")
    parser.add_argument("--workers", "-j", type=int, default=DEFAULT_WORKERS,
                        help=f"Worker threads for large catalogs (default: {DEFAULT_WORKERS})")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", default=None, help="Also write a DEBUG log to this file")
    parser.add_argument("--version", action="version", version=f"rvcheck {__version__}")
    return parser


def setup_logging(verbose: int = 0, quiet: bool = False, log_file: str = None) -> None:
    """Console handler on stderr, optional DEBUG file handler."""
    if quiet:
        level = logging.ERROR
    elif verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    handlers = [console]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=logging.DEBUG if log_file else level,
        handlers=handlers,
        force=True,
    )


def format_text(report) -> str:
    """Plain-text report, most severe conflict first."""
    proposed = report.proposed
    lines = [
        f"Proposed: {pattern_to_token(proposed)}  "
        f"match={format_hex(proposed.match)} mask={format_hex(proposed.mask)}",
        f"Checked {report.checked} catalog entries: {len(report)} conflict(s)",
    ]
    for conflict in report:
        other = conflict.other.pattern
        lines.append("")
        lines.append(f"  [{KIND_LABELS[conflict.kind.name]}] {conflict.other.identifier}")
        lines.append(f"      encoding     {pattern_to_token(other)}")
        lines.append(f"      match/mask   {format_hex(other.match)} / {format_hex(other.mask)}")
        lines.append(f"      common mask  {format_hex(conflict.common_mask)}")
        lines.append(f"      witness      {format_hex(conflict.witness)}")
    if not report.has_conflicts:
        lines.append("No conflicts.")
    return "\n".join(lines)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.quiet, args.log_file)

    if args.workers < 1:
        logger.error(f"--workers must be at least 1, got {args.workers}")
        return EXIT_INPUT_ERROR

    try:
        proposed = normalize(token=args.encoding, match=args.match, mask=args.mask)
    except NormalizationError as e:
        logger.error(f"Invalid proposal: {e}")
        return EXIT_INPUT_ERROR

    try:
        catalog = load_catalog(args.catalog)
    except CatalogError as e:
        logger.error(str(e))
        return EXIT_INPUT_ERROR

    report = validate(proposed, catalog, workers=args.workers)

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_text(report))

    return EXIT_CONFLICTS if report.has_conflicts else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
