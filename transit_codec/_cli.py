"""transit-codec command-line interface.

Usage:
    echo '["~#set",[1,2]]' | python3 -m transit_codec decode
    python3 -m transit_codec decode --input stream.json
    cat doc.json | python3 -m transit_codec recode [--verbose]
    python3 -m transit_codec version
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import IO, List, Optional

from . import TransitError, __version__
from ._marshal import Reader, Writer

_LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transit-codec",
        description="Transit-JSON — decode and re-encode Transit documents",
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default WARNING)")
    sub = parser.add_subparsers(dest="command")

    # ── decode ──
    dec_p = sub.add_parser("decode", help="Print each value in a Transit stream")
    dec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read Transit-JSON from FILE instead of stdin")
    dec_p.add_argument("--strict-tags", action="store_true",
                       help="Fail on tags with no handler instead of keeping them tagged")

    # ── recode ──
    rec_p = sub.add_parser("recode", help="Decode a Transit stream and write it again")
    rec_p.add_argument("--input", "-i", metavar="FILE",
                       help="Read Transit-JSON from FILE instead of stdin")
    rec_p.add_argument("--verbose", action="store_true",
                       help="Write verbose output: no cache codes, ISO timestamps")

    # ── version ──
    sub.add_parser("version", help="Print version and exit")

    return parser


def _open_input(filepath: Optional[str]) -> IO:
    """Binary stream for a file or stdin."""
    if filepath:
        return open(filepath, "rb")
    if sys.stdin.isatty():
        print("transit-codec: reading from stdin (Ctrl-D to end)...", file=sys.stderr)
    return sys.stdin.buffer


def _cmd_decode(args: argparse.Namespace) -> None:
    fp = _open_input(args.input)
    try:
        Reader(strict_tags=args.strict_tags).read(fp, callback=lambda v: print(repr(v)))
    finally:
        if args.input:
            fp.close()


def _cmd_recode(args: argparse.Namespace) -> None:
    fp = _open_input(args.input)
    writer = Writer(sys.stdout, verbose=args.verbose)
    try:
        Reader().read(fp, callback=writer.write)
    finally:
        if args.input:
            fp.close()
    writer.flush()


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=_LOG_FORMAT)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "version":
        print(f"transit-codec {__version__}")
        return

    try:
        if args.command == "decode":
            _cmd_decode(args)
        elif args.command == "recode":
            _cmd_recode(args)
    except TransitError as e:
        print(f"transit-codec: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
