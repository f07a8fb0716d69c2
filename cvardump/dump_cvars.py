import argparse
import os
import sys
import logging
from typing import Iterable, List, Optional

from dotenv import load_dotenv
load_dotenv()

from cvardump.constants import RCON_DEFAULT_COMMAND, RCON_DEFAULT_TIMEOUT
from cvardump.ingestion.extract_cvars import DuplicateCountError, extract_cvars
from cvardump.ingestion.write_cvar_csv import write_cvar_csv
from cvardump.ingestion.sources import manual as s_manual
from cvardump.ingestion.sources import rcon as s_rcon
from cvardump.models import CvarRecord, ExtractionResult

logger = logging.getLogger(__name__)


def check_expected_count(result: ExtractionResult) -> None:
    """Warn when the number of extracted cvars differs from the count cvarlist printed."""
    mismatch = result.count_mismatch()
    if mismatch is None:
        logger.info("No cvar count found in input; skipping consistency check")
        return
    found, expected = len(result.records), result.expected_count
    if mismatch < 0:
        logger.warning(f'Extracted fewer cvars ({found}) than the number of cvars reported by "cvarlist" ({expected})')
    elif mismatch > 0:
        logger.warning(f'Extracted more cvars ({found}) than the number of cvars reported by "cvarlist" ({expected})')
    else:
        logger.info(f"Extracted {found} cvars")


def read_input(args: argparse.Namespace) -> str:
    if args.command == "rcon":
        return s_rcon.fetch_text(
            args.host,
            args.password,
            command=RCON_DEFAULT_COMMAND,
            timeout=args.timeout,
        )
    # Default to reading from stdin/terminal
    return s_manual.fetch_text(args.input)


def write_output(records: Iterable[CvarRecord], path: Optional[str]) -> None:
    if path is None:
        # Default to writing to stdout/terminal
        write_cvar_csv(records, sys.stdout.buffer)
        sys.stdout.buffer.flush()
        return
    with open(path, "wb") as f:
        write_cvar_csv(records, f)
    logger.info(f"Wrote cvar table: {path}")


def _add_output_arg(parser: argparse.ArgumentParser, default) -> None:
    parser.add_argument(
        "-o", "--output",
        default=default,
        help="Output file path, default to printing to the terminal",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cvardump",
        description="Dumps a list of cvars from Source engine into a CSV spreadsheet",
    )
    _add_output_arg(parser, os.getenv("CVARDUMP_OUTPUT"))
    sub = parser.add_subparsers(dest="command")

    p_rcon = sub.add_parser(
        "rcon",
        help='Connect to a Source engine server using RCON and run "cvarlist"',
    )
    p_rcon.add_argument("host", help="Server address and port, ex: 192.168.1.100:27015")
    p_rcon.add_argument("password", nargs="?", default=os.getenv("RCON_PASSWORD"), help="RCON password, default $RCON_PASSWORD")
    p_rcon.add_argument("--timeout", type=float, default=os.getenv("RCON_TIMEOUT", str(RCON_DEFAULT_TIMEOUT)), help="Socket timeout in seconds")
    # Accept -o after the subcommand too, without clobbering one given before it
    _add_output_arg(p_rcon, argparse.SUPPRESS)

    p_manual = sub.add_parser(
        "manual",
        help='Read the output of "cvarlist" from a file. Useful for extracting cvars from Source engine clients',
    )
    p_manual.add_argument("input", nargs="?", default=None, help="Input file, default to reading from stdin")
    _add_output_arg(p_manual, argparse.SUPPRESS)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0
    if args.command == "rcon" and not args.password:
        parser.error("missing RCON password (argument or $RCON_PASSWORD)")

    try:
        text = read_input(args)
    except (OSError, ValueError, s_rcon.RconError) as e:
        logger.error(f"Failed to read input: {e}")
        return 1

    # Extract cvars from raw format
    try:
        result = extract_cvars(text)
    except DuplicateCountError as e:
        logger.error(f"Inconsistent cvarlist output, nothing written: {e}")
        return 1
    check_expected_count(result)

    # Write cvar list to csv
    try:
        write_output(result.records, args.output)
    except OSError as e:
        logger.error(f"Failed to write output: {e}")
        return 1
    return 0


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
