#!/usr/bin/env python3
"""Daytime and echo network test clients."""

import argparse
import logging
import sys
from collections.abc import Iterator

from client.runner import ExitCode, run_daytime, run_echo
from common.protocol import (
    CONNECT_DEADLINE_S,
    DAYTIME_PORT,
    DEFAULT_HOST,
    ECHO_PORT,
    RECEIVE_DEADLINE_S,
    TRACE,
)

logger = logging.getLogger(__name__)

PROMPT = "Message (quit to exit): "


def prompt_messages(prompt: str = PROMPT) -> Iterator[str]:
    """Yield lines typed by the user until end of input."""
    while True:
        try:
            yield input(prompt)
        except EOFError:
            print()
            return


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.WARNING
    elif verbose >= 2:
        level = TRACE
    elif verbose == 1:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level)


def _add_common_args(parser: argparse.ArgumentParser, default_port: int) -> None:
    """Add host, port and deadline arguments to a parser."""
    parser.add_argument(
        "host",
        nargs="?",
        default=DEFAULT_HOST,
        help=f"Server address (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "port",
        nargs="?",
        type=int,
        default=default_port,
        help=f"Server port (default: {default_port})",
    )
    parser.add_argument(
        "-r",
        "--receive-deadline",
        type=_positive_float,
        default=RECEIVE_DEADLINE_S,
        help=f"Seconds to wait for a reply (default: {RECEIVE_DEADLINE_S})",
    )


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Query daytime and echo servers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  %(prog)s daytime                     Query {DEFAULT_HOST}:{DAYTIME_PORT} over UDP
  %(prog)s daytime 127.0.0.1 1313      Query a custom server and port
  %(prog)s echo 127.0.0.1              Interactive echo session over TCP
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for trace)"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")

    subparsers = parser.add_subparsers(dest="mode")

    daytime_parser = subparsers.add_parser("daytime", help="Ask a daytime server for the time (UDP)")
    _add_common_args(daytime_parser, DAYTIME_PORT)

    echo_parser = subparsers.add_parser("echo", help="Interactive echo session (TCP)")
    _add_common_args(echo_parser, ECHO_PORT)
    echo_parser.add_argument(
        "-c",
        "--connect-deadline",
        type=_positive_float,
        default=CONNECT_DEADLINE_S,
        help=f"Seconds to wait for the connection (default: {CONNECT_DEADLINE_S})",
    )

    args = parser.parse_args()
    _configure_logging(args.verbose, args.quiet)

    try:
        if args.mode == "daytime":
            return run_daytime(args.host, args.port, deadline_s=args.receive_deadline)

        if args.mode == "echo":
            return run_echo(
                args.host,
                prompt_messages(),
                port=args.port,
                connect_deadline_s=args.connect_deadline,
                receive_deadline_s=args.receive_deadline,
            )
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return ExitCode.INTERRUPTED

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
