"""
projectorctl: send one command to the projector and print the result.

Usage:
    projectorctl power                  # read power state
    projectorctl -p /dev/ttyUSB1 volume up
    projectorctl --json lamp_time
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from .constants import DEFAULT_DEVICE, DEFAULT_TIMEOUT, LOG_FORMAT
from .controller import ProjectorController
from .exceptions import ControllerErr, ProjectorError
from .protocol import CommandKind, SubCommand, parse_command

logger = logging.getLogger(__name__)

EXIT_CODES = {
    ControllerErr.SERIAL_PORT_ERROR: 1,
    ControllerErr.UNSUPPORTED_COMMAND: 2,
    ControllerErr.POWER_IS_DOWN: 3,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="projectorctl",
        description="Control a projector over its serial port",
    )
    parser.add_argument(
        "-p",
        "--path",
        default=DEFAULT_DEVICE,
        help=f"Serial port (default: {DEFAULT_DEVICE})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f"Read timeout in seconds (default: {DEFAULT_TIMEOUT})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log serial traffic")
    parser.add_argument("--json", action="store_true", help="Print replies as tagged JSON")
    parser.add_argument("command", choices=[k.value for k in CommandKind])
    parser.add_argument(
        "sub",
        nargs="?",
        type=str.lower,
        choices=[s.value.lower() for s in SubCommand],
        help="Sub-command (default: status)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    try:
        command = parse_command(args.command, args.sub)
        logger.debug("Executing %s on %s", command, args.path)
        with ProjectorController(args.path, timeout=args.timeout) as projector:
            reply = projector.execute(command)
    except ProjectorError as exc:
        kind = exc.kind.value if exc.kind else type(exc).__name__
        print(f"error: {kind}: {exc}", file=sys.stderr)
        return EXIT_CODES.get(exc.kind, 1)

    if reply is not None:
        print(json.dumps(reply.to_dict()) if args.json else reply)
    return 0


if __name__ == "__main__":
    sys.exit(main())
