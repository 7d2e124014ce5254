#!/usr/bin/env python3
"""
bfrun - run a tape machine program

Usage:
    python bfrun.py <program> [--input FILE] [--serial PORT [--baud N] [--timeout S]]
                              [--max-steps N] [--trace] [--dump-tape N] [--verbose]

Program input comes from stdin and output goes to stdout, both as raw
bytes, unless --input or --serial say otherwise.

Exit codes:
    0  program finished
    1  program file unreadable, serial port unavailable, or execution error
    2  bad command line
    3  --max-steps budget exhausted before the program finished

Examples:
    python bfrun.py hello.b
    echo -n hi | python bfrun.py cat.b
    python bfrun.py cat.b --input notes.txt
    python bfrun.py echo.b --serial /dev/ttyUSB0 --baud 115200
    python bfrun.py spin.b --max-steps 100000 --dump-tape 32
"""

import argparse
import contextlib
import logging
import os
import sys

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bfvm import (
    __version__, Engine, ExecutionError, StopReason,
    load_program, instruction_count, bracket_balance,
)

log = logging.getLogger('bfrun')

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TIMEOUT = 3


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfrun",
        description="Run a tape machine program (+-<>[],.) from its raw bytes",
    )
    parser.add_argument("program", help="Program file")
    parser.add_argument("--input", "-i", metavar="FILE",
                        help="Read program input from FILE instead of stdin")
    parser.add_argument("--serial", "-s", metavar="PORT",
                        help="Use a serial port (device or pyserial URL) for input and output")
    parser.add_argument("--baud", "-b", type=int, default=None,
                        help="Serial baud rate (default: 9600)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Serial read timeout in seconds; a timed-out read ends input")
    parser.add_argument("--max-steps", type=int, default=None, metavar="N",
                        help="Stop after N executed program bytes (exit code 3)")
    parser.add_argument("--trace", action="store_true",
                        help="Write an instruction trace to stderr after the run")
    parser.add_argument("--dump-tape", type=int, default=0, metavar="N",
                        help="Hex dump the first N tape cells to stderr after the run")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")
    parser.add_argument("--version", action="version",
                        version=f"bfrun {__version__}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.input and args.serial:
        parser.error("--input and --serial are mutually exclusive")
    if (args.baud is not None or args.timeout is not None) and not args.serial:
        parser.error("--baud and --timeout require --serial")
    if args.baud is not None and args.baud <= 0:
        parser.error("--baud must be > 0")
    if args.max_steps is not None and args.max_steps < 0:
        parser.error("--max-steps must be >= 0")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
    )

    try:
        program = load_program(args.program)
    except OSError as e:
        log.error(f"Cannot read program {args.program}: {e}")
        return EXIT_ERROR

    log.debug(f"Program: {args.program} ({len(program)} bytes, "
              f"{instruction_count(program)} instructions)")
    balance = bracket_balance(program)
    if balance:
        log.warning(f"Program has {abs(balance)} unmatched "
                    f"'{'[' if balance > 0 else ']'}'")

    with contextlib.ExitStack() as stack:
        try:
            stdin, stdout = _open_streams(args, stack)
        except (OSError, ValueError) as e:
            # pyserial rejects bad baud rates and port URLs with ValueError
            log.error(f"Cannot open input: {e}")
            return EXIT_ERROR

        engine = Engine(program, stdin=stdin, stdout=stdout)
        if args.trace:
            engine.enable_trace()

        try:
            reason = engine.run(max_steps=args.max_steps)
        except ExecutionError as e:
            log.error(f"{type(e).__name__}: {e}")
            return EXIT_ERROR
        finally:
            _report(engine, args)

    if reason is StopReason.TIMEOUT:
        log.error(f"Step budget exhausted after {engine.state.steps} steps "
                  f"at pc {engine.state.pc}")
        return EXIT_TIMEOUT

    log.debug(f"Done: {engine.state.steps} steps, "
              f"{engine.input.consumed} bytes in, {engine.output.written} bytes out")
    return EXIT_OK


def _open_streams(args, stack: contextlib.ExitStack):
    """Open the run's input and output; everything opened is closed by ``stack``."""
    if args.serial:
        # serial_link imports pyserial
        from bfvm.serial_link import SerialLink, DEFAULT_BAUD

        link = SerialLink(args.serial,
                          baud=args.baud if args.baud is not None else DEFAULT_BAUD,
                          timeout=args.timeout)
        stack.enter_context(link)
        return link.ser, link.ser

    if args.input:
        stdin = stack.enter_context(open(args.input, "rb"))
    else:
        stdin = sys.stdin.buffer
    return stdin, sys.stdout.buffer


def _report(engine: Engine, args):
    if args.trace:
        print(engine.get_trace(), file=sys.stderr)
    if args.dump_tape:
        print(engine.tape.hexdump(0, args.dump_tape), file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
