#!/usr/bin/env python3
"""
fungerun - Funge-98 program runner

Usage:
    python fungerun.py <program.b98> [program args...]
                       [--profile lenient|befunge98|strict] [--config run.json]
                       [--max-ticks N] [--seed N] [--free-markers]
                       [--trace] [--dump] [-v | -q] [--log-file run.log]

Exit status:
    the value passed to `q`, 0 when every IP ended with `@`,
    124 on tick limit, 1 on load/config errors, 2 on internal errors

Examples:
    python fungerun.py hello.b98
    python fungerun.py primes.b98 --max-ticks 100000 --profile befunge98
    python fungerun.py echo.b98 --trace -v < input.txt
"""

import argparse
import logging
import os
import sys

# Fix stdout encoding on Windows (programs may print any code point)
if (hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding
        and sys.stdout.encoding.lower() not in ('utf-8', 'utf8')):
    sys.stdout.reconfigure(encoding='utf-8', errors='replace')

from funge98_vm import __version__
from funge98_vm.config import PROFILES, DEFAULT_PROFILE, ConfigError, from_profile, load_config
from funge98_vm.emu import FungeEmulator, StopReason
from funge98_vm.loader import LoaderError
from funge98_vm.log_setup import setup_logging
from funge98_vm.periph.console import Console

EXIT_TIMEOUT = 124

log = logging.getLogger('funge98_vm.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fungerun",
        description="Run a Befunge-98 program",
        epilog="Profiles: " + ", ".join(
            f"{name} ({p['description']})" for name, p in PROFILES.items()),
    )
    parser.add_argument("program", help="Funge source file")
    parser.add_argument("args", nargs="*",
                        help="Arguments visible to the program through `y`")
    parser.add_argument("--profile", default=None, choices=list(PROFILES.keys()),
                        help=f"Behaviour profile (default: {DEFAULT_PROFILE})")
    parser.add_argument("--config", default=None,
                        help="JSON config file (profile + overrides)")
    parser.add_argument("--max-ticks", type=int, default=None,
                        help="Stop after N ticks (exit status 124)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the `?` instruction")
    parser.add_argument("--free-markers", action="store_true", default=None,
                        help="Spaces and ;...; take no ticks")
    parser.add_argument("--trace", action="store_true", default=None,
                        help="Write an instruction trace to stderr when the run ends")
    parser.add_argument("--dump", action="store_true",
                        help="Print the final Funge-space to stderr")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="More log output (-v info, -vv debug)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"fungerun {__version__}")
    return parser


def _console_level(args) -> int:
    if args.quiet:
        return logging.ERROR
    if args.verbose == 0:
        return logging.WARNING
    if args.verbose == 1:
        return logging.INFO
    return logging.DEBUG


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(console_level=_console_level(args), log_file=args.log_file)

    overrides = dict(
        max_ticks=args.max_ticks,
        seed=args.seed,
        free_markers=args.free_markers,
        trace=args.trace,
        argv=[args.program] + list(args.args),
        env=dict(os.environ),
    )

    try:
        if args.config:
            config = load_config(args.config, **overrides)
            if args.profile:
                log.warning("--profile ignored; %s sets the profile", args.config)
        else:
            config = from_profile(args.profile or DEFAULT_PROFILE, **overrides)

        vm = FungeEmulator(config=config,
                           console=Console(output=sys.stdout, input_stream=sys.stdin))
        vm.load_file(args.program)
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 1
    except LoaderError as e:
        print(f"Load error: {e}", file=sys.stderr)
        return 1

    log.info("Program: %s (%dx%d)", args.program, vm.space.width, vm.space.height)

    try:
        reason = vm.run()
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"Internal VM error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2
    finally:
        vm.console.flush()

    if config.trace:
        print(vm.get_trace(), file=sys.stderr)
    if args.dump:
        print(vm.space.render(), file=sys.stderr)

    log.info("Stopped: %s after %d ticks", reason.value, vm.tick_count)

    if reason is StopReason.QUIT:
        return vm.exit_code
    if reason is StopReason.TIMEOUT:
        print(f"Tick limit reached ({config.max_ticks})", file=sys.stderr)
        return EXIT_TIMEOUT
    return 0


if __name__ == "__main__":
    sys.exit(main())
