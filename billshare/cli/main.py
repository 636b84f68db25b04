#!/usr/bin/env python3

import argparse
from collections.abc import Callable, Sequence


def _coerce_exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _run_command(command: Callable[[argparse.Namespace], None], args: argparse.Namespace) -> int:
    """
    Normalize command handlers that call sys.exit().

    This keeps process termination centralized in this module's entrypoint.
    """
    try:
        command(args)
    except SystemExit as exc:
        return _coerce_exit_code(exc.code)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Split a bill between friends",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  serve [--host] [--port]    Start the local session server for the browser UI
  scan <image>               Extract the items of a receipt photo and print them
  calc <keys...>             Run keys through the keypad calculator (e.g. calc 2 + 2 =)
  split                      Split a bill interactively

Notes:
  Nothing is saved: a session lives only as long as the process.
""",
    )
    parser.add_argument(
        "--lang", choices=["en", "it"], default=None, help="Language for messages (default: from settings)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Start the local session server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")

    # scan command
    scan_parser = subparsers.add_parser("scan", help="Extract items from a receipt image")
    scan_parser.add_argument("image", help="Path to receipt image")
    scan_parser.add_argument("--url", default=None, help="Extraction service URL (default: from settings)")

    # calc command
    calc_parser = subparsers.add_parser("calc", help="Evaluate keypad input")
    calc_parser.add_argument("keys", nargs="+", help="Keys or key strings, e.g. 2 + 2 = or '(1+2)×3'")

    # split command
    subparsers.add_parser("split", help="Split a bill interactively")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "serve":
        from billshare.cli.commands import cmd_serve

        return _run_command(cmd_serve, args)
    elif args.command == "scan":
        from billshare.cli.commands import cmd_scan

        return _run_command(cmd_scan, args)
    elif args.command == "calc":
        from billshare.cli.commands import cmd_calc

        return _run_command(cmd_calc, args)
    elif args.command == "split":
        from billshare.cli.interactive import cmd_split

        return _run_command(cmd_split, args)

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
