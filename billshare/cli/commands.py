"""Command handlers used by the unified CLI."""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from billshare.runtime import get_logger, get_settings

logger = get_logger(__name__)

KEY_ALIASES = {"*": "×", "x": "×", "/": "÷"}
WORD_KEYS = {"=", "C", "DEL"}


def _settings_for(args: argparse.Namespace):
    settings = get_settings()
    lang = getattr(args, "lang", None)
    url = getattr(args, "url", None)
    if lang:
        settings = replace(settings, language=lang)
    if url:
        settings = replace(settings, extraction_url=url)
    return settings


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI server holding one bill session."""
    import uvicorn

    from billshare.application.session import BillSession
    from billshare.application.session_server import create_app

    app = create_app(BillSession(settings=_settings_for(args)))

    print(f"Starting bill session server on {args.host}:{args.port}")
    print(f"Session state: http://{args.host}:{args.port}/session")
    print("Press Ctrl+C to stop")

    uvicorn.run(app, host=args.host, port=args.port)


def cmd_scan(args: argparse.Namespace) -> None:
    """Extract the items of one receipt photo and print them with their total."""
    from billshare.application.extraction import ReceiptExtractionRequest, run_receipt_extraction
    from billshare.application.session import BillSession
    from billshare.domain.summary import format_money

    image_path = Path(args.image)
    if not image_path.exists():
        logger.error("Receipt file not found: %s", image_path)
        print(f"Error: Receipt file not found: {image_path}")
        sys.exit(1)

    session = BillSession(settings=_settings_for(args))
    result = run_receipt_extraction(
        session,
        ReceiptExtractionRequest(image_bytes=image_path.read_bytes(), filename=image_path.name),
    )

    if result.status in ("failed", "throttled"):
        print(f"Extraction failed: {result.error}")
        print("Make sure the extraction service is running before scanning receipts.")
        sys.exit(1)

    symbol = session.settings.currency_symbol
    print("\n" + "=" * 60)
    print("EXTRACTED ITEMS")
    print("=" * 60)
    for i, item in enumerate(session.state.items, 1):
        qty_str = f" x{item.quantity}" if item.quantity != 1 else ""
        print(f"  {i}. {item.name}{qty_str} - {format_money(item.line_total, symbol)}")
    print("-" * 60)
    print(f"Total: {format_money(session.summary().grand_total, symbol)}")
    print("=" * 60)


def expand_keys(raw_keys: list[str]) -> list[str]:
    """Split CLI arguments into keypad keys.

    ``C``, ``DEL`` and ``=`` are keys on their own; any other argument is
    read one character at a time, with ``*``/``x`` and ``/`` standing in for
    ``×`` and ``÷``.
    """
    keys: list[str] = []
    for raw in raw_keys:
        if raw in WORD_KEYS:
            keys.append(raw)
            continue
        for char in raw:
            if char.isspace():
                continue
            keys.append(KEY_ALIASES.get(char, char))
    if not keys or keys[-1] != "=":
        keys.append("=")
    return keys


def cmd_calc(args: argparse.Namespace) -> None:
    """Feed keys to the calculator and print the display."""
    from billshare.domain import calculator
    from billshare.domain.calculator import ERROR_DISPLAY

    state = calculator.CalculatorState()
    for key in expand_keys(args.keys):
        if key == "=":
            state = calculator.evaluate(state)
        elif key == "C":
            state = calculator.clear()
        elif key == "DEL":
            state = calculator.delete(state)
        elif key in calculator.OPERATORS:
            state = calculator.press_operator(state, key)
        elif key in calculator.INPUT_KEYS:
            state = calculator.press_key(state, key)
        else:
            print(f"Unsupported key: {key}")
            sys.exit(2)

    if state.last_expression:
        print(state.last_expression)
    print(state.expression)
    if state.expression == ERROR_DISPLAY:
        sys.exit(1)
