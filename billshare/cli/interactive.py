"""Interactive bill splitting on the terminal."""

import argparse
import asyncio
import shlex
import sys
from dataclasses import replace
from decimal import Decimal
from pathlib import Path

from billshare.application.extraction import ReceiptExtractionRequest, run_receipt_extraction
from billshare.application.session import BillSession, ItemBusyError
from billshare.domain.bill import Item, Participant
from billshare.domain.summary import format_money
from billshare.runtime import get_logger, get_settings
from billshare.util.amounts import parse_amount

logger = get_logger(__name__)

HELP_TEXT = """Commands (items and people are numbered from 1):
  items                          List items with their claimers
  people                         List participants
  add-item [NAME [QTY [PRICE]]]  Add an item
  edit-item N FIELD VALUE        Change name, qty or price of item N
  rm-item N                      Delete item N
  add-person [NAME]              Add a participant
  rename P NAME                  Rename participant P
  rm-person P                    Delete participant P
  claim P N                      Toggle participant P's claim on item N
  split N                        Split item N evenly between everyone
  split-all                      Split every item evenly
  random N                       Give item N to a random participant
  scan PATH [--append]           Load (or add) the items of a receipt photo
  calc KEY...                    Press calculator keys
  summary                        Show totals and warnings
  reset                          Start over
  help                           Show this help
  quit                           Leave"""


class CommandError(ValueError):
    """Raised for malformed interactive input."""


def _pick(entries: tuple, raw: str, kind: str):
    try:
        index = int(raw)
    except ValueError as e:
        raise CommandError(f"Not a {kind} number: {raw}") from e
    if not 1 <= index <= len(entries):
        raise CommandError(f"No {kind} {index}")
    return entries[index - 1]


def _item_line(session: BillSession, index: int, item: Item) -> str:
    symbol = session.settings.currency_symbol
    claimers = [p.name for p in session.state.participants if p.claims(item.id)]
    who = ", ".join(claimers) if claimers else "-"
    return f"{index}. {item.name} x{item.quantity} @ {format_money(item.unit_price, symbol)} = " + (
        f"{format_money(item.line_total, symbol)}  [{who}]"
    )


def _participant_line(index: int, participant: Participant) -> str:
    return f"{index}. {participant.name} ({len(participant.assignments)} item(s))"


def _animate_random(session: BillSession, item: Item) -> str | None:
    names = {p.id: p.name for p in session.state.participants}

    def on_highlight(item_id: str, participant_id: str, is_final: bool) -> None:
        if not is_final:
            print(f"\r  ... {names.get(participant_id, '?'):<20}", end="", flush=True)

    async def run() -> str | None:
        task = session.start_random_assignment(item.id, on_highlight=on_highlight)
        if task is None:
            return None
        return await task

    winner_id = asyncio.run(run())
    print()
    return winner_id


def handle_line(session: BillSession, line: str) -> list[str]:
    """Run one interactive command and return the lines to print.

    Raises:
        CommandError: On unknown commands or bad arguments.
        EOFError: On ``quit``.
    """
    try:
        parts = shlex.split(line)
    except ValueError as e:
        raise CommandError(str(e)) from e
    if not parts:
        return []
    command, args = parts[0].lower(), parts[1:]
    state = session.state

    if command in ("quit", "exit", "q"):
        raise EOFError
    if command == "help":
        return HELP_TEXT.splitlines()
    if command == "items":
        if not state.items:
            return ["No items yet."]
        return [_item_line(session, i, item) for i, item in enumerate(state.items, 1)]
    if command == "people":
        return [_participant_line(i, p) for i, p in enumerate(state.participants, 1)] or ["Nobody here."]
    if command == "add-item":
        name = args[0] if args else None
        quantity = parse_amount(args[1], None) if len(args) > 1 else None
        price = parse_amount(args[2], None) if len(args) > 2 else None
        if (len(args) > 1 and quantity is None) or (len(args) > 2 and price is None):
            raise CommandError("Quantity and price must be numbers")
        item = session.add_item(
            name=name,
            quantity=quantity if quantity is not None else Decimal("1"),
            unit_price=price if price is not None else Decimal("0"),
        )
        return [f"Added {item.name}."]
    if command == "edit-item":
        if len(args) < 3:
            raise CommandError("Usage: edit-item N FIELD VALUE")
        item = _pick(state.items, args[0], "item")
        field, value = args[1].lower(), " ".join(args[2:])
        if field == "name":
            session.update_item(item.id, name=value)
        elif field in ("qty", "quantity"):
            session.update_item(item.id, quantity=parse_amount(value, item.quantity))
        elif field == "price":
            session.update_item(item.id, unit_price=parse_amount(value, item.unit_price))
        else:
            raise CommandError(f"Unknown field: {field}")
        return [f"Updated {item.name}."]
    if command == "rm-item":
        item = _pick(state.items, args[0] if args else "", "item")
        session.remove_item(item.id)
        return [f"Removed {item.name}."]
    if command == "add-person":
        participant = session.add_participant(" ".join(args) or None)
        return [f"Added {participant.name}."]
    if command == "rename":
        if len(args) < 2:
            raise CommandError("Usage: rename P NAME")
        participant = _pick(state.participants, args[0], "participant")
        session.rename_participant(participant.id, " ".join(args[1:]))
        return [f"Renamed {participant.name}."]
    if command == "rm-person":
        participant = _pick(state.participants, args[0] if args else "", "participant")
        session.remove_participant(participant.id)
        return [f"Removed {participant.name}."]
    if command == "claim":
        if len(args) != 2:
            raise CommandError("Usage: claim P N")
        participant = _pick(state.participants, args[0], "participant")
        item = _pick(state.items, args[1], "item")
        session.toggle_claim(participant.id, item.id)
        verb = "claims" if _claims(session, participant.id, item.id) else "releases"
        return [f"{participant.name} {verb} {item.name}."]
    if command == "split":
        item = _pick(state.items, args[0] if args else "", "item")
        session.split_item_evenly(item.id)
        return [f"Split {item.name} between {len(state.participants)} participant(s)."]
    if command == "split-all":
        session.split_all_evenly()
        return ["Split every item evenly."]
    if command == "random":
        item = _pick(state.items, args[0] if args else "", "item")
        winner_id = _animate_random(session, item)
        if winner_id is None:
            return ["Nobody to pick from."]
        winner = next(p for p in session.state.participants if p.id == winner_id)
        return [f"{item.name} goes to {winner.name}!"]
    if command == "scan":
        paths = [a for a in args if a != "--append"]
        if len(paths) != 1:
            raise CommandError("Usage: scan PATH [--append]")
        image_path = Path(paths[0])
        if not image_path.exists():
            raise CommandError(f"Receipt file not found: {image_path}")
        result = run_receipt_extraction(
            session,
            ReceiptExtractionRequest(
                image_bytes=image_path.read_bytes(),
                filename=image_path.name,
                append="--append" in args,
            ),
        )
        if result.error is not None:
            return [f"Extraction failed: {result.error}"]
        return [f"{result.items_added} item(s) {result.status}."]
    if command == "calc":
        if not args:
            raise CommandError("Usage: calc KEY...")
        for key in args:
            try:
                session.press_calculator(key)
            except ValueError as e:
                raise CommandError(str(e)) from e
        calc = session.calculator
        return [calc.last_expression, calc.expression] if calc.last_expression else [calc.expression]
    if command == "summary":
        return session.summary_text().splitlines() + session.warnings()
    if command == "reset":
        session.reset()
        return ["Started over."]

    raise CommandError(f"Unknown command: {command} (try 'help')")


def _claims(session: BillSession, participant_id: str, item_id: str) -> bool:
    return any(p.id == participant_id and p.claims(item_id) for p in session.state.participants)


def cmd_split(args: argparse.Namespace) -> None:
    """Split a bill on the terminal until the user quits."""
    if not sys.stdin.isatty():
        print("Error: billshare split requires an interactive TTY.")
        sys.exit(1)

    settings = get_settings()
    if getattr(args, "lang", None):
        settings = replace(settings, language=args.lang)
    session = BillSession(settings=settings)

    print("Type 'help' for commands, 'quit' to leave.")
    while True:
        try:
            line = input("billshare> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        try:
            output = handle_line(session, line)
        except EOFError:
            break
        except (CommandError, ItemBusyError) as e:
            print(f"Error: {e}")
            continue
        for out in output:
            print(out)

    print(session.summary_text())
