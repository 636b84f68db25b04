"""Validation of the line-item payload returned by receipt extraction."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from billshare.domain.bill import ExtractedItem

# Field names accepted for each attribute, preferred name first
NAME_KEYS = ("name", "prodotto")
QUANTITY_KEYS = ("quantity", "quantita")
UNIT_PRICE_KEYS = ("unit_price", "prezzo")


class MalformedExtraction(ValueError):
    """Raised when an extraction payload is not a list of well-typed items."""


def _lookup(entry: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in entry:
            return entry[key]
    return None


def _to_decimal(value: Any, field_name: str, index: int) -> Decimal:
    # bool is an int subclass but never a meaningful amount
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise MalformedExtraction(f"Item {index}: {field_name} is not a number: {value!r}")
    try:
        number = Decimal(str(value).strip().replace(",", ".", 1))
    except InvalidOperation as e:
        raise MalformedExtraction(f"Item {index}: {field_name} is not a number: {value!r}") from e
    if not number.is_finite():
        raise MalformedExtraction(f"Item {index}: {field_name} is not finite: {value!r}")
    return number


def parse_extracted_items(payload: Any) -> list[ExtractedItem]:
    """
    Turn a decoded JSON payload into extracted line items.

    The payload must be a list of objects with a name and a unit price; a
    missing quantity means 1.

    Raises:
        MalformedExtraction: If any part of the payload is malformed. No
            partial list is ever returned.
    """
    if not isinstance(payload, list):
        raise MalformedExtraction(f"Expected a list of items, got {type(payload).__name__}")

    items: list[ExtractedItem] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise MalformedExtraction(f"Item {index}: expected an object, got {type(entry).__name__}")

        name = _lookup(entry, NAME_KEYS)
        if not isinstance(name, str) or not name.strip():
            raise MalformedExtraction(f"Item {index}: missing name")

        raw_price = _lookup(entry, UNIT_PRICE_KEYS)
        if raw_price is None:
            raise MalformedExtraction(f"Item {index}: missing unit price")
        unit_price = _to_decimal(raw_price, "unit price", index)

        raw_quantity = _lookup(entry, QUANTITY_KEYS)
        quantity = Decimal("1") if raw_quantity is None else _to_decimal(raw_quantity, "quantity", index)

        items.append(ExtractedItem(name=name.strip(), quantity=quantity, unit_price=unit_price))
    return items
