"""Data models for a bill being split, and pure operations over them.

A ``BillState`` is an immutable snapshot. Every operation here takes a snapshot
and returns a new one; callers never mutate items or participants in place.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from decimal import Decimal
from fractions import Fraction

from billshare.domain.messages import translate


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Item:
    """A single line item on the bill."""

    id: str
    name: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class Participant:
    """A person sharing the bill."""

    id: str
    name: str
    # item id -> share of that item in (0, 1]; a missing key means no claim
    assignments: Mapping[str, Fraction] = field(default_factory=dict)

    def share_of(self, item_id: str) -> Fraction:
        return self.assignments.get(item_id, Fraction(0))

    def claims(self, item_id: str) -> bool:
        return self.share_of(item_id) > 0


@dataclass(frozen=True)
class BillState:
    """Snapshot of every item and participant in the session."""

    items: tuple[Item, ...] = ()
    participants: tuple[Participant, ...] = ()


@dataclass(frozen=True)
class ExtractedItem:
    """A line item as returned by receipt extraction, before it gets an id."""

    name: str
    quantity: Decimal
    unit_price: Decimal


def find_item(state: BillState, item_id: str) -> Item | None:
    for item in state.items:
        if item.id == item_id:
            return item
    return None


def find_participant(state: BillState, participant_id: str) -> Participant | None:
    for participant in state.participants:
        if participant.id == participant_id:
            return participant
    return None


def claimers(state: BillState, item_id: str) -> list[Participant]:
    """Participants holding a non-zero share of the item, in session order."""
    return [p for p in state.participants if p.claims(item_id)]


def item_coverage(state: BillState, item_id: str) -> Fraction:
    """Sum of every participant's share of the item."""
    return sum((p.share_of(item_id) for p in state.participants), Fraction(0))


def with_assignments(participant: Participant, assignments: Mapping[str, Fraction]) -> Participant:
    """Copy of the participant holding a new assignment map."""
    return replace(participant, assignments=dict(assignments))


# --- Items ---


def add_item(
    state: BillState,
    name: str | None = None,
    quantity: Decimal = Decimal("1"),
    unit_price: Decimal = Decimal("0"),
    language: str = "en",
    item_id: str | None = None,
) -> BillState:
    """Append a manually entered item. A missing name gets the default ``Item N``."""
    if name is None:
        name = translate(language, "default_item", n=len(state.items) + 1)
    item = Item(id=item_id or new_id(), name=name, quantity=quantity, unit_price=unit_price)
    return replace(state, items=state.items + (item,))


def append_items(state: BillState, extracted: Iterable[ExtractedItem]) -> BillState:
    """Append extracted line items, each under a fresh id."""
    new_items = tuple(
        Item(id=new_id(), name=e.name, quantity=e.quantity, unit_price=e.unit_price) for e in extracted
    )
    return replace(state, items=state.items + new_items)


def replace_items(state: BillState, extracted: Iterable[ExtractedItem]) -> BillState:
    """Swap the whole item list for freshly extracted items.

    Assignments referring to the old items are dropped with them.
    """
    participants = tuple(with_assignments(p, {}) for p in state.participants)
    return append_items(BillState(items=(), participants=participants), extracted)


def update_item(
    state: BillState,
    item_id: str,
    *,
    name: str | None = None,
    quantity: Decimal | None = None,
    unit_price: Decimal | None = None,
) -> BillState:
    """Edit fields of one item. Fields left as None keep their value."""
    if find_item(state, item_id) is None:
        return state

    def _edit(item: Item) -> Item:
        if item.id != item_id:
            return item
        return replace(
            item,
            name=item.name if name is None else name,
            quantity=item.quantity if quantity is None else quantity,
            unit_price=item.unit_price if unit_price is None else unit_price,
        )

    return replace(state, items=tuple(_edit(item) for item in state.items))


# --- Participants ---


def add_participant(
    state: BillState,
    name: str | None = None,
    language: str = "en",
    participant_id: str | None = None,
) -> BillState:
    """Append a participant. A missing name gets the default ``Person N``."""
    if name is None:
        name = translate(language, "default_person", n=len(state.participants) + 1)
    participant = Participant(id=participant_id or new_id(), name=name)
    return replace(state, participants=state.participants + (participant,))


def rename_participant(state: BillState, participant_id: str, name: str) -> BillState:
    if find_participant(state, participant_id) is None:
        return state
    participants = tuple(replace(p, name=name) if p.id == participant_id else p for p in state.participants)
    return replace(state, participants=participants)


def default_participants(language: str = "en") -> tuple[Participant, ...]:
    """The pair of participants every session starts with."""
    return tuple(
        Participant(id=new_id(), name=translate(language, "default_person", n=n)) for n in (1, 2)
    )


def initial_state(language: str = "en") -> BillState:
    """Empty bill with the default pair of participants."""
    return BillState(items=(), participants=default_participants(language))
