"""Per-person totals and the shareable bill summary.

Everything here is recomputed from the snapshot on each call.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from billshare.domain.bill import BillState, Item, Participant
from billshare.domain.messages import translate
from billshare.util.amounts import format_amount

SUMMARY_RULE = "-" * 18


@dataclass(frozen=True)
class ParticipantTotal:
    """What one participant owes."""

    participant_id: str
    name: str
    total: Decimal


@dataclass(frozen=True)
class BillSummary:
    """Totals derived from one snapshot."""

    participants: tuple[ParticipantTotal, ...]
    grand_total: Decimal
    unassigned_items: tuple[Item, ...]
    uncovered_amount: Decimal

    @property
    def allocated_total(self) -> Decimal:
        return sum((p.total for p in self.participants), Decimal("0"))


def person_total(state: BillState, participant: Participant) -> Decimal:
    """Sum of the participant's shares of each item's line total."""
    items_by_id = {item.id: item for item in state.items}
    total = Decimal("0")
    for item_id, share in participant.assignments.items():
        item = items_by_id.get(item_id)
        if item is None:
            continue
        total += item.line_total * share.numerator / share.denominator
    return total


def grand_total(state: BillState) -> Decimal:
    """Receipt total, regardless of who has been assigned what."""
    return sum((item.line_total for item in state.items), Decimal("0"))


def unassigned_items(state: BillState) -> list[Item]:
    """Items nobody has claimed any share of."""
    return [item for item in state.items if not any(p.claims(item.id) for p in state.participants)]


def uncovered_amount(state: BillState) -> Decimal:
    """Part of the grand total not allocated to any participant."""
    allocated = sum((person_total(state, p) for p in state.participants), Decimal("0"))
    return grand_total(state) - allocated


def summarize(state: BillState) -> BillSummary:
    totals = tuple(
        ParticipantTotal(participant_id=p.id, name=p.name, total=person_total(state, p)) for p in state.participants
    )
    grand = grand_total(state)
    allocated = sum((t.total for t in totals), Decimal("0"))
    return BillSummary(
        participants=totals,
        grand_total=grand,
        unassigned_items=tuple(unassigned_items(state)),
        uncovered_amount=grand - allocated,
    )


def format_money(value: Decimal, symbol: str = "€") -> str:
    return f"{symbol}{format_amount(value)}"


def summary_text(summary: BillSummary, language: str = "en", symbol: str = "€") -> str:
    """Plain-text summary for sharing: one ``name: total`` line per person, then the grand total."""
    lines = [translate(language, "summary_title"), SUMMARY_RULE]
    for entry in summary.participants:
        lines.append(f"{entry.name}: {format_money(entry.total, symbol)}")
    lines.append(SUMMARY_RULE)
    lines.append(f"{translate(language, 'grand_total')}: {format_money(summary.grand_total, symbol)}")
    return "\n".join(lines)


def summary_warnings(summary: BillSummary, language: str = "en", symbol: str = "€") -> list[str]:
    """Non-blocking warnings about unassigned items or uncovered amounts."""
    warnings: list[str] = []
    count = len(summary.unassigned_items)
    if count:
        key = "unassigned_one" if count == 1 else "unassigned_other"
        warnings.append(translate(language, key, count=count))
    # Unassigned items are already reported above; only partial gaps of at least a cent remain
    partial = summary.uncovered_amount - sum((item.line_total for item in summary.unassigned_items), Decimal("0"))
    if format_amount(abs(partial)) != "0.00":
        warnings.append(translate(language, "uncovered", amount=format_money(partial, symbol)))
    return warnings
