"""Core domain models and pure operations for billshare.

This package provides:
- Item, Participant, BillState: the bill snapshot
- Assignment engine: toggle_claim, split_item_evenly, split_all_evenly,
  assign_randomly, remove_item, remove_participant
- Aggregation: person_total, grand_total, unassigned_items, summarize
- CalculatorState and its keypad transitions

Usage:
    from billshare.domain import BillState, toggle_claim, summarize
"""

from billshare.domain.assignment import (
    assign_fully,
    assign_randomly,
    pick_participant,
    remove_item,
    remove_participant,
    split_all_evenly,
    split_item_evenly,
    toggle_claim,
)
from billshare.domain.bill import (
    BillState,
    ExtractedItem,
    Item,
    Participant,
    add_item,
    add_participant,
    append_items,
    claimers,
    default_participants,
    find_item,
    find_participant,
    initial_state,
    item_coverage,
    rename_participant,
    replace_items,
    update_item,
)
from billshare.domain.calculator import CalculatorState
from billshare.domain.summary import (
    BillSummary,
    ParticipantTotal,
    format_money,
    grand_total,
    person_total,
    summarize,
    summary_text,
    summary_warnings,
    unassigned_items,
    uncovered_amount,
)

__all__ = [
    # Models
    "BillState",
    "ExtractedItem",
    "Item",
    "Participant",
    "CalculatorState",
    "BillSummary",
    "ParticipantTotal",
    # Bill operations
    "add_item",
    "add_participant",
    "append_items",
    "claimers",
    "default_participants",
    "find_item",
    "find_participant",
    "initial_state",
    "item_coverage",
    "rename_participant",
    "replace_items",
    "update_item",
    # Assignment engine
    "assign_fully",
    "assign_randomly",
    "pick_participant",
    "remove_item",
    "remove_participant",
    "split_all_evenly",
    "split_item_evenly",
    "toggle_claim",
    # Aggregation
    "format_money",
    "grand_total",
    "person_total",
    "summarize",
    "summary_text",
    "summary_warnings",
    "unassigned_items",
    "uncovered_amount",
]
