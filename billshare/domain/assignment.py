"""Assignment engine: who owns which share of which item.

Shares are recomputed on every change rather than validated: after each
operation the shares of one item sum to either 0 or exactly 1. The single
exception is ``remove_participant``, which leaves the departed participant's
share uncovered instead of quietly changing everyone else's totals.

Operations on ids that do not exist return the state unchanged.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Collection
from dataclasses import replace
from fractions import Fraction

from billshare.domain.bill import BillState, Participant, find_item, find_participant, with_assignments


def _without(participant: Participant, item_id: str) -> Participant:
    if item_id not in participant.assignments:
        return participant
    assignments = dict(participant.assignments)
    del assignments[item_id]
    return with_assignments(participant, assignments)


def _with_share(participant: Participant, item_id: str, share: Fraction) -> Participant:
    assignments = dict(participant.assignments)
    assignments[item_id] = share
    return with_assignments(participant, assignments)


def _redistribute(state: BillState, item_id: str, claiming: Callable[[Participant], bool]) -> BillState:
    """Give every claiming participant an equal share of the item and clear the rest."""
    claiming_ids = {p.id for p in state.participants if claiming(p)}
    if not claiming_ids:
        participants = tuple(_without(p, item_id) for p in state.participants)
        return replace(state, participants=participants)

    share = Fraction(1, len(claiming_ids))
    participants = tuple(
        _with_share(p, item_id, share) if p.id in claiming_ids else _without(p, item_id)
        for p in state.participants
    )
    return replace(state, participants=participants)


def toggle_claim(state: BillState, participant_id: str, item_id: str) -> BillState:
    """Flip one participant's claim on an item and re-split it among the claimers."""
    participant = find_participant(state, participant_id)
    if participant is None or find_item(state, item_id) is None:
        return state

    now_claiming = not participant.claims(item_id)

    def _claims_after_toggle(p: Participant) -> bool:
        if p.id == participant_id:
            return now_claiming
        return p.claims(item_id)

    return _redistribute(state, item_id, _claims_after_toggle)


def split_item_evenly(state: BillState, item_id: str) -> BillState:
    """Split one item across every participant, overriding earlier claims."""
    if not state.participants or find_item(state, item_id) is None:
        return state
    return _redistribute(state, item_id, lambda p: True)


def split_all_evenly(state: BillState, skip: Collection[str] = ()) -> BillState:
    """Split every item across every participant in one snapshot.

    Items whose ids are in ``skip`` keep their current assignments.
    """
    if not state.participants:
        return state
    for item in state.items:
        if item.id in skip:
            continue
        state = _redistribute(state, item.id, lambda p: True)
    return state


def assign_fully(state: BillState, item_id: str, participant_id: str) -> BillState:
    """Give one participant the whole item and clear every other claim on it."""
    if find_participant(state, participant_id) is None or find_item(state, item_id) is None:
        return state
    return _redistribute(state, item_id, lambda p: p.id == participant_id)


def pick_participant(state: BillState, rng: random.Random | None = None) -> Participant | None:
    """Draw one participant uniformly at random."""
    if not state.participants:
        return None
    chooser = rng if rng is not None else random
    return chooser.choice(state.participants)


def assign_randomly(state: BillState, item_id: str, rng: random.Random | None = None) -> BillState:
    """Give the whole item to one participant drawn uniformly at random."""
    if find_item(state, item_id) is None:
        return state
    winner = pick_participant(state, rng)
    if winner is None:
        return state
    return assign_fully(state, item_id, winner.id)


def remove_item(state: BillState, item_id: str) -> BillState:
    """Delete an item together with every claim on it."""
    items = tuple(item for item in state.items if item.id != item_id)
    participants = tuple(_without(p, item_id) for p in state.participants)
    if len(items) == len(state.items) and all(a is b for a, b in zip(participants, state.participants)):
        return state
    return BillState(items=items, participants=participants)


def remove_participant(state: BillState, participant_id: str) -> BillState:
    """Delete a participant. Their shares are not handed to anyone else."""
    participants = tuple(p for p in state.participants if p.id != participant_id)
    if len(participants) == len(state.participants):
        return state
    return replace(state, participants=participants)
