"""Tests for the bill assignment engine."""

from __future__ import annotations

import random
from decimal import Decimal
from fractions import Fraction

import pytest
from billshare.domain import assignment, bill
from billshare.domain.bill import BillState, Item, Participant, item_coverage
from billshare.domain.summary import person_total


def _state(*items: tuple[str, str, str], people: tuple[str, ...] = ("a", "b")) -> BillState:
    return BillState(
        items=tuple(Item(id=item_id, name=item_id, quantity=Decimal(qty), unit_price=Decimal(price))
                    for item_id, qty, price in items),
        participants=tuple(Participant(id=p, name=p.upper()) for p in people),
    )


def _covered_or_empty(state: BillState) -> bool:
    return all(item_coverage(state, item.id) in (Fraction(0), Fraction(1)) for item in state.items)


def test_single_claim_takes_whole_item() -> None:
    state = assignment.toggle_claim(_state(("x", "1", "10")), "a", "x")

    assert state.participants[0].assignments == {"x": Fraction(1)}
    assert state.participants[1].assignments == {}


def test_second_claim_splits_item_in_half() -> None:
    state = _state(("x", "2", "5"))
    state = assignment.toggle_claim(state, "a", "x")
    state = assignment.toggle_claim(state, "b", "x")

    assert [p.share_of("x") for p in state.participants] == [Fraction(1, 2), Fraction(1, 2)]
    assert [person_total(state, p) for p in state.participants] == [Decimal("5"), Decimal("5")]


def test_unclaim_gives_item_back_to_remaining_claimer() -> None:
    state = _state(("x", "1", "9"))
    state = assignment.toggle_claim(state, "a", "x")
    state = assignment.toggle_claim(state, "b", "x")
    state = assignment.toggle_claim(state, "a", "x")

    assert state.participants[0].assignments == {}
    assert state.participants[1].assignments == {"x": Fraction(1)}


def test_toggle_twice_restores_previous_assignments() -> None:
    start = assignment.toggle_claim(_state(("x", "1", "3"), people=("a", "b", "c")), "a", "x")

    after = assignment.toggle_claim(assignment.toggle_claim(start, "c", "x"), "c", "x")

    assert [p.assignments for p in after.participants] == [p.assignments for p in start.participants]


def test_three_way_split_is_exact() -> None:
    state = assignment.split_item_evenly(_state(("x", "1", "10"), people=("a", "b", "c")), "x")

    assert item_coverage(state, "x") == 1
    assert all(p.share_of("x") == Fraction(1, 3) for p in state.participants)


def test_split_item_evenly_overrides_existing_claims() -> None:
    state = assignment.toggle_claim(_state(("x", "3", "1.50"), people=("a", "b", "c")), "a", "x")

    state = assignment.split_item_evenly(state, "x")

    totals = [person_total(state, p) for p in state.participants]
    assert totals == [Decimal("1.5")] * 3
    assert sum(totals) == Decimal("4.50")


def test_split_all_evenly_covers_every_item() -> None:
    state = assignment.split_all_evenly(_state(("x", "1", "1"), ("y", "2", "3")))

    assert _covered_or_empty(state)
    assert all(item_coverage(state, item.id) == 1 for item in state.items)


def test_split_all_evenly_leaves_skipped_items_alone() -> None:
    state = assignment.toggle_claim(_state(("x", "1", "1"), ("y", "1", "1")), "a", "y")

    state = assignment.split_all_evenly(state, skip={"y"})

    assert state.participants[0].share_of("y") == 1
    assert state.participants[1].share_of("y") == 0
    assert state.participants[1].share_of("x") == Fraction(1, 2)


def test_split_without_participants_is_a_noop() -> None:
    state = _state(("x", "1", "1"), people=())

    assert assignment.split_item_evenly(state, "x") is state
    assert assignment.split_all_evenly(state) is state


def test_remove_item_drops_every_reference() -> None:
    state = assignment.split_all_evenly(_state(("x", "1", "1"), ("y", "1", "2")))

    state = assignment.remove_item(state, "x")

    assert [item.id for item in state.items] == ["y"]
    assert all("x" not in p.assignments for p in state.participants)


def test_remove_item_is_idempotent() -> None:
    state = assignment.remove_item(_state(("x", "1", "1")), "x")

    assert assignment.remove_item(state, "x") is state


def test_remove_participant_does_not_rebalance() -> None:
    state = assignment.split_item_evenly(_state(("x", "1", "10")), "x")

    state = assignment.remove_participant(state, "a")

    assert [p.id for p in state.participants] == ["b"]
    assert state.participants[0].share_of("x") == Fraction(1, 2)
    assert item_coverage(state, "x") == Fraction(1, 2)


@pytest.mark.parametrize(
    "operation",
    [
        lambda s: assignment.toggle_claim(s, "nobody", "x"),
        lambda s: assignment.toggle_claim(s, "a", "missing"),
        lambda s: assignment.split_item_evenly(s, "missing"),
        lambda s: assignment.assign_fully(s, "missing", "a"),
        lambda s: assignment.assign_randomly(s, "missing"),
        lambda s: assignment.remove_item(s, "missing"),
        lambda s: assignment.remove_participant(s, "nobody"),
        lambda s: bill.update_item(s, "missing", name="z"),
        lambda s: bill.rename_participant(s, "nobody", "z"),
    ],
)
def test_unknown_ids_return_state_unchanged(operation) -> None:
    state = _state(("x", "1", "1"))

    assert operation(state) is state


def test_assign_randomly_gives_whole_item_to_one_participant() -> None:
    state = assignment.split_item_evenly(_state(("x", "1", "6"), people=("a", "b", "c")), "x")

    state = assignment.assign_randomly(state, "x", rng=random.Random(7))

    shares = [p.share_of("x") for p in state.participants]
    assert sorted(shares) == [0, 0, 1]


def test_assign_randomly_picks_from_every_participant() -> None:
    rng = random.Random(1234)
    state = _state(("x", "1", "1"), people=("a", "b", "c"))

    winners = set()
    for _ in range(60):
        result = assignment.assign_randomly(state, "x", rng=rng)
        winners.update(p.id for p in result.participants if p.claims("x"))

    assert winners == {"a", "b", "c"}


def test_assign_randomly_without_participants_is_a_noop() -> None:
    state = _state(("x", "1", "1"), people=())

    assert assignment.assign_randomly(state, "x") is state


def test_add_item_uses_default_name() -> None:
    state = bill.add_item(_state(("x", "1", "1")), language="it")

    assert state.items[-1].name == "Prodotto 2"
    assert state.items[-1].quantity == 1
    assert state.items[-1].unit_price == 0


def test_update_item_keeps_unspecified_fields() -> None:
    state = bill.update_item(_state(("x", "2", "3")), "x", unit_price=Decimal("4"))

    assert state.items[0].name == "x"
    assert state.items[0].quantity == 2
    assert state.items[0].line_total == Decimal("8")


def test_replace_items_clears_old_assignments() -> None:
    state = assignment.split_all_evenly(_state(("x", "1", "1")))

    state = bill.replace_items(state, [bill.ExtractedItem(name="Pizza", quantity=Decimal("1"), unit_price=Decimal("8"))])

    assert [item.name for item in state.items] == ["Pizza"]
    assert all(p.assignments == {} for p in state.participants)


def test_initial_state_has_two_default_participants() -> None:
    state = bill.initial_state("en")

    assert state.items == ()
    assert [p.name for p in state.participants] == ["Person 1", "Person 2"]
    assert state.participants[0].id != state.participants[1].id


@pytest.mark.parametrize("seed", [3, 2024, 91817])
def test_coverage_stays_whole_or_empty_over_random_operation_sequences(seed: int) -> None:
    rng = random.Random(seed)
    item_ids = ["x", "y", "z"]
    people = ("a", "b", "c", "d")
    state = _state(("x", "1", "3"), ("y", "2", "4.50"), ("z", "3", "0.99"), people=people)

    for _ in range(200):
        choice = rng.randrange(4)
        item_id = rng.choice(item_ids)
        if choice == 0:
            state = assignment.toggle_claim(state, rng.choice(people), item_id)
        elif choice == 1:
            state = assignment.split_item_evenly(state, item_id)
        elif choice == 2:
            state = assignment.split_all_evenly(state)
        else:
            state = assignment.assign_randomly(state, item_id, rng=rng)

        assert _covered_or_empty(state)
        covered = sum((item.line_total for item in state.items if item_coverage(state, item.id) == 1), Decimal("0"))
        allocated = sum((person_total(state, p) for p in state.participants), Decimal("0"))
        assert abs(allocated - covered) < Decimal("0.000001")


def test_remove_participant_twice_equals_once() -> None:
    state = assignment.split_item_evenly(_state(("x", "1", "10"), people=("a", "b", "c")), "x")

    once = assignment.remove_participant(state, "b")
    twice = assignment.remove_participant(once, "b")

    assert twice is once
    assert [p.id for p in twice.participants] == ["a", "c"]
