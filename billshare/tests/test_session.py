"""Tests for BillSession bookkeeping and animated random assignment."""

from __future__ import annotations

import asyncio
import random
from decimal import Decimal
from fractions import Fraction

import pytest
from billshare.application.random_pick import RandomPickTiming
from billshare.application.session import BillSession, ItemBusyError
from billshare.runtime.settings import Settings

FAST = RandomPickTiming(interval=0.01, duration=0.05, hold=0.01)


def test_new_session_has_default_participants(fast_settings: Settings) -> None:
    session = BillSession(settings=fast_settings)

    assert [p.name for p in session.state.participants] == ["Person 1", "Person 2"]
    assert session.state.items == ()


def test_random_assignment_commits_exactly_one_winner(fast_settings: Settings) -> None:
    session = BillSession(settings=fast_settings, rng=random.Random(3))
    item = session.add_item("Tiramisù", unit_price=Decimal("6"))
    session.add_participant("Carla")
    highlights: list[tuple[str, str, bool]] = []

    async def run() -> str | None:
        task = session.start_random_assignment(
            item.id, on_highlight=lambda *args: highlights.append(args), timing=FAST
        )
        assert task is not None
        assert item.id in session.busy_items
        return await task

    winner_id = asyncio.run(run())

    shares = {p.id: p.share_of(item.id) for p in session.state.participants}
    assert shares[winner_id] == Fraction(1)
    assert sum(shares.values()) == 1
    assert highlights[-1] == (item.id, winner_id, True)
    assert all(not is_final for _, _, is_final in highlights[:-1])
    assert session.busy_items == set()
    assert session.highlighted == {}


def test_busy_item_rejects_manual_changes(fast_settings: Settings) -> None:
    session = BillSession(settings=fast_settings)
    item = session.add_item("Vino")
    other = session.add_item("Pane")
    person = session.state.participants[0]

    async def run() -> None:
        task = session.start_random_assignment(item.id, timing=FAST)
        with pytest.raises(ItemBusyError):
            session.toggle_claim(person.id, item.id)
        with pytest.raises(ItemBusyError):
            session.split_item_evenly(item.id)
        with pytest.raises(ItemBusyError):
            session.start_random_assignment(item.id, timing=FAST)
        session.split_all_evenly()
        assert session.state.participants[0].share_of(other.id) == Fraction(1, 2)
        assert not any(p.share_of(item.id) == Fraction(1, 2) for p in session.state.participants)
        await task

    asyncio.run(run())


def test_removing_item_cancels_random_run(fast_settings: Settings) -> None:
    session = BillSession(settings=fast_settings)
    item = session.add_item("Vino")

    async def run() -> None:
        task = session.start_random_assignment(item.id, timing=RandomPickTiming(interval=0.01, duration=5.0))
        await asyncio.sleep(0.03)
        session.remove_item(item.id)
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())

    assert session.state.items == ()
    assert all(p.assignments == {} for p in session.state.participants)
    assert session.busy_items == set()


def test_random_run_skipped_without_participants(fast_settings: Settings) -> None:
    session = BillSession(settings=fast_settings)
    item = session.add_item("Vino")
    for participant in session.state.participants:
        session.remove_participant(participant.id)

    async def run() -> None:
        assert session.start_random_assignment(item.id, timing=FAST) is None
        assert session.start_random_assignment("missing", timing=FAST) is None

    asyncio.run(run())
    assert session.busy_items == set()


def test_participant_removed_during_run_is_not_picked(fast_settings: Settings) -> None:
    session = BillSession(settings=fast_settings)
    item = session.add_item("Vino")
    leaving = session.state.participants[0]
    staying = session.state.participants[1]

    async def run() -> str | None:
        task = session.start_random_assignment(item.id, timing=FAST)
        session.remove_participant(leaving.id)
        return await task

    assert asyncio.run(run()) == staying.id


def test_assign_randomly_without_animation() -> None:
    session = BillSession(settings=Settings(), rng=random.Random(0))
    item = session.add_item("Acqua", unit_price=Decimal("2"))

    winner_id = session.assign_randomly(item.id)

    assert winner_id in {p.id for p in session.state.participants}
    assert session.summary().uncovered_amount == 0


def test_unknown_ids_do_not_change_state() -> None:
    session = BillSession(settings=Settings())
    before = session.state

    assert session.update_item("missing", name="x") is False
    assert session.remove_item("missing") is False
    assert session.rename_participant("missing", "x") is False
    assert session.toggle_claim("missing", "missing") is False
    assert session.state is before


def test_calculator_keys() -> None:
    session = BillSession(settings=Settings())

    for key in ["1", "2", "÷", "4", "="]:
        session.press_calculator(key)

    assert session.calculator.expression == "3"
    session.press_calculator("C")
    assert session.calculator.expression == "0"


def test_reset_restores_initial_state() -> None:
    session = BillSession(settings=Settings())
    session.add_item("Pizza")
    session.add_participant("Carla")
    session.flash_error("boom")

    session.reset()

    assert session.state.items == ()
    assert len(session.state.participants) == 2
    assert session.current_error is None


def test_summary_text_uses_settings() -> None:
    session = BillSession(settings=Settings(language="it", currency_symbol="$"))
    item = session.add_item("Pizza", unit_price=Decimal("8"))
    session.split_item_evenly(item.id)

    assert session.summary_text().splitlines() == [
        "Riepilogo Conto:",
        "------------------",
        "Persona 1: $4.00",
        "Persona 2: $4.00",
        "------------------",
        "Totale Generale: $8.00",
    ]
    assert session.warnings() == []
