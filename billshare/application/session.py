"""The single in-memory bill session.

``BillSession`` owns the current ``BillState`` snapshot and routes every
change through the pure domain operations. It also carries the bits of
session state that are not part of the bill itself: the calculator, the
extraction throttle, transient error messages and the bookkeeping for
in-flight random assignment runs.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Callable, Iterable
from decimal import Decimal

from billshare.application.random_pick import HighlightCallback, RandomPickTiming, run_random_assignment
from billshare.domain import assignment, bill, calculator
from billshare.domain.bill import BillState, ExtractedItem, Item, Participant
from billshare.domain.summary import BillSummary, summarize, summary_text, summary_warnings
from billshare.runtime import get_logger
from billshare.runtime.settings import Settings, get_settings
from billshare.runtime.throttle import ExtractionThrottle

logger = get_logger(__name__)

CALCULATOR_EVALUATE = "="
CALCULATOR_CLEAR = "C"
CALCULATOR_DELETE = "DEL"


class ItemBusyError(RuntimeError):
    """Raised when an item's assignments are locked by a random assignment run."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id} is being assigned randomly")
        self.item_id = item_id


class BillSession:
    """Mutable holder of one user's bill-splitting session."""

    def __init__(
        self,
        settings: Settings | None = None,
        language: str | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.language = language or self.settings.language
        self.rng = rng if rng is not None else random.Random()
        self._clock = clock

        self.state: BillState = bill.initial_state(self.language)
        self.calculator = calculator.CalculatorState()
        self.throttle = ExtractionThrottle.from_settings(self.settings, clock=clock)

        # item id -> participant id currently highlighted by a random run
        self.highlighted: dict[str, str] = {}
        self.busy_items: set[str] = set()
        self._random_runs: dict[str, asyncio.Task[str | None]] = {}
        self._transient_error: tuple[str, float] | None = None

    def _apply(self, new_state: BillState, action: str) -> bool:
        if new_state is self.state:
            logger.debug("%s: no change (unknown id?)", action)
            return False
        self.state = new_state
        return True

    def _ensure_not_busy(self, item_id: str) -> None:
        if item_id in self.busy_items:
            raise ItemBusyError(item_id)

    # --- Items ---

    def add_item(
        self,
        name: str | None = None,
        quantity: Decimal = Decimal("1"),
        unit_price: Decimal = Decimal("0"),
    ) -> Item:
        self.state = bill.add_item(self.state, name, quantity, unit_price, language=self.language)
        item = self.state.items[-1]
        logger.debug("Added item %s (%s)", item.id, item.name)
        return item

    def update_item(
        self,
        item_id: str,
        *,
        name: str | None = None,
        quantity: Decimal | None = None,
        unit_price: Decimal | None = None,
    ) -> bool:
        new_state = bill.update_item(self.state, item_id, name=name, quantity=quantity, unit_price=unit_price)
        return self._apply(new_state, "update_item")

    def remove_item(self, item_id: str) -> bool:
        """Delete an item, interrupting any random assignment run on it."""
        task = self._random_runs.pop(item_id, None)
        if task is not None and not task.done():
            logger.info("Cancelling random assignment for deleted item %s", item_id)
            task.cancel()
        self.busy_items.discard(item_id)
        self.highlighted.pop(item_id, None)
        return self._apply(assignment.remove_item(self.state, item_id), "remove_item")

    def load_extracted(self, extracted: Iterable[ExtractedItem]) -> int:
        """Start over from a first receipt: its items and the default participants."""
        self._cancel_all_runs()
        self.state = bill.replace_items(bill.initial_state(self.language), extracted)
        return len(self.state.items)

    def append_extracted(self, extracted: Iterable[ExtractedItem]) -> int:
        """Add items from another receipt to the current bill."""
        before = len(self.state.items)
        self.state = bill.append_items(self.state, extracted)
        return len(self.state.items) - before

    # --- Participants ---

    def add_participant(self, name: str | None = None) -> Participant:
        self.state = bill.add_participant(self.state, name, language=self.language)
        return self.state.participants[-1]

    def rename_participant(self, participant_id: str, name: str) -> bool:
        return self._apply(bill.rename_participant(self.state, participant_id, name), "rename_participant")

    def remove_participant(self, participant_id: str) -> bool:
        for item_id, highlighted_id in list(self.highlighted.items()):
            if highlighted_id == participant_id:
                del self.highlighted[item_id]
        return self._apply(assignment.remove_participant(self.state, participant_id), "remove_participant")

    # --- Assignment ---

    def toggle_claim(self, participant_id: str, item_id: str) -> bool:
        self._ensure_not_busy(item_id)
        return self._apply(assignment.toggle_claim(self.state, participant_id, item_id), "toggle_claim")

    def split_item_evenly(self, item_id: str) -> bool:
        self._ensure_not_busy(item_id)
        return self._apply(assignment.split_item_evenly(self.state, item_id), "split_item_evenly")

    def split_all_evenly(self) -> bool:
        """Split every item evenly. Items locked by a random run are left alone."""
        if self.busy_items:
            logger.info("Skipping %d busy item(s) in split-all", len(self.busy_items))
        return self._apply(assignment.split_all_evenly(self.state, skip=self.busy_items), "split_all_evenly")

    def assign_randomly(self, item_id: str) -> str | None:
        """Commit a random pick immediately, without the highlight animation."""
        self._ensure_not_busy(item_id)
        return self.commit_random_pick(item_id)

    def start_random_assignment(
        self,
        item_id: str,
        on_highlight: HighlightCallback | None = None,
        timing: RandomPickTiming | None = None,
    ) -> asyncio.Task[str | None] | None:
        """Start the animated random assignment of an item.

        Must be called from a running event loop. Returns None when there is
        nothing to do (unknown item or no participants).

        Raises:
            ItemBusyError: If a run for this item is already in progress.
        """
        self._ensure_not_busy(item_id)
        if bill.find_item(self.state, item_id) is None or not self.state.participants:
            return None

        if timing is None:
            timing = RandomPickTiming.from_settings(self.settings)
        self.busy_items.add(item_id)
        self.highlighted.pop(item_id, None)
        task = asyncio.get_running_loop().create_task(
            run_random_assignment(self, item_id, timing=timing, on_highlight=on_highlight)
        )
        self._random_runs[item_id] = task
        logger.debug("Random assignment started for item %s", item_id)
        return task

    def highlight(self, item_id: str, participant_id: str) -> None:
        self.highlighted[item_id] = participant_id

    def commit_random_pick(self, item_id: str) -> str | None:
        """Draw a winner and give them the whole item. Returns the winner's id."""
        if bill.find_item(self.state, item_id) is None:
            return None
        winner = assignment.pick_participant(self.state, self.rng)
        if winner is None:
            return None
        self.state = assignment.assign_fully(self.state, item_id, winner.id)
        logger.info("Item %s assigned to %s", item_id, winner.name)
        return winner.id

    def finish_random_run(self, item_id: str) -> None:
        self.busy_items.discard(item_id)
        self.highlighted.pop(item_id, None)
        self._random_runs.pop(item_id, None)

    def _cancel_all_runs(self) -> None:
        for task in self._random_runs.values():
            if not task.done():
                task.cancel()
        self._random_runs.clear()
        self.busy_items.clear()
        self.highlighted.clear()

    # --- Summary ---

    def summary(self) -> BillSummary:
        return summarize(self.state)

    def summary_text(self) -> str:
        return summary_text(self.summary(), self.language, self.settings.currency_symbol)

    def warnings(self) -> list[str]:
        return summary_warnings(self.summary(), self.language, self.settings.currency_symbol)

    # --- Calculator ---

    def press_calculator(self, key: str) -> calculator.CalculatorState:
        """Feed one keypad key (digit, ``.``, parenthesis, operator, ``=``, ``C`` or ``DEL``)."""
        if key == CALCULATOR_EVALUATE:
            self.calculator = calculator.evaluate(self.calculator)
        elif key == CALCULATOR_CLEAR:
            self.calculator = calculator.clear()
        elif key == CALCULATOR_DELETE:
            self.calculator = calculator.delete(self.calculator)
        elif key in calculator.OPERATORS:
            self.calculator = calculator.press_operator(self.calculator, key)
        else:
            self.calculator = calculator.press_key(self.calculator, key)
        return self.calculator

    # --- Errors ---

    def flash_error(self, message: str) -> None:
        """Show an error that disappears after ``transient_error_seconds``."""
        self._transient_error = (message, self._clock() + self.settings.transient_error_seconds)

    @property
    def current_error(self) -> str | None:
        if self._transient_error is None:
            return None
        message, expires_at = self._transient_error
        if self._clock() >= expires_at:
            self._transient_error = None
            return None
        return message

    def reset(self) -> None:
        """Back to an empty bill with the default participants."""
        self._cancel_all_runs()
        self.state = bill.initial_state(self.language)
        self._transient_error = None
        logger.info("Session reset")
