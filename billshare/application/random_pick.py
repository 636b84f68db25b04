"""Animated random assignment of one item.

The run has two phases. First it keeps highlighting a randomly drawn
participant at a fixed interval; this is purely cosmetic. When the total
duration has elapsed it makes one final independent draw, commits the whole
item to the winner and keeps the winner highlighted briefly before releasing
the item.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from billshare.domain.assignment import pick_participant
from billshare.runtime import get_logger
from billshare.runtime.settings import Settings

if TYPE_CHECKING:
    from billshare.application.session import BillSession

logger = get_logger(__name__)

# Called with (item_id, participant_id, is_final)
HighlightCallback = Callable[[str, str, bool], None]


@dataclass(frozen=True)
class RandomPickTiming:
    """Timing of the highlight animation, in seconds."""

    interval: float = 0.1
    duration: float = 2.0
    hold: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> RandomPickTiming:
        return cls(
            interval=settings.random_interval,
            duration=settings.random_duration,
            hold=settings.random_hold,
        )


async def run_random_assignment(
    session: BillSession,
    item_id: str,
    timing: RandomPickTiming,
    on_highlight: HighlightCallback | None = None,
) -> str | None:
    """Cycle highlights, then commit the item to a random participant.

    Returns the winner's id, or None if nothing was committed (the item or
    every participant disappeared while cycling). Cancelling the task before
    the commit guarantees no write happens.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timing.duration
    try:
        while loop.time() + timing.interval < deadline:
            await asyncio.sleep(timing.interval)
            candidate = pick_participant(session.state, session.rng)
            if candidate is None:
                continue
            session.highlight(item_id, candidate.id)
            if on_highlight is not None:
                on_highlight(item_id, candidate.id, False)

        remaining = deadline - loop.time()
        if remaining > 0:
            await asyncio.sleep(remaining)

        winner_id = session.commit_random_pick(item_id)
        if winner_id is None:
            logger.info("Random assignment for item %s committed nothing", item_id)
            return None

        session.highlight(item_id, winner_id)
        if on_highlight is not None:
            on_highlight(item_id, winner_id, True)
        await asyncio.sleep(timing.hold)
        return winner_id
    finally:
        session.finish_random_run(item_id)
