"""Per-session throttling of receipt extraction calls.

A session may make a bounded number of calls, spaced at least a minimum
interval apart. Calling again too soon counts as a strike; enough strikes
lock the session out for a while. A call that passes every check resets the
strike count.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable

from billshare.domain.messages import translate
from billshare.runtime.extraction_service import ExtractionError
from billshare.runtime.logging import get_logger
from billshare.runtime.settings import Settings

logger = get_logger(__name__)


class ExtractionThrottled(ExtractionError):
    """Raised when an extraction call is refused by the session throttle."""


class ExtractionThrottle:
    """Tracks extraction calls for one session."""

    def __init__(
        self,
        max_requests: int = 5,
        min_interval: float = 30.0,
        lockout_duration: float = 300.0,
        strike_limit: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.min_interval = min_interval
        self.lockout_duration = lockout_duration
        self.strike_limit = strike_limit
        self._clock = clock

        self.request_count = 0
        self.strikes = 0
        self.last_request_at: float | None = None
        self.locked_until: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], float] = time.monotonic) -> ExtractionThrottle:
        return cls(
            max_requests=settings.max_extractions_per_session,
            min_interval=settings.min_extraction_interval,
            lockout_duration=settings.lockout_duration,
            strike_limit=settings.strike_limit,
            clock=clock,
        )

    def acquire(self, language: str = "en") -> None:
        """Record one extraction attempt or refuse it.

        Raises:
            ExtractionThrottled: With a localized message when the call is refused.
        """
        now = self._clock()

        if self.locked_until is not None and self.locked_until > now:
            minutes = math.ceil((self.locked_until - now) / 60)
            raise ExtractionThrottled(translate(language, "throttle_banned", minutes=minutes))

        if self.request_count >= self.max_requests:
            raise ExtractionThrottled(translate(language, "throttle_session_limit", limit=self.max_requests))

        if self.last_request_at is not None and now - self.last_request_at < self.min_interval:
            self.strikes += 1
            if self.strikes >= self.strike_limit:
                self.locked_until = now + self.lockout_duration
                logger.warning("Extraction locked for %.0f seconds after %d strikes", self.lockout_duration, self.strikes)
                minutes = math.ceil(self.lockout_duration / 60)
                raise ExtractionThrottled(translate(language, "throttle_spam_ban", minutes=minutes))

            seconds = math.ceil(self.min_interval - (now - self.last_request_at))
            raise ExtractionThrottled(translate(language, "throttle_too_fast", seconds=seconds))

        self.request_count += 1
        self.last_request_at = now
        self.strikes = 0
