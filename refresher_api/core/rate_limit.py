import logging
import math
import time
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from refresher_api.core.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class UserRateLimiter:
    """Per-user budget for expensive operations, on top of the per-address slowapi limit.

    Counters live in process memory, so with several workers each one keeps its own window.
    """

    def __init__(self, limit: str, enabled: bool = True):
        self.item = parse(limit)
        self.enabled = enabled
        self._limiter = FixedWindowRateLimiter(MemoryStorage())

    def check(self, scope: str, user_id: str) -> None:
        if not self.enabled:
            return
        if self._limiter.hit(self.item, scope, user_id):
            return

        reset_time, _ = self._limiter.get_window_stats(self.item, scope, user_id)
        retry_after = max(1, math.ceil(reset_time - time.time()))
        logger.warning("Rate limit hit for %s by user %s", scope, user_id)
        raise RateLimitError(
            f"Rate limit exceeded. Please try again in {retry_after} seconds.",
            retry_after=retry_after,
        )
