from __future__ import annotations

import logging

from ..domain.repositories import CacheInvalidator

logger = logging.getLogger(__name__)


class LoggingCacheInvalidator(CacheInvalidator):
    """Publishes view invalidations on the ``cache`` logger.

    Read views are always served from the store; whatever caches them
    downstream (proxy, front end) keys on these tags.
    """

    def __init__(self, channel: logging.Logger | None = None) -> None:
        self.channel = channel or logging.getLogger("cache")

    def invalidate(self, *tags: str) -> None:
        if not tags:
            return
        self.channel.info("invalidate %s", " ".join(tags))
