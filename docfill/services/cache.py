# docfill/services/cache.py
"""
In-process cache for record list views.

Entries are keyed by list name ("invoiceList", ...) and expire after the
configured timeout. Every mutation of a record type removes its key.
Values are deep-copied in and out so callers cannot mutate cached lists.
"""

import copy
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300  # 5 minutes


class ListCache:
    def __init__(self, timeout: int = DEFAULT_TIMEOUT, clock: Callable[[], float] = time.time):
        self.timeout = timeout
        self.clock = clock
        # {key: (value, expiry_timestamp)}
        self._cache: Dict[str, Tuple[Any, float]] = {}

    def get(self, key: str) -> Optional[Any]:
        """Value for key if present and not expired."""
        if key in self._cache:
            value, expiry = self._cache[key]
            if self.clock() < expiry:
                logger.debug(f"Cache hit: {key}")
                return copy.deepcopy(value)
            del self._cache[key]
            logger.debug(f"Cache expired: {key}")
        return None

    def put(self, key: str, value: Any, timeout: Optional[int] = None) -> None:
        self._cache[key] = (copy.deepcopy(value), self.clock() + (timeout if timeout is not None else self.timeout))

    def remove(self, key: str) -> None:
        if self._cache.pop(key, None) is not None:
            logger.debug(f"Cache invalidated: {key}")
