"""
Cache of previously dispatched event ids.

Ids are held in arrival order. When the cache is full, recording a new id
drops the oldest one. A limit of 0 means the cache is unbounded.
"""

from collections import Counter
from collections import deque
from typing import Hashable
from typing import Iterator


class DedupCache(object):
    """Bounded FIFO of event ids."""

    def __init__(self, limit: int = 100) -> None:
        self._ids: deque[Hashable] = deque()
        # deque membership is linear, the counter keeps seen() constant time.
        self._counts: Counter = Counter()
        self._limit = 0
        self.set_limit(limit)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, id_: Hashable) -> bool:
        return self.seen(id_)

    def __iter__(self) -> Iterator[Hashable]:
        """Iterate ids from oldest to newest."""
        return iter(list(self._ids))

    @property
    def limit(self) -> int:
        """Maximum number of ids held. 0 means unbounded."""
        return self._limit

    def seen(self, id_: Hashable) -> bool:
        return self._counts[id_] > 0

    def record(self, id_: Hashable) -> None:
        """
        Append an id, dropping the oldest id first if the cache is full.

        Recording an id that is already present stores it twice; call seen()
        first to avoid that.
        """
        if self._limit > 0 and len(self._ids) >= self._limit:
            self._evict_oldest()

        self._ids.append(id_)
        self._counts[id_] += 1

    def set_limit(self, limit: int) -> None:
        """
        Set the maximum number of ids. limit <= 0 removes the limit.
        Shrinking below the current size drops the oldest ids immediately.
        """
        self._limit = max(int(limit), 0)
        if self._limit == 0:
            return

        while len(self._ids) > self._limit:
            self._evict_oldest()

    def clear(self) -> None:
        self._ids.clear()
        self._counts.clear()

    def _evict_oldest(self) -> None:
        oldest = self._ids.popleft()
        self._counts[oldest] -= 1
        if self._counts[oldest] <= 0:
            del self._counts[oldest]
