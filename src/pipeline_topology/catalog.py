"""Facility catalog snapshots and the read-through cache that holds them.

The topology core never reaches for shared state: whoever runs an edit owns a
``ReferenceCache`` and passes the resulting ``FacilityCatalog`` into the pure
validators.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Iterator
from typing import Any

from .models import Facility, FacilityKind

logger = logging.getLogger(__name__)


class FacilityCatalog:
    """Immutable snapshot of the facilities known at one point in time."""

    def __init__(self, facilities: Iterable[Facility] = ()):
        self._by_id: dict[int, Facility] = {f.id: f for f in facilities}

    def get(self, facility_id: int | None) -> Facility | None:
        if facility_id is None:
            return None
        return self._by_id.get(facility_id)

    def by_kind(self, kind: FacilityKind) -> list[Facility]:
        return [f for f in self._by_id.values() if f.kind is kind]

    def __contains__(self, facility_id: object) -> bool:
        return facility_id in self._by_id

    def __iter__(self) -> Iterator[Facility]:
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)


class ReferenceCache:
    """Read-through cache for reference lists fetched from the remote API.

    Entries expire after ``ttl`` seconds (never when ``ttl`` is ``None``) and can
    be dropped explicitly, e.g. after an ``UnknownFacility`` error.
    """

    def __init__(self, ttl: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        entry = self._entries.get(key)
        now = self._clock()
        if entry is not None and (self.ttl is None or now - entry[0] < self.ttl):
            logger.debug("Reference cache hit for %s", key)
            return entry[1]

        logger.debug("Reference cache miss for %s, loading", key)
        value = await loader()
        self._entries[key] = (now, value)
        return value

    def invalidate(self, key: str | None = None) -> None:
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
