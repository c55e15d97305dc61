"""Query cache keyed by tagged entity keys

Keys are frozen dataclasses, one type per query family, so invalidation is
by value (``DebtScheduleKey("d1")``) or by family (``RemindersKey``), never
by string prefix.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Type, Union


@dataclass(frozen=True)
class PlansKey:
    pass


@dataclass(frozen=True)
class PlanItemsKey:
    plan_id: str
    kind: str  # income | expense | saving


@dataclass(frozen=True)
class PlanActualKey:
    plan_id: str


@dataclass(frozen=True)
class DebtsKey:
    pass


@dataclass(frozen=True)
class DebtScheduleKey:
    debt_id: str


@dataclass(frozen=True)
class RemindersKey:
    status: Optional[str] = None


QueryKey = Union[PlansKey, PlanItemsKey, PlanActualKey, DebtsKey, DebtScheduleKey, RemindersKey]


class QueryCache:
    """In-memory cache of query results"""

    def __init__(self):
        self._entries: Dict[QueryKey, Any] = {}

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get_or_fetch(self, key: QueryKey, fetch: Callable[[], Any]) -> Any:
        if key not in self._entries:
            self._entries[key] = fetch()
        return self._entries[key]

    def invalidate(self, *keys: QueryKey) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def invalidate_family(self, *families: Type, where: Optional[Callable[[Any], bool]] = None) -> None:
        """Drop every key of the given types, optionally filtered by ``where``"""
        for key in list(self._entries):
            if isinstance(key, families) and (where is None or where(key)):
                del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()
