"""Push subscription storage keyed by store id."""

from abc import ABC, abstractmethod
from copy import deepcopy


class SubscriptionStore(ABC):
    @abstractmethod
    def add(self, store_id: int, subscription: dict) -> bool:
        """Store `subscription`; False when an identical one already exists."""

    @abstractmethod
    def list(self, store_id: int) -> list[dict]: ...

    @abstractmethod
    def remove(self, store_id: int, endpoint: str) -> int: ...


class InMemorySubscriptionStore(SubscriptionStore):
    """Process-local subscriptions; contents are lost on restart."""

    def __init__(self) -> None:
        self._by_store: dict[int, list[dict]] = {}

    def add(self, store_id: int, subscription: dict) -> bool:
        existing = self._by_store.setdefault(int(store_id), [])
        if subscription in existing:
            return False
        existing.append(deepcopy(subscription))
        return True

    def list(self, store_id: int) -> list[dict]:
        return [deepcopy(sub) for sub in self._by_store.get(int(store_id), [])]

    def remove(self, store_id: int, endpoint: str) -> int:
        subs = self._by_store.get(int(store_id), [])
        kept = [sub for sub in subs if sub.get("endpoint") != endpoint]
        self._by_store[int(store_id)] = kept
        return len(subs) - len(kept)
