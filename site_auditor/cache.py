# File: site_auditor/cache.py
"""site_auditor.cache: Ограниченный кеш готовых отчётов с вытеснением самого старого (FIFO)."""

from __future__ import annotations

from collections import OrderedDict
from typing import Generic, Iterator, Optional, TypeVar

from site_auditor.logger import logger

__all__ = ["ReportCache"]

V = TypeVar("V")


class ReportCache(Generic[V]):
    """Хранит не более capacity записей в порядке добавления.

    Повторный put по существующему ключу обновляет значение, но не
    меняет его место в очереди на вытеснение.
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = capacity
        self._items: OrderedDict[str, V] = OrderedDict()

    def put(self, key: str, value: V) -> None:
        self._items[key] = value
        while len(self._items) > self.capacity:
            evicted, _ = self._items.popitem(last=False)
            logger.debug("Report cache full, evicted %s", evicted)

    def get(self, key: str) -> Optional[V]:
        return self._items.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)
