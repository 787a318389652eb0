"""Memo slots for lazily resolved relations."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Memo(Generic[T]):
    """A per-instance cache cell for one relation.

    The first ``get_or_load`` runs the loader and stores its result; later
    calls return the stored value. Concurrent callers on an empty slot share
    a single load. A failing loader leaves the slot empty.
    """

    __slots__ = ("_value", "_resolved", "_lock")

    def __init__(self) -> None:
        self._value: T | None = None
        self._resolved = False
        self._lock = asyncio.Lock()

    @property
    def resolved(self) -> bool:
        return self._resolved

    @property
    def value(self) -> T | None:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        self._resolved = True

    async def get_or_load(self, loader: Callable[[], Awaitable[T]]) -> T:
        if self._resolved:
            return self._value  # type: ignore[return-value]

        async with self._lock:
            if not self._resolved:
                self.set(await loader())
        return self._value  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Memo(resolved={self._resolved})"
