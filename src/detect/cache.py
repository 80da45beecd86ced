from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")


class FileKeyedCache(Generic[T]):
    """Per-file memo owned by a detector, keyed by absolute file path."""

    def __init__(self) -> None:
        self._entries: dict[str, T] = {}

    def get_or_compute(self, path: str, factory: Callable[[], T]) -> T:
        if path not in self._entries:
            self._entries[path] = factory()
        return self._entries[path]

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["FileKeyedCache"]
