"""Helpers for deterministic ordering."""

from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def stable_sorted(items: Iterable[T], key: Callable[[T], object], *, reverse: bool = False) -> list[T]:
    # sorted() keeps insertion order for equal keys, also with reverse=True.
    return sorted(items, key=key, reverse=reverse)


def name_key(name: str) -> str:
    return name.casefold()
