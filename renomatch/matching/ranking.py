from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


def rank(items: Sequence[T], key: Callable[[T], float], top_n: Optional[int] = None) -> List[T]:
    """
    Descending by key. sorted() is stable, so equal keys keep input order
    and the result is a total order. top_n=None returns everything.
    """
    ranked = sorted(items, key=key, reverse=True)
    if top_n is not None:
        return ranked[: max(0, top_n)]
    return ranked
