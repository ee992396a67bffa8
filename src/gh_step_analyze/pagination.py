"""Early-exit search over lazily fetched pages."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")


def search_paginated(
    pages: Iterable[Sequence[T]],
    predicate: Callable[[T], bool],
) -> Optional[T]:
    """Return the first item across ``pages`` that satisfies ``predicate``.

    ``pages`` is pulled one page at a time, so a generator that performs a
    request per page is never advanced past the page holding the match. An
    empty page ends the search. Errors raised while fetching a page propagate
    to the caller.

    Args:
        pages: Ordered, lazily produced pages of items.
        predicate: Match test applied to each item in order.

    Returns:
        The first matching item, or ``None`` once the pages are exhausted.
    """
    for page in pages:
        if not page:
            return None
        for item in page:
            if predicate(item):
                return item

    return None
