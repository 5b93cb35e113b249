from __future__ import annotations

from typing import Callable, Generator, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

Fetch = Callable[[Optional[str]], Tuple[Sequence[T], Optional[str]]]


def paginate(fetch: Fetch[T]) -> Generator[T, None, None]:
    """
    Generic paginator yielding items from a fetch(marker) function.
    The fetch function must return (items, next_marker). If next_marker
    is falsy, pagination stops.
    """
    marker: Optional[str] = None
    while True:
        items, next_marker = fetch(marker)
        yield from items
        if not next_marker:
            break
        if next_marker == marker:
            # A marker that does not advance would loop forever.
            break
        marker = next_marker


def next_marker_for(items: Sequence[T], key: Callable[[T], Optional[str]]) -> Optional[str]:
    """
    Marker-style paging: the last item's key is the marker for the following request.
    Only an empty page ends the listing; servers may cap the page below the requested
    limit, so a short page says nothing about whether more items follow.
    """
    if not items:
        return None
    return key(items[-1]) or None
