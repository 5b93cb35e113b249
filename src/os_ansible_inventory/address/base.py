from __future__ import annotations

from typing import Callable, Optional, Sequence

from ..normalize.schema import NetworkAddress
from ..util.errors import AddressResolutionError

# Higher rank wins. Equal ranks fall back to sequence position, last one wins.
RankFn = Callable[[NetworkAddress], int]


def select_address(addresses: Sequence[NetworkAddress], rank: Optional[RankFn] = None) -> str:
    """
    Pick one address from a server's address sequence.

    Entries with an empty address are never chosen. With no rank function every
    entry ranks the same, so the last non-empty entry is returned.
    """
    best: Optional[NetworkAddress] = None
    best_rank = 0
    for candidate in addresses:
        if not candidate.address:
            continue
        r = rank(candidate) if rank is not None else 0
        if best is None or r >= best_rank:
            best = candidate
            best_rank = r
    if best is None:
        raise AddressResolutionError("unable to find any address")
    return best.address
