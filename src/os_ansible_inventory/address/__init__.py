from __future__ import annotations

from typing import Dict, Optional, Sequence

from ..normalize.schema import NetworkAddress
from ..util.errors import ConfigError
from .base import RankFn, select_address

DEFAULT_POLICY = "last"


class AddressPolicyRegistry:
    """
    Registry mapping policy names to rank functions used by select_address.
    A policy mapped to None keeps plain sequence order.
    """

    def __init__(self) -> None:
        self._map: Dict[str, Optional[RankFn]] = {}

    def register(self, name: str, rank: Optional[RankFn]) -> None:
        self._map[name] = rank

    def is_registered(self, name: str) -> bool:
        return name in self._map

    def names(self) -> list[str]:
        return sorted(self._map.keys())

    def get(self, name: str) -> Optional[RankFn]:
        if name not in self._map:
            raise ConfigError(f"Unknown address policy '{name}'; expected one of: {', '.join(self.names())}")
        return self._map[name]


def _type_rank(address_type: str) -> RankFn:
    def rank(addr: NetworkAddress) -> int:
        return 1 if addr.address_type.lower() == address_type else 0

    return rank


def _version_rank(version: int) -> RankFn:
    def rank(addr: NetworkAddress) -> int:
        return 1 if addr.ip_version == version else 0

    return rank


_global_registry = AddressPolicyRegistry()
_global_registry.register(DEFAULT_POLICY, None)
_global_registry.register("floating", _type_rank("floating"))
_global_registry.register("fixed", _type_rank("fixed"))
_global_registry.register("ipv4", _version_rank(4))
_global_registry.register("ipv6", _version_rank(6))


def register_address_policy(name: str, rank: Optional[RankFn]) -> None:
    _global_registry.register(name, rank)


def list_address_policies() -> list[str]:
    return _global_registry.names()


def resolve_address(addresses: Sequence[NetworkAddress], policy: str = DEFAULT_POLICY) -> str:
    return select_address(addresses, _global_registry.get(policy))
