from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..util.serialization import to_plain
from .schema import AddressDecodeWarning, Instance, NetworkAddress

# Keys of a Nova address entry (extended server attributes).
MAC_KEY = "OS-EXT-IPS-MAC:mac_addr"
TYPE_KEY = "OS-EXT-IPS:type"
ADDR_KEY = "addr"
VERSION_KEY = "version"


def _get(d: Mapping[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return None


def _as_text(key: str, value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"address field '{key}' must be a string, got {type(value).__name__}")
    return value


def _as_version(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError("address field 'version' must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"address field 'version' must be an integer, got {value!r}")


def decode_address(entry: Any, network: str = "") -> NetworkAddress:
    """
    Decode a single address entry into the known fields. Extra keys are ignored.
    """
    if not isinstance(entry, Mapping):
        raise ValueError(f"address entry must be an object, got {type(entry).__name__}")
    return NetworkAddress(
        interface_mac=_as_text(MAC_KEY, entry.get(MAC_KEY)),
        address_type=_as_text(TYPE_KEY, entry.get(TYPE_KEY)),
        address=_as_text(ADDR_KEY, entry.get(ADDR_KEY)).strip(),
        ip_version=_as_version(entry.get(VERSION_KEY)),
        network=network,
    )


def decode_addresses(raw: Any) -> Tuple[NetworkAddress, ...]:
    """
    Flatten a server ``addresses`` map ({network_name: [entry, ...]}) into one sequence.
    Networks keep the order the API returned them in, entries keep their order within a network.
    Raises ValueError on any malformed part.
    """
    plain = to_plain(raw)
    if plain is None:
        return ()
    if not isinstance(plain, dict):
        raise ValueError(f"addresses must be an object keyed by network, got {type(plain).__name__}")
    out: List[NetworkAddress] = []
    for network, entries in plain.items():
        if entries is None:
            continue
        if not isinstance(entries, list):
            raise ValueError(f"addresses for network '{network}' must be a list")
        for entry in entries:
            out.append(decode_address(entry, network=str(network)))
    return tuple(out)


def normalize_server(server: Any) -> Tuple[Instance, Optional[AddressDecodeWarning]]:
    """
    Build an Instance from an SDK Server resource or a raw API dict.

    A malformed address map does not fail the server: the instance is returned
    without addresses, together with a warning describing the decode error.
    """
    data: Dict[str, Any] = to_plain(server) or {}
    identifier = str(_get(data, "id") or "")
    name = str(_get(data, "name") or "")
    owner_id = str(_get(data, "project_id", "tenant_id") or "")
    status = str(_get(data, "status") or "")

    warning: Optional[AddressDecodeWarning] = None
    try:
        addresses = decode_addresses(data.get("addresses"))
    except ValueError as e:
        addresses = ()
        warning = AddressDecodeWarning(server_id=identifier, server_name=name, error=str(e))

    instance = Instance(
        identifier=identifier,
        name=name,
        owner_id=owner_id,
        lifecycle_status=status,
        addresses=addresses,
    )
    return instance, warning
