from __future__ import annotations

from typing import Iterable

from .address import DEFAULT_POLICY, resolve_address
from .logging import get_logger
from .normalize.schema import Instance, Inventory, InventoryHost, InventoryVariables
from .util.errors import AddressResolutionError

LOG = get_logger(__name__)


def build_inventory(
    instances: Iterable[Instance],
    *,
    address_policy: str = DEFAULT_POLICY,
    skip_unaddressed: bool = False,
) -> Inventory:
    """
    Project ACTIVE instances into an Inventory keyed by instance name.

    An active instance without a usable address aborts the build with
    AddressResolutionError unless skip_unaddressed is set, in which case it is
    logged and left out. Duplicate names keep the last instance seen.
    """
    inventory = Inventory()
    for instance in instances:
        if not instance.is_active:
            continue
        try:
            address = resolve_address(instance.addresses, address_policy)
        except AddressResolutionError as e:
            if not skip_unaddressed:
                raise AddressResolutionError(
                    f"{e} for server {instance.name} ({instance.identifier})"
                ) from e
            LOG.warning(
                "Skipping active server without an address",
                extra={"server_id": instance.identifier, "server_name": instance.name},
            )
            inventory.skipped.append(instance.name)
            continue
        if instance.name in inventory.hosts:
            LOG.debug("Duplicate server name; keeping the last one", extra={"server_name": instance.name})
        inventory.hosts[instance.name] = InventoryHost(address=address, hostname=instance.name)

    inventory.vars = InventoryVariables()
    return inventory
