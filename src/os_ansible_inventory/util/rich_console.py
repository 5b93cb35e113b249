from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..address import resolve_address
from ..normalize.schema import Inventory, ServerListing
from ..util.errors import AddressResolutionError


def render_servers_table(
    listing: ServerListing,
    *,
    address_policy: str,
    console: Optional[Console] = None,
) -> None:
    table = Table(title="OpenStack Servers", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Address")
    degraded = {w.server_id for w in listing.decode_warnings}
    for inst in sorted(listing.instances, key=lambda i: (i.name, i.identifier)):
        try:
            address = resolve_address(inst.addresses, address_policy)
        except AddressResolutionError:
            address = "-"
        if inst.identifier in degraded:
            address = f"{address} (addresses undecodable)"
        status = inst.lifecycle_status if inst.is_active else f"[dim]{inst.lifecycle_status}[/dim]"
        table.add_row(inst.name, inst.identifier, status, address)
    (console or Console()).print(table)


def render_run_summary_table(
    *,
    inventory: Inventory,
    listing: ServerListing,
    written: Sequence[str],
    console: Optional[Console] = None,
) -> None:
    table = Table(title="Run Summary", show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Servers listed", str(len(listing.instances)))
    table.add_row("Hosts in inventory", str(len(inventory.hosts)))
    table.add_row("Skipped (no address)", str(len(inventory.skipped)))
    table.add_row("Address decode warnings", str(len(listing.decode_warnings)))
    table.add_row("Files written", "\n".join(written))
    (console or Console(stderr=True)).print(table)
