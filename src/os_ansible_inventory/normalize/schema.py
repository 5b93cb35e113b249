from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

ACTIVE_STATUS = "ACTIVE"

DEFAULT_ANSIBLE_USER = "ubuntu"
DEFAULT_SSH_COMMON_ARGS = "-o StrictHostKeyChecking=no"


@dataclass(frozen=True)
class NetworkAddress:
    """
    One entry of a server's ``addresses`` map, e.g.
    ``{"OS-EXT-IPS-MAC:mac_addr": ..., "OS-EXT-IPS:type": "fixed", "addr": ..., "version": 4}``.
    """

    interface_mac: str
    address_type: str
    address: str
    ip_version: int
    network: str = ""


@dataclass(frozen=True)
class Instance:
    identifier: str
    name: str
    owner_id: str
    lifecycle_status: str
    addresses: Tuple[NetworkAddress, ...] = ()

    @property
    def is_active(self) -> bool:
        return self.lifecycle_status == ACTIVE_STATUS


@dataclass(frozen=True)
class AddressDecodeWarning:
    server_id: str
    server_name: str
    error: str


@dataclass(frozen=True)
class ServerListing:
    """
    Result of enumerating servers. decode_warnings lists servers whose address map
    could not be decoded; those instances carry no addresses but are still present.
    """

    instances: Tuple[Instance, ...]
    decode_warnings: Tuple[AddressDecodeWarning, ...] = ()

    @property
    def degraded(self) -> bool:
        return bool(self.decode_warnings)


@dataclass(frozen=True)
class InventoryHost:
    address: str
    hostname: str


@dataclass(frozen=True)
class InventoryVariables:
    remote_user: str = DEFAULT_ANSIBLE_USER
    ssh_options: str = DEFAULT_SSH_COMMON_ARGS


@dataclass
class Inventory:
    hosts: Dict[str, InventoryHost] = field(default_factory=dict)
    vars: InventoryVariables = field(default_factory=InventoryVariables)
    skipped: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class OutputPaths:
    inventory_yaml: Path
    ssh_reset_script: Path


def resolve_output_paths(outdir: Path, project_name: str) -> OutputPaths:
    return OutputPaths(
        inventory_yaml=outdir / f"{project_name}.yaml",
        ssh_reset_script=outdir / f"reset-ssh-{project_name}.sh",
    )


def hostname_for(host: InventoryHost, dns_domain: Optional[str]) -> str:
    if not dns_domain:
        return host.hostname
    return f"{host.hostname}.{dns_domain}"
