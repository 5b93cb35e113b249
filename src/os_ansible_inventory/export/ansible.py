from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml

from ..normalize.schema import Inventory
from ..util.errors import ExportError

INVENTORY_FILE_MODE = 0o644


def inventory_to_dict(inventory: Inventory) -> Dict[str, Any]:
    """
    Ansible YAML inventory layout: everything under the implicit ``all`` group.
    Hosts are ordered by name so repeated runs produce identical files.
    """
    hosts: Dict[str, Dict[str, str]] = {}
    for name in sorted(inventory.hosts):
        host = inventory.hosts[name]
        hosts[name] = {"ansible_host": host.address, "hostname": host.hostname}
    return {
        "all": {
            "hosts": hosts,
            "vars": {
                "ansible_user": inventory.vars.remote_user,
                "ansible_ssh_common_args": inventory.vars.ssh_options,
            },
        }
    }


def render_inventory_yaml(inventory: Inventory) -> str:
    return yaml.safe_dump(inventory_to_dict(inventory), sort_keys=False, default_flow_style=False)


def write_inventory_yaml(inventory: Inventory, path: Path) -> str:
    """
    Write the inventory to path and return the rendered text.
    """
    text = render_inventory_yaml(inventory)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        path.chmod(INVENTORY_FILE_MODE)
    except OSError as e:
        raise ExportError(f"Failed to write inventory {path}: {e}") from e
    return text
