from __future__ import annotations

import os
import stat

import pytest
import yaml

from os_ansible_inventory.export.ansible import inventory_to_dict, render_inventory_yaml, write_inventory_yaml
from os_ansible_inventory.export.ssh_reset import render_ssh_reset_script, write_ssh_reset_script
from os_ansible_inventory.normalize.schema import Inventory, InventoryHost
from os_ansible_inventory.util.errors import ExportError


def _inventory(*hosts):
    inv = Inventory()
    for name, addr in hosts:
        inv.hosts[name] = InventoryHost(address=addr, hostname=name)
    return inv


@pytest.mark.parametrize(
    "hosts",
    [(), (("web1", "10.0.0.5"),), (("web2", "10.0.0.7"), ("web1", "10.0.0.5"), ("db", "fd00::1"))],
)
def test_yaml_round_trip(hosts) -> None:
    inv = _inventory(*hosts)
    assert yaml.safe_load(render_inventory_yaml(inv)) == inventory_to_dict(inv)


def test_yaml_layout_matches_ansible_format() -> None:
    text = render_inventory_yaml(_inventory(("web1", "10.0.0.5")))
    assert text == (
        "all:\n"
        "  hosts:\n"
        "    web1:\n"
        "      ansible_host: 10.0.0.5\n"
        "      hostname: web1\n"
        "  vars:\n"
        "    ansible_user: ubuntu\n"
        "    ansible_ssh_common_args: -o StrictHostKeyChecking=no\n"
    )


def test_write_inventory_yaml(tmp_path) -> None:
    path = tmp_path / "out" / "demo.yaml"
    text = write_inventory_yaml(_inventory(("web1", "10.0.0.5")), path)
    assert path.read_text(encoding="utf-8") == text


def test_write_inventory_yaml_failure_is_export_error(tmp_path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", encoding="utf-8")
    with pytest.raises(ExportError):
        write_inventory_yaml(_inventory(), blocker / "demo.yaml")


def test_reset_script_with_dns_domain() -> None:
    script = render_ssh_reset_script(_inventory(("web1", "10.0.0.5")), "example.com")
    lines = script.splitlines()
    assert lines[0] == "#!/bin/bash"
    assert lines[1:] == [
        'ssh-keygen -f "$HOME/.ssh/known_hosts" -R 10.0.0.5',
        'ssh-keygen -f "$HOME/.ssh/known_hosts" -R web1.example.com',
    ]


def test_reset_script_without_dns_domain_uses_bare_hostname() -> None:
    script = render_ssh_reset_script(_inventory(("web1", "10.0.0.5"), ("web2", "10.0.0.7")), None)
    removals = [line.rsplit(" ", 1)[1] for line in script.splitlines()[1:]]
    assert sorted(removals) == ["10.0.0.5", "10.0.0.7", "web1", "web2"]


def test_reset_script_quotes_odd_names() -> None:
    script = render_ssh_reset_script(_inventory(("web 1;rm", "10.0.0.5")))
    assert "-R 'web 1;rm'" in script


def test_write_reset_script_is_executable(tmp_path) -> None:
    path = tmp_path / "reset-ssh-demo.sh"
    write_ssh_reset_script(_inventory(("web1", "10.0.0.5")), path, "example.com")
    mode = stat.S_IMODE(os.stat(path).st_mode)
    assert mode == 0o755
    assert path.read_text(encoding="utf-8").startswith("#!/bin/bash\n")
