from __future__ import annotations

import os
import stat

import pytest
import yaml

import os_ansible_inventory.cli as cli
from os_ansible_inventory.auth.providers import AuthContext
from os_ansible_inventory.config import load_run_config
from os_ansible_inventory.normalize.schema import Instance, NetworkAddress, ServerListing
from os_ansible_inventory.util.errors import AddressResolutionError, ExitCode


def _instance(name, status, *addrs):
    return Instance(
        identifier=f"id-{name}",
        name=name,
        owner_id="proj",
        lifecycle_status=status,
        addresses=tuple(NetworkAddress(interface_mac="", address_type="fixed", address=a, ip_version=4) for a in addrs),
    )


@pytest.fixture
def fake_cloud(monkeypatch, openrc):
    for k, v in openrc.items():
        monkeypatch.setenv(k, v)

    def fake_authenticate(cloud):
        return AuthContext(
            session=object(),
            region_name=cloud.region_name,
            interface=cloud.interface,
            project_id=cloud.project_id,
            project_name=cloud.project_name,
        )

    state = {
        "instances": [
            _instance("web1", "ACTIVE", "10.0.0.5"),
            _instance("web2", "ACTIVE", "10.0.0.6", "10.0.0.7"),
            _instance("db1", "SHUTOFF", "10.0.0.8"),
        ]
    }
    monkeypatch.setattr(cli, "authenticate", fake_authenticate)
    monkeypatch.setattr(cli, "list_servers", lambda ctx: ServerListing(instances=tuple(state["instances"])))
    return state


def test_cmd_run_writes_inventory(tmp_path, fake_cloud, capsys) -> None:
    _, cfg = load_run_config(argv=["run", "--outdir", str(tmp_path)])

    assert cli.cmd_run(cfg) == 0

    data = yaml.safe_load((tmp_path / "demo-project.yaml").read_text(encoding="utf-8"))
    assert data["all"]["hosts"] == {
        "web1": {"ansible_host": "10.0.0.5", "hostname": "web1"},
        "web2": {"ansible_host": "10.0.0.7", "hostname": "web2"},
    }
    assert data["all"]["vars"]["ansible_user"] == "ubuntu"
    assert not (tmp_path / "reset-ssh-demo-project.sh").exists()
    assert "Wrote" in capsys.readouterr().out


def test_cmd_run_debug_echoes_inventory(tmp_path, fake_cloud, capsys, monkeypatch) -> None:
    monkeypatch.setenv("DEBUG", "1")
    _, cfg = load_run_config(argv=["run", "--outdir", str(tmp_path)])

    cli.cmd_run(cfg)

    out = capsys.readouterr().out
    assert "ansible_host: 10.0.0.7" in out


def test_cmd_run_ssh_reset_script(tmp_path, fake_cloud, monkeypatch) -> None:
    monkeypatch.setenv("SSH_RESET", "true")
    monkeypatch.setenv("DNS_DOMAIN", "example.com")
    _, cfg = load_run_config(argv=["run", "--outdir", str(tmp_path)])

    cli.cmd_run(cfg)

    script_path = tmp_path / "reset-ssh-demo-project.sh"
    lines = script_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "#!/bin/bash"
    assert len(lines) == 5
    assert any(line.endswith("-R web1.example.com") for line in lines)
    assert not any("db1" in line for line in lines)
    assert stat.S_IMODE(os.stat(script_path).st_mode) == 0o755


def test_cmd_run_unaddressed_active_server_writes_nothing(tmp_path, fake_cloud) -> None:
    fake_cloud["instances"].append(_instance("web9", "ACTIVE"))
    _, cfg = load_run_config(argv=["run", "--outdir", str(tmp_path)])

    with pytest.raises(AddressResolutionError):
        cli.cmd_run(cfg)
    assert list(tmp_path.iterdir()) == []


def test_main_missing_env_exits_with_config_error(tmp_path, monkeypatch) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["run", "--outdir", str(tmp_path)])
    assert exc.value.code == int(ExitCode.CONFIG_ERROR)


def test_main_resolution_failure_exit_code(tmp_path, fake_cloud) -> None:
    fake_cloud["instances"].append(_instance("web9", "ACTIVE"))
    with pytest.raises(SystemExit) as exc:
        cli.main(["run", "--outdir", str(tmp_path)])
    assert exc.value.code == int(ExitCode.RESOLUTION_ERROR)


def test_main_run_success_exit_code(tmp_path, fake_cloud) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["run", "--outdir", str(tmp_path)])
    assert exc.value.code == 0


def test_validate_auth_prints_ok(fake_cloud, capsys) -> None:
    _, cfg = load_run_config(argv=["validate-auth"])
    assert cli.cmd_validate_auth(cfg) == 0
    assert "OK: authenticated to project demo-project in region RegionOne" in capsys.readouterr().out


def test_list_servers_renders_table(fake_cloud, capsys) -> None:
    fake_cloud["instances"].append(_instance("web9", "ACTIVE"))
    _, cfg = load_run_config(argv=["list-servers"])
    assert cli.cmd_list_servers(cfg) == 0
    out = capsys.readouterr().out
    assert "web9" in out
    assert "10.0.0.7" in out
