from __future__ import annotations

import pytest

from os_ansible_inventory.config import REQUIRED_CLOUD_ENV_VARS

_RUN_ENV_VARS = (
    "DEBUG",
    "SSH_RESET",
    "DNS_DOMAIN",
    "OS_INV_OUTDIR",
    "OS_INV_ADDRESS_POLICY",
    "OS_INV_SKIP_UNADDRESSED",
    "OS_INV_JSON_LOGS",
    "OS_INV_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in _RUN_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for _, name in REQUIRED_CLOUD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def openrc() -> dict:
    return {
        "OS_AUTH_URL": "https://keystone.example.com:5000/v3",
        "OS_USERNAME": "demo",
        "OS_PASSWORD": "s3cret",
        "OS_PROJECT_DOMAIN_ID": "default",
        "OS_REGION_NAME": "RegionOne",
        "OS_PROJECT_NAME": "demo-project",
        "OS_USER_DOMAIN_NAME": "Default",
        "OS_INTERFACE": "public",
        "OS_PROJECT_ID": "0123456789abcdef",
        "OS_DOMAIN_NAME": "",
    }
