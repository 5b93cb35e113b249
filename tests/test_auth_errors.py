from __future__ import annotations

import types

import pytest

from os_ansible_inventory.auth import providers as auth_providers
from os_ansible_inventory.config import load_cloud_config
from os_ansible_inventory.util.errors import AuthResolutionError, ExitCode, as_exit_code


class DummyKeystoneError(Exception):
    __module__ = "keystoneauth1.exceptions.http"


def _fake_session_module(token):
    class _Session:
        def __init__(self, auth=None):
            self.auth = auth

        def get_token(self):
            if isinstance(token, BaseException):
                raise token
            return token

    return types.SimpleNamespace(Session=_Session)


def _capture_password(calls):
    def _password(**kwargs):
        calls.append(kwargs)
        return types.SimpleNamespace(kwargs=kwargs)

    return types.SimpleNamespace(Password=_password)


def test_authenticate_sets_reauthenticate_and_scope(monkeypatch, openrc) -> None:
    calls = []
    monkeypatch.setattr(auth_providers, "v3", _capture_password(calls))
    monkeypatch.setattr(auth_providers, "ks_session", _fake_session_module("tok-123"))

    ctx = auth_providers.authenticate(load_cloud_config(openrc))

    assert calls[0]["reauthenticate"] is True
    assert calls[0]["project_id"] == "0123456789abcdef"
    assert calls[0]["user_domain_name"] == "Default"
    assert ctx.region_name == "RegionOne"
    assert ctx.interface == "public"
    assert ctx.session.auth.kwargs["username"] == "demo"


def test_authenticate_maps_keystone_errors(monkeypatch, openrc) -> None:
    monkeypatch.setattr(auth_providers, "v3", _capture_password([]))
    monkeypatch.setattr(auth_providers, "ks_session", _fake_session_module(DummyKeystoneError("401 Unauthorized")))

    with pytest.raises(AuthResolutionError, match="401"):
        auth_providers.authenticate(load_cloud_config(openrc))


def test_authenticate_empty_token_is_auth_error(monkeypatch, openrc) -> None:
    monkeypatch.setattr(auth_providers, "v3", _capture_password([]))
    monkeypatch.setattr(auth_providers, "ks_session", _fake_session_module(None))

    with pytest.raises(AuthResolutionError, match="no valid auth result"):
        auth_providers.authenticate(load_cloud_config(openrc))


def test_auth_error_exit_code() -> None:
    assert as_exit_code(AuthResolutionError("x")) == int(ExitCode.AUTH_ERROR)
