from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from keystoneauth1 import session as ks_session
from keystoneauth1.identity import v3

from ..config import CloudConfig
from ..util.errors import AuthResolutionError, map_openstack_error


@dataclass(frozen=True)
class AuthContext:
    """
    Authenticated Keystone session plus the settings needed to build
    region-scoped service clients from it.
    """

    session: Any
    region_name: str
    interface: str
    project_id: str
    project_name: str


def build_auth_options(cfg: CloudConfig) -> Dict[str, Any]:
    """
    Keyword arguments for the v3 password plugin.

    reauthenticate lets the session fetch a new token when the current one expires
    while a large server list is still being paged through.
    """
    return {
        "auth_url": cfg.auth_url,
        "username": cfg.username,
        "password": cfg.password,
        "user_domain_name": cfg.domain_name,
        "project_id": cfg.project_id,
        "project_name": cfg.project_name,
        "project_domain_id": cfg.project_domain_id,
        "reauthenticate": True,
    }


def authenticate(cfg: CloudConfig) -> AuthContext:
    """
    Perform the Keystone handshake and return an AuthContext.
    Raises AuthResolutionError if the handshake fails or yields no token.
    """
    try:
        auth = v3.Password(**build_auth_options(cfg))
        sess = ks_session.Session(auth=auth)
        token = sess.get_token()
    except Exception as e:
        mapped = map_openstack_error(e, "OpenStack error while authenticating")
        if mapped is None:
            raise
        raise AuthResolutionError(str(mapped)) from e
    if not token:
        raise AuthResolutionError("no valid auth result")
    return AuthContext(
        session=sess,
        region_name=cfg.region_name,
        interface=cfg.interface,
        project_id=cfg.project_id,
        project_name=cfg.project_name,
    )
