from __future__ import annotations

from typing import Any

import openstack.connection

from ..auth.providers import AuthContext
from ..util.errors import map_openstack_error


def make_connection(ctx: AuthContext) -> Any:
    """
    Build an openstacksdk Connection on top of the authenticated session,
    scoped to the context's region.
    """
    try:
        return openstack.connection.Connection(
            session=ctx.session,
            region_name=ctx.region_name,
            interface=ctx.interface,
        )
    except Exception as e:
        mapped = map_openstack_error(e, "OpenStack SDK error while creating connection")
        if mapped:
            raise mapped from e
        raise


def get_compute_client(ctx: AuthContext) -> Any:
    """
    Return the region-scoped compute (Nova) proxy.
    """
    conn = make_connection(ctx)
    try:
        return conn.compute
    except Exception as e:
        mapped = map_openstack_error(e, "OpenStack SDK error while opening the compute service")
        if mapped:
            raise mapped from e
        raise
