from __future__ import annotations

from typing import Any, List, Optional, Tuple

from ..auth.providers import AuthContext
from ..logging import get_logger
from ..normalize.schema import AddressDecodeWarning, Instance, ServerListing
from ..normalize.transform import normalize_server
from ..util.errors import map_openstack_error
from ..util.pagination import next_marker_for, paginate
from .clients import get_compute_client

LOG = get_logger(__name__)

PAGE_SIZE = 1000


def _server_id(server: Any) -> Optional[str]:
    if isinstance(server, dict) and "id" in server:
        return server.get("id")
    return getattr(server, "id", None)


def list_servers(ctx: AuthContext, *, page_size: int = PAGE_SIZE) -> ServerListing:
    """
    List every server in the caller's own project and normalize them.

    - Only the authenticated project is listed (no all_projects scan).
    - Pages with limit/marker until an empty page is returned; Nova may cap
      the page below the requested limit, so short pages are not the end.
    - A listing error aborts; a server whose address map cannot be decoded is
      kept without addresses and reported in decode_warnings.
    """
    compute = get_compute_client(ctx)

    def fetch(marker: Optional[str]) -> Tuple[List[Any], Optional[str]]:
        try:
            page = list(
                compute.servers(
                    details=True,
                    all_projects=False,
                    paginated=False,
                    limit=page_size,
                    marker=marker,
                )
            )
        except Exception as e:
            mapped = map_openstack_error(e, f"OpenStack SDK error while listing servers in {ctx.region_name}")
            if mapped:
                raise mapped from e
            raise
        return page, next_marker_for(page, _server_id)

    instances: List[Instance] = []
    warnings: List[AddressDecodeWarning] = []
    for server in paginate(fetch):
        instance, warning = normalize_server(server)
        if warning is not None:
            LOG.warning(
                "Could not decode server addresses; treating as none",
                extra={"server_id": warning.server_id, "server_name": warning.server_name, "error": warning.error},
            )
            warnings.append(warning)
        instances.append(instance)

    LOG.debug("Found %d OpenStack instances", len(instances), extra={"region": ctx.region_name})
    return ServerListing(instances=tuple(instances), decode_warnings=tuple(warnings))
