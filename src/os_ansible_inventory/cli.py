from __future__ import annotations

import logging
import sys
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .auth.providers import AuthContext, authenticate
from .cloud.servers import list_servers
from .config import CloudConfig, RunConfig, dump_cloud_config, dump_config, load_cloud_config, load_run_config
from .export.ansible import write_inventory_yaml
from .export.ssh_reset import write_ssh_reset_script
from .inventory import build_inventory
from .logging import LogConfig, get_logger, setup_logging
from .normalize.schema import resolve_output_paths
from .util.errors import ConfigError, as_exit_code
from .util.rich_console import render_run_summary_table, render_servers_table

LOG = get_logger(__name__)


class _StepTimers:
    def __init__(self) -> None:
        self._starts: Dict[str, float] = {}

    def start(self, key: str) -> None:
        self._starts[key] = perf_counter()

    def finish(self, key: str) -> Optional[int]:
        started = self._starts.pop(key, None)
        if started is None:
            return None
        return int((perf_counter() - started) * 1000)


def _log_event(
    logger: Any,
    level: int,
    message: str,
    *,
    step: str,
    phase: str,
    timers: Optional[_StepTimers] = None,
    **extra: Any,
) -> None:
    duration_ms = None
    if timers is not None:
        if phase == "start":
            timers.start(step)
        elif phase in {"complete", "error", "warning"}:
            duration_ms = timers.finish(step)
    payload: Dict[str, Any] = {"step": step, "phase": phase, "event": f"{step}.{phase}"}
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    payload.update(extra)
    logger.log(level, message, extra=payload)


def _bootstrap(
    timers: _StepTimers, environ: Optional[Mapping[str, str]] = None
) -> Tuple[CloudConfig, AuthContext]:
    """
    Read and validate the OS_* settings, then authenticate. Both failures are fatal.
    """
    _log_event(LOG, logging.DEBUG, "Reading OpenStack settings", step="bootstrap", phase="start", timers=timers)
    cloud = load_cloud_config(environ)
    _log_event(
        LOG,
        logging.DEBUG,
        "OpenStack settings loaded",
        step="bootstrap",
        phase="complete",
        timers=timers,
        cloud=dump_cloud_config(cloud),
    )

    _log_event(
        LOG,
        logging.INFO,
        "Authentication started",
        step="auth",
        phase="start",
        timers=timers,
        auth_url=cloud.auth_url,
        project=cloud.project_name,
    )
    ctx = authenticate(cloud)
    _log_event(LOG, logging.INFO, "Authentication complete", step="auth", phase="complete", timers=timers)
    return cloud, ctx


def cmd_run(cfg: RunConfig, environ: Optional[Mapping[str, str]] = None) -> int:
    timers = _StepTimers()
    LOG.debug("Run configuration", extra={"config": dump_config(cfg)})

    cloud, ctx = _bootstrap(timers, environ)

    _log_event(
        LOG,
        logging.INFO,
        "Server discovery started",
        step="discovery",
        phase="start",
        timers=timers,
        region=ctx.region_name,
    )
    listing = list_servers(ctx)
    _log_event(
        LOG,
        logging.WARNING if listing.degraded else logging.INFO,
        "Server discovery complete",
        step="discovery",
        phase="warning" if listing.degraded else "complete",
        timers=timers,
        count=len(listing.instances),
        decode_warnings=len(listing.decode_warnings),
    )

    _log_event(LOG, logging.INFO, "Building inventory", step="project", phase="start", timers=timers)
    inventory = build_inventory(
        listing.instances,
        address_policy=cfg.address_policy,
        skip_unaddressed=cfg.skip_unaddressed,
    )
    _log_event(
        LOG,
        logging.INFO,
        "Inventory built",
        step="project",
        phase="complete",
        timers=timers,
        hosts=len(inventory.hosts),
        skipped=len(inventory.skipped),
    )

    paths = resolve_output_paths(cfg.outdir, cloud.project_name)
    written: List[str] = []
    _log_event(LOG, logging.INFO, "Export started", step="export", phase="start", timers=timers)
    text = write_inventory_yaml(inventory, paths.inventory_yaml)
    written.append(str(paths.inventory_yaml))
    print(f"Wrote {paths.inventory_yaml}")

    if cfg.debug:
        print(text)

    if cfg.ssh_reset:
        print("Also Generating SSH Reset Script")
        write_ssh_reset_script(inventory, paths.ssh_reset_script, cfg.dns_domain)
        written.append(str(paths.ssh_reset_script))
        print(f"Wrote {paths.ssh_reset_script}")
    _log_event(LOG, logging.INFO, "Export complete", step="export", phase="complete", timers=timers, files=written)

    if LOG.isEnabledFor(logging.DEBUG):
        render_run_summary_table(inventory=inventory, listing=listing, written=written)
    return 0


def cmd_validate_auth(cfg: RunConfig, environ: Optional[Mapping[str, str]] = None) -> int:
    cloud, _ = _bootstrap(_StepTimers(), environ)
    print(f"OK: authenticated to project {cloud.project_name} in region {cloud.region_name}")
    return 0


def cmd_list_servers(cfg: RunConfig, environ: Optional[Mapping[str, str]] = None) -> int:
    _, ctx = _bootstrap(_StepTimers(), environ)
    listing = list_servers(ctx)
    render_servers_table(listing, address_policy=cfg.address_policy)
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    try:
        command, cfg = load_run_config(argv=argv)
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))

        if command == "run":
            code = cmd_run(cfg)
        elif command == "validate-auth":
            code = cmd_validate_auth(cfg)
        elif command == "list-servers":
            code = cmd_list_servers(cfg)
        else:
            raise ConfigError(f"Unknown command: {command}")

        sys.exit(code)
    except SystemExit:
        raise
    except BrokenPipeError:
        # Common when users pipe to `head` or similar tools.
        sys.exit(0)
    except Exception as e:
        setup_logging(LogConfig())
        LOG.error("Execution failed", extra={"error": str(e)})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
