from __future__ import annotations

import argparse
import json
import os
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .address import DEFAULT_POLICY, list_address_policies
from .util.errors import ConfigError
from .util.serialization import redact_mapping

# --------
# Defaults
# --------
ALLOWED_CONFIG_KEYS = {
    "outdir",
    "debug",
    "ssh_reset",
    "dns_domain",
    "address_policy",
    "skip_unaddressed",
    "json_logs",
    "log_level",
}
BOOL_CONFIG_KEYS = {"debug", "ssh_reset", "skip_unaddressed", "json_logs"}
PATH_CONFIG_KEYS = {"outdir"}
STR_CONFIG_KEYS = {"dns_domain", "address_policy", "log_level"}

# Connection parameters, checked in this order. Mostly the standard OpenStack RC variables.
REQUIRED_CLOUD_ENV_VARS: Tuple[Tuple[str, str], ...] = (
    ("auth_url", "OS_AUTH_URL"),
    ("username", "OS_USERNAME"),
    ("password", "OS_PASSWORD"),
    ("project_domain_id", "OS_PROJECT_DOMAIN_ID"),
    ("region_name", "OS_REGION_NAME"),
    ("project_name", "OS_PROJECT_NAME"),
    ("user_domain_name", "OS_USER_DOMAIN_NAME"),
    ("interface", "OS_INTERFACE"),
    ("project_id", "OS_PROJECT_ID"),
    ("domain_name", "OS_DOMAIN_NAME"),
)


@dataclass(frozen=True)
class CloudConfig:
    """
    OpenStack connection parameters, read once from the process environment.
    """

    auth_url: str
    username: str
    password: str
    project_domain_id: str
    region_name: str
    project_name: str
    user_domain_name: str
    interface: str
    project_id: str
    domain_name: str


@dataclass(frozen=True)
class RunConfig:
    # Output
    outdir: Path
    debug: bool = False
    ssh_reset: bool = False
    dns_domain: Optional[str] = None

    # Projection
    address_policy: str = DEFAULT_POLICY
    skip_unaddressed: bool = False

    # Logging
    json_logs: bool = False
    log_level: str = "INFO"


def load_cloud_config(environ: Optional[Mapping[str, str]] = None) -> CloudConfig:
    """
    Build CloudConfig from OS_* variables and fail on the first missing one.

    Newer OpenStack RC files may not set OS_DOMAIN_NAME, so it follows
    OS_USER_DOMAIN_NAME whenever the latter is set or the former is blank.
    """
    env = os.environ if environ is None else environ
    values: Dict[str, str] = {}
    for field_name, var in REQUIRED_CLOUD_ENV_VARS:
        values[field_name] = (env.get(var) or "").strip()

    if not values["domain_name"] or values["user_domain_name"]:
        values["domain_name"] = values["user_domain_name"]

    for field_name, var in REQUIRED_CLOUD_ENV_VARS:
        if not values[field_name]:
            raise ConfigError(f"Missing {var} environment variable")
    return CloudConfig(**values)


def dump_cloud_config(cfg: CloudConfig) -> Dict[str, Any]:
    return redact_mapping(asdict(cfg))


def _parse_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text) or {}
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be an object")
    return data


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    return raw


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    raw = raw.strip().lower()
    if not raw:
        return None
    return raw in {"1", "true", "yes", "on"}


def _env_debug() -> Optional[bool]:
    # Any non-empty DEBUG value enables the inventory echo.
    return True if os.getenv("DEBUG") else None


def _env_ssh_reset() -> Optional[bool]:
    # Only the exact string "true" enables the reset script.
    raw = os.getenv("SSH_RESET")
    if raw is None or raw == "":
        return None
    return raw == "true"


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        raw = value.strip().lower()
        if raw in {"1", "true", "yes", "on"}:
            return True
        if raw in {"0", "false", "no", "off"}:
            return False
    raise ConfigError(f"Config field '{key}' must be a boolean")


def _normalize_config_file(data: Dict[str, Any]) -> Dict[str, Any]:
    unknown = sorted(set(data.keys()) - ALLOWED_CONFIG_KEYS)
    if unknown:
        warnings.warn(f"Unknown config keys ignored: {', '.join(unknown)}")
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in ALLOWED_CONFIG_KEYS or value is None:
            continue
        if key in BOOL_CONFIG_KEYS:
            normalized[key] = _coerce_bool(key, value)
        elif key in PATH_CONFIG_KEYS:
            if not isinstance(value, (str, Path)):
                raise ConfigError(f"Config field '{key}' must be a string path")
            normalized[key] = value
        elif key in STR_CONFIG_KEYS:
            if not isinstance(value, str):
                raise ConfigError(f"Config field '{key}' must be a string")
            normalized[key] = value
    return normalized


def _compact_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop keys with None values so they don't override lower-precedence config.
    """
    return {k: v for k, v in data.items() if v is not None}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="os-ansible-inv",
        description="Generate an Ansible inventory from running OpenStack instances",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", type=Path, help="Optional YAML/JSON config file")
        p.add_argument(
            "--json-logs",
            action=argparse.BooleanOptionalAction,
            default=None,
            help="Enable JSON logs",
        )
        p.add_argument("--log-level", default=None, help="Log level (INFO, DEBUG, ...)")
        p.add_argument(
            "--address-policy",
            default=None,
            choices=list_address_policies(),
            help=f"How to pick the ansible_host address (default: {DEFAULT_POLICY})",
        )

    p_run = subparsers.add_parser("run", help="Write the inventory file for the current project")
    add_common(p_run)
    p_run.add_argument("--outdir", type=Path, default=None, help="Output directory (default: cwd)")
    p_run.add_argument(
        "--debug",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also print the inventory to stdout",
    )
    p_run.add_argument(
        "--ssh-reset",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Also write reset-ssh-<project>.sh to clear known_hosts entries",
    )
    p_run.add_argument("--dns-domain", default=None, help="Domain suffix for hostnames in the reset script")
    p_run.add_argument(
        "--skip-unaddressed",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Omit active servers without an address instead of failing",
    )

    p_val = subparsers.add_parser("validate-auth", help="Validate OpenStack authentication")
    add_common(p_val)

    p_ls = subparsers.add_parser("list-servers", help="List servers and their resolved addresses")
    add_common(p_ls)
    return parser


def load_run_config(
    args: Optional[argparse.Namespace] = None,
    argv: Optional[list[str]] = None,
) -> Tuple[str, RunConfig]:
    """
    Build RunConfig by merging defaults, optional config file, env vars, and CLI args.
    Precedence (low -> high): defaults < config file < env < CLI.

    Returns:
      (command, RunConfig) where command is one of run|validate-auth|list-servers
    """
    ns = args if args is not None else _build_parser().parse_args(argv)
    command = ns.command

    base: Dict[str, Any] = {
        "outdir": None,
        "debug": False,
        "ssh_reset": False,
        "dns_domain": None,
        "address_policy": DEFAULT_POLICY,
        "skip_unaddressed": False,
        "json_logs": False,
        "log_level": "INFO",
    }

    file_cfg: Dict[str, Any] = {}
    if getattr(ns, "config", None):
        file_cfg = _normalize_config_file(_parse_config_file(Path(ns.config)))

    env_cfg: Dict[str, Any] = _compact_dict(
        {
            "outdir": _env_str("OS_INV_OUTDIR"),
            "debug": _env_debug(),
            "ssh_reset": _env_ssh_reset(),
            "dns_domain": _env_str("DNS_DOMAIN"),
            "address_policy": _env_str("OS_INV_ADDRESS_POLICY"),
            "skip_unaddressed": _env_bool("OS_INV_SKIP_UNADDRESSED"),
            "json_logs": _env_bool("OS_INV_JSON_LOGS"),
            "log_level": _env_str("OS_INV_LOG_LEVEL"),
        }
    )

    cli_cfg: Dict[str, Any] = _compact_dict(
        {
            "outdir": getattr(ns, "outdir", None),
            "debug": getattr(ns, "debug", None),
            "ssh_reset": getattr(ns, "ssh_reset", None),
            "dns_domain": getattr(ns, "dns_domain", None),
            "address_policy": getattr(ns, "address_policy", None),
            "skip_unaddressed": getattr(ns, "skip_unaddressed", None),
            "json_logs": getattr(ns, "json_logs", None),
            "log_level": getattr(ns, "log_level", None),
        }
    )

    merged = {**base, **file_cfg, **env_cfg, **cli_cfg}

    policy = str(merged["address_policy"]).strip().lower()
    if policy not in list_address_policies():
        raise ConfigError(
            f"Unknown address policy '{policy}'; expected one of: {', '.join(list_address_policies())}"
        )
    outdir_raw = merged.get("outdir")
    dns_domain = str(merged["dns_domain"]).strip().strip(".") if merged.get("dns_domain") else None

    cfg = RunConfig(
        outdir=Path(outdir_raw) if outdir_raw else Path.cwd(),
        debug=bool(merged["debug"]),
        ssh_reset=bool(merged["ssh_reset"]),
        dns_domain=dns_domain or None,
        address_policy=policy,
        skip_unaddressed=bool(merged["skip_unaddressed"]),
        json_logs=bool(merged["json_logs"]),
        log_level=(merged.get("log_level") or "INFO").upper(),
    )
    return command, cfg


def dump_config(cfg: RunConfig) -> Dict[str, Any]:
    return {
        "outdir": str(cfg.outdir),
        "debug": cfg.debug,
        "ssh_reset": cfg.ssh_reset,
        "dns_domain": cfg.dns_domain,
        "address_policy": cfg.address_policy,
        "skip_unaddressed": cfg.skip_unaddressed,
        "json_logs": cfg.json_logs,
        "log_level": cfg.log_level,
    }
