from __future__ import annotations

from datetime import datetime
from typing import Any

REDACTED_VALUE = "<redacted>"
SENSITIVE_KEY_SUBSTRINGS = (
    "password",
    "secret",
    "token",
    "private_key",
)


def _is_sensitive_key(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower()
    return any(token in lowered for token in SENSITIVE_KEY_SUBSTRINGS)


def redact_mapping(data: dict[str, Any]) -> dict[str, Any]:
    """
    Shallow copy of data with sensitive values replaced, for logging configuration.
    """
    return {k: (REDACTED_VALUE if _is_sensitive_key(k) and v else v) for k, v in data.items()}


def to_plain(value: Any) -> Any:
    """
    Convert SDK resources and other non-JSON types into plain dicts, lists and scalars.

    Used to re-encode the provider's open-ended address map before decoding it into
    known fields, so no SDK model type leaks past the enumeration layer.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    # SDK resources subclass dict, so prefer their own conversion.
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_plain(to_dict())
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_plain(v) for v in value]
    if hasattr(value, "__dict__"):
        return {k: to_plain(v) for k, v in vars(value).items() if not k.startswith("_")}
    return str(value)
