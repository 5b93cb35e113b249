from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    OK = 0
    CONFIG_ERROR = 2
    AUTH_ERROR = 3
    OPENSTACK_ERROR = 4
    RUNTIME_ERROR = 5
    RESOLUTION_ERROR = 6


class InventoryError(Exception):
    """Base error for inventory pipeline."""


class ConfigError(InventoryError):
    """Raised for configuration or argument issues."""


class AuthResolutionError(InventoryError):
    """Raised when authentication against Keystone fails."""


class OpenStackClientError(InventoryError):
    """Raised when OpenStack SDK operations fail."""


class AddressResolutionError(InventoryError):
    """Raised when an active server has no usable address."""


class ExportError(InventoryError):
    """Raised when writing the inventory or reset script fails."""


def as_exit_code(exc: BaseException) -> int:
    if isinstance(exc, (ConfigError, ValueError)):
        return int(ExitCode.CONFIG_ERROR)
    if isinstance(exc, AuthResolutionError):
        return int(ExitCode.AUTH_ERROR)
    if isinstance(exc, OpenStackClientError):
        return int(ExitCode.OPENSTACK_ERROR)
    if isinstance(exc, AddressResolutionError):
        return int(ExitCode.RESOLUTION_ERROR)
    if isinstance(exc, (ExportError, InventoryError)):
        return int(ExitCode.RUNTIME_ERROR)
    return 1


def _openstack_error_types() -> tuple[type[BaseException], ...]:
    types_: list[type[BaseException]] = []
    try:
        from openstack.exceptions import SDKException  # type: ignore

        types_.append(SDKException)
    except ImportError:
        pass
    try:
        from keystoneauth1.exceptions import ClientException  # type: ignore

        types_.append(ClientException)
    except ImportError:
        pass
    return tuple(types_)


def is_openstack_error(exc: BaseException) -> bool:
    """
    Return True if the exception looks like an OpenStack SDK or keystoneauth error.
    """
    os_types = _openstack_error_types()
    if os_types and isinstance(exc, os_types):
        return True
    module = exc.__class__.__module__
    return module.startswith("openstack.") or module.startswith("keystoneauth1.")


def map_openstack_error(exc: BaseException, context: str) -> OpenStackClientError | None:
    """
    Wrap OpenStack SDK errors with OpenStackClientError for consistent exit codes.
    """
    if not is_openstack_error(exc):
        return None
    return OpenStackClientError(f"{context}: {exc}")
