"""
Driver factory helpers for easy backend switching.

This module gives application developers a uniform way to pick a driver
backend by name without rewriting client bootstrap logic.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import BackendConfigurationError, BackendNotAvailableError
from .memory import InMemoryEnsemble

if TYPE_CHECKING:  # pragma: no cover - typing-only imports
    from .client import CoordinationClient
    from .config import ClientConfig
    from .driver import CoordinationDriver


class DriverBackend(str, Enum):
    """
    Built-in driver names supported by the factory helpers.

    MEMORY
        In-process :class:`zk_client.memory.InMemoryEnsemble` session.
    KAZOO
        Live ensemble through the optional kazoo library.
    """

    MEMORY = "memory"
    KAZOO = "kazoo"


def _normalize_backend(backend: str | DriverBackend) -> DriverBackend:
    """
    Normalize backend name into :class:`DriverBackend` enum value.
    """
    if isinstance(backend, DriverBackend):
        return backend
    lowered = str(backend).strip().lower()
    try:
        return DriverBackend(lowered)
    except ValueError as exc:
        valid = ", ".join(item.value for item in DriverBackend)
        raise BackendConfigurationError(
            f"Unknown backend {backend!r}. Supported values: {valid}."
        ) from exc


def available_backends() -> tuple[str, ...]:
    """
    Return backend names available in the current environment.

    The kazoo backend appears only when kazoo is installed.
    """
    backends = [DriverBackend.MEMORY.value]
    try:
        __import__("kazoo")
    except Exception:  # noqa: BLE001 - optional dependency probing
        pass
    else:
        backends.append(DriverBackend.KAZOO.value)
    return tuple(backends)


def create_driver(backend: str | DriverBackend = DriverBackend.MEMORY, **backend_options: Any) -> "CoordinationDriver":
    """
    Create a driver instance from a short backend name.

    Parameters
    ----------
    backend:
        Backend selector string (``"memory"`` or ``"kazoo"``).
    backend_options:
        Backend-specific options.

        Memory options:
            ``ensemble`` (an existing :class:`InMemoryEnsemble` to join;
            a fresh one is created otherwise).

        Kazoo options:
            ``hosts`` (str), ``timeout`` (float), ``kazoo_client`` (a started
            ``KazooClient``) and any further ``KazooClient`` keyword argument.
    """
    selected = _normalize_backend(backend)
    if selected is DriverBackend.MEMORY:
        ensemble = backend_options.pop("ensemble", None)
        if backend_options:
            unknown = ", ".join(sorted(str(key) for key in backend_options))
            raise BackendConfigurationError(
                f"Unknown memory backend options: {unknown}."
            )
        if ensemble is None:
            ensemble = InMemoryEnsemble()
        return ensemble.connect()
    if selected is DriverBackend.KAZOO:
        try:
            from .kazoo_driver import KazooDriver
        except ImportError as exc:
            raise BackendNotAvailableError(
                "Kazoo backend requires optional package 'kazoo' "
                "(pip install \"zk-client[kazoo]\")."
            ) from exc

        kazoo_client = backend_options.pop("kazoo_client", None)
        if kazoo_client is not None:
            if backend_options:
                unknown = ", ".join(sorted(str(key) for key in backend_options))
                raise BackendConfigurationError(
                    f"Options cannot be combined with kazoo_client: {unknown}."
                )
            return KazooDriver(kazoo_client)
        return KazooDriver.connect(**backend_options)
    raise BackendConfigurationError(f"Unhandled backend: {selected!r}")


def create_client(
    config: "ClientConfig | None" = None,
    *,
    backend: str | DriverBackend = DriverBackend.MEMORY,
    **backend_options: Any,
) -> "CoordinationClient":
    """
    Build :class:`CoordinationClient` using named backend in one step.

    This helper avoids explicit driver wiring code:

    ``zk = create_client(backend="kazoo", hosts="10.0.0.5:2181")``
    """
    from .client import CoordinationClient

    driver = create_driver(backend=backend, **backend_options)
    return CoordinationClient(driver, config=config)
