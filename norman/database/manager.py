"""Adapter registry and connection dispatch."""

import logging
from types import MappingProxyType
from typing import List, Mapping, Optional

from ..errors import (
    AdapterAlreadyConnectedError,
    ConnectionError,
    NoActiveConnectionError,
    NoCompatibleAdapterError,
)
from .base import DatabaseAdapter

logger = logging.getLogger(__name__)


class AdapterManager:
    """Picks an adapter for a connection string and owns the active connection.

    Adapters are tried in registration order. At most one adapter is connected
    at a time.
    """

    def __init__(self, adapters: List[DatabaseAdapter]):
        self._adapters = {}
        self._order: List[str] = []
        for adapter in adapters:
            signature = adapter.unique_signature
            if signature not in self._adapters:
                self._order.append(signature)
            self._adapters[signature] = adapter
        self._active: Optional[DatabaseAdapter] = None

    @property
    def adapters(self) -> Mapping[str, DatabaseAdapter]:
        """Registered adapters keyed by unique signature."""
        return MappingProxyType({sig: self._adapters[sig] for sig in self._order})

    def get_adapter(self, signature: str) -> Optional[DatabaseAdapter]:
        return self._adapters.get(signature)

    @property
    def active_adapter(self) -> Optional[DatabaseAdapter]:
        return self._active

    def connect(self, connection_string: str) -> DatabaseAdapter:
        """Connect the first registered adapter that accepts the connection string.

        Returns:
            The connected adapter

        Raises:
            AdapterAlreadyConnectedError: If an adapter is already connected
            NoCompatibleAdapterError: If no adapter accepts the string
            ConnectionError: If the chosen adapter fails to connect
        """
        if self._active is not None and self._active.is_connected():
            raise AdapterAlreadyConnectedError(self._active.unique_signature)

        adapter = self._find_compatible(connection_string)
        if adapter is None:
            raise NoCompatibleAdapterError(
                details={"adapters": list(self._order)},
            )

        signature = adapter.unique_signature
        logger.debug("Connecting with adapter %s", signature)
        try:
            adapter.connect(connection_string)
        except Exception as e:
            raise ConnectionError(
                f"Failed to connect using adapter {signature}: {e}",
                details={"adapter": signature},
            ) from e

        self._active = adapter
        return adapter

    def _find_compatible(self, connection_string: str) -> Optional[DatabaseAdapter]:
        for signature in self._order:
            adapter = self._adapters[signature]
            if adapter.is_compatible(connection_string):
                return adapter
        return None

    def close(self) -> None:
        """Close the active adapter's connection.

        Raises:
            NoActiveConnectionError: If no adapter is connected
            ConnectionError: If the adapter fails to close
        """
        if self._active is None or not self._active.is_connected():
            raise NoActiveConnectionError()

        adapter = self._active
        signature = adapter.unique_signature
        try:
            adapter.close()
        except Exception as e:
            raise ConnectionError(
                f"Failed to close connection for adapter {signature}: {e}",
                details={"adapter": signature},
            ) from e
        finally:
            self._active = None
