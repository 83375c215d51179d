"""Interface for the entity cache.

Defines the contract for memoizing devices by serial number and MDM
servers by id. The cache owns the canonical instance for each key.
"""

import abc
from typing import Callable, Mapping, Optional

from asmcli.domain.models.device import Device, MDMServer


class EntityCache(abc.ABC):
    """Abstract Base Class for device and MDM server memoization."""

    @property
    @abc.abstractmethod
    def devices(self) -> Mapping[str, Device]:
        """Read-only view of the serial -> Device map."""
        pass

    @property
    @abc.abstractmethod
    def mdm_servers(self) -> Mapping[str, MDMServer]:
        """Read-only view of the server id -> MDMServer map."""
        pass

    @abc.abstractmethod
    def get_device(self, serial_number: str) -> Optional[Device]:
        """Returns the cached device for a serial, or None on a miss."""
        pass

    @abc.abstractmethod
    def store_device(self, serial_number: str, device: Device) -> Device:
        """Stores a device under its serial and returns the canonical instance."""
        pass

    @abc.abstractmethod
    def get_or_create_server(self, server_id: str, factory: Callable[[], MDMServer]) -> MDMServer:
        """Returns the cached server for an id, building it with factory on a miss.

        factory is called at most once per id over the cache's lifetime.
        """
        pass

    @abc.abstractmethod
    def clear(self) -> None:
        """Drops every cached entity."""
        pass
