"""Concrete in-memory implementation of the EntityCache.

Two unbounded maps (serial -> Device, server id -> MDMServer) that live
as long as the owning client. Entries are never evicted or invalidated.
"""

import logging
import threading
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional

from asmcli.domain.interfaces.cache import EntityCache
from asmcli.domain.models.device import Device, MDMServer

logger = logging.getLogger(__name__)


class InMemoryEntityCache(EntityCache):
    """Process-lifetime device and MDM server cache.

    Writes go through a lock so a threaded caller cannot construct two
    MDMServer instances for one id or lose a device write.
    """

    def __init__(self):
        self._devices: Dict[str, Device] = {}
        self._mdm_servers: Dict[str, MDMServer] = {}
        self._lock = threading.Lock()
        logger.debug("InMemoryEntityCache initialized.")

    @property
    def devices(self) -> Mapping[str, Device]:
        return MappingProxyType(self._devices)

    @property
    def mdm_servers(self) -> Mapping[str, MDMServer]:
        return MappingProxyType(self._mdm_servers)

    def get_device(self, serial_number: str) -> Optional[Device]:
        device = self._devices.get(serial_number)
        if device is not None:
            logger.debug(f"Device cache hit for serial: {serial_number}")
        return device

    def store_device(self, serial_number: str, device: Device) -> Device:
        with self._lock:
            # First writer wins; later fetches of the same serial resolve to it
            existing = self._devices.get(serial_number)
            if existing is not None:
                return existing
            self._devices[serial_number] = device
        logger.debug(f"Stored device in cache: serial={serial_number}")
        return device

    def get_or_create_server(self, server_id: str, factory: Callable[[], MDMServer]) -> MDMServer:
        with self._lock:
            server = self._mdm_servers.get(server_id)
            if server is not None:
                logger.debug(f"MDM server cache hit for id: {server_id}")
                return server
            server = factory()
            self._mdm_servers[server_id] = server
        logger.debug(f"Stored MDM server in cache: id={server_id}")
        return server

    def clear(self) -> None:
        with self._lock:
            self._devices.clear()
            self._mdm_servers.clear()
        logger.info("Cleared device and MDM server caches.")
