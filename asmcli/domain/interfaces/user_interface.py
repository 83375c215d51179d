"""Interface for presenting lookup results to the user.

Defines the contract for displaying devices, misses, errors and info,
allowing different output implementations (rich console text, CSV).
"""

import abc
from typing import Any, Dict, List, Optional

from asmcli.domain.models.device import Device


class UserInterface(abc.ABC):
    """Abstract Base Class for user-facing output."""

    @abc.abstractmethod
    def display_device(self, serial_number: str, device: Optional[Device]) -> None:
        """Displays one lookup result.

        Args:
            serial_number: The serial number that was looked up.
            device: The hydrated device, or None if it was not found.
        """
        pass

    @abc.abstractmethod
    def display_server_devices(self, mdm_server_id: str, entries: List[Dict[str, Any]]) -> None:
        """Displays the raw device listing of an MDM server.

        Args:
            mdm_server_id: The server whose devices were listed.
            entries: Raw listing entries, in page order.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user."""
        pass

    def begin_lookup(self) -> None:
        """Called once before the first result of a lookup batch.

        Output formats with a header (CSV) print it here.
        """
        pass
