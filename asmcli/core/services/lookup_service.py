"""Core service for device lookups and server device listings.

Drives the API client and hands each result to the UserInterface as soon
as it is available, so long batches show progress.
"""

import logging
from typing import List

from asmcli.domain.exceptions import APIError
from asmcli.domain.interfaces.user_interface import UserInterface
from asmcli.domain.models.common import SerialNumber, ServerID
from asmcli.infrastructure.api.client import AppleSchoolManagerClient

logger = logging.getLogger(__name__)


class LookupService:
    """Orchestrates the lookup and server listing use cases."""

    def __init__(self, client: AppleSchoolManagerClient, ui: UserInterface):
        self.client = client
        self.ui = ui

    def lookup_devices(self, serial_numbers: List[SerialNumber]) -> int:
        """Looks up each serial and displays the result immediately.

        Authenticates once up front. An unknown serial is displayed as not
        found; an APIError for one serial is displayed and the batch
        continues.

        Returns:
            The number of serials that failed with an APIError.
        """
        self.client.authenticate()
        self.ui.begin_lookup()

        failures = 0
        for serial in serial_numbers:
            try:
                device = self.client.fetch_device(serial)
            except APIError as e:
                failures += 1
                logger.error(f"Lookup failed for {serial}: {e}")
                self.ui.display_error(f"{serial}: {e}")
                continue
            self.ui.display_device(serial, device)

        logger.info(f"Looked up {len(serial_numbers)} serial(s), {failures} failed")
        return failures

    def list_server_devices(self, mdm_server_id: ServerID) -> int:
        """Lists the devices assigned to an MDM server. Returns the count."""
        entries = self.client.fetch_devices_for_server(mdm_server_id)
        self.ui.display_server_devices(mdm_server_id, entries)
        return len(entries)
