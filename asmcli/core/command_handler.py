"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), validates their
arguments and delegates the work to the LookupService. Failures are shown
through the UserInterface and turned into a process exit code.
"""

import logging
from typing import List

import httpx

from asmcli.core.services.lookup_service import LookupService
from asmcli.domain.exceptions import AppleSchoolManagerError, CommandError
from asmcli.domain.interfaces.user_interface import UserInterface
from asmcli.domain.models.common import SerialNumber, ServerID

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1


class CommandHandler:
    """Handles incoming commands and delegates to the lookup service."""

    def __init__(self, lookup_service: LookupService, ui: UserInterface):
        self.lookup_service = lookup_service
        self.ui = ui

    def handle_lookup(self, serial_numbers: List[str]) -> int:
        """Handles the 'lookup' command. Returns the exit code."""
        logger.info(f"Handling 'lookup' command for {len(serial_numbers)} serial(s)")
        try:
            if not serial_numbers:
                raise CommandError("No serial numbers provided. Usage: asm lookup SERIAL1 [SERIAL2 ...] [--csv]")
            failures = self.lookup_service.lookup_devices([SerialNumber(s) for s in serial_numbers])
        except (AppleSchoolManagerError, httpx.HTTPError, OSError, ValueError) as e:
            # OSError/ValueError come from reading or parsing the private key, HTTPError from the transport
            logger.error(f"Lookup command failed: {e}", exc_info=True)
            self.ui.display_error(f"Lookup failed: {e}")
            return EXIT_FAILURE
        return EXIT_FAILURE if failures else EXIT_OK

    def handle_server_devices(self, mdm_server_id: str) -> int:
        """Handles the 'server-devices' command. Returns the exit code."""
        logger.info(f"Handling 'server-devices' command for server: {mdm_server_id}")
        try:
            self.lookup_service.list_server_devices(ServerID(mdm_server_id))
        except (AppleSchoolManagerError, httpx.HTTPError, OSError, ValueError) as e:
            logger.error(f"Server devices command failed: {e}", exc_info=True)
            self.ui.display_error(f"Listing devices failed: {e}")
            return EXIT_FAILURE
        return EXIT_OK
