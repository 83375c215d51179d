import csv
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO

from rich.box import HEAVY, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from asmcli.domain.interfaces.user_interface import UserInterface
from asmcli.domain.models.device import Device

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Serial Number",
    "Found",
    "Product Family",
    "Device Model",
    "Model Identifier",
    "Status",
    "Capacity",
    "Color",
    "macOS Support",
    "MDM Server",
    "Warranty Expires",
]


def format_macos_support(device: Device, none_label: str) -> str:
    versions = device.supported_macos_versions
    return ", ".join(str(v) for v in versions) if versions else none_label


def format_mdm_server(device: Device) -> str:
    if device.assigned_mdm_server is None:
        return "Unassigned"
    return device.assigned_mdm_server.display_name


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output.

    Results go to stdout; errors and info panels go to stderr so they never
    mix with redirected output.
    """

    def __init__(self, console: Optional[Console] = None, error_console: Optional[Console] = None):
        """Initializes the rich consoles."""
        self._console = console or Console(highlight=False)
        self._error_console = error_console or Console(stderr=True)

    @property
    def console(self) -> Console:
        """Get the Rich console instance used for results."""
        return self._console

    @property
    def error_console(self) -> Console:
        return self._error_console

    def _line(self, text: str) -> None:
        # Device names contain brackets; never interpret them as markup
        self.console.print(text, markup=False, highlight=False)

    def display_device(self, serial_number: str, device: Optional[Device]) -> None:
        """Prints one lookup result as an indented text block.

        Args:
            serial_number: The serial number that was looked up.
            device: The hydrated device, or None if not found.
        """
        if device is None:
            self._line(f"{serial_number}: NOT FOUND")
            self._line("")
            return

        self._line(f"{device.serial_number}: FOUND")
        self._line(f"  Product Family: {device.product_family or 'N/A'}")
        self._line(f"  Device Model: {device.marketing_name or 'N/A'}")
        self._line(f"  Model Identifier: {device.model_identifier or 'N/A'}")
        self._line(f"  Status: {device.status or 'N/A'}")
        if device.capacity:
            self._line(f"  Capacity: {device.capacity}")
        if device.color:
            self._line(f"  Color: {device.color}")
        self._line(f"  macOS Support: {format_macos_support(device, 'None (older model)')}")
        self._line(f"  MDM Server: {format_mdm_server(device)}")
        if device.warranty_expires_on:
            self._line(f"  Warranty Expires: {device.warranty_expires_on.isoformat()}")
        self._line("")

    def display_server_devices(self, mdm_server_id: str, entries: List[Dict[str, Any]]) -> None:
        self._line(f"{mdm_server_id}: {len(entries)} device(s)")
        for entry in entries:
            self._line(f"  {entry.get('id')}")

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.error_console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message.

        Args:
            info_message: The informational message to display.
        """
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.error_console.print(panel)


class CsvDisplay(ConsoleDisplay):
    """Writes lookup results as CSV rows; errors still use the rich stderr console."""

    def __init__(self, stream: Optional[TextIO] = None, error_console: Optional[Console] = None):
        super().__init__(error_console=error_console)
        self._stream = stream
        self._header_written = False

    @property
    def stream(self) -> TextIO:
        # Resolved late so CliRunner's captured stdout is picked up
        return self._stream or sys.stdout

    def _writerow(self, row: List[Any]) -> None:
        csv.writer(self.stream, lineterminator="\n").writerow(row)
        self.stream.flush()

    def begin_lookup(self) -> None:
        if not self._header_written:
            self._writerow(CSV_HEADER)
            self._header_written = True

    def display_device(self, serial_number: str, device: Optional[Device]) -> None:
        if device is None:
            self._writerow([serial_number, "NO"] + [""] * (len(CSV_HEADER) - 2))
            return

        warranty = device.warranty_expires_on
        self._writerow([
            device.serial_number,
            "YES",
            device.product_family or "",
            device.marketing_name or "",
            device.model_identifier or "",
            device.status or "",
            device.capacity or "",
            device.color or "",
            format_macos_support(device, "None"),
            format_mdm_server(device),
            warranty.isoformat() if warranty else "",
        ])

    def display_server_devices(self, mdm_server_id: str, entries: List[Dict[str, Any]]) -> None:
        self._writerow(["Device ID", "Type", "MDM Server"])
        for entry in entries:
            self._writerow([entry.get("id", ""), entry.get("type", ""), mdm_server_id])
