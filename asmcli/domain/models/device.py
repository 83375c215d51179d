"""Inventory records returned by the Apple School Manager API.

Plain mutable dataclasses. The only behavior lives in derived read-only
properties (warranty expiry, macOS support).
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Union

from asmcli.domain import compatibility

ACTIVE_STATUS = "ACTIVE"


@dataclass
class MDMServer:
    """An MDM server a device can be assigned to."""
    id: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class Coverage:
    """A point-in-time snapshot of one AppleCare / warranty agreement."""
    id: Optional[str] = None
    description: Optional[str] = None  # e.g. "Limited Warranty", "AppleCare+"
    status: Optional[str] = None       # e.g. "ACTIVE", "EXPIRED"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    agreement_number: Optional[str] = None
    is_renewable: Optional[bool] = None
    is_canceled: Optional[bool] = None
    payment_type: Optional[str] = None  # e.g. "NONE", "SUBSCRIPTION"
    contract_cancel_date_time: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE_STATUS


@dataclass(eq=False)
class Device:
    """A device known to Apple School Manager, keyed by serial number.

    ``assigned_mdm_server`` is held by reference; two devices on the same
    server share one MDMServer instance.
    """
    serial_number: str
    model_identifier: Optional[str] = None  # e.g. MacBookPro15,2
    marketing_name: Optional[str] = None    # e.g. MacBook Pro (13-inch, 2018)
    assigned_mdm_server: Optional[MDMServer] = None
    coverages: List[Coverage] = field(default_factory=list)
    product_family: Optional[str] = None    # e.g. Mac
    product_type: Optional[str] = None
    status: Optional[str] = None            # e.g. ASSIGNED
    capacity: Optional[str] = None          # e.g. 256GB
    color: Optional[str] = None

    @property
    def warranty_expires_on(self) -> Optional[date]:
        """Latest end date among active coverages, or None if none are active."""
        end_dates = [c.end_date for c in self.coverages if c.is_active and c.end_date is not None]
        return max(end_dates) if end_dates else None

    @property
    def supported_macos_versions(self) -> List[int]:
        return compatibility.supported_versions(self.model_identifier)

    @property
    def latest_macos(self) -> Optional[int]:
        return compatibility.latest_supported(self.model_identifier)

    def supports_macos(self, version: Union[int, str]) -> bool:
        """Checks support for a macOS version given as a number or a name."""
        return compatibility.supports(self.model_identifier, version)
