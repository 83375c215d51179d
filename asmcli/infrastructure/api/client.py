"""Apple School Manager API client.

Hydrates Device records from three dependent calls (device detail,
assigned MDM server, AppleCare coverage), memoizing devices by serial and
MDM servers by id, and lists a server's devices through pagination.
"""

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from asmcli.domain.exceptions import APIError
from asmcli.domain.interfaces.cache import EntityCache
from asmcli.domain.models.common import AccessToken
from asmcli.domain.models.device import Coverage, Device, MDMServer
from asmcli.infrastructure.api.pagination import PAGINATION_BATCH_SIZE, PaginationWalker
from asmcli.infrastructure.auth.authenticator import Authenticator
from asmcli.infrastructure.cache.entity_cache import InMemoryEntityCache
from asmcli.infrastructure.http_client_factory import DEFAULT_TIMEOUT_SECONDS, create_http_client
from asmcli.infrastructure.resilience.api_retry import ApiRetryService
from asmcli.infrastructure.resilience.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

API_BASE_URL = "https://api-school.apple.com/v1"


def parse_api_date(value: Optional[str]) -> Optional[date]:
    """Parses an ISO-8601 date-time (e.g. 2026-04-17T00:00:00Z) to a calendar date."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00")).date()


class AppleSchoolManagerClient:
    """Client for the Apple School Manager device inventory API."""

    def __init__(
        self,
        key_id: str,
        client_id: str,
        private_key_path: Union[str, Path],
        rate_limit: bool = True,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: Optional[httpx.Client] = None,
        cache: Optional[EntityCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        executor: Optional[ApiRetryService] = None,
        base_url: str = API_BASE_URL,
    ):
        """Initializes the client and wires its collaborators.

        Args:
            key_id: API key identifier.
            client_id: API client identifier.
            private_key_path: Path to the PEM-encoded EC private key.
            rate_limit: Space requests one second apart. Disable for tests.
            timeout_seconds: Per-request timeout for the owned HTTP client.
            http_client: Optional pre-built httpx client; if given, the
                caller keeps ownership of it.
            cache: Optional entity cache; a fresh in-memory one by default.
            rate_limiter: Optional pacer, overriding rate_limit.
            executor: Optional pre-built retrying executor.
            base_url: Resource API root.
        """
        self._owns_http_client = http_client is None
        self.http_client = http_client or create_http_client(timeout_seconds)
        self.cache = cache or InMemoryEntityCache()
        self.base_url = base_url.rstrip("/")

        self.authenticator = Authenticator(
            key_id=key_id,
            client_id=client_id,
            private_key_path=private_key_path,
            http_client=self.http_client,
        )
        self.rate_limiter = rate_limiter or RateLimiter(enabled=rate_limit)
        self.executor = executor or ApiRetryService(
            http_client=self.http_client,
            rate_limiter=self.rate_limiter,
            token_provider=lambda: self.authenticator.access_token,
        )
        logger.debug(f"AppleSchoolManagerClient created for client_id={client_id}")

    # --- Lifecycle ---

    def close(self) -> None:
        if self._owns_http_client:
            self.http_client.close()

    def __enter__(self) -> "AppleSchoolManagerClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # --- Cache introspection ---

    @property
    def devices(self):
        """Cached devices keyed by serial number."""
        return self.cache.devices

    @property
    def mdm_servers(self):
        """Cached MDM servers keyed by id."""
        return self.cache.mdm_servers

    # --- Authentication ---

    def authenticate(self) -> AccessToken:
        return self.authenticator.authenticate()

    def ensure_authenticated(self) -> AccessToken:
        return self.authenticator.ensure_authenticated()

    # --- Fetching ---

    def fetch_device(self, serial_number: str) -> Optional[Device]:
        """Returns the fully hydrated device, or None if it is unknown.

        A cached device is returned without any network call. Unknown
        serials are not cached.

        Raises:
            APIError: On any non-200/non-404 response from the three calls.
        """
        cached = self.cache.get_device(serial_number)
        if cached is not None:
            return cached

        self.ensure_authenticated()

        response = self.executor.get(self._url(f"orgDevices/{serial_number}"))
        if response.status_code == 404:
            logger.info(f"Device not found: {serial_number}")
            return None
        if response.status_code != 200:
            raise APIError(f"Failed to fetch device: {response.text}")

        device_data = response.json().get("data")
        if not device_data:
            logger.info(f"Device not found (empty payload): {serial_number}")
            return None

        mdm_server = self.fetch_assigned_server(serial_number)
        coverages = self.fetch_coverages(serial_number)

        attrs = device_data.get("attributes") or {}
        device = Device(
            serial_number=device_data.get("id") or serial_number,
            model_identifier=attrs.get("productType"),
            marketing_name=attrs.get("deviceModel"),
            assigned_mdm_server=mdm_server,
            coverages=coverages,
            product_family=attrs.get("productFamily"),
            product_type=attrs.get("productType"),
            status=attrs.get("status"),
            capacity=attrs.get("deviceCapacity"),
            color=attrs.get("color"),
        )
        return self.cache.store_device(serial_number, device)

    def fetch_assigned_server(self, serial_number: str) -> Optional[MDMServer]:
        """Returns the MDM server a device is assigned to, or None if unassigned.

        The same MDMServer instance is returned for every device on a server.
        """
        self.ensure_authenticated()

        response = self.executor.get(self._url(f"orgDevices/{serial_number}/assignedServer"))
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise APIError(f"Failed to fetch assigned server: {response.text}")

        server_data = response.json().get("data")
        if not server_data:
            return None

        server_id = server_data["id"]
        name = (server_data.get("attributes") or {}).get("serverName")
        return self.cache.get_or_create_server(server_id, lambda: MDMServer(id=server_id, name=name))

    def fetch_coverages(self, serial_number: str) -> List[Coverage]:
        """Returns every AppleCare coverage of a device, active or not."""
        self.ensure_authenticated()

        response = self.executor.get(self._url(f"orgDevices/{serial_number}/appleCareCoverage"))
        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise APIError(f"Failed to fetch warranty coverage: {response.text}")

        return [self._build_coverage(item) for item in response.json().get("data") or []]

    def fetch_devices_for_server(self, mdm_server_id: str) -> List[Dict[str, Any]]:
        """Lists the raw device entries assigned to an MDM server, across all pages.

        Entries are not hydrated into Device records.
        """
        walker = PaginationWalker(self.executor, before_first_request=self.ensure_authenticated)
        url = self._url(f"mdmServers/{mdm_server_id}/relationships/devices?limit={PAGINATION_BATCH_SIZE}")
        return walker.walk(url, description="devices")

    # --- Helpers ---

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path}"

    @staticmethod
    def _build_coverage(item: Dict[str, Any]) -> Coverage:
        attrs = item.get("attributes") or {}
        return Coverage(
            id=item.get("id"),
            description=attrs.get("description"),
            status=attrs.get("status"),
            start_date=parse_api_date(attrs.get("startDateTime")),
            end_date=parse_api_date(attrs.get("endDateTime")),
            agreement_number=attrs.get("agreementNumber"),
            is_renewable=attrs.get("isRenewable"),
            is_canceled=attrs.get("isCanceled"),
            payment_type=attrs.get("paymentType"),
            contract_cancel_date_time=attrs.get("contractCancelDateTime"),
        )
