import pytest
from typer.testing import CliRunner
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from asmcli.infrastructure.api.client import API_BASE_URL, AppleSchoolManagerClient
from asmcli.infrastructure.auth.authenticator import TOKEN_URL
from asmcli.infrastructure.config import settings

TEST_KEY_ID = "test-key-id"
TEST_CLIENT_ID = "SCHOOLAPI.test-client-id"
TEST_ACCESS_TOKEN = "test-access-token"


class FakeClock:
    """Controllable monotonic clock whose sleep just advances time."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAppleSchoolManagerApi:
    """Request handler for httpx.MockTransport.

    Responses are queued per (method, url); the last queued response for a
    route is repeated once the others are used up.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self.requests: List[httpx.Request] = []
        self.add("POST", TOKEN_URL, json={"access_token": TEST_ACCESS_TOKEN, "token_type": "Bearer"})

    def add(self, method: str, url: str, status_code: int = 200,
            json: Optional[Any] = None, text: Optional[str] = None) -> "FakeAppleSchoolManagerApi":
        self.routes.setdefault((method, url), []).append(
            {"status_code": status_code, "json": json, "text": text}
        )
        return self

    def replace(self, method: str, url: str, **kwargs: Any) -> "FakeAppleSchoolManagerApi":
        self.routes.pop((method, url), None)
        return self.add(method, url, **kwargs)

    def resource(self, path: str, **kwargs: Any) -> "FakeAppleSchoolManagerApi":
        return self.add("GET", f"{API_BASE_URL}/{path}", **kwargs)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, str(request.url)))
        if not queue:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        spec = queue.pop(0) if len(queue) > 1 else queue[0]
        if spec["json"] is not None:
            return httpx.Response(spec["status_code"], json=spec["json"])
        return httpx.Response(spec["status_code"], text=spec["text"] or "")

    @property
    def token_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == TOKEN_URL]

    @property
    def resource_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) != TOKEN_URL]

    def add_device(self, serial: str, server: Optional[Dict[str, str]] = None,
                   coverages: Optional[List[Dict[str, Any]]] = None,
                   attributes: Optional[Dict[str, Any]] = None) -> "FakeAppleSchoolManagerApi":
        """Registers the three endpoints a device lookup touches."""
        attrs = {
            "deviceModel": "MacBook Pro (13-inch, 2018)",
            "productType": "MacBookPro15,2",
            "productFamily": "Mac",
            "status": "ASSIGNED",
            "deviceCapacity": "256GB",
            "color": "Space Gray",
        }
        attrs.update(attributes or {})
        self.resource(f"orgDevices/{serial}", json={
            "data": {"id": serial, "type": "orgDevices", "attributes": attrs}
        })
        if server is None:
            self.resource(f"orgDevices/{serial}/assignedServer", status_code=404, text="Not Found")
        else:
            self.resource(f"orgDevices/{serial}/assignedServer", json={
                "data": {"id": server["id"], "type": "mdmServers",
                         "attributes": {"serverName": server.get("name")}}
            })
        if coverages is None:
            self.resource(f"orgDevices/{serial}/appleCareCoverage", status_code=404, text="Not Found")
        else:
            self.resource(f"orgDevices/{serial}/appleCareCoverage", json={"data": coverages})
        return self


def coverage_entry(status: str, end: Optional[str], start: str = "2023-01-01T00:00:00Z",
                   coverage_id: str = "cov-1", description: str = "Limited Warranty") -> Dict[str, Any]:
    return {
        "id": coverage_id,
        "type": "appleCareCoverage",
        "attributes": {
            "description": description,
            "status": status,
            "startDateTime": start,
            "endDateTime": end,
            "agreementNumber": None,
            "isRenewable": False,
            "isCanceled": False,
            "paymentType": "NONE",
            "contractCancelDateTime": None,
        },
    }


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def private_key_path(tmp_path: Path) -> Path:
    """Writes a fresh P-256 private key to a PEM file."""
    key = ec.generate_private_key(ec.SECP256R1())
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    path = tmp_path / "asm_key.pem"
    path.write_bytes(pem)
    return path


@pytest.fixture
def fake_api() -> FakeAppleSchoolManagerApi:
    return FakeAppleSchoolManagerApi()


@pytest.fixture
def http_client(fake_api: FakeAppleSchoolManagerApi):
    client = httpx.Client(transport=httpx.MockTransport(fake_api))
    yield client
    client.close()


@pytest.fixture
def client(private_key_path: Path, http_client: httpx.Client) -> AppleSchoolManagerClient:
    """API client wired to the fake API with pacing disabled."""
    return AppleSchoolManagerClient(
        key_id=TEST_KEY_ID,
        client_id=TEST_CLIENT_ID,
        private_key_path=private_key_path,
        rate_limit=False,
        http_client=http_client,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Keeps tests independent of the developer's environment and config files."""
    for var in ("ASM_KEY_ID", "ASM_CLIENT_ID", "ASM_PRIVATE_KEY_PATH", "ASM_RATE_LIMIT",
                "API_TIMEOUT_SECONDS", "LOGGING_LEVEL", "LOGGING_FILE", "LOGGING_FORMAT"):
        # setenv first so anything load_dotenv writes is undone afterwards
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)
    settings.reset_config()
    yield
    settings.reset_config()
