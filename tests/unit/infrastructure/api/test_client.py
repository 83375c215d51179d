import pytest
from datetime import date

from asmcli.domain.exceptions import APIError
from asmcli.domain.models.device import Device
from asmcli.infrastructure.api.client import AppleSchoolManagerClient, parse_api_date

from conftest import TEST_ACCESS_TOKEN, FakeAppleSchoolManagerApi, coverage_entry


def test_fetch_device_hydrates_record(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.add_device(
        "SERIAL123",
        server={"id": "MDM001", "name": "Test MDM Server"},
        coverages=[coverage_entry("ACTIVE", "2026-04-17T00:00:00Z")],
    )

    device = client.fetch_device("SERIAL123")

    assert isinstance(device, Device)
    assert device.serial_number == "SERIAL123"
    assert device.model_identifier == "MacBookPro15,2"
    assert device.marketing_name == "MacBook Pro (13-inch, 2018)"
    assert device.product_family == "Mac"
    assert device.status == "ASSIGNED"
    assert device.capacity == "256GB"
    assert device.color == "Space Gray"
    assert device.assigned_mdm_server.id == "MDM001"
    assert device.assigned_mdm_server.name == "Test MDM Server"
    assert device.warranty_expires_on == date(2026, 4, 17)
    # device, server, coverage in that order
    assert [r.url.path for r in fake_api.resource_requests] == [
        "/v1/orgDevices/SERIAL123",
        "/v1/orgDevices/SERIAL123/assignedServer",
        "/v1/orgDevices/SERIAL123/appleCareCoverage",
    ]


def test_second_fetch_is_served_from_cache(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.add_device("SERIAL123")

    first = client.fetch_device("SERIAL123")
    requests_after_first = len(fake_api.requests)
    second = client.fetch_device("SERIAL123")

    assert second is first
    assert len(fake_api.requests) == requests_after_first
    assert client.devices["SERIAL123"] is first


def test_devices_sharing_a_server_share_one_instance(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    server = {"id": "MDM001", "name": "Shared Server"}
    fake_api.add_device("SERIAL1", server=server)
    fake_api.add_device("SERIAL2", server=server)

    device1 = client.fetch_device("SERIAL1")
    device2 = client.fetch_device("SERIAL2")

    assert device1.assigned_mdm_server is device2.assigned_mdm_server
    assert list(client.mdm_servers) == ["MDM001"]
    assert client.mdm_servers["MDM001"] is device1.assigned_mdm_server


def test_unknown_device_returns_none_and_is_not_cached(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/NOTFOUND", status_code=404, text='{"errors": []}')

    assert client.fetch_device("NOTFOUND") is None
    assert "NOTFOUND" not in client.devices
    # no follow-up calls for a missing device
    assert len(fake_api.resource_requests) == 1


def test_empty_device_payload_is_treated_as_not_found(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/EMPTY", json={"data": None})

    assert client.fetch_device("EMPTY") is None
    assert "EMPTY" not in client.devices


def test_device_server_error_raises_api_error_with_body(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/BROKEN", status_code=500, text="Internal Server Error")

    with pytest.raises(APIError, match="Internal Server Error"):
        client.fetch_device("BROKEN")
    assert "BROKEN" not in client.devices


def test_assigned_server_error_propagates_from_fetch_device(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.add_device("SERIAL123")
    fake_api.replace("GET", "https://api-school.apple.com/v1/orgDevices/SERIAL123/assignedServer",
                     status_code=503, text="Service Unavailable")

    with pytest.raises(APIError, match="Failed to fetch assigned server: Service Unavailable"):
        client.fetch_device("SERIAL123")
    assert "SERIAL123" not in client.devices


def test_fetch_assigned_server_404_returns_none(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/SERIAL123/assignedServer", status_code=404, text="Not Found")

    assert client.fetch_assigned_server("SERIAL123") is None
    assert len(client.mdm_servers) == 0


def test_fetch_assigned_server_reuses_cached_instance(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/SERIAL123/assignedServer", json={
        "data": {"id": "MDM001", "attributes": {"serverName": "First Name"}}
    })

    first = client.fetch_assigned_server("SERIAL123")
    second = client.fetch_assigned_server("SERIAL123")

    assert first is second
    assert first.name == "First Name"


def test_fetch_coverages_404_returns_empty_list(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/SERIAL123/appleCareCoverage", status_code=404, text="Not Found")

    assert client.fetch_coverages("SERIAL123") == []


def test_fetch_coverages_error_raises_api_error(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/SERIAL123/appleCareCoverage", status_code=500, text="boom")

    with pytest.raises(APIError, match="Failed to fetch warranty coverage: boom"):
        client.fetch_coverages("SERIAL123")


def test_fetch_coverages_keeps_every_entry_and_parses_dates(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.resource("orgDevices/SERIAL123/appleCareCoverage", json={"data": [
        coverage_entry("ACTIVE", "2025-02-02T00:00:00Z", coverage_id="a"),
        coverage_entry("EXPIRED", "2024-01-01T00:00:00Z", coverage_id="b"),
        coverage_entry("EXPIRED", "2024-01-01T00:00:00Z", coverage_id="b"),
    ]})

    coverages = client.fetch_coverages("SERIAL123")

    assert [c.id for c in coverages] == ["a", "b", "b"]
    assert coverages[0].status == "ACTIVE"
    assert coverages[0].start_date == date(2023, 1, 1)
    assert coverages[0].end_date == date(2025, 2, 2)
    assert coverages[1].is_active is False
    assert coverages[0].payment_type == "NONE"


def test_authenticates_lazily_once(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    fake_api.add_device("SERIAL1")
    fake_api.add_device("SERIAL2")

    client.fetch_device("SERIAL1")
    client.fetch_device("SERIAL2")

    assert len(fake_api.token_requests) == 1
    for request in fake_api.resource_requests:
        assert request.headers["Authorization"] == f"Bearer {TEST_ACCESS_TOKEN}"


def test_cache_hit_does_not_authenticate(client: AppleSchoolManagerClient, fake_api: FakeAppleSchoolManagerApi):
    cached = Device(serial_number="CACHED1")
    client.cache.store_device("CACHED1", cached)

    assert client.fetch_device("CACHED1") is cached
    assert fake_api.requests == []


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-04-17T00:00:00Z", date(2026, 4, 17)),
        ("2025-02-02T23:59:59.000+00:00", date(2025, 2, 2)),
        ("2024-12-31", date(2024, 12, 31)),
        (None, None),
        ("", None),
    ]
)
def test_parse_api_date(value, expected):
    assert parse_api_date(value) == expected
