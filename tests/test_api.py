import pytest
from fastapi.testclient import TestClient

from rcos_alpaca.api.app import create_app
from rcos_alpaca.api.error_mapper import (
    ERROR_INVALID_OPERATION,
    ERROR_INVALID_VALUE,
    ERROR_NOT_CONNECTED,
    ERROR_NOT_IMPLEMENTED,
)
from rcos_alpaca.config.models import AppConfig
from rcos_alpaca.devices.hub import DeviceHub


@pytest.fixture
def hub(client):
    hub = DeviceHub(client)
    yield hub
    hub.disconnect()


@pytest.fixture
def api(hub):
    return TestClient(create_app(AppConfig(), hub))


@pytest.fixture
def connected(api, hub, sim, sync):
    resp = api.put("/api/v1/focuser/0/connected", data={"Connected": "true"})
    assert resp.json()["ErrorNumber"] == 0
    sync(hub.tcc, sim)
    return api


def _value(response):
    assert response.status_code == 200
    payload = response.json()
    assert payload["ErrorNumber"] == 0, payload["ErrorMessage"]
    return payload["Value"]


def _error(response):
    assert response.status_code == 200
    return response.json()["ErrorNumber"]


def test_management_lists_every_device(api):
    assert api.get("/management/apiversions").json() == {"Value": [1]}

    devices = api.get("/management/v1/configureddevices").json()["Value"]
    assert [(d["DeviceType"], d["DeviceNumber"]) for d in devices] == [
        ("Focuser", 0), ("Rotator", 0), ("Switch", 0), ("Switch", 1),
    ]


def test_transaction_ids(api):
    resp = api.get("/api/v1/focuser/0/name", params={"ClientTransactionID": 42})
    first = resp.json()
    assert first["ClientTransactionID"] == 42
    second = api.get("/api/v1/focuser/0/name").json()
    assert second["ServerTransactionID"] > first["ServerTransactionID"]


def test_device_calls_before_connect(api):
    assert _value(api.get("/api/v1/focuser/0/connected")) is False
    assert _error(api.get("/api/v1/focuser/0/position")) == ERROR_NOT_CONNECTED
    assert _error(api.put("/api/v1/switch/0/setswitch", data={"Id": 0, "State": "true"})) == ERROR_NOT_CONNECTED
    assert _value(api.get("/api/v1/rotator/0/ismoving")) is False


def test_static_focuser_properties(api):
    assert _value(api.get("/api/v1/focuser/0/absolute")) is True
    assert _value(api.get("/api/v1/focuser/0/maxstep")) == 40000
    assert _value(api.get("/api/v1/focuser/0/stepsize")) == 0.5625
    assert _value(api.get("/api/v1/focuser/0/interfaceversion")) == 3
    assert _value(api.get("/api/v1/focuser/0/supportedactions")) == []
    assert "RCOS" in _value(api.get("/api/v1/focuser/0/driverinfo"))


def test_connect_is_shared_by_all_devices(connected):
    assert _value(connected.get("/api/v1/focuser/0/connected")) is True
    assert _value(connected.get("/api/v1/rotator/0/connected")) is True
    assert _value(connected.get("/api/v1/switch/1/connected")) is True

    _value(connected.put("/api/v1/switch/0/connected", data={"Connected": "false"}))
    assert _value(connected.get("/api/v1/focuser/0/connected")) is False


def test_focuser_move(connected, sim):
    assert _value(connected.get("/api/v1/focuser/0/position")) == 20000

    _value(connected.put("/api/v1/focuser/0/move", data={"Position": 20300}))
    assert sim.writes[-2:] == ["m+300 ", "Q "]

    assert _error(connected.put("/api/v1/focuser/0/move", data={"Position": 50000})) == ERROR_INVALID_VALUE

    _value(connected.put("/api/v1/focuser/0/halt"))
    assert sim.writes[-2:] == ["s ", "Q "]


def test_focuser_tempcomp(connected, sim):
    _value(connected.put("/api/v1/focuser/0/tempcomp", data={"TempComp": "true"}))
    assert sim.writes[-1] == "+1 "
    assert _value(connected.get("/api/v1/focuser/0/tempcomp")) is True


def test_rotator_endpoints(connected, sim):
    _value(connected.put("/api/v1/rotator/0/move", data={"Position": 1.5}))
    assert sim.writes[-2:] == ["r+300 ", "R "]
    assert _value(connected.get("/api/v1/rotator/0/targetposition")) == pytest.approx(1.5)

    assert _error(connected.put("/api/v1/rotator/0/moveabsolute", data={"Position": 400})) == ERROR_INVALID_VALUE
    assert _error(connected.put("/api/v1/rotator/0/sync", data={"Position": 10})) == ERROR_NOT_IMPLEMENTED
    assert _value(connected.get("/api/v1/rotator/0/stepsize")) == 0.005


def test_fan_switch_endpoints(connected, sim):
    assert _value(connected.get("/api/v1/switch/0/maxswitch")) == 3
    assert _value(connected.get("/api/v1/switch/0/getswitchname", params={"Id": 0})) == "Fan Auto"

    _value(connected.put("/api/v1/switch/0/setswitch", data={"Id": 0, "State": "true"}))
    assert sim.writes[-1] == "n1 "
    assert _value(connected.get("/api/v1/switch/0/getswitch", params={"Id": 0})) is True

    _value(connected.put("/api/v1/switch/0/setswitchvalue", data={"Id": 2, "Value": 0.4}))
    assert sim.writes[-1] == "y40 "

    assert _error(connected.get("/api/v1/switch/0/getswitch", params={"Id": 2})) == ERROR_INVALID_OPERATION
    assert _error(connected.get("/api/v1/switch/0/getswitchname", params={"Id": 7})) == ERROR_INVALID_VALUE
    assert _error(
        connected.put("/api/v1/switch/0/setswitchvalue", data={"Id": 2, "Value": 1.5})
    ) == ERROR_INVALID_VALUE
    writes = len(sim.writes)
    assert _error(
        connected.put("/api/v1/switch/0/setswitchvalue", data={"Id": 2, "Value": "nan"})
    ) == ERROR_INVALID_VALUE
    assert len(sim.writes) == writes


def test_dew_switch_endpoints(connected, sim):
    assert _value(connected.get("/api/v1/switch/1/maxswitch")) == 6

    _value(connected.put("/api/v1/switch/1/setswitchvalue", data={"Id": 4, "Value": 0.3}))
    assert sim.writes[-1] == "c30 "
    assert _value(connected.get("/api/v1/switch/1/getswitchvalue", params={"Id": 4})) == pytest.approx(0.3)

    _value(connected.put("/api/v1/switch/1/setswitchvalue", data={"Id": 3, "Value": 0.75}))
    assert sim.writes[-1] == "P50 "


def test_tcc_diagnostics(connected, hub, sim):
    status = connected.get("/api/v1/tcc/status").json()
    assert status["connection_state"] == "open"
    assert status["port"] == "SIMULATOR"

    snapshot = _value(connected.get("/api/v1/tcc/snapshot"))
    assert snapshot["focuser"]["actual_position_steps"] == 20000
    assert snapshot["focuser"]["is_moving"] is False
    assert snapshot["firmware_version"] == "4.12"

    temperatures = _value(connected.get("/api/v1/tcc/temperatures"))
    assert temperatures[0]["name"] == "Ambient"
    assert temperatures[0]["celsius"] == pytest.approx(10.0)

    tokens = _value(connected.get("/api/v1/tcc/rawtokens", params={"limit": 1000}))
    assert any(t["key"] == "a" and t["value"] == "20000" for t in tokens)

    messages = _value(connected.get("/api/v1/tcc/messages"))
    assert messages["stats"]["tx_count"] >= 4

    _value(connected.put("/api/v1/tcc/ping"))
    assert sim.writes[-1] == "! "

    _value(connected.put("/api/v1/tcc/fan/gain", data={"Gain": 2.5}))
    assert sim.writes[-1] == "g25 "
    assert _error(connected.put("/api/v1/tcc/fan/deadband", data={"Deadband": 11})) == ERROR_INVALID_VALUE

    _value(connected.put("/api/v1/tcc/focuser/home"))
    assert sim.writes[-2:] == ["h ", "Q "]
