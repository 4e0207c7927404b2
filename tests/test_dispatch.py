import pytest

from rcos_alpaca.protocol.dispatch import DispatchTable
from rcos_alpaca.protocol.logger import RawTokenLog
from rcos_alpaca.protocol.tokenizer import ACK, TokenEvent
from rcos_alpaca.tcc.state import DeviceState


@pytest.fixture
def state():
    return DeviceState()


@pytest.fixture
def raw_log():
    return RawTokenLog()


@pytest.fixture
def table(state, raw_log):
    return DispatchTable(state, raw_log)


def test_temperatures_are_hundredths_of_a_degree(table, state):
    table.dispatch("t1", "1234")
    table.dispatch("t2", "-50")
    table.dispatch("t3", "6800")
    table.dispatch("t7", "9999")

    assert state.temperature.ambient_f == pytest.approx(12.34)
    assert state.temperature.primary_f == pytest.approx(-0.5)
    assert state.temperature.secondary_f == pytest.approx(68.0)
    assert state.temperature.electronics_f == pytest.approx(99.99)


def test_tenths_scaled_fields(table, state):
    table.dispatch("fg", "25")
    table.dispatch("ft", "12")
    table.dispatch("st", "-35")

    assert state.fan.gain == pytest.approx(2.5)
    assert state.fan.deadband == pytest.approx(1.2)
    assert state.secondary_heater.setpoint_c == pytest.approx(-3.5)


@pytest.mark.parametrize("key,value,attr,expected", [
    ("fs", "150", ("fan", "speed_percent"), 100),
    ("fs", "-5", ("fan", "speed_percent"), 0),
    ("ss", "101", ("secondary_heater", "power_percent"), 100),
    ("d1", "250", ("dew", "dew1_power_percent"), 100),
    ("d2", "-1", ("dew", "dew2_power_percent"), 0),
    ("fg", "0", ("fan", "gain"), 0.1),
    ("fg", "500", ("fan", "gain"), 10.0),
    ("ft", "-10", ("fan", "deadband"), 0.0),
    ("st", "150", ("secondary_heater", "setpoint_c"), 10.0),
    ("st", "-150", ("secondary_heater", "setpoint_c"), -10.0),
])
def test_values_are_clamped_to_field_range(table, state, key, value, attr, expected):
    table.dispatch(key, value)
    group, field = attr
    assert getattr(getattr(state, group), field) == pytest.approx(expected)


def test_unparseable_value_keeps_previous(table, state):
    table.dispatch("d1", "30")
    assert table.dispatch("d1", "abc") is False
    assert table.dispatch("d1", "") is False
    assert state.dew.dew1_power_percent == 30


def test_focuser_positions_and_motion_tolerance(table, state):
    table.dispatch("s", "1000")
    table.dispatch("a", "995")
    assert state.focuser.is_moving is False

    table.dispatch("a", "994")
    assert state.focuser.is_moving is True

    table.dispatch("a", "1005")
    assert state.focuser.is_moving is False


def test_rotator_steps_to_degrees_and_any_difference_is_motion(table, state):
    table.dispatch("rs", "200")
    table.dispatch("rt", "200")
    assert state.rotator.set_position_deg == pytest.approx(1.0)
    assert state.rotator.is_moving is False

    table.dispatch("rt", "201")
    assert state.rotator.actual_position_deg == pytest.approx(1.005)
    assert state.rotator.is_moving is True


def test_homed_flags(table, state):
    table.dispatch("h", "1")
    table.dispatch("rh", "1")
    assert state.focuser.homed is True
    assert state.rotator.homed is True

    table.dispatch("h", "0")
    assert state.focuser.homed is False


def test_modes_firmware_and_ack(table, state):
    table.dispatch("fm", "1")
    table.dispatch("sm", "2")
    table.dispatch("tc", "1")
    table.dispatch("vr", "4.12")
    table.dispatch(ACK, None)

    assert state.fan.mode == 1
    assert state.secondary_heater.mode == 2
    assert state.focuser.temp_comp_mode == 1
    assert state.firmware_version == "4.12"
    assert state.last_ping_ok is True


def test_unknown_key_only_reaches_raw_log(table, state, raw_log):
    before = state.snapshot()

    assert table.dispatch("zz", "17") is False

    assert state.snapshot() == before
    entries = raw_log.entries()
    assert [(e.key, e.value) for e in entries] == [("zz", "17")]


def test_every_event_is_logged(table, raw_log):
    table.dispatch_all([TokenEvent("a", "1"), TokenEvent("d1", "bad"), TokenEvent("qq", "2")])
    assert [e.key for e in raw_log.entries()] == ["a", "d1", "qq"]


def test_dispatch_all_counts_applied_events(table, state):
    applied = table.dispatch_all([
        TokenEvent("s", "10"),
        TokenEvent("a", "nope"),
        TokenEvent("xx", "1"),
        TokenEvent("d2", "40"),
    ])
    assert applied == 2
    assert state.focuser.set_position_steps == 10
    assert state.dew.dew2_power_percent == 40


def test_raw_log_is_bounded():
    log = RawTokenLog(max_tokens=3)
    for i in range(5):
        log.append("a", str(i))
    assert [e.value for e in log.entries()] == ["2", "3", "4"]
    assert [e.value for e in log.entries(limit=1)] == ["4"]
    assert len(log) == 3
