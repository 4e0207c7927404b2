import math

import pytest

from rcos_alpaca.config.models import CommandConfig
from rcos_alpaca.protocol.encoder import CommandEncoder, encode_signed_steps, encode_tenths
from rcos_alpaca.tcc.state import DeviceState, FanMode, HeaterMode, TempCompMode
from rcos_alpaca.utils.exceptions import InvalidValueError, NotConnectedError


@pytest.fixture
def state():
    return DeviceState()


@pytest.fixture
def writes():
    return []


@pytest.fixture
def encoder(writes, state):
    return CommandEncoder(writes.append, state, focuser_max_step=40000)


def test_tenths_rendering():
    assert encode_tenths("P", 5.0) == "P50 "
    assert encode_tenths("P", -2.5) == "P-25 "
    assert encode_tenths("g", 0.1) == "g1 "


def test_signed_step_rendering():
    assert encode_signed_steps("m{sign}{steps} ", 120) == "m+120 "
    assert encode_signed_steps("m{sign}{steps} ", -120) == "m-120 "
    assert encode_signed_steps("m{sign}{steps} ", 0) == "m+0 "


def test_ping_clears_flag_before_sending(encoder, writes, state):
    state.last_ping_ok = True
    encoder.ping()
    assert writes == ["! "]
    assert state.last_ping_ok is False


def test_status_queries(encoder, writes):
    encoder.query_focuser()
    encoder.query_rotator()
    encoder.query_temperature()
    assert writes == ["Q ", "R ", "T "]


def test_setpoint_is_sent_in_tenths_and_applied(encoder, writes, state):
    encoder.set_secondary_heater_setpoint_c(5.0)
    assert writes == ["P50 "]
    assert state.secondary_heater.setpoint_c == 5.0


@pytest.mark.parametrize("call,args", [
    ("set_fan_speed_percent", (150,)),
    ("set_fan_speed_percent", (-1,)),
    ("set_fan_speed_percent", (40.5,)),
    ("set_fan_gain", (0.05,)),
    ("set_fan_gain", (True,)),
    ("set_fan_deadband", (10.5,)),
    ("set_secondary_heater_setpoint_c", (10.1,)),
    ("set_secondary_heater_setpoint_c", (math.nan,)),
    ("set_secondary_heater_power_percent", ("50",)),
    ("set_dew1_power_percent", (101,)),
    ("set_dew2_power_percent", (math.inf,)),
    ("set_fan_mode", (3,)),
    ("set_secondary_heater_mode", (-1,)),
    ("set_temp_comp", (5,)),
    ("move_focuser_absolute", (40001,)),
    ("move_focuser_absolute", (-1,)),
    ("move_focuser_absolute", (100.5,)),
    ("move_focuser_relative", (40001,)),
    ("move_rotator_absolute_deg", (360.5,)),
    ("move_rotator_absolute_deg", (-0.1,)),
    ("move_rotator_relative_deg", (361,)),
])
def test_invalid_arguments_write_nothing_and_keep_state(encoder, writes, state, call, args):
    before = state.snapshot()
    with pytest.raises(InvalidValueError):
        getattr(encoder, call)(*args)
    assert writes == []
    assert state.snapshot() == before


def test_invalid_value_error_is_a_value_error(encoder):
    with pytest.raises(ValueError):
        encoder.set_fan_speed_percent(150)


def test_fan_speed_sets_manual_mode(encoder, writes, state):
    state.fan.mode = FanMode.AUTO
    encoder.set_fan_speed_percent(40)
    assert writes == ["y40 "]
    assert state.fan.speed_percent == 40
    assert state.fan.mode == FanMode.MANUAL


def test_fan_modes(encoder, writes, state):
    state.fan.speed_percent = 60

    encoder.set_fan_mode(FanMode.AUTO)
    assert writes == ["n1 "]
    assert state.fan.mode == FanMode.AUTO

    encoder.set_fan_mode(FanMode.OFF)
    assert writes == ["n1 ", "n2 "]
    assert state.fan.mode == FanMode.OFF
    assert state.fan.speed_percent == 0

    # Manual has no command of its own
    encoder.set_fan_mode(FanMode.MANUAL)
    assert writes == ["n1 ", "n2 "]
    assert state.fan.mode == FanMode.MANUAL


def test_fan_gain_and_deadband(encoder, writes, state):
    encoder.set_fan_gain(2.5)
    encoder.set_fan_deadband(1.2)
    assert writes == ["g25 ", "O12 "]
    assert state.fan.gain == 2.5
    assert state.fan.deadband == 1.2


def test_heater_modes(encoder, writes, state):
    state.secondary_heater.power_percent = 35

    encoder.set_secondary_heater_mode(HeaterMode.MANUAL)
    encoder.set_secondary_heater_mode(HeaterMode.AUTO)
    encoder.set_secondary_heater_mode(HeaterMode.OFF)

    assert writes == ["s35 ", "w1 ", "w2 "]
    assert state.secondary_heater.mode == HeaterMode.OFF
    assert state.secondary_heater.power_percent == 0


def test_heater_power_sets_manual_mode(encoder, writes, state):
    state.secondary_heater.mode = HeaterMode.AUTO
    encoder.set_secondary_heater_power_percent(80)
    assert writes == ["s80 "]
    assert state.secondary_heater.mode == HeaterMode.MANUAL
    assert state.secondary_heater.power_percent == 80


def test_dew_channels(encoder, writes, state):
    encoder.set_dew1_power_percent(30)
    encoder.set_dew2_power_percent(70)
    assert writes == ["c30 ", "k70 "]
    assert state.dew.dew1_power_percent == 30
    assert state.dew.dew2_power_percent == 70


def test_temp_comp(encoder, writes, state):
    encoder.set_temp_comp(TempCompMode.AUTO)
    encoder.set_temp_comp(TempCompMode.OFF)
    assert writes == ["+1 ", "+0 "]
    assert state.focuser.temp_comp_mode == TempCompMode.OFF


def test_relative_focuser_move_is_followed_by_status_request(encoder, writes, state):
    state.focuser.actual_position_steps = 1000
    encoder.move_focuser_relative(-120)
    assert writes == ["m-120 ", "Q "]
    assert state.focuser.set_position_steps == 880
    assert state.focuser.is_moving is True


def test_absolute_focuser_move_without_template_sends_delta(encoder, writes, state):
    state.focuser.actual_position_steps = 1000
    encoder.move_focuser_absolute(1500)
    assert writes == ["m+500 ", "Q "]
    assert state.focuser.set_position_steps == 1500


def test_custom_motion_templates(writes, state):
    commands = CommandConfig(
        focuser_move_absolute="M{steps} ",
        focuser_stop="X ",
        rotator_move_absolute="A{steps} ",
    )
    encoder = CommandEncoder(writes.append, state, commands)

    encoder.move_focuser_absolute(1500)
    encoder.stop_focuser()
    encoder.move_rotator_absolute_deg(90.0)

    assert writes == ["M1500 ", "Q ", "X ", "Q ", "A18000 ", "R "]
    assert state.rotator.set_position_deg == 90.0


def test_stop_focuser_collapses_target(encoder, writes, state):
    state.focuser.actual_position_steps = 700
    state.focuser.set_position_steps = 2000
    encoder.stop_focuser()
    assert writes == ["s ", "Q "]
    assert state.focuser.set_position_steps == 700
    assert state.focuser.is_moving is False


def test_home_commands(encoder, writes):
    encoder.home_focuser()
    encoder.home_rotator()
    assert writes == ["h ", "Q ", "r ", "R "]


def test_rotator_relative_move_in_steps(encoder, writes, state):
    state.rotator.actual_position_deg = 10.0
    encoder.move_rotator_relative_deg(1.5)
    assert writes == ["r+300 ", "R "]
    assert state.rotator.set_position_deg == pytest.approx(11.5)
    assert state.rotator.is_moving is True


def test_rotator_absolute_move_without_template_sends_delta(encoder, writes, state):
    state.rotator.actual_position_deg = 45.0
    encoder.move_rotator_absolute_deg(90.0)
    assert writes == ["r+9000 ", "R "]
    assert state.rotator.set_position_deg == pytest.approx(90.0)


def test_failed_write_leaves_state_alone(state):
    def broken_write(text):
        raise NotConnectedError("closed")

    encoder = CommandEncoder(broken_write, state)
    state.focuser.actual_position_steps = 100
    state.focuser.set_position_steps = 100

    with pytest.raises(NotConnectedError):
        encoder.move_focuser_relative(50)
    with pytest.raises(NotConnectedError):
        encoder.set_dew1_power_percent(10)

    assert state.focuser.set_position_steps == 100
    assert state.dew.dew1_power_percent == 0
