"""
Switch device adapters for the fan and the dew heaters.

Fan (switch 0):
    0  Fan Auto   (bool)   -> n1
    1  Fan Off    (bool)   -> n2
    2  Fan Speed  (0..1)   -> y{0..100}, forces manual mode

Dew (switch 1):
    0  Secondary Auto           (bool)  -> w1
    1  Secondary Off            (bool)  -> w2
    2  Secondary Manual Power   (0..1)  -> s{0..100}, forces manual mode
    3  Secondary Setpoint       (0..1 <-> -10..+10 C) -> P{tenths}
    4  Dew1 Power               (0..1)  -> c{0..100}
    5  Dew2 Power               (0..1)  -> k{0..100}

Clearing a boolean index returns the subsystem to manual mode.
"""

import math
from typing import List, NamedTuple

from rcos_alpaca.tcc.client import TccClient
from rcos_alpaca.tcc.state import FanMode, HeaterMode
from rcos_alpaca.tcc.units import (
    fraction_to_percent,
    fraction_to_setpoint,
    percent_to_fraction,
    setpoint_to_fraction,
)
from rcos_alpaca.utils.exceptions import (
    InvalidOperationError,
    InvalidValueError,
    NotConnectedError,
)


class SwitchInfo(NamedTuple):
    name: str
    description: str
    analog: bool


class SwitchDevice:
    """Common index bookkeeping for an Alpaca ISwitchV2 device."""

    NAME = ""
    DRIVER_ID = ""
    INTERFACE_VERSION = 2
    SWITCHES: List[SwitchInfo] = []

    def __init__(self, tcc: TccClient):
        self._tcc = tcc

    @property
    def max_switch(self) -> int:
        return len(self.SWITCHES)

    def _info(self, switch_id: int) -> SwitchInfo:
        if not 0 <= switch_id < len(self.SWITCHES):
            raise InvalidValueError(f"Switch index must be 0-{len(self.SWITCHES) - 1}, got {switch_id}")
        return self.SWITCHES[switch_id]

    def _require_connected(self) -> None:
        if not self._tcc.is_open:
            raise NotConnectedError(f"{self.NAME} not connected")

    def _require_boolean(self, switch_id: int) -> None:
        if self._info(switch_id).analog:
            raise InvalidOperationError(f"Switch {switch_id} is analog; use the value accessors")

    def _require_analog(self, switch_id: int) -> None:
        if not self._info(switch_id).analog:
            raise InvalidOperationError(f"Switch {switch_id} is boolean; use the state accessors")

    def get_switch_name(self, switch_id: int) -> str:
        return self._info(switch_id).name

    def get_switch_description(self, switch_id: int) -> str:
        return self._info(switch_id).description

    def can_write(self, switch_id: int) -> bool:
        self._info(switch_id)
        return True

    def min_switch_value(self, switch_id: int) -> float:
        self._info(switch_id)
        return 0.0

    def max_switch_value(self, switch_id: int) -> float:
        self._info(switch_id)
        return 1.0

    def switch_step(self, switch_id: int) -> float:
        return 0.01 if self._info(switch_id).analog else 1.0

    def _check_fraction(self, value: float) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise InvalidValueError(f"Switch value must be a finite number, got {value!r}")
        if value < 0.0 or value > 1.0:
            raise InvalidValueError(f"Switch value must be 0 to 1, got {value}")


class FanSwitch(SwitchDevice):
    """Primary mirror fans."""

    NAME = "RCOS TCC Fans"
    DRIVER_ID = "ASCOM.RCOS.Switch"
    SWITCHES = [
        SwitchInfo("Fan Auto", "Set fan controller to automatic mode", False),
        SwitchInfo("Fan Off", "Turn fans off", False),
        SwitchInfo("Fan Speed", "Manual fan speed (0..1) where 1 = 100%", True),
    ]

    def get_switch(self, switch_id: int) -> bool:
        self._require_boolean(switch_id)
        mode = self._tcc.state.fan.mode
        return mode == (FanMode.AUTO if switch_id == 0 else FanMode.OFF)

    def set_switch(self, switch_id: int, state: bool) -> None:
        self._require_boolean(switch_id)
        self._require_connected()
        if not state:
            self._tcc.set_fan_mode(FanMode.MANUAL)
        elif switch_id == 0:
            self._tcc.set_fan_mode(FanMode.AUTO)
        else:
            self._tcc.set_fan_mode(FanMode.OFF)

    def get_switch_value(self, switch_id: int) -> float:
        self._require_analog(switch_id)
        return percent_to_fraction(self._tcc.state.fan.speed_percent)

    def set_switch_value(self, switch_id: int, value: float) -> None:
        self._require_analog(switch_id)
        self._check_fraction(value)
        self._require_connected()
        self._tcc.set_fan_speed_percent(fraction_to_percent(value))


class DewSwitch(SwitchDevice):
    """Secondary heater and the two dew heater channels."""

    NAME = "RCOS TCC Dew Heaters"
    DRIVER_ID = "ASCOM.RCOS.Dew"
    SWITCHES = [
        SwitchInfo("Secondary Auto", "Secondary heater in automatic mode", False),
        SwitchInfo("Secondary Off", "Secondary heater off", False),
        SwitchInfo("Secondary Manual Power", "Secondary heater manual power (0..1)", True),
        SwitchInfo("Secondary Setpoint (-10..+10 C)", "Secondary heater setpoint, 0..1 maps to -10..+10 C", True),
        SwitchInfo("Dew1 Power", "Dew heater channel 1 power (0..1)", True),
        SwitchInfo("Dew2 Power", "Dew heater channel 2 power (0..1)", True),
    ]

    def get_switch(self, switch_id: int) -> bool:
        self._require_boolean(switch_id)
        mode = self._tcc.state.secondary_heater.mode
        return mode == (HeaterMode.AUTO if switch_id == 0 else HeaterMode.OFF)

    def set_switch(self, switch_id: int, state: bool) -> None:
        self._require_boolean(switch_id)
        self._require_connected()
        if not state:
            self._tcc.set_secondary_heater_mode(HeaterMode.MANUAL)
        elif switch_id == 0:
            self._tcc.set_secondary_heater_mode(HeaterMode.AUTO)
        else:
            self._tcc.set_secondary_heater_mode(HeaterMode.OFF)

    def get_switch_value(self, switch_id: int) -> float:
        self._require_analog(switch_id)
        state = self._tcc.state
        if switch_id == 2:
            return percent_to_fraction(state.secondary_heater.power_percent)
        if switch_id == 3:
            return setpoint_to_fraction(state.secondary_heater.setpoint_c)
        if switch_id == 4:
            return percent_to_fraction(state.dew.dew1_power_percent)
        return percent_to_fraction(state.dew.dew2_power_percent)

    def set_switch_value(self, switch_id: int, value: float) -> None:
        self._require_analog(switch_id)
        self._check_fraction(value)
        self._require_connected()
        if switch_id == 2:
            self._tcc.set_secondary_heater_power_percent(fraction_to_percent(value))
        elif switch_id == 3:
            self._tcc.set_secondary_heater_setpoint_c(fraction_to_setpoint(value))
        elif switch_id == 4:
            self._tcc.set_dew1_power_percent(fraction_to_percent(value))
        else:
            self._tcc.set_dew2_power_percent(fraction_to_percent(value))
