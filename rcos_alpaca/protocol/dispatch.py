"""
Key -> state dispatch for TCC telemetry.

One handler per key. Handlers parse the value, scale it to the field's
device unit, clamp it to the field's range and store it. A value that does
not parse leaves the field as it was.

Scales on the wire:
    t1 t2 t3 t7     hundredths of a degree F
    fg ft st        tenths
    rs rt           rotator steps, 200 per degree
"""

import logging
from typing import Callable, Dict, Iterable, Optional

from rcos_alpaca.protocol.logger import RawTokenLog
from rcos_alpaca.protocol.tokenizer import ACK, TokenEvent
from rcos_alpaca.tcc.state import DeviceState
from rcos_alpaca.tcc.units import ROTATOR_STEPS_PER_DEGREE


logger = logging.getLogger(__name__)


PERCENT_RANGE = (0, 100)
GAIN_RANGE = (0.1, 10.0)
DEADBAND_RANGE = (0.0, 10.0)
SETPOINT_RANGE = (-10.0, 10.0)


class MalformedValueError(ValueError):
    """Telemetry value that does not parse; never leaves the dispatcher."""
    pass


def parse_int(value: str) -> int:
    """Parse an optionally signed decimal integer."""
    try:
        return int(value.strip())
    except (AttributeError, ValueError):
        raise MalformedValueError(f"Not an integer: {value!r}")


def parse_scaled(value: str, divisor: int) -> float:
    """Parse a fixed-point value sent as an integer count of 1/divisor units."""
    return parse_int(value) / divisor


def clamp(value, bounds):
    low, high = bounds
    return max(low, min(high, value))


def parse_flag(value: str) -> bool:
    return value == "1"


Handler = Callable[[DeviceState, Optional[str]], None]


def _set_focuser_set_position(state: DeviceState, value: str) -> None:
    state.focuser.set_position_steps = parse_int(value)


def _set_focuser_actual_position(state: DeviceState, value: str) -> None:
    # is_moving is derived from set/actual, so it follows this write
    state.focuser.actual_position_steps = parse_int(value)


def _set_focuser_homed(state: DeviceState, value: str) -> None:
    state.focuser.homed = parse_flag(value)


def _set_temp_comp_mode(state: DeviceState, value: str) -> None:
    state.focuser.temp_comp_mode = parse_int(value)


def _temperature(attr: str) -> Handler:
    def handler(state: DeviceState, value: str) -> None:
        setattr(state.temperature, attr, parse_scaled(value, 100))
    handler.__name__ = f"_set_{attr}"
    return handler


def _set_fan_mode(state: DeviceState, value: str) -> None:
    state.fan.mode = parse_int(value)


def _set_fan_speed(state: DeviceState, value: str) -> None:
    state.fan.speed_percent = clamp(parse_int(value), PERCENT_RANGE)


def _set_fan_gain(state: DeviceState, value: str) -> None:
    state.fan.gain = clamp(parse_scaled(value, 10), GAIN_RANGE)


def _set_fan_deadband(state: DeviceState, value: str) -> None:
    state.fan.deadband = clamp(parse_scaled(value, 10), DEADBAND_RANGE)


def _set_heater_mode(state: DeviceState, value: str) -> None:
    state.secondary_heater.mode = parse_int(value)


def _set_heater_power(state: DeviceState, value: str) -> None:
    state.secondary_heater.power_percent = clamp(parse_int(value), PERCENT_RANGE)


def _set_heater_setpoint(state: DeviceState, value: str) -> None:
    state.secondary_heater.setpoint_c = clamp(parse_scaled(value, 10), SETPOINT_RANGE)


def _set_dew1_power(state: DeviceState, value: str) -> None:
    state.dew.dew1_power_percent = clamp(parse_int(value), PERCENT_RANGE)


def _set_dew2_power(state: DeviceState, value: str) -> None:
    state.dew.dew2_power_percent = clamp(parse_int(value), PERCENT_RANGE)


def _set_firmware_version(state: DeviceState, value: str) -> None:
    state.firmware_version = value


def _set_rotator_set_position(state: DeviceState, value: str) -> None:
    state.rotator.set_position_deg = parse_scaled(value, ROTATOR_STEPS_PER_DEGREE)


def _set_rotator_actual_position(state: DeviceState, value: str) -> None:
    state.rotator.actual_position_deg = parse_scaled(value, ROTATOR_STEPS_PER_DEGREE)


def _set_rotator_homed(state: DeviceState, value: str) -> None:
    state.rotator.homed = parse_flag(value)


def _set_ping_ok(state: DeviceState, value: Optional[str]) -> None:
    state.last_ping_ok = True


HANDLERS: Dict[str, Handler] = {
    # Focuser
    "s": _set_focuser_set_position,
    "a": _set_focuser_actual_position,
    "h": _set_focuser_homed,
    "tc": _set_temp_comp_mode,
    # Temperatures
    "t1": _temperature("ambient_f"),
    "t2": _temperature("primary_f"),
    "t3": _temperature("secondary_f"),
    "t7": _temperature("electronics_f"),
    # Fan
    "fm": _set_fan_mode,
    "fs": _set_fan_speed,
    "fg": _set_fan_gain,
    "ft": _set_fan_deadband,
    # Secondary heater
    "sm": _set_heater_mode,
    "ss": _set_heater_power,
    "st": _set_heater_setpoint,
    # Dew channels
    "d1": _set_dew1_power,
    "d2": _set_dew2_power,
    # Rotator
    "rs": _set_rotator_set_position,
    "rt": _set_rotator_actual_position,
    "rh": _set_rotator_homed,
    # Liveness
    "vr": _set_firmware_version,
    ACK: _set_ping_ok,
}


class DispatchTable:
    """
    Applies tokenizer events to a DeviceState.

    Every event is recorded in the raw token log. Events for unknown keys
    go nowhere else.
    """

    def __init__(self, state: DeviceState, raw_log: RawTokenLog):
        self._state = state
        self._raw_log = raw_log
        self._handlers = dict(HANDLERS)

    @property
    def keys(self):
        return self._handlers.keys()

    def dispatch(self, key: str, value: Optional[str]) -> bool:
        """
        Apply one event.

        Returns:
            True if a handler ran and the value was accepted.
        """
        self._raw_log.append(key, value)

        handler = self._handlers.get(key)
        if handler is None:
            logger.debug(f"Unrecognized key :{key} = {value!r}")
            return False

        try:
            handler(self._state, value)
        except MalformedValueError as e:
            logger.debug(f"Ignoring :{key}: {e}")
            return False
        return True

    def dispatch_all(self, events: Iterable[TokenEvent]) -> int:
        """
        Apply a batch of events as one unit with respect to snapshot().

        Returns:
            Number of events that changed state.
        """
        applied = 0
        with self._state.lock:
            for event in events:
                if self.dispatch(event.key, event.value):
                    applied += 1
        return applied
