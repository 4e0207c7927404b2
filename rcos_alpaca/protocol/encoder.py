"""
Command encoding for the TCC protocol.

Every command is a verb, an optional argument and a trailing space.
Percentages are plain integers; setpoint, gain and deadband are tenths;
positions are signed step deltas.
"""

import logging
import math
from typing import Callable, Optional

from rcos_alpaca.config.models import CommandConfig
from rcos_alpaca.tcc.state import DeviceState, FanMode, HeaterMode, TempCompMode
from rcos_alpaca.tcc.units import degrees_to_steps, steps_to_degrees
from rcos_alpaca.utils.exceptions import InvalidValueError


logger = logging.getLogger(__name__)


PING = "! "
QUERY_FOCUSER = "Q "
QUERY_ROTATOR = "R "
QUERY_TEMPERATURE = "T "

FAN_AUTO = "n1 "
FAN_OFF = "n2 "
HEATER_AUTO = "w1 "
HEATER_OFF = "w2 "


def _check_number(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidValueError(f"{name} must be finite, got {value}")
    return value


def validate_range(name: str, value, low: float, high: float) -> float:
    """Raise InvalidValueError unless low <= value <= high."""
    _check_number(name, value)
    if value < low or value > high:
        raise InvalidValueError(f"{name} must be {low} to {high}, got {value}")
    return value


def validate_percent(name: str, value) -> int:
    """Percent arguments are whole numbers 0..100."""
    validate_range(name, value, 0, 100)
    if value != int(value):
        raise InvalidValueError(f"{name} must be a whole percent, got {value}")
    return int(value)


def validate_mode(name: str, value, enum_cls):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(f"{m.value}={m.name.lower()}" for m in enum_cls)
        raise InvalidValueError(f"{name} must be one of {valid}, got {value!r}") from None


def encode_percent(verb: str, percent: int) -> str:
    """
    Example:
        >>> encode_percent("y", 40)
        'y40 '
    """
    return f"{verb}{int(percent)} "


def encode_tenths(verb: str, value: float) -> str:
    """
    Encode a value as a signed count of tenths.

    Example:
        >>> encode_tenths("P", -2.5)
        'P-25 '
    """
    return f"{verb}{int(round(value * 10.0))} "


def encode_signed_steps(template: str, delta_steps: int) -> str:
    """
    Fill a relative move template.

    Example:
        >>> encode_signed_steps("m{sign}{steps} ", -120)
        'm-120 '
    """
    sign = "+" if delta_steps >= 0 else "-"
    return template.format(sign=sign, steps=abs(int(delta_steps)))


def encode_absolute_steps(template: str, steps: int) -> str:
    return template.format(steps=int(steps))


class CommandEncoder:
    """
    Validates, renders and sends commands, then updates state optimistically.

    Validation happens before anything is written. The optimistic update
    lets a caller read back its own intent straight away; the next
    telemetry frame for the same field replaces it.
    """

    def __init__(
        self,
        write: Callable[[str], None],
        state: DeviceState,
        commands: Optional[CommandConfig] = None,
        focuser_max_step: Optional[int] = None,
    ):
        """
        Args:
            write: Sends one complete command string (serialized by the transport).
            state: State store receiving optimistic updates.
            commands: Move/stop/home templates.
            focuser_max_step: Upper bound for absolute focuser moves, if any.
        """
        self._write = write
        self._state = state
        self._commands = commands or CommandConfig()
        self._focuser_max_step = focuser_max_step

    # ----- Liveness and status -----

    def ping(self) -> None:
        # Cleared before sending so a fast reply is never overwritten
        self._state.last_ping_ok = False
        self._write(PING)

    def query_focuser(self) -> None:
        self._write(QUERY_FOCUSER)

    def query_rotator(self) -> None:
        self._write(QUERY_ROTATOR)

    def query_temperature(self) -> None:
        self._write(QUERY_TEMPERATURE)

    # ----- Focuser -----

    def move_focuser_relative(self, delta_steps: int) -> None:
        delta_steps = self._whole_steps("delta_steps", delta_steps)
        if self._focuser_max_step is not None:
            validate_range("Focuser delta", delta_steps, -self._focuser_max_step, self._focuser_max_step)

        target = self._state.focuser.actual_position_steps + delta_steps
        self._write(encode_signed_steps(self._commands.focuser_move_relative, delta_steps))
        self._state.focuser.set_position_steps = target
        self._write(QUERY_FOCUSER)
        logger.info(f"Focuser move {delta_steps:+d} steps (target {target})")

    def move_focuser_absolute(self, position_steps: int) -> None:
        position_steps = self._whole_steps("position_steps", position_steps)
        if self._focuser_max_step is not None:
            validate_range("Focuser position", position_steps, 0, self._focuser_max_step)

        template = self._commands.focuser_move_absolute
        if template is None:
            self.move_focuser_relative(position_steps - self._state.focuser.actual_position_steps)
            return

        self._write(encode_absolute_steps(template, position_steps))
        self._state.focuser.set_position_steps = position_steps
        self._write(QUERY_FOCUSER)
        logger.info(f"Focuser move to {position_steps}")

    @staticmethod
    def _whole_steps(name: str, value) -> int:
        _check_number(name, value)
        if value != int(value):
            raise InvalidValueError(f"{name} must be a whole number of steps, got {value}")
        return int(value)

    def stop_focuser(self) -> None:
        self._write(self._commands.focuser_stop)
        focuser = self._state.focuser
        focuser.set_position_steps = focuser.actual_position_steps
        self._write(QUERY_FOCUSER)
        logger.info("Focuser stop")

    def home_focuser(self) -> None:
        self._write(self._commands.focuser_home)
        self._write(QUERY_FOCUSER)
        logger.info("Focuser home")

    def set_temp_comp(self, mode) -> None:
        mode = validate_mode("Temperature compensation mode", mode, TempCompMode)
        self._write(f"+{mode.value} ")
        self._state.focuser.temp_comp_mode = mode.value

    # ----- Rotator -----

    def move_rotator_relative_deg(self, delta_deg: float) -> None:
        validate_range("Rotator delta", delta_deg, -360.0, 360.0)
        delta_steps = degrees_to_steps(delta_deg)
        rotator = self._state.rotator
        target = rotator.actual_position_deg + steps_to_degrees(delta_steps)

        self._write(encode_signed_steps(self._commands.rotator_move_relative, delta_steps))
        rotator.set_position_deg = target
        self._write(QUERY_ROTATOR)
        logger.info(f"Rotator move {delta_deg:+.3f} deg ({delta_steps:+d} steps)")

    def move_rotator_absolute_deg(self, angle_deg: float) -> None:
        validate_range("Rotator angle", angle_deg, 0.0, 360.0)

        template = self._commands.rotator_move_absolute
        if template is None:
            target_steps = degrees_to_steps(angle_deg)
            current_steps = degrees_to_steps(self._state.rotator.actual_position_deg)
            self.move_rotator_relative_deg(steps_to_degrees(target_steps - current_steps))
            return

        self._write(encode_absolute_steps(template, degrees_to_steps(angle_deg)))
        self._state.rotator.set_position_deg = steps_to_degrees(degrees_to_steps(angle_deg))
        self._write(QUERY_ROTATOR)
        logger.info(f"Rotator move to {angle_deg:.3f} deg")

    def home_rotator(self) -> None:
        self._write(self._commands.rotator_home)
        self._write(QUERY_ROTATOR)
        logger.info("Rotator home")

    # ----- Fan -----

    def set_fan_mode(self, mode) -> None:
        mode = validate_mode("Fan mode", mode, FanMode)
        fan = self._state.fan
        if mode == FanMode.MANUAL:
            # Manual takes effect with the next speed command
            fan.mode = FanMode.MANUAL.value
        elif mode == FanMode.AUTO:
            self._write(FAN_AUTO)
            fan.mode = FanMode.AUTO.value
        else:
            self._write(FAN_OFF)
            with self._state.lock:
                fan.mode = FanMode.OFF.value
                fan.speed_percent = 0

    def set_fan_speed_percent(self, percent: int) -> None:
        percent = validate_percent("Fan speed", percent)
        self._write(encode_percent("y", percent))
        with self._state.lock:
            self._state.fan.speed_percent = percent
            self._state.fan.mode = FanMode.MANUAL.value

    def set_fan_gain(self, gain: float) -> None:
        validate_range("Fan gain", gain, 0.1, 10.0)
        self._write(encode_tenths("g", gain))
        self._state.fan.gain = float(gain)

    def set_fan_deadband(self, deadband: float) -> None:
        validate_range("Fan deadband", deadband, 0.0, 10.0)
        self._write(encode_tenths("O", deadband))
        self._state.fan.deadband = float(deadband)

    # ----- Secondary heater -----

    def set_secondary_heater_mode(self, mode) -> None:
        mode = validate_mode("Secondary heater mode", mode, HeaterMode)
        heater = self._state.secondary_heater
        if mode == HeaterMode.MANUAL:
            # Re-sending the current power selects manual mode
            self._write(encode_percent("s", max(0, min(100, heater.power_percent))))
            heater.mode = HeaterMode.MANUAL.value
        elif mode == HeaterMode.AUTO:
            self._write(HEATER_AUTO)
            heater.mode = HeaterMode.AUTO.value
        else:
            self._write(HEATER_OFF)
            with self._state.lock:
                heater.mode = HeaterMode.OFF.value
                heater.power_percent = 0

    def set_secondary_heater_power_percent(self, percent: int) -> None:
        percent = validate_percent("Secondary heater power", percent)
        self._write(encode_percent("s", percent))
        with self._state.lock:
            self._state.secondary_heater.power_percent = percent
            self._state.secondary_heater.mode = HeaterMode.MANUAL.value

    def set_secondary_heater_setpoint_c(self, setpoint_c: float) -> None:
        validate_range("Secondary heater setpoint", setpoint_c, -10.0, 10.0)
        self._write(encode_tenths("P", setpoint_c))
        self._state.secondary_heater.setpoint_c = float(setpoint_c)

    # ----- Dew channels -----

    def set_dew1_power_percent(self, percent: int) -> None:
        percent = validate_percent("Dew 1 power", percent)
        self._write(encode_percent("c", percent))
        self._state.dew.dew1_power_percent = percent

    def set_dew2_power_percent(self, percent: int) -> None:
        percent = validate_percent("Dew 2 power", percent)
        self._write(encode_percent("k", percent))
        self._state.dew.dew2_power_percent = percent
