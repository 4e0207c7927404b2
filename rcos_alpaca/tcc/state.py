"""
Device state store.

Every field holds device-internal units (steps, degrees, Fahrenheit, percent)
and is written by exactly one background dispatcher plus the optimistic
updates made when a command is issued. Single fields can be read without
locking. Reading several fields without ``snapshot()`` may mix values from
different telemetry frames.
"""

import copy
import threading
from dataclasses import dataclass, field
from enum import IntEnum


# A focuser within this many steps of its set point is considered stopped
FOCUSER_MOVING_TOLERANCE = 5


class FanMode(IntEnum):
    MANUAL = 0
    AUTO = 1
    OFF = 2


class HeaterMode(IntEnum):
    MANUAL = 0
    AUTO = 1
    OFF = 2


class TempCompMode(IntEnum):
    OFF = 0
    AUTO = 1
    MANUAL = 2


@dataclass
class FocuserState:
    set_position_steps: int = 0
    actual_position_steps: int = 0
    homed: bool = False
    temp_comp_mode: int = TempCompMode.OFF

    @property
    def is_moving(self) -> bool:
        return abs(self.set_position_steps - self.actual_position_steps) > FOCUSER_MOVING_TOLERANCE


@dataclass
class RotatorState:
    set_position_deg: float = 0.0
    actual_position_deg: float = 0.0
    homed: bool = False

    @property
    def is_moving(self) -> bool:
        return self.set_position_deg != self.actual_position_deg


@dataclass
class TemperatureState:
    """Temperatures in degrees Fahrenheit, as reported by the TCC."""
    ambient_f: float = 0.0
    primary_f: float = 0.0
    secondary_f: float = 0.0
    electronics_f: float = 0.0


@dataclass
class FanState:
    mode: int = FanMode.MANUAL
    speed_percent: int = 0
    gain: float = 1.0
    deadband: float = 0.0


@dataclass
class SecondaryHeaterState:
    mode: int = HeaterMode.MANUAL
    power_percent: int = 0
    setpoint_c: float = 0.0


@dataclass
class DewState:
    dew1_power_percent: int = 0
    dew2_power_percent: int = 0


@dataclass
class DeviceState:
    """All telemetry known about the TCC."""

    focuser: FocuserState = field(default_factory=FocuserState)
    rotator: RotatorState = field(default_factory=RotatorState)
    temperature: TemperatureState = field(default_factory=TemperatureState)
    fan: FanState = field(default_factory=FanState)
    secondary_heater: SecondaryHeaterState = field(default_factory=SecondaryHeaterState)
    dew: DewState = field(default_factory=DewState)
    last_ping_ok: bool = False
    firmware_version: str = ""

    # Held while one received chunk is dispatched and while an optimistic
    # update is applied, so snapshot() never sees half of either.
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def snapshot(self) -> "DeviceState":
        """
        Return a consistent copy of every field.

        The copy has its own lock and is not updated by later telemetry.
        """
        with self.lock:
            copied = DeviceState(
                focuser=copy.copy(self.focuser),
                rotator=copy.copy(self.rotator),
                temperature=copy.copy(self.temperature),
                fan=copy.copy(self.fan),
                secondary_heater=copy.copy(self.secondary_heater),
                dew=copy.copy(self.dew),
                last_ping_ok=self.last_ping_ok,
                firmware_version=self.firmware_version,
            )
        return copied
