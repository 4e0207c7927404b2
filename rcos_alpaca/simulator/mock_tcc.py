"""
Mock TCC transport for the simulator and tests.

Behaves like a TCC on the other end of a serial line: every write is parsed
as TCC commands and answered with telemetry frames, which the client's
reader then picks up through read(). Tests can also inject raw chunks to
exercise framing directly.
"""

import logging
import re
import threading
import time
from typing import List, Optional

from rcos_alpaca.config.models import SimulatorConfig
from rcos_alpaca.protocol.interface import TransportInterface
from rcos_alpaca.utils.exceptions import NotConnectedError, TransportIOError


logger = logging.getLogger(__name__)


_RELATIVE_MOVE = re.compile(r"^([mr])([+-])(\d+)$")
_VERB_VALUE = re.compile(r"^([ygOPsckn+w])(-?\d+)$")


class MockTccTransport(TransportInterface):
    """
    In-memory transport with a simulated TCC behind it.

    Attributes:
        writes: Every command string written, in order.
        wire: Every byte written, in the order it hit the "wire".
    """

    PORT_NAME = "SIMULATOR"

    # Steps the simulated motors advance per status request
    FOCUSER_STEPS_PER_QUERY = 500
    ROTATOR_STEPS_PER_QUERY = 1000

    def __init__(
        self,
        config: Optional[SimulatorConfig] = None,
        read_timeout: float = 0.05,
        respond: bool = True,
        byte_delay: float = 0.0,
    ):
        """
        Initialize simulator.

        Args:
            config: Simulator configuration (initial device state).
            read_timeout: How long read() waits for data before returning b"".
            respond: If False, writes are recorded but never answered.
            byte_delay: Pause between bytes of a write (exposes interleaving).
        """
        self.config = config or SimulatorConfig()
        self._read_timeout = read_timeout
        self._respond = respond
        self._byte_delay = byte_delay

        self._open = False
        self._write_lock = threading.Lock()
        self._rx = bytearray()
        self._rx_ready = threading.Condition()
        self._read_error: Optional[Exception] = None

        self.writes: List[str] = []
        self.wire = bytearray()
        self.open_count = 0
        self.fail_open: Optional[Exception] = None

        # Virtual hardware state (device units)
        self.focuser_set = self.config.focuser_position
        self.focuser_actual = self.config.focuser_position
        self.focuser_homed = False
        self.temp_comp = 0
        self.rotator_set = int(round(self.config.rotator_position_deg * 200))
        self.rotator_actual = self.rotator_set
        self.rotator_homed = False
        self.ambient_f = self.config.ambient_temperature_f
        self.fan_mode = 0
        self.fan_speed = 0
        self.fan_gain_x10 = 10
        self.fan_deadband_x10 = 0
        self.heater_mode = 0
        self.heater_power = 0
        self.heater_setpoint_x10 = 0
        self.dew1 = 0
        self.dew2 = 0

    # ----- TransportInterface -----

    @property
    def port_name(self) -> str:
        return self.PORT_NAME

    def open(self) -> None:
        if self.fail_open is not None:
            raise self.fail_open
        self._open = True
        self._read_error = None
        self.open_count += 1
        logger.info("Simulator connected (firmware version: %s)", self.config.firmware_version)

    def close(self) -> None:
        if not self._open:
            return
        self._open = False
        with self._rx_ready:
            self._rx.clear()
            self._rx_ready.notify_all()
        logger.info("Simulator disconnected")

    def is_open(self) -> bool:
        return self._open

    def read(self, max_bytes: int = 4096) -> bytes:
        if self._read_error is not None:
            raise self._read_error
        if not self._open:
            raise NotConnectedError("Simulator not connected")

        with self._rx_ready:
            if not self._rx:
                self._rx_ready.wait(self._read_timeout)
            chunk = bytes(self._rx[:max_bytes])
            del self._rx[:len(chunk)]
        return chunk

    def write(self, text: str) -> None:
        with self._write_lock:
            if not self._open:
                raise NotConnectedError("Simulator not connected")

            data = text.encode("ascii")
            for b in data:
                self.wire.append(b)
                if self._byte_delay:
                    time.sleep(self._byte_delay)
            self.writes.append(text)

            logger.debug("[SIMULATOR] RX: %r", text)
            if self._respond:
                for command in text.split(" "):
                    if command:
                        self._handle_command(command)

    # ----- Test hooks -----

    def inject(self, data: bytes) -> None:
        """Queue raw bytes as if the TCC had sent them."""
        with self._rx_ready:
            self._rx.extend(data)
            self._rx_ready.notify_all()

    def lose_connection(self) -> None:
        """Make every following read fail as if the cable was pulled."""
        self._read_error = NotConnectedError("Simulated port loss")

    def fail_next_reads(self, message: str = "Simulated read error") -> None:
        """Make reads fail with a transient error until clear_read_error()."""
        self._read_error = TransportIOError(message)

    def clear_read_error(self) -> None:
        self._read_error = None

    # ----- Simulated TCC -----

    def _send(self, *pairs) -> None:
        frame = "".join(f":{key} {value} " for key, value in pairs)
        self.inject(frame.encode("ascii"))

    def _handle_command(self, command: str) -> None:
        if command == "!":
            self._send_ack()
        elif command == "Q":
            self._step_focuser()
            self._send(
                ("s", self.focuser_set),
                ("a", self.focuser_actual),
                ("h", int(self.focuser_homed)),
                ("tc", self.temp_comp),
                ("vr", self.config.firmware_version),
            )
        elif command == "R":
            self._step_rotator()
            self._send(
                ("rs", self.rotator_set),
                ("rt", self.rotator_actual),
                ("rh", int(self.rotator_homed)),
            )
        elif command == "T":
            self._send_temperature_frame()
        elif command == "s":
            self.focuser_set = self.focuser_actual
        elif command == "h":
            self.focuser_set = 0
            self.focuser_homed = True
        elif command == "r":
            self.rotator_set = 0
            self.rotator_homed = True
        else:
            self._handle_parameter_command(command)

    def _handle_parameter_command(self, command: str) -> None:
        move = _RELATIVE_MOVE.match(command)
        if move:
            axis, sign, steps = move.groups()
            delta = int(steps) if sign == "+" else -int(steps)
            if axis == "m":
                self.focuser_set = self.focuser_actual + delta
            else:
                self.rotator_set = self.rotator_actual + delta
            return

        match = _VERB_VALUE.match(command)
        if not match:
            logger.warning("[SIMULATOR] Unknown command: %s", command)
            return

        verb, value = match.group(1), int(match.group(2))
        if verb == "y":
            self.fan_mode, self.fan_speed = 0, value
        elif verb == "n":
            self.fan_mode = value
            if value == 2:
                self.fan_speed = 0
        elif verb == "g":
            self.fan_gain_x10 = value
        elif verb == "O":
            self.fan_deadband_x10 = value
        elif verb == "s":
            self.heater_mode, self.heater_power = 0, value
        elif verb == "w":
            self.heater_mode = value
            if value == 2:
                self.heater_power = 0
        elif verb == "P":
            self.heater_setpoint_x10 = value
        elif verb == "c":
            self.dew1 = value
        elif verb == "k":
            self.dew2 = value
        elif verb == "+":
            self.temp_comp = value

    def _send_ack(self) -> None:
        self.inject(b":! ")

    def _send_temperature_frame(self) -> None:
        ambient = int(round(self.ambient_f * 100))
        self._send(
            ("t1", ambient),
            ("t2", ambient + 150),
            ("t3", ambient + 75),
            ("t7", ambient + 1200),
            ("fm", self.fan_mode),
            ("fs", self.fan_speed),
            ("fg", self.fan_gain_x10),
            ("ft", self.fan_deadband_x10),
            ("sm", self.heater_mode),
            ("ss", self.heater_power),
            ("st", self.heater_setpoint_x10),
            ("d1", self.dew1),
            ("d2", self.dew2),
        )

    def _step_focuser(self) -> None:
        self.focuser_actual = _approach(self.focuser_actual, self.focuser_set, self.FOCUSER_STEPS_PER_QUERY)

    def _step_rotator(self) -> None:
        self.rotator_actual = _approach(self.rotator_actual, self.rotator_set, self.ROTATOR_STEPS_PER_QUERY)


def _approach(current: int, target: int, step: int) -> int:
    if abs(target - current) <= step:
        return target
    return current + step if target > current else current - step
