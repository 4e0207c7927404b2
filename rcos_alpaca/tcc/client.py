"""
TCC client facade (Layer 2 - lifecycle and public API).

Owns the transport and the background reader thread. The reader is the only
thread that reads from the transport; it tokenizes what arrives and
dispatches it into the DeviceState. Commands go out through the encoder on
the caller's thread, serialized by the transport's write lock.

Queries send a status request and then wait (bounded) for the reader's next
dispatch cycle before returning state, so the answer is usually but not
always fresh.
"""

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from rcos_alpaca.config.models import ClientConfig, CommandConfig, FocuserConfig
from rcos_alpaca.protocol.dispatch import DispatchTable
from rcos_alpaca.protocol.encoder import CommandEncoder
from rcos_alpaca.protocol.interface import TransportInterface
from rcos_alpaca.protocol.logger import ProtocolLogger, RawTokenLog
from rcos_alpaca.protocol.tokenizer import TccTokenizer
from rcos_alpaca.tcc.state import (
    DeviceState,
    DewState,
    FanState,
    FocuserState,
    RotatorState,
    SecondaryHeaterState,
    TempCompMode,
)
from rcos_alpaca.tcc.units import fahrenheit_to_celsius
from rcos_alpaca.utils.exceptions import NotConnectedError, TccConnectionError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    CLOSING = "closing"
    FAULTED = "faulted"


class ReaderState(Enum):
    """Background reader state, driven by the stop event."""
    IDLE = "idle"
    READING = "reading"
    CANCELLING = "cancelling"


@dataclass(frozen=True)
class TemperatureReading:
    """Temperatures in degrees Celsius."""
    ambient_c: float
    primary_c: float
    secondary_c: float
    electronics_c: float

    def as_list(self):
        return [self.ambient_c, self.primary_c, self.secondary_c, self.electronics_c]


class TccClient:
    """
    One connection to one TCC.

    Construct one per serial connection and pass it to whoever needs it.
    """

    def __init__(
        self,
        transport: TransportInterface,
        config: Optional[ClientConfig] = None,
        commands: Optional[CommandConfig] = None,
        focuser: Optional[FocuserConfig] = None,
    ):
        """
        Initialize the client. Nothing is opened until open().

        Args:
            transport: Byte channel to the TCC (real or simulated).
            config: Reader and query timing.
            commands: Overridable motion command templates.
            focuser: Focuser mechanics (max step used to validate moves).
        """
        self._transport = transport
        self._config = config or ClientConfig()
        self._focuser_config = focuser or FocuserConfig()

        self.state = DeviceState()
        self.raw_tokens = RawTokenLog(self._config.raw_token_log_size)
        self.protocol_log = ProtocolLogger()

        self._tokenizer = TccTokenizer()
        self._dispatch = DispatchTable(self.state, self.raw_tokens)
        self._encoder = CommandEncoder(
            self._write,
            self.state,
            commands or CommandConfig(),
            focuser_max_step=self._focuser_config.max_step,
        )

        self._connection_state = ConnectionState.CLOSED
        self._state_lock = threading.Lock()
        self._reader_state = ReaderState.IDLE
        self._reader: Optional[threading.Thread] = None
        self._stop = threading.Event()

        # Bumped by the reader after each dispatched chunk
        self._dispatch_count = 0
        self._dispatched = threading.Condition()

    # ----- Lifecycle -----

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @property
    def reader_state(self) -> ReaderState:
        return self._reader_state

    @property
    def is_open(self) -> bool:
        return self._connection_state == ConnectionState.OPEN

    @property
    def port_name(self) -> str:
        return self._transport.port_name

    @property
    def focuser_config(self) -> FocuserConfig:
        return self._focuser_config

    def open(self) -> None:
        """
        Open the transport and start the reader.

        A faulted client is torn down first; this is the only way out of
        FAULTED.

        Raises:
            TccConnectionError: If the transport cannot be opened.
        """
        with self._state_lock:
            if self._connection_state == ConnectionState.OPEN:
                logger.warning("Already open")
                return
            if self._connection_state == ConnectionState.FAULTED:
                logger.info("Reopening faulted connection")
                self._shutdown()
            self._connection_state = ConnectionState.OPENING

        self._tokenizer.reset()
        try:
            self._transport.open()
        except Exception:
            self._connection_state = ConnectionState.CLOSED
            raise

        # One stop event per reader; a reader left over from close() stays stopped
        self._stop = threading.Event()
        self._reader = threading.Thread(
            target=self._read_loop,
            args=(self._stop,),
            name=f"tcc-reader-{self._transport.port_name}",
            daemon=True,
        )
        self._connection_state = ConnectionState.OPEN
        self._reader.start()
        logger.info(f"TCC connection open on {self._transport.port_name}")

    def close(self) -> None:
        """Stop the reader and close the transport. Safe to call more than once."""
        with self._state_lock:
            if self._connection_state == ConnectionState.CLOSED:
                return
            self._connection_state = ConnectionState.CLOSING
            self._shutdown()
            self._connection_state = ConnectionState.CLOSED
        logger.info("TCC connection closed")

    def _shutdown(self) -> None:
        self._stop.set()
        if self._reader_state == ReaderState.READING:
            self._reader_state = ReaderState.CANCELLING
        reader = self._reader
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=self._config.close_timeout_seconds)
            if reader.is_alive():
                logger.warning("Reader did not stop within close timeout")
        self._reader = None
        self._transport.close()

    def __enter__(self) -> "TccClient":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ----- Background reader -----

    def _read_loop(self, stop: threading.Event) -> None:
        """
        Read, tokenize and dispatch until told to stop.

        Errors never end the loop: empty reads wait idle_delay, failures wait
        error_backoff. A lost transport moves the connection to FAULTED and
        the loop keeps backing off until close().
        """
        idle_delay = self._config.idle_delay_ms / 1000.0
        backoff = self._config.error_backoff_ms / 1000.0
        self._reader_state = ReaderState.READING
        logger.debug("Reader started")

        while not stop.is_set():
            try:
                chunk = self._transport.read()
            except NotConnectedError as e:
                if not stop.is_set() and self._connection_state == ConnectionState.OPEN:
                    logger.error(f"Transport lost: {e}")
                    self.protocol_log.log_error(str(e))
                    self._connection_state = ConnectionState.FAULTED
                stop.wait(backoff)
                continue
            except Exception as e:
                logger.warning(f"Read error, retrying: {e}")
                self.protocol_log.log_error(str(e))
                stop.wait(backoff)
                continue

            if stop.is_set():
                break

            if not chunk:
                stop.wait(idle_delay)
                continue

            self.protocol_log.log_rx(chunk)
            events = self._tokenizer.feed(chunk)
            if events:
                self._dispatch.dispatch_all(events)
                with self._dispatched:
                    self._dispatch_count += 1
                    self._dispatched.notify_all()

        logger.debug("Reader stopped")
        if self._reader is None or self._reader is threading.current_thread():
            self._reader_state = ReaderState.IDLE

    def _write(self, text: str) -> None:
        if self._connection_state != ConnectionState.OPEN:
            raise NotConnectedError(f"TCC not connected ({self._connection_state.value})")
        try:
            self._transport.write(text)
        except TccConnectionError as e:
            self.protocol_log.log_error(str(e), text.encode("ascii", errors="replace"))
            raise
        self.protocol_log.log_tx(text.encode("ascii"))

    def _query(self, send) -> None:
        with self._dispatched:
            seen = self._dispatch_count
        send()
        timeout = self._config.query_settle_ms / 1000.0
        if timeout > 0:
            with self._dispatched:
                self._dispatched.wait_for(lambda: self._dispatch_count != seen, timeout=timeout)

    # ----- Snapshot and liveness -----

    def snapshot(self) -> DeviceState:
        """Consistent copy of every state field, in device units."""
        return self.state.snapshot()

    def ping(self) -> None:
        """
        Send a ping and clear last_ping_ok.

        The flag turns True when the reader sees the acknowledgement; poll
        last_ping_ok to find out.
        """
        self._encoder.ping()

    @property
    def last_ping_ok(self) -> bool:
        return self.state.last_ping_ok

    @property
    def firmware_version(self) -> str:
        return self.state.firmware_version

    # ----- Focuser -----

    def query_focuser(self) -> FocuserState:
        self._query(self._encoder.query_focuser)
        with self.state.lock:
            return replace(self.state.focuser)

    def focuser_position(self) -> int:
        return self.query_focuser().actual_position_steps

    def focuser_is_moving(self) -> bool:
        return self.query_focuser().is_moving

    def move_focuser_absolute(self, position_steps: int) -> None:
        self._encoder.move_focuser_absolute(position_steps)

    def move_focuser_relative(self, delta_steps: int) -> None:
        self._encoder.move_focuser_relative(delta_steps)

    def stop_focuser(self) -> None:
        self._encoder.stop_focuser()

    def home_focuser(self) -> None:
        self._encoder.home_focuser()

    def set_temp_comp(self, enabled: bool, manual: bool = False) -> None:
        """Temperature compensation off, automatic or manual."""
        if not enabled:
            mode = TempCompMode.OFF
        elif manual:
            mode = TempCompMode.MANUAL
        else:
            mode = TempCompMode.AUTO
        self._encoder.set_temp_comp(mode)

    # ----- Rotator -----

    def query_rotator(self) -> RotatorState:
        self._query(self._encoder.query_rotator)
        with self.state.lock:
            return replace(self.state.rotator)

    def rotator_position_deg(self) -> float:
        return self.query_rotator().actual_position_deg

    def rotator_is_moving(self) -> bool:
        return self.query_rotator().is_moving

    def move_rotator_absolute_deg(self, angle_deg: float) -> None:
        self._encoder.move_rotator_absolute_deg(angle_deg)

    def move_rotator_relative_deg(self, delta_deg: float) -> None:
        self._encoder.move_rotator_relative_deg(delta_deg)

    def home_rotator(self) -> None:
        self._encoder.home_rotator()

    # ----- Temperatures -----

    def query_temperatures(self) -> TemperatureReading:
        """Request temperatures and return them in Celsius."""
        self._query(self._encoder.query_temperature)
        with self.state.lock:
            t = self.state.temperature
            return TemperatureReading(
                ambient_c=fahrenheit_to_celsius(t.ambient_f),
                primary_c=fahrenheit_to_celsius(t.primary_f),
                secondary_c=fahrenheit_to_celsius(t.secondary_f),
                electronics_c=fahrenheit_to_celsius(t.electronics_f),
            )

    def ambient_temperature_c(self) -> float:
        return self.query_temperatures().ambient_c

    # ----- Fan -----

    def query_fan(self) -> FanState:
        # Fan, heater and dew telemetry arrive with the temperature frame
        self._query(self._encoder.query_temperature)
        with self.state.lock:
            return replace(self.state.fan)

    def set_fan_mode(self, mode: int) -> None:
        self._encoder.set_fan_mode(mode)

    def set_fan_speed_percent(self, percent: int) -> None:
        self._encoder.set_fan_speed_percent(percent)

    def set_fan_gain(self, gain: float) -> None:
        self._encoder.set_fan_gain(gain)

    def set_fan_deadband(self, deadband: float) -> None:
        self._encoder.set_fan_deadband(deadband)

    # ----- Secondary heater -----

    def query_secondary_heater(self) -> SecondaryHeaterState:
        self._query(self._encoder.query_temperature)
        with self.state.lock:
            return replace(self.state.secondary_heater)

    def set_secondary_heater_mode(self, mode: int) -> None:
        self._encoder.set_secondary_heater_mode(mode)

    def set_secondary_heater_power_percent(self, percent: int) -> None:
        self._encoder.set_secondary_heater_power_percent(percent)

    def set_secondary_heater_setpoint_c(self, setpoint_c: float) -> None:
        self._encoder.set_secondary_heater_setpoint_c(setpoint_c)

    # ----- Dew channels -----

    def query_dew(self) -> DewState:
        self._query(self._encoder.query_temperature)
        with self.state.lock:
            return replace(self.state.dew)

    def set_dew1_power_percent(self, percent: int) -> None:
        self._encoder.set_dew1_power_percent(percent)

    def set_dew2_power_percent(self, percent: int) -> None:
        self._encoder.set_dew2_power_percent(percent)
