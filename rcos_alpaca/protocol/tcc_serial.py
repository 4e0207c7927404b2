"""
Serial transport for the RCOS TCC.

Implements TransportInterface using pyserial. Line settings are fixed by the
TCC: 9600 baud, 8 data bits, no parity, 1 stop bit, XON/XOFF flow control.
"""

import logging
import threading
from typing import Optional

import serial
from serial import SerialException, SerialTimeoutException

from rcos_alpaca.protocol.interface import TransportInterface
from rcos_alpaca.config.models import SerialConfig
from rcos_alpaca.utils.exceptions import (
    NotConnectedError,
    PortNotFoundError,
    PortInUseError,
    SerialTimeoutError,
    TccConnectionError,
    TransportIOError,
)


logger = logging.getLogger(__name__)


class TccSerial(TransportInterface):
    """
    Real hardware transport.

    Writes are serialized by a lock. Reads are meant for a single reader
    thread and are not locked.
    """

    # Serial port settings (fixed by the TCC)
    BAUD_RATE = 9600
    DATA_BITS = serial.EIGHTBITS
    PARITY = serial.PARITY_NONE
    STOP_BITS = serial.STOPBITS_ONE

    def __init__(self, config: SerialConfig):
        """
        Initialize serial transport.

        Args:
            config: Serial port configuration.
        """
        self._config = config
        self._port: Optional[serial.Serial] = None
        self._write_lock = threading.Lock()

    @property
    def port_name(self) -> str:
        return self._config.port

    def open(self) -> None:
        """Open the serial port with the TCC line settings."""
        if self.is_open():
            logger.warning("Already open")
            return

        port_name = self._config.port
        logger.info(f"Opening serial port {port_name}")

        # Configure before opening so DTR/RTS are never asserted
        port = serial.Serial()
        port.port = port_name
        port.baudrate = self.BAUD_RATE
        port.bytesize = self.DATA_BITS
        port.parity = self.PARITY
        port.stopbits = self.STOP_BITS
        port.xonxoff = True
        port.rtscts = False
        port.dsrdtr = False
        port.timeout = self._config.read_timeout_seconds
        port.write_timeout = self._config.write_timeout_seconds
        port.dtr = False
        port.rts = False

        try:
            port.open()
        except SerialException as e:
            error_msg = str(e).lower()
            if "filenotfounderror" in error_msg or "no such file" in error_msg:
                raise PortNotFoundError(f"Failed to open {port_name}: Port not found") from e
            elif "access" in error_msg or "permission" in error_msg or "in use" in error_msg or "busy" in error_msg:
                raise PortInUseError(f"{port_name} is already in use by another application") from e
            else:
                raise PortNotFoundError(f"Failed to open {port_name}: {e}") from e

        port.reset_input_buffer()
        port.reset_output_buffer()
        self._port = port

        logger.info(f"Serial port {port_name} open (9600 8-N-1, XON/XOFF)")

    def close(self) -> None:
        """Close serial port."""
        port = self._port
        self._port = None
        if port is not None and port.is_open:
            try:
                port.close()
            except SerialException as e:
                logger.warning(f"Error closing {self.port_name}: {e}")
            logger.info("Serial port closed")

    def is_open(self) -> bool:
        return self._port is not None and self._port.is_open

    def read(self, max_bytes: int = 4096) -> bytes:
        port = self._port
        if port is None or not port.is_open:
            raise NotConnectedError("Serial port not open")

        try:
            waiting = port.in_waiting
            return port.read(min(max(waiting, 1), max_bytes))
        except SerialException as e:
            if not port.is_open:
                raise NotConnectedError(f"Serial port {self.port_name} lost: {e}") from e
            raise TransportIOError(f"Read from {self.port_name} failed: {e}") from e
        except OSError as e:
            # Device unplugged: the handle is gone for good
            raise NotConnectedError(f"Serial port {self.port_name} lost: {e}") from e

    def write(self, text: str) -> None:
        data = text.encode("ascii")

        with self._write_lock:
            port = self._port
            if port is None or not port.is_open:
                raise NotConnectedError("Serial port not open")

            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"TX: {text!r}")

            try:
                port.write(data)
                port.flush()
            except SerialTimeoutException as e:
                raise SerialTimeoutError(f"Write to {self.port_name} timed out: {text!r}") from e
            except (SerialException, OSError) as e:
                raise TccConnectionError(f"Write to {self.port_name} failed: {e}") from e
