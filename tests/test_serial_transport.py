from unittest import mock

import pytest
from serial import SerialException, SerialTimeoutException

from rcos_alpaca.config.models import SerialConfig
from rcos_alpaca.protocol.tcc_serial import TccSerial
from rcos_alpaca.utils.exceptions import (
    NotConnectedError,
    PortInUseError,
    PortNotFoundError,
    SerialTimeoutError,
    TccConnectionError,
    TransportIOError,
)


@pytest.fixture
def fake_port():
    with mock.patch("rcos_alpaca.protocol.tcc_serial.serial.Serial") as serial_cls:
        port = serial_cls.return_value
        port.is_open = True
        yield port


def _transport():
    return TccSerial(SerialConfig(port="COM7", read_timeout_seconds=0.2, write_timeout_seconds=2.0))


def test_open_applies_tcc_line_settings(fake_port):
    transport = _transport()
    transport.open()

    assert fake_port.port == "COM7"
    assert fake_port.baudrate == 9600
    assert fake_port.xonxoff is True
    assert fake_port.rtscts is False
    assert fake_port.dsrdtr is False
    assert fake_port.dtr is False
    assert fake_port.rts is False
    assert fake_port.timeout == 0.2
    assert fake_port.write_timeout == 2.0
    fake_port.open.assert_called_once()
    fake_port.reset_input_buffer.assert_called_once()
    assert transport.is_open()
    assert transport.port_name == "COM7"


@pytest.mark.parametrize("message,expected", [
    ("could not open port 'COM7': FileNotFoundError(2, 'The system cannot find the file')", PortNotFoundError),
    ("[Errno 2] No such file or directory: '/dev/ttyUSB0'", PortNotFoundError),
    ("could not open port 'COM7': PermissionError(13, 'Access is denied.')", PortInUseError),
    ("[Errno 16] Device or resource busy", PortInUseError),
    ("something else", PortNotFoundError),
])
def test_open_errors_are_mapped(fake_port, message, expected):
    fake_port.open.side_effect = SerialException(message)
    transport = _transport()
    with pytest.raises(expected):
        transport.open()
    assert not transport.is_open()


def test_open_errors_are_connection_errors(fake_port):
    fake_port.open.side_effect = SerialException("busy")
    with pytest.raises(ConnectionError):
        _transport().open()


def test_write_encodes_ascii(fake_port):
    transport = _transport()
    transport.open()
    transport.write("Q ")
    fake_port.write.assert_called_once_with(b"Q ")
    fake_port.flush.assert_called_once()


def test_write_when_closed_raises():
    transport = _transport()
    with pytest.raises(NotConnectedError):
        transport.write("Q ")


def test_write_timeout_is_mapped(fake_port):
    fake_port.write.side_effect = SerialTimeoutException("Write timeout")
    transport = _transport()
    transport.open()
    with pytest.raises(SerialTimeoutError):
        transport.write("! ")


def test_write_failure_is_connection_error(fake_port):
    fake_port.write.side_effect = SerialException("device reports readiness to write but returned no data")
    transport = _transport()
    transport.open()
    with pytest.raises(TccConnectionError):
        transport.write("! ")


def test_read_takes_what_is_waiting(fake_port):
    fake_port.in_waiting = 3
    fake_port.read.return_value = b":! "
    transport = _transport()
    transport.open()
    assert transport.read() == b":! "
    fake_port.read.assert_called_once_with(3)


def test_read_waits_for_at_least_one_byte(fake_port):
    fake_port.in_waiting = 0
    fake_port.read.return_value = b""
    transport = _transport()
    transport.open()
    assert transport.read() == b""
    fake_port.read.assert_called_once_with(1)


def test_read_errors(fake_port):
    transport = _transport()
    transport.open()

    fake_port.in_waiting = 1
    fake_port.read.side_effect = SerialException("read failed")
    with pytest.raises(TransportIOError):
        transport.read()

    fake_port.read.side_effect = OSError("device unplugged")
    with pytest.raises(NotConnectedError):
        transport.read()


def test_read_when_closed_raises():
    with pytest.raises(NotConnectedError):
        _transport().read()


def test_close_is_idempotent(fake_port):
    transport = _transport()
    transport.open()
    transport.close()
    transport.close()
    fake_port.close.assert_called_once()
    assert not transport.is_open()
