"""
Custom exception classes for the RCOS TCC driver.
"""


class TccException(Exception):
    """Base exception for all TCC driver errors."""
    pass


class InvalidValueError(TccException, ValueError):
    """
    Command argument outside its documented domain (maps to Alpaca ErrorNumber 1025).

    Raised before any byte is written to the transport.
    """
    pass


class InvalidOperationError(TccException):
    """Operation not valid for the addressed index or device (Alpaca ErrorNumber 1035)."""
    pass


class TccConnectionError(TccException, ConnectionError):
    """Transport could not be opened or written to."""
    pass


class NotConnectedError(TccConnectionError):
    """Raised when operation requires an open connection but the client is closed."""
    pass


class PortNotFoundError(TccConnectionError):
    """Serial port does not exist."""
    pass


class PortInUseError(TccConnectionError):
    """Serial port is already open by another application."""
    pass


class SerialTimeoutError(TccConnectionError):
    """Write did not complete within the configured timeout."""
    pass


class TransportIOError(TccException):
    """Transient read failure; the reader loop backs off and retries."""
    pass
