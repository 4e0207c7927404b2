"""
Map driver exceptions to ASCOM Alpaca error codes.
"""

from typing import Tuple
from rcos_alpaca.utils.exceptions import (
    InvalidOperationError,
    InvalidValueError,
    NotConnectedError,
    TccException,
)


# ASCOM Alpaca Error Codes
ERROR_NOT_IMPLEMENTED = 0x400  # 1024
ERROR_INVALID_VALUE = 0x401  # 1025
ERROR_NOT_CONNECTED = 0x407  # 1031
ERROR_INVALID_OPERATION = 0x40B  # 1035
ERROR_DRIVER_ERROR = 0x500  # 1280


def map_exception_to_alpaca(exception: Exception) -> Tuple[int, str]:
    """
    Map exception to Alpaca error code and message.

    Args:
        exception: Exception raised by a device call.

    Returns:
        Tuple of (ErrorNumber, ErrorMessage).
    """
    if isinstance(exception, NotConnectedError):
        return (ERROR_NOT_CONNECTED, str(exception))

    if isinstance(exception, InvalidValueError):
        return (ERROR_INVALID_VALUE, str(exception))

    if isinstance(exception, InvalidOperationError):
        return (ERROR_INVALID_OPERATION, str(exception))

    if isinstance(exception, NotImplementedError):
        return (ERROR_NOT_IMPLEMENTED, str(exception) or "Not implemented")

    if isinstance(exception, TccException):
        return (ERROR_DRIVER_ERROR, str(exception))

    return (ERROR_DRIVER_ERROR, f"Internal error: {type(exception).__name__}: {exception}")
