"""
Pydantic models for ASCOM Alpaca API responses.
"""

from typing import Any, Optional
from pydantic import BaseModel, Field


class AlpacaResponse(BaseModel):
    """
    Standard ASCOM Alpaca response envelope.

    Every device endpoint returns this, with HTTP status 200 even on error.
    """
    Value: Any = Field(None, description="Response value (type varies by endpoint)")
    ClientTransactionID: int = Field(0, description="Client transaction ID (echo from request)")
    ServerTransactionID: int = Field(description="Server transaction ID (auto-incremented)")
    ErrorNumber: int = Field(0, description="Error code (0 = success, non-zero = error)")
    ErrorMessage: str = Field("", description="Error message (empty string if no error)")


def make_response(
    value: Any,
    client_id: int = 0,
    server_id: int = 0,
    error: Optional[Exception] = None
) -> AlpacaResponse:
    """
    Build an Alpaca response.

    Args:
        value: Response value (ignored if error is set).
        client_id: Client transaction ID.
        server_id: Server transaction ID.
        error: Exception raised by the device call, if any.
    """
    if error is None:
        return AlpacaResponse(
            Value=value,
            ClientTransactionID=client_id,
            ServerTransactionID=server_id,
        )

    from rcos_alpaca.api.error_mapper import map_exception_to_alpaca
    error_number, error_message = map_exception_to_alpaca(error)

    return AlpacaResponse(
        Value=None,
        ClientTransactionID=client_id,
        ServerTransactionID=server_id,
        ErrorNumber=error_number,
        ErrorMessage=error_message
    )
