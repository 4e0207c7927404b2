"""
Shared request plumbing for the Alpaca routers.
"""

import itertools
import logging
import threading
from typing import Any, Callable

from fastapi import APIRouter, Depends, Form, Query, Request

from rcos_alpaca import __version__
from rcos_alpaca.api.models import AlpacaResponse, make_response
from rcos_alpaca.devices.hub import DeviceHub


logger = logging.getLogger(__name__)

# Global server transaction ID counter (thread-safe)
_transaction_counter = itertools.count(1)
_transaction_lock = threading.Lock()


def get_next_transaction_id() -> int:
    """
    Get next server transaction ID (thread-safe).

    Returns:
        Incremented transaction ID.
    """
    with _transaction_lock:
        return next(_transaction_counter)


def get_hub(request: Request) -> DeviceHub:
    """Dependency to get the device hub from app.state."""
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise RuntimeError("Device hub not initialized")
    return hub


def get_client_id(ClientTransactionID: int = Query(0)) -> int:
    """Extract client transaction ID from query params."""
    return ClientTransactionID


def get_client_id_form(ClientTransactionID: int = Form(0)) -> int:
    """Extract client transaction ID from form data."""
    return ClientTransactionID


def device_response(label: str, client_id: int, call: Callable[[], Any]) -> AlpacaResponse:
    """
    Run a device call and wrap its result (or its error) in an Alpaca envelope.

    Args:
        label: Endpoint name for logging.
        client_id: Client transaction ID to echo.
        call: Zero-argument callable doing the device work.
    """
    try:
        value = call()
    except Exception as e:
        logger.error(f"Error in {label}: {e}")
        return make_response(None, client_id, get_next_transaction_id(), e)
    logger.debug(f"{label} -> {value}")
    return make_response(value, client_id, get_next_transaction_id())


def add_common_routes(router: APIRouter, name: str, description: str, interface_version: int) -> None:
    """Register the endpoints every Alpaca device exposes."""

    @router.get("/connected", response_model=AlpacaResponse)
    async def get_connected(
        client_id: int = Depends(get_client_id),
        hub: DeviceHub = Depends(get_hub)
    ):
        """Get connection status."""
        return make_response(hub.connected, client_id, get_next_transaction_id())

    @router.put("/connected", response_model=AlpacaResponse)
    def put_connected(
        Connected: bool = Form(...),
        client_id: int = Depends(get_client_id_form),
        hub: DeviceHub = Depends(get_hub)
    ):
        """Connect or disconnect. All devices share one TCC connection."""
        def call():
            if Connected:
                hub.connect()
                logger.info(f"{name} connected via API")
            else:
                hub.disconnect()
                logger.info(f"{name} disconnected via API")

        return device_response("PUT /connected", client_id, call)

    @router.get("/name", response_model=AlpacaResponse)
    async def get_name(client_id: int = Depends(get_client_id)):
        return make_response(name, client_id, get_next_transaction_id())

    @router.get("/description", response_model=AlpacaResponse)
    async def get_description(client_id: int = Depends(get_client_id)):
        return make_response(description, client_id, get_next_transaction_id())

    @router.get("/driverinfo", response_model=AlpacaResponse)
    async def get_driverinfo(client_id: int = Depends(get_client_id)):
        info = f"ASCOM Alpaca driver for the RCOS Telescope Control Center ({name})"
        return make_response(info, client_id, get_next_transaction_id())

    @router.get("/driverversion", response_model=AlpacaResponse)
    async def get_driverversion(client_id: int = Depends(get_client_id)):
        return make_response(__version__, client_id, get_next_transaction_id())

    @router.get("/interfaceversion", response_model=AlpacaResponse)
    async def get_interfaceversion(client_id: int = Depends(get_client_id)):
        return make_response(interface_version, client_id, get_next_transaction_id())

    @router.get("/supportedactions", response_model=AlpacaResponse)
    async def get_supportedactions(client_id: int = Depends(get_client_id)):
        """Get list of supported actions (empty)."""
        return make_response([], client_id, get_next_transaction_id())
