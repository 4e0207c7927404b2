"""
ASCOM Alpaca API endpoints for the focuser (IFocuserV3).
"""

import logging
from fastapi import APIRouter, Depends, Form
from rcos_alpaca.api.models import AlpacaResponse, make_response
from rcos_alpaca.api.dependencies import (
    add_common_routes,
    device_response,
    get_client_id,
    get_client_id_form,
    get_hub,
    get_next_transaction_id,
)
from rcos_alpaca.devices.focuser import Focuser
from rcos_alpaca.devices.hub import DeviceHub


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/focuser/0", tags=["focuser"])

add_common_routes(router, Focuser.NAME, "RCOS TCC secondary mirror focuser", Focuser.INTERFACE_VERSION)


def get_focuser(hub: DeviceHub = Depends(get_hub)) -> Focuser:
    return hub.focuser


# GET endpoints

@router.get("/position", response_model=AlpacaResponse)
def get_position(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    """Get current position."""
    return device_response("GET /position", client_id, lambda: focuser.position)


@router.get("/ismoving", response_model=AlpacaResponse)
def get_ismoving(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    """Check if focuser is moving."""
    return device_response("GET /ismoving", client_id, lambda: focuser.is_moving)


@router.get("/temperature", response_model=AlpacaResponse)
def get_temperature(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    """Get ambient temperature in Celsius."""
    return device_response("GET /temperature", client_id, lambda: focuser.temperature)


@router.get("/absolute", response_model=AlpacaResponse)
async def get_absolute(client_id: int = Depends(get_client_id)):
    """Return True (supports absolute positioning)."""
    return make_response(True, client_id, get_next_transaction_id())


@router.get("/maxstep", response_model=AlpacaResponse)
async def get_maxstep(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    return make_response(focuser.max_step, client_id, get_next_transaction_id())


@router.get("/maxincrement", response_model=AlpacaResponse)
async def get_maxincrement(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    """Any position in range can be reached in one move."""
    return make_response(focuser.max_step, client_id, get_next_transaction_id())


@router.get("/stepsize", response_model=AlpacaResponse)
async def get_stepsize(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    """Get step size in microns."""
    return make_response(focuser.step_size, client_id, get_next_transaction_id())


@router.get("/tempcomp", response_model=AlpacaResponse)
async def get_tempcomp(
    client_id: int = Depends(get_client_id),
    focuser: Focuser = Depends(get_focuser)
):
    """Get temperature compensation status."""
    return make_response(focuser.temp_comp, client_id, get_next_transaction_id())


@router.get("/tempcompavailable", response_model=AlpacaResponse)
async def get_tempcompavailable(client_id: int = Depends(get_client_id)):
    return make_response(True, client_id, get_next_transaction_id())


# PUT endpoints

@router.put("/tempcomp", response_model=AlpacaResponse)
def put_tempcomp(
    TempComp: bool = Form(...),
    client_id: int = Depends(get_client_id_form),
    focuser: Focuser = Depends(get_focuser)
):
    """Enable (automatic mode) or disable temperature compensation."""
    return device_response("PUT /tempcomp", client_id, lambda: focuser.set_temp_comp(TempComp))


@router.put("/move", response_model=AlpacaResponse)
def put_move(
    Position: int = Form(...),
    client_id: int = Depends(get_client_id_form),
    focuser: Focuser = Depends(get_focuser)
):
    """Move to absolute position (non-blocking)."""
    logger.info(f"Move command: target={Position}")
    return device_response("PUT /move", client_id, lambda: focuser.move(Position))


@router.put("/halt", response_model=AlpacaResponse)
def put_halt(
    client_id: int = Depends(get_client_id_form),
    focuser: Focuser = Depends(get_focuser)
):
    """Stop movement immediately."""
    return device_response("PUT /halt", client_id, focuser.halt)
