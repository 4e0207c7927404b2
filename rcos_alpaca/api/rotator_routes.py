"""
ASCOM Alpaca API endpoints for the rotator (IRotatorV3).
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
from rcos_alpaca.devices.hub import DeviceHub
from rcos_alpaca.devices.rotator import Rotator


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/rotator/0", tags=["rotator"])

add_common_routes(router, Rotator.NAME, "RCOS TCC instrument rotator", Rotator.INTERFACE_VERSION)


def get_rotator(hub: DeviceHub = Depends(get_hub)) -> Rotator:
    return hub.rotator


# GET endpoints

@router.get("/position", response_model=AlpacaResponse)
def get_position(
    client_id: int = Depends(get_client_id),
    rotator: Rotator = Depends(get_rotator)
):
    """Current angle in degrees."""
    return device_response("GET /position", client_id, lambda: rotator.position)


@router.get("/mechanicalposition", response_model=AlpacaResponse)
def get_mechanicalposition(
    client_id: int = Depends(get_client_id),
    rotator: Rotator = Depends(get_rotator)
):
    """No sync offset is applied, so this equals position."""
    return device_response("GET /mechanicalposition", client_id, lambda: rotator.position)


@router.get("/targetposition", response_model=AlpacaResponse)
def get_targetposition(
    client_id: int = Depends(get_client_id),
    rotator: Rotator = Depends(get_rotator)
):
    return device_response("GET /targetposition", client_id, lambda: rotator.target_position)


@router.get("/ismoving", response_model=AlpacaResponse)
def get_ismoving(
    client_id: int = Depends(get_client_id),
    rotator: Rotator = Depends(get_rotator)
):
    return device_response("GET /ismoving", client_id, lambda: rotator.is_moving)


@router.get("/canreverse", response_model=AlpacaResponse)
async def get_canreverse(client_id: int = Depends(get_client_id)):
    return make_response(False, client_id, get_next_transaction_id())


@router.get("/reverse", response_model=AlpacaResponse)
async def get_reverse(client_id: int = Depends(get_client_id)):
    return make_response(False, client_id, get_next_transaction_id())


@router.get("/stepsize", response_model=AlpacaResponse)
async def get_stepsize(client_id: int = Depends(get_client_id)):
    """Smallest angle the rotator can resolve, in degrees."""
    return make_response(Rotator.STEP_SIZE, client_id, get_next_transaction_id())


# PUT endpoints

@router.put("/reverse", response_model=AlpacaResponse)
async def put_reverse(
    Reverse: bool = Form(...),
    client_id: int = Depends(get_client_id_form)
):
    error = NotImplementedError("Rotator reverse is not supported")
    return make_response(None, client_id, get_next_transaction_id(), error)


@router.put("/sync", response_model=AlpacaResponse)
async def put_sync(
    Position: float = Form(...),
    client_id: int = Depends(get_client_id_form)
):
    error = NotImplementedError("Rotator sync is not supported")
    return make_response(None, client_id, get_next_transaction_id(), error)


@router.put("/move", response_model=AlpacaResponse)
def put_move(
    Position: float = Form(...),
    client_id: int = Depends(get_client_id_form),
    rotator: Rotator = Depends(get_rotator)
):
    """Move by a relative angle in degrees."""
    logger.info(f"Rotator relative move: {Position:+.3f} deg")
    return device_response("PUT /move", client_id, lambda: rotator.move(Position))


@router.put("/moveabsolute", response_model=AlpacaResponse)
def put_moveabsolute(
    Position: float = Form(...),
    client_id: int = Depends(get_client_id_form),
    rotator: Rotator = Depends(get_rotator)
):
    logger.info(f"Rotator absolute move: {Position:.3f} deg")
    return device_response("PUT /moveabsolute", client_id, lambda: rotator.move_absolute(Position))


@router.put("/movemechanical", response_model=AlpacaResponse)
def put_movemechanical(
    Position: float = Form(...),
    client_id: int = Depends(get_client_id_form),
    rotator: Rotator = Depends(get_rotator)
):
    return device_response("PUT /movemechanical", client_id, lambda: rotator.move_absolute(Position))


@router.put("/halt", response_model=AlpacaResponse)
def put_halt(
    client_id: int = Depends(get_client_id_form),
    rotator: Rotator = Depends(get_rotator)
):
    return device_response("PUT /halt", client_id, rotator.halt)
