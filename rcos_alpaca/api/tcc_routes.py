"""
TCC diagnostic endpoints.

Everything the Alpaca device interfaces do not cover: the raw state store,
the ping handshake, the token and protocol logs, and the few controls that
have no Alpaca counterpart (homing, fan tuning, relative focuser moves).
"""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Form, Query
from rcos_alpaca.api.models import AlpacaResponse, make_response
from rcos_alpaca.api.dependencies import (
    device_response,
    get_client_id,
    get_client_id_form,
    get_hub,
    get_next_transaction_id,
)
from rcos_alpaca.devices.hub import DeviceHub
from rcos_alpaca.devices.temperature import SENSOR_NAMES
from rcos_alpaca.tcc.state import DeviceState


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tcc", tags=["tcc"])


def state_to_dict(state: DeviceState) -> dict:
    """Device-unit view of a state snapshot."""
    focuser = asdict(state.focuser)
    focuser["is_moving"] = state.focuser.is_moving
    rotator = asdict(state.rotator)
    rotator["is_moving"] = state.rotator.is_moving
    return {
        "focuser": focuser,
        "rotator": rotator,
        "temperature": asdict(state.temperature),
        "fan": asdict(state.fan),
        "secondary_heater": asdict(state.secondary_heater),
        "dew": asdict(state.dew),
        "last_ping_ok": state.last_ping_ok,
        "firmware_version": state.firmware_version,
    }


@router.get("/status")
async def get_status(hub: DeviceHub = Depends(get_hub)):
    """Connection and reader state."""
    tcc = hub.tcc
    return {
        "connection_state": tcc.connection_state.value,
        "reader_state": tcc.reader_state.value,
        "port": tcc.port_name,
        "firmware_version": tcc.firmware_version,
        "last_ping_ok": tcc.last_ping_ok,
    }


@router.get("/snapshot", response_model=AlpacaResponse)
async def get_snapshot(
    client_id: int = Depends(get_client_id),
    hub: DeviceHub = Depends(get_hub)
):
    """Consistent copy of the state store, in device units."""
    return make_response(state_to_dict(hub.tcc.snapshot()), client_id, get_next_transaction_id())


@router.get("/temperatures", response_model=AlpacaResponse)
def get_temperatures(
    client_id: int = Depends(get_client_id),
    hub: DeviceHub = Depends(get_hub)
):
    """Request a temperature frame and return every probe in Celsius."""
    def call():
        readings = hub.temperature.read_all_celsius()
        return [{"name": name, "celsius": value} for name, value in zip(SENSOR_NAMES, readings)]

    return device_response("GET /temperatures", client_id, call)


@router.put("/ping", response_model=AlpacaResponse)
def put_ping(
    client_id: int = Depends(get_client_id_form),
    hub: DeviceHub = Depends(get_hub)
):
    """Send a ping; poll GET /ping for the acknowledgement."""
    return device_response("PUT /ping", client_id, hub.tcc.ping)


@router.get("/ping", response_model=AlpacaResponse)
async def get_ping(
    client_id: int = Depends(get_client_id),
    hub: DeviceHub = Depends(get_hub)
):
    return make_response(hub.tcc.last_ping_ok, client_id, get_next_transaction_id())


@router.get("/rawtokens", response_model=AlpacaResponse)
async def get_rawtokens(
    limit: int = Query(100, ge=1, le=10000),
    client_id: int = Depends(get_client_id),
    hub: DeviceHub = Depends(get_hub)
):
    """Most recent (key, value) events, oldest first, including unknown keys."""
    entries = [
        {"key": t.key, "value": t.value, "timestamp": t.timestamp.isoformat()}
        for t in hub.tcc.raw_tokens.entries(limit)
    ]
    return make_response(entries, client_id, get_next_transaction_id())


@router.get("/messages", response_model=AlpacaResponse)
async def get_messages(
    limit: int = Query(100, ge=1, le=1000),
    client_id: int = Depends(get_client_id),
    hub: DeviceHub = Depends(get_hub)
):
    """Recent TX/RX/ERR protocol messages."""
    log = hub.tcc.protocol_log
    value = {"messages": log.get_messages(limit), "stats": log.get_stats()}
    return make_response(value, client_id, get_next_transaction_id())


@router.delete("/messages", response_model=AlpacaResponse)
async def delete_messages(
    client_id: int = Depends(get_client_id),
    hub: DeviceHub = Depends(get_hub)
):
    hub.tcc.protocol_log.clear()
    hub.tcc.raw_tokens.clear()
    return make_response(None, client_id, get_next_transaction_id())


@router.put("/focuser/moverelative", response_model=AlpacaResponse)
def put_focuser_moverelative(
    Steps: int = Form(...),
    client_id: int = Depends(get_client_id_form),
    hub: DeviceHub = Depends(get_hub)
):
    return device_response(
        "PUT /focuser/moverelative", client_id, lambda: hub.tcc.move_focuser_relative(Steps)
    )


@router.put("/focuser/home", response_model=AlpacaResponse)
def put_focuser_home(
    client_id: int = Depends(get_client_id_form),
    hub: DeviceHub = Depends(get_hub)
):
    return device_response("PUT /focuser/home", client_id, hub.tcc.home_focuser)


@router.put("/rotator/home", response_model=AlpacaResponse)
def put_rotator_home(
    client_id: int = Depends(get_client_id_form),
    hub: DeviceHub = Depends(get_hub)
):
    return device_response("PUT /rotator/home", client_id, hub.rotator.home)


@router.put("/fan/gain", response_model=AlpacaResponse)
def put_fan_gain(
    Gain: float = Form(...),
    client_id: int = Depends(get_client_id_form),
    hub: DeviceHub = Depends(get_hub)
):
    """Fan controller gain, 0.1 to 10."""
    return device_response("PUT /fan/gain", client_id, lambda: hub.tcc.set_fan_gain(Gain))


@router.put("/fan/deadband", response_model=AlpacaResponse)
def put_fan_deadband(
    Deadband: float = Form(...),
    client_id: int = Depends(get_client_id_form),
    hub: DeviceHub = Depends(get_hub)
):
    """Fan controller deadband, 0 to 10."""
    return device_response(
        "PUT /fan/deadband", client_id, lambda: hub.tcc.set_fan_deadband(Deadband)
    )
