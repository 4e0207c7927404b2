"""
ASCOM Alpaca API endpoints for the switch devices (ISwitchV2).

Switch 0 is the fan controller, switch 1 the secondary and dew heaters.
"""

import logging
from typing import Callable

from fastapi import APIRouter, Depends, Form, Query
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
from rcos_alpaca.devices.switches import DewSwitch, FanSwitch, SwitchDevice


logger = logging.getLogger(__name__)


def make_switch_router(
    device_number: int,
    device_cls: type,
    description: str,
    select: Callable[[DeviceHub], SwitchDevice],
) -> APIRouter:
    """Build the router for one switch device."""
    router = APIRouter(prefix=f"/api/v1/switch/{device_number}", tags=["switch"])
    add_common_routes(router, device_cls.NAME, description, device_cls.INTERFACE_VERSION)

    def get_switch(hub: DeviceHub = Depends(get_hub)) -> SwitchDevice:
        return select(hub)

    @router.get("/maxswitch", response_model=AlpacaResponse)
    async def get_maxswitch(
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return make_response(switch.max_switch, client_id, get_next_transaction_id())

    @router.get("/canwrite", response_model=AlpacaResponse)
    async def get_canwrite(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return device_response("GET /canwrite", client_id, lambda: switch.can_write(Id))

    @router.get("/getswitchname", response_model=AlpacaResponse)
    async def get_switchname(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return device_response("GET /getswitchname", client_id, lambda: switch.get_switch_name(Id))

    @router.get("/getswitchdescription", response_model=AlpacaResponse)
    async def get_switchdescription(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return device_response(
            "GET /getswitchdescription", client_id, lambda: switch.get_switch_description(Id)
        )

    @router.get("/minswitchvalue", response_model=AlpacaResponse)
    async def get_minswitchvalue(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return device_response("GET /minswitchvalue", client_id, lambda: switch.min_switch_value(Id))

    @router.get("/maxswitchvalue", response_model=AlpacaResponse)
    async def get_maxswitchvalue(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return device_response("GET /maxswitchvalue", client_id, lambda: switch.max_switch_value(Id))

    @router.get("/switchstep", response_model=AlpacaResponse)
    async def get_switchstep(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        return device_response("GET /switchstep", client_id, lambda: switch.switch_step(Id))

    @router.get("/getswitch", response_model=AlpacaResponse)
    async def get_switch_state(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        """Boolean state from the last telemetry received."""
        return device_response("GET /getswitch", client_id, lambda: switch.get_switch(Id))

    @router.get("/getswitchvalue", response_model=AlpacaResponse)
    async def get_switch_value(
        Id: int = Query(...),
        client_id: int = Depends(get_client_id),
        switch: SwitchDevice = Depends(get_switch)
    ):
        """Analog value (0..1) from the last telemetry received."""
        return device_response("GET /getswitchvalue", client_id, lambda: switch.get_switch_value(Id))

    @router.put("/setswitch", response_model=AlpacaResponse)
    def put_setswitch(
        Id: int = Form(...),
        State: bool = Form(...),
        client_id: int = Depends(get_client_id_form),
        switch: SwitchDevice = Depends(get_switch)
    ):
        logger.info(f"{switch.NAME}: switch {Id} -> {State}")
        return device_response("PUT /setswitch", client_id, lambda: switch.set_switch(Id, State))

    @router.put("/setswitchvalue", response_model=AlpacaResponse)
    def put_setswitchvalue(
        Id: int = Form(...),
        Value: float = Form(...),
        client_id: int = Depends(get_client_id_form),
        switch: SwitchDevice = Depends(get_switch)
    ):
        logger.info(f"{switch.NAME}: switch {Id} -> {Value}")
        return device_response(
            "PUT /setswitchvalue", client_id, lambda: switch.set_switch_value(Id, Value)
        )

    @router.put("/setswitchname", response_model=AlpacaResponse)
    async def put_setswitchname(
        Id: int = Form(...),
        Name: str = Form(...),
        client_id: int = Depends(get_client_id_form)
    ):
        error = NotImplementedError("Switch names are fixed")
        return make_response(None, client_id, get_next_transaction_id(), error)

    return router


fan_router = make_switch_router(0, FanSwitch, "RCOS TCC primary mirror fans", lambda hub: hub.fan)
dew_router = make_switch_router(
    1, DewSwitch, "RCOS TCC secondary and dew heaters", lambda hub: hub.dew
)
