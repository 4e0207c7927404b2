"""
FastAPI application factory.
"""

import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rcos_alpaca import __version__
from rcos_alpaca.config.models import AppConfig
from rcos_alpaca.api.models import make_response
from rcos_alpaca.api.dependencies import get_next_transaction_id
from rcos_alpaca.api.focuser_routes import router as focuser_router
from rcos_alpaca.api.rotator_routes import router as rotator_router
from rcos_alpaca.api.switch_routes import dew_router, fan_router
from rcos_alpaca.api.tcc_routes import router as tcc_router
from rcos_alpaca.devices.focuser import Focuser
from rcos_alpaca.devices.hub import DeviceHub
from rcos_alpaca.devices.rotator import Rotator
from rcos_alpaca.devices.switches import DewSwitch, FanSwitch


logger = logging.getLogger(__name__)

CONFIGURED_DEVICES = [
    {"DeviceName": Focuser.NAME, "DeviceType": "Focuser", "DeviceNumber": 0, "UniqueID": "rcos-tcc-focuser-0"},
    {"DeviceName": Rotator.NAME, "DeviceType": "Rotator", "DeviceNumber": 0, "UniqueID": "rcos-tcc-rotator-0"},
    {"DeviceName": FanSwitch.NAME, "DeviceType": "Switch", "DeviceNumber": 0, "UniqueID": "rcos-tcc-fan-0"},
    {"DeviceName": DewSwitch.NAME, "DeviceType": "Switch", "DeviceNumber": 1, "UniqueID": "rcos-tcc-dew-1"},
]


def create_app(config: AppConfig, hub: DeviceHub) -> FastAPI:
    """
    Create FastAPI application instance.

    Args:
        config: Application configuration.
        hub: Device hub serving every router.

    Returns:
        Configured FastAPI app.
    """
    app = FastAPI(
        title="RCOS TCC ASCOM Alpaca Driver",
        description="ASCOM Alpaca v1 driver for the RCOS Telescope Control Center",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.hub = hub
    app.state.config = config

    # CORS middleware (allow all origins for Alpaca compatibility)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch all unhandled exceptions and return Alpaca error response."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)

        client_id = 0
        try:
            if request.method == "GET":
                client_id = int(request.query_params.get("ClientTransactionID", 0))
            elif request.method == "PUT":
                form_data = await request.form()
                client_id = int(form_data.get("ClientTransactionID", 0))
        except (ValueError, TypeError):
            logger.debug("Unparseable ClientTransactionID")

        response = make_response(
            value=None,
            client_id=client_id,
            server_id=get_next_transaction_id(),
            error=exc
        )

        return JSONResponse(
            status_code=200,  # Alpaca always returns 200
            content=response.model_dump()
        )

    # Management API endpoints
    @app.get("/management/apiversions")
    async def get_api_versions():
        """Return supported Alpaca API versions."""
        return {"Value": [1]}

    @app.get("/management/v1/configureddevices")
    async def get_configured_devices():
        return {"Value": CONFIGURED_DEVICES}

    @app.get("/management/v1/description")
    async def get_server_description():
        return {
            "Value": {
                "ServerName": "RCOS TCC Alpaca Driver",
                "Manufacturer": "RCOS",
                "ManufacturerVersion": __version__,
                "Location": config.server.ip,
            }
        }

    app.include_router(focuser_router)
    app.include_router(rotator_router)
    app.include_router(fan_router)
    app.include_router(dew_router)
    app.include_router(tcc_router)

    logger.info("FastAPI application created")
    return app
