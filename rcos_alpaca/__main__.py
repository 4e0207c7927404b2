"""
Main entry point for the RCOS TCC ASCOM Alpaca Driver.

Usage:
    python -m rcos_alpaca [--config CONFIG_PATH] [--port PORT] [--simulator]
"""

import argparse
import logging
import sys

import uvicorn

from rcos_alpaca import __version__
from rcos_alpaca.api.app import create_app
from rcos_alpaca.config.loader import ConfigurationError, load_config
from rcos_alpaca.config.models import AppConfig
from rcos_alpaca.config.profile import DeviceKind, DriverProfile, ProfileStore
from rcos_alpaca.devices.focuser import Focuser
from rcos_alpaca.devices.hub import DeviceHub
from rcos_alpaca.devices.switches import FanSwitch
from rcos_alpaca.protocol.interface import TransportInterface
from rcos_alpaca.protocol.tcc_serial import TccSerial
from rcos_alpaca.simulator.mock_tcc import MockTccTransport
from rcos_alpaca.tcc.client import TccClient
from rcos_alpaca.utils.logging_setup import setup_logging


logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="RCOS TCC ASCOM Alpaca Driver")
    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to configuration file (default: config.json)"
    )
    parser.add_argument(
        "--port",
        type=str,
        default=None,
        help="Serial port (overrides config.json and the driver profile)"
    )
    parser.add_argument(
        "--simulator",
        action="store_true",
        help="Use the in-memory TCC simulator instead of a serial port"
    )
    parser.add_argument(
        "--profile-dir",
        type=str,
        default=None,
        help="Directory holding driver profiles (default: %%APPDATA%%/RCOS/ASCOM)"
    )
    return parser.parse_args(argv)


def apply_focuser_profile(config: AppConfig, profile: DriverProfile) -> None:
    """Focuser mechanics saved in the driver profile take precedence over config.json."""
    if profile.focuser_max_step != config.focuser.max_step:
        logger.info(f"Using saved max_step: {profile.focuser_max_step}")
        config.focuser.max_step = profile.focuser_max_step

    if profile.focuser_step_size_microns != config.focuser.step_size_microns:
        logger.info(f"Using saved step size: {profile.focuser_step_size_microns} um")
        config.focuser.step_size_microns = profile.focuser_step_size_microns


def select_serial_port(args: argparse.Namespace, config: AppConfig, profile: DriverProfile) -> str:
    """Command line first, then config.json, then the last port saved in the profile."""
    if args.port:
        logger.info(f"Using port from command line: {args.port}")
        return args.port
    if config.serial.port:
        logger.info(f"Using port from config: {config.serial.port}")
        return config.serial.port
    logger.info(f"Using port from driver profile: {profile.com_port}")
    return profile.com_port


def build_transport(use_simulator: bool, port: str, config: AppConfig) -> TransportInterface:
    if use_simulator:
        logger.info("Using SIMULATOR mode")
        return MockTccTransport(config.simulator)

    logger.info("Using REAL HARDWARE mode")
    serial_config = config.serial.model_copy(update={"port": port})
    return TccSerial(serial_config)


def main(argv=None):
    """Main application entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.logging)

    logger.info("=" * 60)
    logger.info(f"RCOS TCC ASCOM Alpaca Driver v{__version__}")
    logger.info("=" * 60)

    profile_store = ProfileStore(args.profile_dir)
    focuser_profile = profile_store.load(DeviceKind.FOCUSER, Focuser.DRIVER_ID)
    switch_profile = profile_store.load(DeviceKind.SWITCH, FanSwitch.DRIVER_ID)
    logger.info(f"Driver profiles loaded from {profile_store.base_dir}")

    apply_focuser_profile(config, focuser_profile)

    use_simulator = args.simulator or config.simulator.enabled
    port = "" if use_simulator else select_serial_port(args, config, focuser_profile)
    transport = build_transport(use_simulator, port, config)

    tcc = TccClient(transport, config.client, config.commands, config.focuser)
    hub = DeviceHub(
        tcc,
        profile=None if use_simulator else focuser_profile,
        profile_store=None if use_simulator else profile_store,
        fan_auto_on_connect=switch_profile.fan_auto_on_connect,
    )

    app = create_app(config, hub)

    logger.info(f"Starting Alpaca API server on {config.server.ip}:{config.server.port}")
    logger.info("Press Ctrl+C to stop")

    try:
        uvicorn.run(
            app,
            host=config.server.ip,
            port=config.server.port,
            log_level=config.logging.level.lower(),
            access_log=False
        )
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        hub.disconnect()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    main()
