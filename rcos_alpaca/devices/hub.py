"""
Device hub: one TCC connection shared by every device adapter.
"""

import logging
import threading
from typing import Optional

from rcos_alpaca.config.profile import DriverProfile, ProfileStore
from rcos_alpaca.devices.focuser import Focuser
from rcos_alpaca.devices.rotator import Rotator
from rcos_alpaca.devices.switches import DewSwitch, FanSwitch
from rcos_alpaca.devices.temperature import TemperatureSensor
from rcos_alpaca.tcc.client import TccClient
from rcos_alpaca.tcc.state import FanMode


logger = logging.getLogger(__name__)


class DeviceHub:
    """
    Owns the TccClient and the adapters built on it.

    Connecting any device connects all of them, since they share the one
    serial line.
    """

    def __init__(
        self,
        tcc: TccClient,
        profile: Optional[DriverProfile] = None,
        profile_store: Optional[ProfileStore] = None,
        fan_auto_on_connect: bool = False,
    ):
        """
        Args:
            tcc: Client for the TCC connection.
            profile: Driver profile holding the remembered port.
            profile_store: Where to persist the profile after a connect.
            fan_auto_on_connect: Switch the fans to automatic mode after connecting.
        """
        self.tcc = tcc
        self.profile = profile
        self._profile_store = profile_store
        self.fan_auto_on_connect = fan_auto_on_connect
        self._lock = threading.Lock()

        mechanics = tcc.focuser_config
        self.focuser = Focuser(tcc, mechanics.max_step, mechanics.step_size_microns)
        self.rotator = Rotator(tcc)
        self.temperature = TemperatureSensor(tcc)
        self.fan = FanSwitch(tcc)
        self.dew = DewSwitch(tcc)

    @property
    def connected(self) -> bool:
        return self.tcc.is_open

    def connect(self) -> None:
        """
        Open the TCC and prime the state with a ping and status requests.

        Raises:
            TccConnectionError: If the port cannot be opened.
        """
        with self._lock:
            if self.tcc.is_open:
                logger.warning("Already connected")
                return

            self.tcc.open()
            self.tcc.ping()
            self.tcc.query_focuser()
            self.tcc.query_temperatures()
            self.tcc.query_rotator()

            if self.fan_auto_on_connect:
                logger.info("Switching fans to automatic mode")
                self.tcc.set_fan_mode(FanMode.AUTO)

            self._remember_port()

        logger.info(
            f"TCC connected on {self.tcc.port_name} "
            f"(firmware: {self.tcc.firmware_version or 'unknown'}, "
            f"focuser at {self.tcc.state.focuser.actual_position_steps})"
        )

    def _remember_port(self) -> None:
        if self.profile is None or self._profile_store is None:
            return
        port_name = self.tcc.port_name
        if not port_name or self.profile.com_port == port_name:
            return
        self.profile.com_port = port_name
        try:
            self._profile_store.save(self.profile)
            logger.info(f"Saved serial port to profile: {port_name}")
        except OSError as e:
            logger.warning(f"Failed to save profile: {e}")

    def disconnect(self) -> None:
        with self._lock:
            self.tcc.close()
