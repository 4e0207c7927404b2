"""
Focuser device adapter.

Maps the TCC client onto the Alpaca IFocuserV3 surface.
"""

import logging

from rcos_alpaca.tcc.client import TccClient
from rcos_alpaca.tcc.state import TempCompMode
from rcos_alpaca.utils.exceptions import NotConnectedError


logger = logging.getLogger(__name__)


class Focuser:
    """Secondary-mirror focuser driven by the TCC."""

    DRIVER_ID = "ASCOM.RCOS.Focuser"
    NAME = "RCOS TCC Focuser"
    INTERFACE_VERSION = 3

    def __init__(self, tcc: TccClient, max_step: int = 40000, step_size_microns: float = 0.5625):
        self._tcc = tcc
        self.max_step = max_step
        self.step_size = step_size_microns

    def _require_connected(self) -> None:
        if not self._tcc.is_open:
            raise NotConnectedError("Focuser not connected")

    @property
    def position(self) -> int:
        self._require_connected()
        return self._tcc.focuser_position()

    @property
    def is_moving(self) -> bool:
        if not self._tcc.is_open:
            return False
        return self._tcc.focuser_is_moving()

    @property
    def temp_comp(self) -> bool:
        return self._tcc.state.focuser.temp_comp_mode != TempCompMode.OFF

    def set_temp_comp(self, enabled: bool, manual: bool = False) -> None:
        self._require_connected()
        self._tcc.set_temp_comp(enabled, manual)

    @property
    def temperature(self) -> float:
        """Ambient temperature in Celsius."""
        self._require_connected()
        return self._tcc.ambient_temperature_c()

    def move(self, position: int) -> None:
        self._require_connected()
        self._tcc.move_focuser_absolute(position)

    def halt(self) -> None:
        self._require_connected()
        self._tcc.stop_focuser()
