"""
Rotator device adapter (Alpaca IRotatorV3).
"""

from rcos_alpaca.tcc.client import TccClient
from rcos_alpaca.tcc.units import ROTATOR_STEPS_PER_DEGREE
from rcos_alpaca.utils.exceptions import NotConnectedError


class Rotator:
    """Instrument rotator driven by the TCC. Angles in degrees."""

    DRIVER_ID = "ASCOM.RCOS.Rotator"
    NAME = "RCOS TCC Rotator"
    INTERFACE_VERSION = 3
    STEP_SIZE = 1.0 / ROTATOR_STEPS_PER_DEGREE

    def __init__(self, tcc: TccClient):
        self._tcc = tcc

    def _require_connected(self) -> None:
        if not self._tcc.is_open:
            raise NotConnectedError("Rotator not connected")

    @property
    def position(self) -> float:
        self._require_connected()
        return self._tcc.rotator_position_deg()

    @property
    def target_position(self) -> float:
        return self._tcc.state.rotator.set_position_deg

    @property
    def is_moving(self) -> bool:
        if not self._tcc.is_open:
            return False
        return self._tcc.rotator_is_moving()

    def move(self, delta_degrees: float) -> None:
        self._require_connected()
        self._tcc.move_rotator_relative_deg(delta_degrees)

    def move_absolute(self, angle_degrees: float) -> None:
        self._require_connected()
        self._tcc.move_rotator_absolute_deg(angle_degrees)

    def halt(self) -> None:
        # The TCC has no rotator stop; a status request collapses the motion state
        self._require_connected()
        self._tcc.query_rotator()

    def home(self) -> None:
        self._require_connected()
        self._tcc.home_rotator()
