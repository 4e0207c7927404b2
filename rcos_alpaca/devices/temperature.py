"""
Temperature sensor adapter: TCC probes :t1 :t2 :t3 :t7 as indexed sensors.
"""

from typing import List

from rcos_alpaca.tcc.client import TccClient
from rcos_alpaca.utils.exceptions import InvalidValueError, NotConnectedError


SENSOR_NAMES = ["Ambient", "Primary", "Secondary", "Electronics"]


class TemperatureSensor:
    """Four temperature probes, read in Celsius."""

    DRIVER_ID = "ASCOM.RCOS.TemperatureSensor"
    NAME = "RCOS TCC Temperature Sensor"

    def __init__(self, tcc: TccClient):
        self._tcc = tcc

    @property
    def sensor_names(self) -> List[str]:
        return list(SENSOR_NAMES)

    def read_celsius(self, sensor_index: int) -> float:
        if not 0 <= sensor_index < len(SENSOR_NAMES):
            raise InvalidValueError(f"Sensor index must be 0-{len(SENSOR_NAMES) - 1}, got {sensor_index}")
        return self.read_all_celsius()[sensor_index]

    def read_all_celsius(self) -> List[float]:
        if not self._tcc.is_open:
            raise NotConnectedError("Temperature sensor not connected")
        return self._tcc.query_temperatures().as_list()
