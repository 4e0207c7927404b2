"""
Driver profile persistence.

Each device kind keeps a small JSON profile (COM port and a few numeric
defaults) under ``<base>/<kind>/profile.json``. The layout mirrors where the
Windows drivers kept their profiles so an existing installation is picked up.
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError


logger = logging.getLogger(__name__)


class DeviceKind(str, Enum):
    """Device kinds that keep their own profile."""
    FOCUSER = "Focuser"
    ROTATOR = "Rotator"
    TEMPERATURE_SENSOR = "TemperatureSensor"
    SWITCH = "Switch"
    DEW = "Dew"


class DriverProfile(BaseModel):
    """Persisted per-driver settings."""

    model_config = ConfigDict(extra="ignore")

    device_kind: DeviceKind
    driver_id: str
    com_port: str = Field(default="COM1", description="Serial port name")
    focuser_max_step: int = Field(default=40000, ge=1)
    focuser_step_size_microns: float = Field(default=0.5625, gt=0)
    fan_auto_on_connect: bool = Field(
        default=False, description="Switch the fan to auto mode after connecting"
    )
    reserved_json: Optional[str] = None


def default_profile_dir() -> Path:
    """%APPDATA%/RCOS/ASCOM on Windows, ~/.config/RCOS/ASCOM elsewhere."""
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / "RCOS" / "ASCOM"
    return Path.home() / ".config" / "RCOS" / "ASCOM"


class ProfileStore:
    """
    Loads and saves driver profiles.

    A missing profile is created with defaults on first load. A corrupt one
    is replaced by defaults in memory (the file is left alone until the next
    save).
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        self._base_dir = Path(base_dir) if base_dir else default_profile_dir()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def path_for(self, kind: DeviceKind) -> Path:
        return self._base_dir / DeviceKind(kind).value / "profile.json"

    def load(self, kind: DeviceKind, driver_id: str) -> DriverProfile:
        """
        Load the profile for a device kind.

        Args:
            kind: Device kind.
            driver_id: Driver identifier (e.g., "ASCOM.RCOS.Focuser").

        Returns:
            Stored profile, or a fresh default one.
        """
        kind = DeviceKind(kind)
        path = self.path_for(kind)

        if not path.exists():
            logger.info(f"Profile not found: {path}. Creating with defaults.")
            profile = DriverProfile(device_kind=kind, driver_id=driver_id)
            try:
                self.save(profile)
            except OSError as e:
                logger.warning(f"Failed to create default profile {path}: {e}")
            return profile

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            data.update({"device_kind": kind, "driver_id": driver_id})
            profile = DriverProfile(**data)
            logger.debug(f"Profile loaded from {path}")
            return profile

        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in {path}: {e}. Using defaults.")
        except ValidationError as e:
            logger.warning(f"Invalid profile in {path}: {e}. Using defaults.")
        except OSError as e:
            logger.warning(f"Failed to read {path}: {e}. Using defaults.")

        return DriverProfile(device_kind=kind, driver_id=driver_id)

    def save(self, profile: DriverProfile) -> None:
        """
        Write a profile to disk.

        Raises:
            OSError: If the profile cannot be written.
        """
        path = self.path_for(profile.device_kind)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(profile.model_dump(mode="json"), f, indent=2)

        logger.debug(f"Profile saved to {path}")
