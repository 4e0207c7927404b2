"""
Configuration models using Pydantic for validation.

All configuration is loaded from config.json and validated at startup.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    ip: str = Field(default="0.0.0.0", description="IP address to bind to")
    port: int = Field(default=11111, ge=1, le=65535, description="HTTP port")


class SerialConfig(BaseModel):
    """
    Serial port configuration.

    Line settings (9600 8-N-1, XON/XOFF) are fixed by the TCC and are not
    configurable; only the port name and timeouts are.
    """

    port: str = Field(default="", description="Serial port name (e.g., COM3). Empty to use the driver profile.")
    read_timeout_seconds: float = Field(
        default=0.1, gt=0, le=5.0, description="Read timeout; an expired read returns no data"
    )
    write_timeout_seconds: float = Field(
        default=1.0, gt=0, le=30.0, description="Write timeout"
    )


class ClientConfig(BaseModel):
    """Background reader and query timing."""

    idle_delay_ms: int = Field(
        default=5, ge=1, le=1000, description="Delay after a read that returned no data (ms)"
    )
    error_backoff_ms: int = Field(
        default=50, ge=1, le=10000, description="Delay after a failed read before retrying (ms)"
    )
    close_timeout_seconds: float = Field(
        default=1.0, gt=0, le=30.0, description="How long close() waits for the reader to exit"
    )
    query_settle_ms: int = Field(
        default=100, ge=0, le=5000, description="How long a query waits for the next dispatch cycle (ms)"
    )
    raw_token_log_size: int = Field(
        default=1000, ge=1, description="Number of (key, value) events kept for diagnostics"
    )


class CommandConfig(BaseModel):
    """
    Wire templates for motion commands.

    These verbs have not been confirmed against TCC firmware, so they can be
    overridden here. Relative templates receive ``sign`` ("+" or "-") and
    ``steps`` (unsigned). Absolute templates receive ``steps`` (signed); when
    an absolute template is None the move is sent as a relative delta from
    the last reported actual position.
    """

    focuser_move_relative: str = Field(default="m{sign}{steps} ")
    focuser_move_absolute: Optional[str] = Field(default=None)
    focuser_stop: str = Field(default="s ")
    focuser_home: str = Field(default="h ")
    rotator_move_relative: str = Field(default="r{sign}{steps} ")
    rotator_move_absolute: Optional[str] = Field(default=None)
    rotator_home: str = Field(default="r ")

    @field_validator(
        "focuser_move_relative", "focuser_move_absolute", "focuser_stop", "focuser_home",
        "rotator_move_relative", "rotator_move_absolute", "rotator_home",
    )
    @classmethod
    def validate_terminated(cls, v):
        """Every command must end with the token delimiter."""
        if v is not None and not v.endswith(" "):
            raise ValueError(f"Command template must end with a space: {v!r}")
        return v

    @field_validator("focuser_move_relative", "rotator_move_relative")
    @classmethod
    def validate_relative_placeholders(cls, v):
        """Relative templates may only use {sign} and {steps}."""
        try:
            v.format(sign="+", steps=1)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Relative move template {v!r} is invalid: {e!r}") from e
        return v

    @field_validator("focuser_move_absolute", "rotator_move_absolute")
    @classmethod
    def validate_absolute_placeholders(cls, v):
        """Absolute templates may only use {steps}."""
        if v is None:
            return v
        try:
            v.format(steps=1)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"Absolute move template {v!r} is invalid: {e!r}") from e
        return v


class FocuserConfig(BaseModel):
    """Focuser mechanics."""

    max_step: int = Field(default=40000, ge=1, description="Maximum position limit")
    step_size_microns: float = Field(default=0.5625, gt=0, description="Step size in microns")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    file: Optional[str] = Field(
        default="rcos_alpaca.log",
        description="Log file path (None for console only)"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate logging level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class SimulatorConfig(BaseModel):
    """In-memory TCC simulator configuration."""

    enabled: bool = Field(default=False, description="Use simulator instead of real hardware")
    firmware_version: str = Field(default="4.12", description="Reported firmware version")
    ambient_temperature_f: float = Field(default=50.0, description="Simulated ambient temperature (F)")
    focuser_position: int = Field(default=20000, ge=0, description="Starting focuser position")
    rotator_position_deg: float = Field(default=0.0, ge=0.0, lt=360.0, description="Starting rotator angle")


class AppConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    server: ServerConfig = Field(default_factory=ServerConfig)
    serial: SerialConfig = Field(default_factory=SerialConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    commands: CommandConfig = Field(default_factory=CommandConfig)
    focuser: FocuserConfig = Field(default_factory=FocuserConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    simulator: SimulatorConfig = Field(default_factory=SimulatorConfig)
