"""
Conversions between device-internal units and public units.

Only the client facade and the device adapters use these; dispatch keeps
state in device units.
"""

ROTATOR_STEPS_PER_DEGREE = 200

SETPOINT_MIN_C = -10.0
SETPOINT_MAX_C = 10.0


def fahrenheit_to_celsius(value_f: float) -> float:
    return (value_f - 32.0) * 5.0 / 9.0


def celsius_to_fahrenheit(value_c: float) -> float:
    return value_c * 9.0 / 5.0 + 32.0


def degrees_to_steps(degrees: float) -> int:
    """Rotator angle to device steps, rounded to the nearest step."""
    return int(round(degrees * ROTATOR_STEPS_PER_DEGREE))


def steps_to_degrees(steps: int) -> float:
    return steps / ROTATOR_STEPS_PER_DEGREE


def percent_to_fraction(percent: int) -> float:
    """0..100 percent to the 0..1 range used by switch devices."""
    return percent / 100.0


def fraction_to_percent(fraction: float) -> int:
    return int(round(fraction * 100.0))


def setpoint_to_fraction(setpoint_c: float) -> float:
    """Map a -10..+10 C setpoint onto 0..1."""
    return (setpoint_c - SETPOINT_MIN_C) / (SETPOINT_MAX_C - SETPOINT_MIN_C)


def fraction_to_setpoint(fraction: float) -> float:
    return fraction * (SETPOINT_MAX_C - SETPOINT_MIN_C) + SETPOINT_MIN_C
