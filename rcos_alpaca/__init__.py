"""
ASCOM Alpaca Driver for the RCOS Telescope Control Center (TCC).

A Python client for the TCC serial protocol (focuser, rotator, temperatures,
fans and dew heaters) with an HTTP bridge for Alpaca clients (NINA, SGP, ...).
"""

__version__ = "1.0.0"
