"""
Protocol package for RCOS TCC serial communication.
"""

from rcos_alpaca.protocol.interface import TransportInterface
from rcos_alpaca.protocol.tcc_serial import TccSerial
from rcos_alpaca.protocol.tokenizer import TccTokenizer, TokenEvent
from rcos_alpaca.protocol.dispatch import DispatchTable
from rcos_alpaca.protocol.encoder import CommandEncoder
from rcos_alpaca.protocol.logger import ProtocolLogger, RawTokenLog

__all__ = [
    "TransportInterface",
    "TccSerial",
    "TccTokenizer",
    "TokenEvent",
    "DispatchTable",
    "CommandEncoder",
    "ProtocolLogger",
    "RawTokenLog",
]
