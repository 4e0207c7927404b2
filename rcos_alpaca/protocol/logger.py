"""
Diagnostic logs for serial communication.

ProtocolLogger keeps raw TX/RX traffic; RawTokenLog keeps the (key, value)
events the tokenizer produced. Both are bounded and thread-safe, and neither
is read by dispatch logic.
"""

import threading
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import List, NamedTuple, Optional


def _printable(data: bytes) -> str:
    return "".join(chr(b) if 32 <= b < 127 else f"[{b:02X}]" for b in data)


@dataclass
class ProtocolMessage:
    """A single protocol message (TX, RX or ERR)."""
    timestamp: str
    direction: str
    text: str
    raw_hex: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class ProtocolLogger:
    """
    Thread-safe logger for protocol traffic.

    Maintains a circular buffer of messages with configurable max size.
    """

    DEFAULT_MAX_MESSAGES = 500

    def __init__(self, max_messages: int = DEFAULT_MAX_MESSAGES):
        self._messages: deque = deque(maxlen=max_messages)
        self._lock = threading.Lock()
        self._enabled = True
        self._tx_count = 0
        self._rx_count = 0
        self._error_count = 0

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value

    def log_tx(self, data: bytes) -> None:
        """Log bytes written to the TCC."""
        if not self._enabled:
            return
        with self._lock:
            self._tx_count += 1
            self._append("TX", data)

    def log_rx(self, data: bytes) -> None:
        """Log a chunk read from the TCC (chunks follow read boundaries, not tokens)."""
        if not self._enabled:
            return
        with self._lock:
            self._rx_count += 1
            self._append("RX", data)

    def log_error(self, error_msg: str, data: bytes = b"") -> None:
        """Log a transport error."""
        if not self._enabled:
            return
        with self._lock:
            self._error_count += 1
            self._append("ERR", data, error_msg)

    def _append(self, direction: str, data: bytes, error: Optional[str] = None) -> None:
        self._messages.append(ProtocolMessage(
            timestamp=datetime.now().isoformat(timespec="milliseconds"),
            direction=direction,
            text=_printable(data),
            raw_hex=data.hex().upper(),
            error=error,
        ))

    def get_messages(self, limit: int = 100) -> List[dict]:
        """
        Get recent messages.

        Args:
            limit: Maximum number of messages to return.

        Returns:
            List of message dictionaries, oldest first.
        """
        with self._lock:
            messages = list(self._messages)
        if len(messages) > limit:
            messages = messages[-limit:]
        return [m.to_dict() for m in messages]

    def get_stats(self) -> dict:
        """Get logging statistics."""
        with self._lock:
            return {
                "total_messages": len(self._messages),
                "tx_count": self._tx_count,
                "rx_count": self._rx_count,
                "error_count": self._error_count,
                "max_messages": self._messages.maxlen,
                "enabled": self._enabled,
            }

    def clear(self) -> None:
        """Clear all logged messages."""
        with self._lock:
            self._messages.clear()
            self._tx_count = 0
            self._rx_count = 0
            self._error_count = 0


class RawToken(NamedTuple):
    key: str
    value: Optional[str]
    timestamp: datetime


class RawTokenLog:
    """Bounded append-only record of tokenizer events."""

    DEFAULT_MAX_TOKENS = 1000

    def __init__(self, max_tokens: int = DEFAULT_MAX_TOKENS):
        self._tokens: deque = deque(maxlen=max_tokens)
        self._lock = threading.Lock()

    def append(self, key: str, value: Optional[str]) -> None:
        with self._lock:
            self._tokens.append(RawToken(key, value, datetime.now(timezone.utc)))

    def entries(self, limit: Optional[int] = None) -> List[RawToken]:
        """Return logged events, oldest first."""
        with self._lock:
            tokens = list(self._tokens)
        if limit is not None:
            tokens = tokens[-limit:] if limit > 0 else []
        return tokens

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __len__(self) -> int:
        return len(self._tokens)
