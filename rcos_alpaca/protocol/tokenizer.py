"""
Stream tokenizer for the TCC telemetry protocol.

The TCC sends space-delimited ASCII tokens. A token starting with ':' is a
key and the token right after it is its value, whatever that value looks
like. The ping reply ':!' stands alone. Anything else outside a key/value
pair is noise and is dropped.

Serial reads can end anywhere, including inside a token or between a key
and its value, so the tokenizer keeps whatever it could not use yet and
picks up from there on the next feed().
"""

import logging
from typing import List, NamedTuple, Optional


logger = logging.getLogger(__name__)


DELIMITER = " "
KEY_SENTINEL = ":"

# Ping acknowledgement as it appears on the wire, and the key it is reported under
ACK_TOKEN = ":!"
ACK = "!"

# No legitimate key/value pair comes close to this without a delimiter
MAX_PENDING = 4096


class TokenEvent(NamedTuple):
    """A key (without its ':' sentinel) and its value; value is None for the ack."""
    key: str
    value: Optional[str]


class TccTokenizer:
    """
    Reassembles (key, value) events from arbitrarily split chunks.

    Not thread-safe; the client's reader thread is its only caller.
    """

    def __init__(self):
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Bytes received but not yet turned into events."""
        return self._buffer

    def reset(self) -> None:
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[TokenEvent]:
        """
        Append a chunk and return every event it completes.

        Args:
            chunk: Raw bytes from the transport (any length, any split point).

        Returns:
            Events in stream order; empty if nothing is complete yet.
        """
        if chunk:
            self._buffer += chunk.decode("ascii", errors="replace")

        events: List[TokenEvent] = []
        buf = self._buffer

        while True:
            end = buf.find(DELIMITER)
            if end < 0:
                break

            token = buf[:end]
            buf = buf[end + 1:]

            if not token:
                continue

            if token == ACK_TOKEN:
                events.append(TokenEvent(ACK, None))
                continue

            if token.startswith(KEY_SENTINEL):
                value_end = buf.find(DELIMITER)
                if value_end < 0:
                    # Value not complete yet: put the key back and wait
                    buf = token + DELIMITER + buf
                    break
                value = buf[:value_end]
                buf = buf[value_end + 1:]
                events.append(TokenEvent(token[len(KEY_SENTINEL):], value))
                continue

            logger.debug(f"Discarding stray token {token!r}")

        if len(buf) > MAX_PENDING:
            logger.warning(f"Dropping {len(buf)} undelimited bytes")
            buf = ""

        self._buffer = buf
        return events
