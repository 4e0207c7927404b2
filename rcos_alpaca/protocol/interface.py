"""
Abstract interface for the TCC byte transport.

This interface allows transparent substitution between real hardware and simulator.
"""

from abc import ABC, abstractmethod


class TransportInterface(ABC):
    """Abstract base class for TCC transports."""

    @property
    @abstractmethod
    def port_name(self) -> str:
        """Name of the underlying channel (e.g., "COM3")."""
        pass

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the channel.

        Raises:
            PortNotFoundError: If the port does not exist.
            PortInUseError: If the port is held by another application.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the channel. Safe to call more than once."""
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the channel is open.

        Returns:
            True if open, False otherwise.
        """
        pass

    @abstractmethod
    def read(self, max_bytes: int = 4096) -> bytes:
        """
        Read whatever has arrived, waiting at most the read timeout.

        Args:
            max_bytes: Upper bound on the returned chunk size.

        Returns:
            Received bytes; empty if the timeout expired with nothing to read.

        Raises:
            NotConnectedError: If the channel is not open (or was lost).
            TransportIOError: On a transient read failure.
        """
        pass

    @abstractmethod
    def write(self, text: str) -> None:
        """
        Send one complete command.

        Concurrent callers are serialized so that commands never interleave.

        Args:
            text: ASCII command including its trailing delimiter.

        Raises:
            NotConnectedError: If the channel is not open.
            SerialTimeoutError: If the write did not complete in time.
            TccConnectionError: On any other write failure.
        """
        pass
