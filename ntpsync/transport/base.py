from abc import ABC, abstractmethod

from .address import Address


class DatagramTransport(ABC):
    """Connected datagram socket.

    send() and poll_readable() raise ResourceBusyError when the host is
    temporarily out of resources, and TransportError for anything else.
    """

    @abstractmethod
    def connect(self, address: Address) -> None:
        pass

    @abstractmethod
    def send(self, data: bytes) -> int:
        pass

    @abstractmethod
    def poll_readable(self, timeout: float) -> bool:
        pass

    @abstractmethod
    def recv(self, size: int) -> bytes:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
