import errno
import select
import socket

from ntpsync.utils.exceptions import TransportError, ResourceBusyError
from .address import Address
from .base import DatagramTransport

# errno values meaning "too many outstanding operations, try again"
_RESOURCE_ERRNOS = frozenset({errno.ENOMEM, errno.ENOBUFS, errno.EAGAIN})


def _is_resource_error(e: OSError) -> bool:
    return e.errno in _RESOURCE_ERRNOS


class UdpTransport(DatagramTransport):

    def __init__(self):
        self._sock = None
        try:
            self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        except OSError as e:
            raise TransportError(f"Failed to create UDP socket: {e}") from e

    def connect(self, address: Address) -> None:
        try:
            self._sock.connect(address.as_tuple())
        except OSError as e:
            raise TransportError(f"connect() to {address} failed: {e}") from e

    def send(self, data: bytes) -> int:
        try:
            return self._sock.send(data)
        except OSError as e:
            if _is_resource_error(e):
                raise ResourceBusyError(f"send() failed: {e}") from e
            raise TransportError(f"send() failed: {e}") from e

    def poll_readable(self, timeout: float) -> bool:
        try:
            readable, _, _ = select.select([self._sock], [], [], timeout)
        except OSError as e:
            if _is_resource_error(e):
                raise ResourceBusyError(f"select() failed: {e}") from e
            raise TransportError(f"select() failed: {e}") from e
        return bool(readable)

    def recv(self, size: int) -> bytes:
        try:
            return self._sock.recv(size)
        except OSError as e:
            raise TransportError(f"recv() failed: {e}") from e

    def close(self) -> None:
        if self._sock is not None:
            try:
                self._sock.close()
            finally:
                self._sock = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None
