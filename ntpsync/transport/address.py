import socket
import struct
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True, order=True)
class Address:
    """IPv4 endpoint, stored in host order."""
    ip: int
    port: int

    @classmethod
    def from_string(cls, host: str, port: int) -> 'Address':
        return cls(struct.unpack('!I', socket.inet_aton(host))[0], port)

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple) -> 'Address':
        host, port = sockaddr[:2]
        return cls.from_string(host, port)

    @property
    def host(self) -> str:
        return socket.inet_ntoa(struct.pack('!I', self.ip))

    def as_tuple(self) -> Tuple[str, int]:
        return (self.host, self.port)

    def __str__(self):
        return self.host
