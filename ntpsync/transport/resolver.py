import socket
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ntpsync.utils.exceptions import ResolutionError
from .address import Address


class SocketType(Enum):
    TCP = "tcp"
    UDP = "udp"


_SOCKTYPES = {
    SocketType.TCP: (socket.SOCK_STREAM, socket.IPPROTO_TCP),
    SocketType.UDP: (socket.SOCK_DGRAM, socket.IPPROTO_UDP),
}


@dataclass(frozen=True)
class AddrInfo:
    type: Optional[SocketType]
    addr: Address
    canon_name: Optional[str] = None


def _to_type(socktype: int, proto: int) -> Optional[SocketType]:
    for kind, (st, pr) in _SOCKTYPES.items():
        if socktype == st and proto == pr:
            return kind
    return None


def lookup(name: str, service: Optional[str] = None,
           socktype: Optional[SocketType] = None,
           canon_name: bool = False) -> List[AddrInfo]:
    """Resolve name to IPv4 addresses.

    An empty list is a valid outcome; only resolver failures raise ResolutionError.
    """
    st, proto = _SOCKTYPES.get(socktype, (0, 0))
    flags = socket.AI_CANONNAME if canon_name else 0

    try:
        infos = socket.getaddrinfo(name, service, socket.AF_INET, st, proto, flags)
    except socket.gaierror as e:
        raise ResolutionError(f"{name}: {e.strerror or e}") from e
    except UnicodeError as e:
        raise ResolutionError(f"{name}: invalid host name") from e

    result = []
    for family, i_socktype, i_proto, i_canon, sockaddr in infos:
        if family != socket.AF_INET:
            continue
        result.append(AddrInfo(
            type=_to_type(i_socktype, i_proto),
            addr=Address.from_sockaddr(sockaddr),
            canon_name=i_canon or None,
        ))
    return result
