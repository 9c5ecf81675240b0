from .address import Address
from .base import DatagramTransport
from .udp import UdpTransport
from .resolver import AddrInfo, SocketType, lookup


def create_transport(kind: SocketType = SocketType.UDP) -> DatagramTransport:
    """Create a datagram transport.

    Args:
        kind: Socket type; only UDP is supported for NTP.

    Returns:
        UdpTransport instance
    """
    if kind is not SocketType.UDP:
        raise ValueError(f"Unsupported transport: {kind.value}")
    return UdpTransport()


__all__ = [
    'Address',
    'AddrInfo',
    'SocketType',
    'DatagramTransport',
    'UdpTransport',
    'create_transport',
    'lookup',
]
