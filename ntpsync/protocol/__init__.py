"""Protocol Layer - NTP wire format (RFC 5905)."""

from .timestamp import Timestamp, from_seconds, to_seconds, is_valid
from .packet import Packet, LeapFlag, Mode

__all__ = [
    "Timestamp",
    "from_seconds",
    "to_seconds",
    "is_valid",
    # Packet API
    "Packet",
    "LeapFlag",
    "Mode",
]
