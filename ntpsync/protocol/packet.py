import struct
from dataclasses import dataclass, field
from enum import IntEnum

from ntpsync.utils.constants import NTP_PACKET_SIZE
from ntpsync.utils.exceptions import InvalidResponseError
from .timestamp import Timestamp

# For details, see RFC 5905, section 7.3.
_PACKET_FMT = '!BBbbII4sQQQQ'

if struct.calcsize(_PACKET_FMT) != NTP_PACKET_SIZE:
    raise ImportError(f"NTP packet layout must be {NTP_PACKET_SIZE} bytes")

_LEAP_MASK = 0b1100_0000
_VERSION_MASK = 0b0011_1000
_MODE_MASK = 0b0000_0111


class LeapFlag(IntEnum):
    NO_WARNING = 0
    ONE_MORE_SECOND = 1
    ONE_LESS_SECOND = 2
    UNKNOWN = 3


class Mode(IntEnum):
    RESERVED = 0
    ACTIVE = 1
    PASSIVE = 2
    CLIENT = 3
    SERVER = 4
    BROADCAST = 5
    CONTROL = 6
    RESERVED_PRIVATE = 7

    def __str__(self):
        return self.name.lower()


@dataclass
class Packet:
    """NTP client/server packet. All fields are zero by default."""
    lvm: int = 0                # leap, version and mode
    stratum: int = 0
    poll_exp: int = 0
    precision_exp: int = 0
    root_delay: int = 0         # u16.16
    root_dispersion: int = 0    # u16.16
    reference_id: bytes = b'\x00\x00\x00\x00'
    reference_time: Timestamp = field(default_factory=Timestamp)
    origin_time: Timestamp = field(default_factory=Timestamp)
    receive_time: Timestamp = field(default_factory=Timestamp)
    transmit_time: Timestamp = field(default_factory=Timestamp)

    @property
    def leap(self) -> LeapFlag:
        return LeapFlag((self.lvm & _LEAP_MASK) >> 6)

    @leap.setter
    def leap(self, value: int):
        self.lvm = ((int(value) << 6) & _LEAP_MASK) | (self.lvm & ~_LEAP_MASK & 0xFF)

    @property
    def version(self) -> int:
        return (self.lvm & _VERSION_MASK) >> 3

    @version.setter
    def version(self, value: int):
        self.lvm = ((int(value) << 3) & _VERSION_MASK) | (self.lvm & ~_VERSION_MASK & 0xFF)

    @property
    def mode(self) -> Mode:
        return Mode(self.lvm & _MODE_MASK)

    @mode.setter
    def mode(self, value: int):
        self.lvm = (int(value) & _MODE_MASK) | (self.lvm & ~_MODE_MASK & 0xFF)

    def pack(self) -> bytes:
        return struct.pack(
            _PACKET_FMT,
            self.lvm,
            self.stratum,
            self.poll_exp,
            self.precision_exp,
            self.root_delay,
            self.root_dispersion,
            bytes(self.reference_id[:4]).ljust(4, b'\x00'),
            self.reference_time.raw,
            self.origin_time.raw,
            self.receive_time.raw,
            self.transmit_time.raw,
        )

    @classmethod
    def unpack(cls, data: bytes) -> 'Packet':
        if len(data) < NTP_PACKET_SIZE:
            raise InvalidResponseError("Invalid NTP response!")

        (lvm, stratum, poll_exp, precision_exp,
         root_delay, root_dispersion, reference_id,
         ref, orig, recv, xmit) = struct.unpack(_PACKET_FMT, data[:NTP_PACKET_SIZE])

        return cls(
            lvm=lvm,
            stratum=stratum,
            poll_exp=poll_exp,
            precision_exp=precision_exp,
            root_delay=root_delay,
            root_dispersion=root_dispersion,
            reference_id=reference_id,
            reference_time=Timestamp(ref),
            origin_time=Timestamp(orig),
            receive_time=Timestamp(recv),
            transmit_time=Timestamp(xmit),
        )

    @classmethod
    def client_request(cls, version: int = 4) -> 'Packet':
        packet = cls()
        packet.version = version
        packet.mode = Mode.CLIENT
        return packet
