import math
import struct
from functools import total_ordering

from ntpsync.utils.constants import NTP_UNIX_DELTA, ERA_SECONDS

_U64_MASK = (1 << 64) - 1
_TIMESTAMP_FMT = '!Q'


@total_ordering
class Timestamp:
    """NTP timestamp: u32.32 fixed point, seconds since 1900-01-01 00:00:00 UTC.

    Raw value 0 is reserved; it means "unset" and is never a valid instant.
    Instants past 2036 (Era 1) wrap around to small values.
    """

    __slots__ = ('_raw',)

    def __init__(self, raw: int = 0):
        self._raw = raw & _U64_MASK

    @classmethod
    def from_seconds(cls, seconds: float) -> 'Timestamp':
        # line the fixed point up with the 32 fraction bits
        return cls(int(math.ldexp(seconds % ERA_SECONDS, 32)))

    def to_seconds(self) -> float:
        return math.ldexp(float(self._raw), -32)

    @classmethod
    def from_unix(cls, unix_seconds: float) -> 'Timestamp':
        return cls.from_seconds(unix_seconds + NTP_UNIX_DELTA)

    def to_unix(self) -> float:
        return self.to_seconds() - NTP_UNIX_DELTA

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Timestamp':
        return cls(struct.unpack(_TIMESTAMP_FMT, data)[0])

    def to_bytes(self) -> bytes:
        return struct.pack(_TIMESTAMP_FMT, self._raw)

    @property
    def raw(self) -> int:
        return self._raw

    @property
    def seconds_field(self) -> int:
        return self._raw >> 32

    @property
    def fraction_field(self) -> int:
        return self._raw & 0xFFFFFFFF

    def is_valid(self) -> bool:
        return self._raw != 0

    def __bool__(self):
        return self._raw != 0

    def __eq__(self, other):
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self._raw == other._raw

    def __lt__(self, other):
        if not isinstance(other, Timestamp):
            return NotImplemented
        return self._raw < other._raw

    def __hash__(self):
        return hash(self._raw)

    def __repr__(self):
        return f"Timestamp({self.seconds_field}.{self.fraction_field:08x})"


def from_seconds(seconds: float) -> Timestamp:
    return Timestamp.from_seconds(seconds)


def to_seconds(t: Timestamp) -> float:
    return t.to_seconds()


def is_valid(t: Timestamp) -> bool:
    return t.is_valid()
