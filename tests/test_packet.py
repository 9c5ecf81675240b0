import struct
import unittest

import ntpsync.protocol.packet as packet_module
from ntpsync.protocol import Packet, Timestamp, LeapFlag, Mode
from ntpsync.utils.constants import NTP_PACKET_SIZE
from ntpsync.utils.exceptions import InvalidResponseError


class TestPacket(unittest.TestCase):
    def test_client_request_header(self):
        packet = Packet.client_request(4)
        self.assertEqual(packet.version, 4)
        self.assertEqual(packet.mode, Mode.CLIENT)
        self.assertEqual(packet.leap, LeapFlag.NO_WARNING)

        data = packet.pack()
        self.assertEqual(len(data), 48)
        self.assertEqual(data[0], 0x23)
        self.assertEqual(data[1:], bytes(47))

    def test_bitfield_setters_leave_other_fields_alone(self):
        packet = Packet.client_request(4)
        packet.leap = LeapFlag.UNKNOWN
        self.assertEqual(packet.lvm, 0xE3)
        self.assertEqual(packet.version, 4)
        self.assertEqual(packet.mode, Mode.CLIENT)

        packet.mode = Mode.SERVER
        self.assertEqual(packet.leap, LeapFlag.UNKNOWN)
        self.assertEqual(packet.version, 4)

    def test_bitfields_are_isolated(self):
        for leap in LeapFlag:
            for version in range(8):
                for mode in Mode:
                    packet = Packet(lvm=0xFF)
                    packet.leap = leap
                    packet.version = version
                    packet.mode = mode
                    self.assertEqual((packet.leap, packet.version, packet.mode),
                                     (leap, version, mode))

    def test_unpack_reads_every_field(self):
        packet = Packet(
            stratum=2,
            poll_exp=6,
            precision_exp=-20,
            root_delay=0x00010000,
            root_dispersion=0x00000800,
            reference_id=b"GPS\x00",
            reference_time=Timestamp(1),
            origin_time=Timestamp(2),
            receive_time=Timestamp(3),
            transmit_time=Timestamp(4),
        )
        packet.version = 3
        packet.mode = Mode.SERVER

        parsed = Packet.unpack(packet.pack() + b"trailing")
        self.assertEqual(parsed, packet)
        self.assertEqual(parsed.precision_exp, -20)

    def test_wire_layout_is_48_bytes(self):
        self.assertEqual(struct.calcsize(packet_module._PACKET_FMT), NTP_PACKET_SIZE)
        self.assertEqual(len(Packet().pack()), NTP_PACKET_SIZE)

    def test_short_data_is_rejected(self):
        with self.assertRaises(InvalidResponseError):
            Packet.unpack(bytes(47))

    def test_mode_renders_lowercase(self):
        self.assertEqual(str(Mode.SERVER), "server")


if __name__ == "__main__":
    unittest.main()
