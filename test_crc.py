import unittest
import zlib

from msh_io.utils.crc import TO_LOWER, calc_lower_crc, calc_lower_crc_msb


def reflected_crc(data: bytes) -> int:
    crc = 0xFFFFFFFF
    for byte in data:
        crc ^= byte
        for _ in range(8):
            crc = (crc >> 1) ^ 0xEDB88320 if crc & 1 else crc >> 1
    return crc ^ 0xFFFFFFFF


def msb_crc(data: bytes) -> int:
    crc = 0xFFFFFFFF
    for byte in data:
        crc ^= byte << 24
        for _ in range(8):
            crc = ((crc << 1) ^ 0x04C11DB7) if crc & 0x80000000 else crc << 1
            crc &= 0xFFFFFFFF
    return crc ^ 0xFFFFFFFF


class TestLowerTable(unittest.TestCase):
    def test_only_ascii_letters_change(self):
        self.assertEqual(len(TO_LOWER), 256)
        for c in range(256):
            expected = c + 32 if ord('A') <= c <= ord('Z') else c
            self.assertEqual(TO_LOWER[c], expected)


class TestCalcLowerCRC(unittest.TestCase):
    NAMES = ['bone_root', 'Bone_R_UpperArm', 'hp_weapons', 'DummyRoot', 'a', '']

    def test_check_values(self):
        self.assertEqual(calc_lower_crc('123456789'), 0xCBF43926)
        self.assertEqual(calc_lower_crc_msb('123456789'), 0xFC891918)

    def test_empty_name(self):
        self.assertEqual(calc_lower_crc(''), 0)
        self.assertEqual(calc_lower_crc_msb(''), 0)

    def test_matches_bitwise_reference(self):
        for name in self.NAMES:
            folded = name.lower().encode('latin-1')
            self.assertEqual(calc_lower_crc(name), reflected_crc(folded))
            self.assertEqual(calc_lower_crc_msb(name), msb_crc(folded))

    def test_matches_zlib(self):
        for name in self.NAMES:
            self.assertEqual(calc_lower_crc(name), zlib.crc32(name.lower().encode('latin-1')))

    def test_case_insensitive(self):
        for name in self.NAMES:
            self.assertEqual(calc_lower_crc(name), calc_lower_crc(name.upper()))
            self.assertEqual(calc_lower_crc_msb(name), calc_lower_crc_msb(name.upper()))

    def test_bytes_and_str_agree(self):
        self.assertEqual(calc_lower_crc(b'BONE_ROOT'), calc_lower_crc('bone_root'))

    def test_continuation(self):
        self.assertEqual(calc_lower_crc('bone', 0), calc_lower_crc('bone'))
        self.assertEqual(calc_lower_crc('_root', calc_lower_crc('bone')), calc_lower_crc('bone_root'))
        self.assertEqual(calc_lower_crc_msb('_root', calc_lower_crc_msb('bone')), calc_lower_crc_msb('bone_root'))

    def test_non_ascii_bytes_not_folded(self):
        self.assertNotEqual(calc_lower_crc(b'\xc0'), calc_lower_crc(b'\xe0'))


if __name__ == '__main__':
    unittest.main()
