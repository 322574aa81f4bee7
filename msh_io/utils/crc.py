"""
Lower-case CRC-32 hashing for MSH bone names.

KFR3 animation records identify bones by a 32-bit hash of the lower-cased
model name instead of a string. Two table forms are provided:

- calc_lower_crc: reflected CRC-32 (polynomial 0xEDB88320), identical to
  zlib.crc32 over the case-folded bytes.
- calc_lower_crc_msb: MSB-first CRC-32 (polynomial 0x04C11DB7) as computed by
  the Zero Engine tool chain.

Both fold case through the same fixed ASCII table; only A-Z are changed.
"""

import zlib
from typing import Tuple, Union

# 256-entry translation table: A-Z -> a-z, every other byte unchanged
TO_LOWER = bytes(c + 0x20 if 0x41 <= c <= 0x5A else c for c in range(256))

CRC32_POLY_MSB = 0x04C11DB7
CRC32_MASK = 0xFFFFFFFF


def _make_msb_table() -> Tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i << 24
        for _ in range(8):
            if crc & 0x80000000:
                crc = (crc << 1) ^ CRC32_POLY_MSB
            else:
                crc <<= 1
        table.append(crc & CRC32_MASK)
    return tuple(table)


TABLE_32_MSB = _make_msb_table()


def _fold(name: Union[str, bytes]) -> bytes:
    if isinstance(name, str):
        name = name.encode('latin-1', errors='replace')
    return bytes(name).translate(TO_LOWER)


def calc_lower_crc(name: Union[str, bytes], crc: int = 0) -> int:
    """Reflected CRC-32 of the case-folded name.

    `crc` continues a previous result, as with zlib.crc32.
    """
    return zlib.crc32(_fold(name), crc) & CRC32_MASK


def calc_lower_crc_msb(name: Union[str, bytes], crc: int = 0) -> int:
    """MSB-first CRC-32 of the case-folded name (Zero Engine table form)"""
    crc = ~crc & CRC32_MASK
    for byte in _fold(name):
        crc = ((crc << 8) ^ TABLE_32_MSB[(crc >> 24) ^ byte]) & CRC32_MASK
    return ~crc & CRC32_MASK
