"""
MSH Chunk Scanner and Primitive Readers

Every .msh file is a tree of chunks:

    char     tag[4];      // 4 bytes - ASCII identifier ('HEDR', 'MODL', ...)
    uint32_t length;      // 4 bytes - payload length, little endian
    uint8_t  payload[];   // length bytes - flat data or nested chunks

Some tags are containers whose payload is itself a chunk list. Different
exporters (stock XSI exporter, ZETools, ...) place chunks at different depths,
so lookups descend into every known container instead of assuming a layout.
"""

import struct
from dataclasses import dataclass
from typing import Iterator, List, Optional

# =============================================================================
# Constants
# =============================================================================

CHUNK_HEADER_SIZE = 8
CHUNK_HEADER_FORMAT = '<4s I'

# Tags whose payload is a list of child chunks
CONTAINER_TAGS = frozenset((
    'HEDR',  # file root
    'MSH2',  # mesh block
    'SINF',  # scene info
    'CAMR',  # camera
    'MATL',  # material list
    'MODL',  # model node
    'GEOM',  # geometry
    'SEGM',  # geometry segment
    'CLTH',  # cloth
    'ANM2',  # animation block
))

_unpack_header = struct.Struct(CHUNK_HEADER_FORMAT).unpack_from
_unpack_u8 = struct.Struct('<B').unpack_from
_unpack_u16 = struct.Struct('<H').unpack_from
_unpack_u32 = struct.Struct('<I').unpack_from
_unpack_f32 = struct.Struct('<f').unpack_from


# =============================================================================
# Primitive readers
# =============================================================================

def read_u8(data: bytes, offset: int) -> Optional[int]:
    if offset < 0 or offset + 1 > len(data):
        return None
    return _unpack_u8(data, offset)[0]


def read_u16(data: bytes, offset: int) -> Optional[int]:
    if offset < 0 or offset + 2 > len(data):
        return None
    return _unpack_u16(data, offset)[0]


def read_u32(data: bytes, offset: int) -> Optional[int]:
    if offset < 0 or offset + 4 > len(data):
        return None
    return _unpack_u32(data, offset)[0]


def read_f32(data: bytes, offset: int) -> Optional[float]:
    if offset < 0 or offset + 4 > len(data):
        return None
    return _unpack_f32(data, offset)[0]


def read_string(data: bytes, offset: int, length: int) -> Optional[str]:
    """Read a fixed-length string, dropping NUL padding.

    Returns None instead of raising when the string would run past the end
    of the buffer, so callers can treat a short string as absent.
    """
    if length is None or length <= 0 or offset < 0 or offset + length > len(data):
        return None
    return data[offset:offset + length].replace(b'\x00', b'').decode('latin-1')


def read_tag(data: bytes, offset: int) -> Optional[str]:
    """Peek the 4-byte tag at offset"""
    return read_string(data, offset, 4)


def read_struct(data: bytes, offset: int, end: int, fmt: struct.Struct) -> Optional[tuple]:
    """Unpack one fixed-size record, or None if it does not fit before end"""
    if offset < 0 or offset + fmt.size > min(end, len(data)):
        return None
    return fmt.unpack_from(data, offset)


def read_array(data: bytes, offset: int, end: int, fmt: struct.Struct, count: int) -> List[tuple]:
    """Unpack up to `count` consecutive records.

    Stops at whichever comes first of `count`, `end` and the buffer end, so a
    truncated array comes back short instead of raising.
    """
    if count is None or count <= 0 or offset < 0:
        return []
    available = max(0, min(end, len(data)) - offset) // fmt.size
    count = min(count, available)
    return list(fmt.iter_unpack(data[offset:offset + count * fmt.size]))


# =============================================================================
# Chunk references
# =============================================================================

@dataclass
class ChunkRef:
    """Location of one chunk inside the buffer"""
    tag: str
    start: int  # offset of the tag
    end: int    # one past the payload

    @property
    def data_start(self) -> int:
        return self.start + CHUNK_HEADER_SIZE

    @property
    def size(self) -> int:
        return self.end - self.data_start


def _read_header(data: bytes, offset: int, limit: int):
    if offset < 0 or offset + CHUNK_HEADER_SIZE > min(limit, len(data)):
        return None, None
    raw_tag, length = _unpack_header(data, offset)
    return raw_tag.decode('latin-1'), length


def _scan(data: bytes, tag: str, start: int, end: int) -> Iterator[ChunkRef]:
    """Walk the chunk tree in file order, descending into containers.

    `end` bounds where a chunk may start; a container is always searched up
    to its own end. A chunk whose length runs past the end of the buffer is
    either a truncated file (known tag: clamp the chunk to what is left) or
    garbage (unknown tag: step one byte and resynchronise).

    Nesting is tracked on an explicit stack of (offset, end) frames, so
    arbitrarily deep container chains cannot exhaust the interpreter stack.
    """
    buffer_end = len(data)
    stack = [(start, end)]
    while stack:
        offset, end = stack.pop()
        while offset < end:
            chunk_tag, length = _read_header(data, offset, buffer_end)
            if chunk_tag is None:
                break

            chunk_end = offset + CHUNK_HEADER_SIZE + length
            known = chunk_tag == tag or chunk_tag in CONTAINER_TAGS
            if chunk_end > buffer_end:
                if not known:
                    offset += 1
                    continue
                chunk_end = buffer_end

            if chunk_tag == tag:
                yield ChunkRef(chunk_tag, offset, chunk_end)
            if chunk_tag in CONTAINER_TAGS:
                # resume after the container once its children are done
                stack.append((chunk_end, end))
                offset, end = offset + CHUNK_HEADER_SIZE, chunk_end
                continue

            offset = chunk_end


def find_chunk(data: bytes, tag: str, start: int = 0, end: Optional[int] = None) -> Optional[ChunkRef]:
    """Find the first chunk with the given tag, at any depth"""
    if end is None:
        end = len(data)
    return next(_scan(data, tag, start, end), None)


def find_all_chunks(data: bytes, tag: str, start: int = 0, end: Optional[int] = None) -> List[ChunkRef]:
    """Find every chunk with the given tag, in file order"""
    if end is None:
        end = len(data)
    return list(_scan(data, tag, start, end))


def iter_chunks(data: bytes, start: int, end: int) -> Iterator[ChunkRef]:
    """Iterate the direct children of a chunk payload.

    Used by the typed readers' tag-dispatch loops. A child that claims more
    bytes than its parent holds is clamped to the parent and ends the walk.
    """
    end = min(end, len(data))
    offset = start
    while offset < end:
        chunk_tag, length = _read_header(data, offset, end)
        if chunk_tag is None:
            break
        chunk_end = offset + CHUNK_HEADER_SIZE + length
        if chunk_end > end:
            yield ChunkRef(chunk_tag, offset, end)
            break
        yield ChunkRef(chunk_tag, offset, chunk_end)
        offset = chunk_end
