"""
Synthetic .msh builder for the tests.

Every helper returns the bytes of one chunk, so files are assembled the way
they nest:

    data = msh_file(
        scene_info('test'),
        material_list(material('mat', textures={'TX0D': 'tex'})),
        model('obj', 1, geometry=geometry(segment(mati(0), posl(POINTS), ndxt([0, 1, 2])))),
    )
"""

import struct
from typing import Dict, Iterable, Optional, Sequence, Tuple


def chunk(tag: str, payload: bytes = b'') -> bytes:
    return tag.encode('ascii') + struct.pack('<I', len(payload)) + payload


def container(tag: str, *children: bytes) -> bytes:
    return chunk(tag, b''.join(children))


def string_chunk(tag: str, text: str) -> bytes:
    """NUL-terminated string padded to a multiple of four bytes"""
    raw = text.encode('latin-1') + b'\x00'
    raw += b'\x00' * (-len(raw) % 4)
    return chunk(tag, raw)


def u32_chunk(tag: str, value: int) -> bytes:
    return chunk(tag, struct.pack('<I', value))


def counted(tag: str, fmt: str, rows: Sequence[Sequence]) -> bytes:
    payload = struct.pack('<I', len(rows))
    for row in rows:
        payload += struct.pack(fmt, *row)
    return chunk(tag, payload)


# =============================================================================
# Scene info and materials
# =============================================================================

def scene_info(name: str = 'scene', frames: Tuple[int, int, float] = (0, 10, 30.0),
               bbox: Optional[Tuple] = None) -> bytes:
    children = [string_chunk('NAME', name), chunk('FRAM', struct.pack('<I I f', *frames))]
    if bbox is not None:
        rotation, center, extents, radius = bbox
        children.append(chunk('BBOX', struct.pack('<4f 3f 3f f', *rotation, *center, *extents, radius)))
    return container('SINF', *children)


def material(name: str,
             diffuse=(1.0, 1.0, 1.0, 1.0),
             specular=(1.0, 1.0, 1.0, 1.0),
             ambient=(0.0, 0.0, 0.0, 1.0),
             shininess: float = 0.0,
             attributes: Optional[Tuple[int, int, int, int]] = None,
             textures: Optional[Dict[str, str]] = None,
             extra: Iterable[bytes] = ()) -> bytes:
    children = [
        string_chunk('NAME', name),
        chunk('DATA', struct.pack('<4f 4f 4f f', *diffuse, *specular, *ambient, shininess)),
    ]
    if attributes is not None:
        children.append(chunk('ATRB', struct.pack('<4B', *attributes)))
    for slot, texture in (textures or {}).items():
        children.append(string_chunk(slot, texture))
    children.extend(extra)
    return container('MATD', *children)


def material_list(*materials: bytes, count: Optional[int] = None) -> bytes:
    if count is None:
        count = len(materials)
    return chunk('MATL', struct.pack('<I', count) + b''.join(materials))


# =============================================================================
# Segments
# =============================================================================

def mati(index: int) -> bytes:
    return u32_chunk('MATI', index)


def posl(points) -> bytes:
    return counted('POSL', '<3f', points)


def nrml(normals) -> bytes:
    return counted('NRML', '<3f', normals)


def uv0l(uvs) -> bytes:
    return counted('UV0L', '<2f', uvs)


def clrl(colors) -> bytes:
    return counted('CLRL', '<4B', colors)


def clrb(color) -> bytes:
    return chunk('CLRB', struct.pack('<4B', *color))


def ndxt(indices: Sequence[int]) -> bytes:
    tris = [indices[i:i + 3] for i in range(0, len(indices), 3)]
    return counted('NDXT', '<3H', tris)


def strp(raw_indices: Sequence[int]) -> bytes:
    return counted('STRP', '<H', [(i,) for i in raw_indices])


def ndxl(polygons: Sequence[Sequence[int]]) -> bytes:
    payload = struct.pack('<I', len(polygons))
    for polygon in polygons:
        payload += struct.pack('<H', len(polygon)) + struct.pack(f'<{len(polygon)}H', *polygon)
    return chunk('NDXL', payload)


def wght(rows) -> bytes:
    """rows: per vertex four (envelope index, weight) pairs"""
    return counted('WGHT', '<I f I f I f I f', [[v for pair in row for v in pair] for row in rows])


def segment(*children: bytes) -> bytes:
    return container('SEGM', *children)


def envl(indices: Sequence[int]) -> bytes:
    return counted('ENVL', '<I', [(i,) for i in indices])


def cloth(texture: str = 'cape', positions=(), uvs=(), triangles=(), fixed=(), fixed_weights=(),
          stretch=(), cross=(), bend=()) -> bytes:
    names = b''.join(n.encode('latin-1') + b'\x00' for n in fixed_weights)
    return container(
        'CLTH',
        string_chunk('CTEX', texture),
        counted('CPOS', '<3f', positions),
        counted('CUV0', '<2f', uvs),
        counted('FIDX', '<I', [(i,) for i in fixed]),
        chunk('FWGT', struct.pack('<I', len(fixed_weights)) + names),
        counted('CMSH', '<3I', [triangles[i:i + 3] for i in range(0, len(triangles), 3)]),
        counted('SPRS', '<2H', stretch),
        counted('CPRS', '<2H', cross),
        counted('BPRS', '<2H', bend),
    )


def geometry(*children: bytes) -> bytes:
    bbox = chunk('BBOX', struct.pack('<4f 3f 3f f', 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 2.0))
    return container('GEOM', bbox, *children)


# =============================================================================
# Models, animation and files
# =============================================================================

def model(name: str, mndx: int, mtyp: int = 0, parent: Optional[str] = None, flags: Optional[int] = None,
          transform=((1.0, 1.0, 1.0), (0.0, 0.0, 0.0, 1.0), (0.0, 0.0, 0.0)),
          geometry: Optional[bytes] = None, name_last: bool = False) -> bytes:
    scale, rotation, translation = transform
    children = [u32_chunk('MTYP', mtyp), u32_chunk('MNDX', mndx)]
    if not name_last:
        children.append(string_chunk('NAME', name))
    if parent is not None:
        children.append(string_chunk('PRNT', parent))
    if flags is not None:
        children.append(u32_chunk('FLGS', flags))
    children.append(chunk('TRAN', struct.pack('<3f 4f 3f', *scale, *rotation, *translation)))
    if geometry is not None:
        children.append(geometry)
    if name_last:
        children.append(string_chunk('NAME', name))
    return container('MODL', *children)


def cycles(entries) -> bytes:
    """entries: (name, fps, play_style, first, last)"""
    payload = struct.pack('<I', len(entries))
    for name, fps, play_style, first, last in entries:
        payload += struct.pack('<64s f I I I', name.encode('latin-1'), fps, play_style, first, last)
    return chunk('CYCL', payload)


def keyframes(bones) -> bytes:
    """bones: (crc, keyframe_type, [(frame, (x, y, z))], [(frame, (x, y, z, w))])"""
    payload = struct.pack('<I', len(bones))
    for crc, keyframe_type, translations, rotations in bones:
        payload += struct.pack('<I I I I', crc, keyframe_type, len(translations), len(rotations))
        for frame, value in translations:
            payload += struct.pack('<I 3f', frame, *value)
        for frame, value in rotations:
            payload += struct.pack('<I 4f', frame, *value)
    return chunk('KFR3', payload)


def animation(*children: bytes) -> bytes:
    return container('ANM2', *children)


def msh_file(*msh2_children: bytes, anm2: Optional[bytes] = None) -> bytes:
    """HEDR { MSH2 { ... }, ANM2 }"""
    blocks = [container('MSH2', *msh2_children)]
    if anm2 is not None:
        blocks.append(anm2)
    return container('HEDR', *blocks)


TRIANGLE = [(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)]


def minimal_file() -> bytes:
    """One material, one model, one triangle"""
    return msh_file(
        scene_info('test', frames=(0, 10, 30.0),
                   bbox=((0.0, 0.0, 0.0, 1.0), (0.0, 0.0, 0.0), (1.0, 1.0, 1.0), 2.0)),
        material_list(material('mat', attributes=(0, 0, 0, 0), textures={'TX0D': 'tex'})),
        model('obj', 1, geometry=geometry(segment(mati(0), posl(TRIANGLE), ndxt([0, 1, 2])))),
    )
