"""
MSH (Pandemic Studios mesh) Binary Format Definitions

This module defines the records stored in a Zero Engine .msh file and the
readers that decode them:
- Scene info:  HEDR/MSH2/SINF
- Materials:   HEDR/MSH2/MATL/MATD
- Models:      HEDR/MSH2/MODL (+ GEOM/SEGM, GEOM/CLTH, GEOM/ENVL)

Animation blocks (ANM2) live in anm_format.py.

Files written by the stock XSI exporter and by ZETools differ in which
optional chunks they emit and in padding, so every record is read by tag
dispatch over its children and every element read is bounded by the end of
its chunk.
"""

import logging
import os
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .msh_chunks import (
    ChunkRef, find_chunk, find_all_chunks, iter_chunks,
    read_u32, read_string, read_struct, read_array,
)
from .anm_format import AnimationData, read_anm2
from ..utils.naming import normalize_texture_name
from ..utils.triangles import split_strips, unroll_strips, triangulate_polygons

log = logging.getLogger(__name__)

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Vec4 = Tuple[float, float, float, float]
ColorBGRA = Tuple[int, int, int, int]

# =============================================================================
# Constants
# =============================================================================

# Offsets where exporters usually place the chunk; tried before a full scan
SCENE_INFO_OFFSETS = (16, 8)
MATERIAL_LIST_OFFSETS = (
    124,  # ZETools
    104,  # stock exporter, minimal header
)

# Scene info defaults
DEFAULT_FRAME_START = 0
DEFAULT_FRAME_END = 100
DEFAULT_FPS = 30.0
IDENTITY_ROTATION = (0.0, 0.0, 0.0, 1.0)

# ATRB flags byte, bit 0 first
BIT_FLAG_NAMES = (
    'emissive',
    'glow',
    'single_transparent',
    'double_transparent',
    'hard_edged_transparent',
    'per_pixel_lighting',
    'additive_transparent',
    'specular',
)

# ATRB render type byte
RENDER_TYPE_NAMES = {
    0: 'normal',
    1: 'glow',
    2: 'light_map',
    3: 'scrolling',
    4: 'specular',
    5: 'glossmap',
    6: 'chrome',
    7: 'animated',
    8: 'ice',
    9: 'sky',
    10: 'water',
    11: 'detail',
    12: 'scroll2',
    13: 'rotate',
    14: 'glow_rotate',
    15: 'planar_reflection',
    16: 'glow_scroll',
    17: 'glow_scroll2',
    18: 'curved_reflection',
    19: 'normal_map_fade',
    20: 'normal_map_inv_fade',
    21: 'ice_reflection',
    22: 'refracted',
    23: 'emboss',
    24: 'wireframe',
    25: 'pulsate',
    26: 'afterburner',
    27: 'bumpmap',
    28: 'bumpmap_and_glossmap',
    29: 'bumpmap_and_detailmap_and_envmap',
    30: 'multistate',
    31: 'shield',
}

# Still decoded, but no longer honoured by the game
DEPRECATED_RENDER_TYPES = frozenset((8, 9, 10, 15, 18, 21, 26, 30, 31))
# Never implemented by the engine
UNSUPPORTED_RENDER_TYPES = frozenset((12, 13, 14, 17, 19, 20))

TEXTURE_SLOTS = ('TX0D', 'TX1D', 'TX2D', 'TX3D')


# =============================================================================
# Struct formats
# =============================================================================

# SINF/FRAM (12 bytes)
#     uint32 frameStart;
#     uint32 frameEnd;
#     float  fps;
FRAME_RANGE_STRUCT = struct.Struct('<I I f')

# SINF/BBOX, MODL/GEOM/BBOX (44 bytes)
#     float  rotation[4];   // quaternion x, y, z, w
#     float  center[3];
#     float  extents[3];
#     float  radius;
VEC4_STRUCT = struct.Struct('<4f')
VEC3_STRUCT = struct.Struct('<3f')
VEC2_STRUCT = struct.Struct('<2f')
F32_STRUCT = struct.Struct('<f')

# MATD/DATA (52 bytes)
#     float  diffuse[4];    // BGRA
#     float  specular[4];   // BGRA
#     float  ambient[4];    // BGRA
#     float  shininess;
# MATD/ATRB (4 bytes)
#     uint8  flags;
#     uint8  renderType;
#     uint8  data0;
#     uint8  data1;
ATTRIBUTE_STRUCT = struct.Struct('<4B')

# MODL/TRAN (40 bytes)
#     float  scale[3];
#     float  rotation[4];   // quaternion x, y, z, w
#     float  translation[3];
TRANSFORM_STRUCT = struct.Struct('<3f 4f 3f')

U32_STRUCT = struct.Struct('<I')
U16_STRUCT = struct.Struct('<H')
TRIANGLE16_STRUCT = struct.Struct('<3H')   # SEGM/NDXT
COLOR_STRUCT = struct.Struct('<4B')        # SEGM/CLRL, SEGM/CLRB (BGRA)
INDEX_TRIPLE_STRUCT = struct.Struct('<3I')  # CLTH/CMSH
INDEX_PAIR_STRUCT = struct.Struct('<2H')    # CLTH/SPRS, CPRS, BPRS

# SEGM/WGHT per vertex (32 bytes): four (envelope index, weight) pairs
WEIGHT_STRUCT = struct.Struct('<I f I f I f I f')


# =============================================================================
# Errors and options
# =============================================================================

class MSHError(ValueError):
    """Base error for MSH reading"""


class MSHValidationError(MSHError):
    """Raised in strict mode when the parse reported any issue"""

    def __init__(self, issues: Sequence[str]):
        self.issues = list(issues)
        shown = '; '.join(self.issues[:5])
        more = f" (+{len(self.issues) - 5} more)" if len(self.issues) > 5 else ''
        super().__init__(f"{len(self.issues)} issue(s) reading MSH data: {shown}{more}")


def _debug_from_env() -> bool:
    return os.environ.get('MSH_IO_DEBUG', '') == '1'


@dataclass
class ReaderOptions:
    """Parse configuration"""
    strict: bool = False               # raise MSHValidationError on any issue
    debug: bool = field(default_factory=_debug_from_env)  # log every record
    cleanup_triangles: bool = False    # drop degenerate/duplicate triangles


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class SceneInfo:
    """SINF: scene name, frame range and bounding box"""
    name: Optional[str] = None
    frame_start: int = DEFAULT_FRAME_START
    frame_end: int = DEFAULT_FRAME_END
    fps: float = DEFAULT_FPS
    rotation: Vec4 = IDENTITY_ROTATION
    center: Vec3 = (0.0, 0.0, 0.0)
    extents: Vec3 = (0.0, 0.0, 0.0)
    radius: float = 0.0

    @classmethod
    def read(cls, reader: 'MSHReader', chunk: ChunkRef) -> 'SceneInfo':
        data = reader.data
        info = cls()
        for child in iter_chunks(data, chunk.data_start, chunk.end):
            if child.tag == 'NAME':
                info.name = read_string(data, child.data_start, child.size)
            elif child.tag == 'FRAM':
                fram = read_struct(data, child.data_start, child.end, FRAME_RANGE_STRUCT)
                if fram is not None:
                    info.frame_start, info.frame_end, info.fps = fram
            elif child.tag == 'BBOX':
                offset = child.data_start
                rotation = read_struct(data, offset, child.end, VEC4_STRUCT)
                center = read_struct(data, offset + 16, child.end, VEC3_STRUCT)
                extents = read_struct(data, offset + 28, child.end, VEC3_STRUCT)
                radius = read_struct(data, offset + 40, child.end, F32_STRUCT)
                if rotation is not None:
                    info.rotation = rotation
                if center is not None:
                    info.center = center
                if extents is not None:
                    info.extents = extents
                if radius is not None:
                    info.radius = radius[0]
        return info


@dataclass
class MaterialAttributes:
    """MATD/ATRB: rendering flags and render type"""
    flags: int = 0
    render_type: int = 0
    data0: int = 0
    data1: int = 0

    @property
    def bit_flags(self) -> Dict[str, bool]:
        return {name: bool(self.flags & (1 << bit)) for bit, name in enumerate(BIT_FLAG_NAMES)}

    @property
    def render_flag(self) -> str:
        return RENDER_TYPE_NAMES.get(self.render_type, 'unknown')

    @property
    def is_deprecated(self) -> bool:
        return self.render_type in DEPRECATED_RENDER_TYPES

    @property
    def is_unsupported(self) -> bool:
        return self.render_type in UNSUPPORTED_RENDER_TYPES

    def has_flag(self, name: str) -> bool:
        return bool(self.flags & (1 << BIT_FLAG_NAMES.index(name)))

    # Render hints, as the viewer derives them from flags + render type

    @property
    def is_transparent(self) -> bool:
        return (self.has_flag('single_transparent') or self.has_flag('double_transparent')
                or self.has_flag('additive_transparent') or self.has_flag('hard_edged_transparent')
                or self.render_flag in ('ice', 'refracted'))

    @property
    def is_specular(self) -> bool:
        return (self.has_flag('specular')
                or self.render_flag in ('specular', 'glossmap', 'emboss', 'ice', 'bumpmap_and_glossmap'))

    @property
    def is_glowing(self) -> bool:
        return self.has_flag('glow') or self.has_flag('emissive') or self.render_flag == 'glow'

    @property
    def is_scrolling(self) -> bool:
        return self.render_flag in ('scrolling', 'glow_scroll')

    @property
    def is_pulsating(self) -> bool:
        return self.render_flag == 'pulsate'

    @property
    def is_chrome(self) -> bool:
        return self.render_flag == 'chrome'

    @property
    def is_double_sided(self) -> bool:
        return self.has_flag('double_transparent')


@dataclass
class Material:
    """MATD: one entry of the material list"""
    name: Optional[str] = None
    diffuse_color: Vec4 = (1.0, 1.0, 1.0, 1.0)   # BGRA
    specular_color: Vec4 = (1.0, 1.0, 1.0, 1.0)  # BGRA
    ambient_color: Vec4 = (0.0, 0.0, 0.0, 1.0)   # BGRA
    shininess: float = 0.0
    attributes: Optional[MaterialAttributes] = None
    tx0d: Optional[str] = None  # diffuse
    tx1d: Optional[str] = None  # bump / normal / detail, depends on render type
    tx2d: Optional[str] = None  # secondary detail
    tx3d: Optional[str] = None  # cubemap

    @property
    def textures(self) -> List[str]:
        return [t for t in (self.tx0d, self.tx1d, self.tx2d, self.tx3d) if t]

    @classmethod
    def read(cls, reader: 'MSHReader', chunk: ChunkRef) -> 'Material':
        data = reader.data
        material = cls()
        for child in iter_chunks(data, chunk.data_start, chunk.end):
            if child.tag == 'NAME':
                material.name = read_string(data, child.data_start, child.size)
            elif child.tag == 'DATA':
                offset = child.data_start
                for attr in ('diffuse_color', 'specular_color', 'ambient_color'):
                    color = read_struct(data, offset, child.end, VEC4_STRUCT)
                    if color is not None:
                        setattr(material, attr, color)
                    offset += VEC4_STRUCT.size
                shininess = read_struct(data, offset, child.end, F32_STRUCT)
                if shininess is not None:
                    material.shininess = shininess[0]
            elif child.tag == 'ATRB':
                atrb = read_struct(data, child.data_start, child.end, ATTRIBUTE_STRUCT)
                if atrb is not None:
                    material.attributes = MaterialAttributes(*atrb)
            elif child.tag in TEXTURE_SLOTS:
                name = read_string(data, child.data_start, child.size)
                setattr(material, child.tag.lower(), reader.add_texture(name))
        return material


@dataclass
class Transform:
    """MODL/TRAN: local transform relative to the parent"""
    scale: Vec3 = (1.0, 1.0, 1.0)
    rotation: Vec4 = IDENTITY_ROTATION  # x, y, z, w
    translation: Vec3 = (0.0, 0.0, 0.0)


@dataclass
class SegmentWeights:
    """SEGM/WGHT: four (envelope index, weight) pairs per vertex"""
    indices: List[Tuple[int, int, int, int]] = field(default_factory=list)
    weights: List[Vec4] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.indices)


@dataclass
class Segment:
    """GEOM/SEGM: one material's worth of geometry.

    Collections whose chunk is absent stay None. `vertex_count` is the count
    declared by POSL; `positions` may be shorter if the file is truncated.
    """
    material_index: int = 0
    vertex_count: int = 0
    positions: Optional[List[Vec3]] = None
    normals: Optional[List[Vec3]] = None
    uvs: Optional[List[Vec2]] = None
    colors: Optional[List[ColorBGRA]] = None
    color: Optional[ColorBGRA] = None
    triangles: Optional[List[int]] = None
    strips: Optional[List[List[int]]] = None
    polygons: Optional[List[List[int]]] = None
    weights: Optional[SegmentWeights] = None

    def triangle_list(self) -> List[int]:
        """All faces as one flat triangle list: NDXT, then STRP, then NDXL"""
        result = []
        if self.triangles:
            result.extend(self.triangles)
        if self.strips:
            result.extend(unroll_strips(self.strips))
        if self.polygons:
            result.extend(triangulate_polygons(self.polygons))
        return result

    @property
    def has_vertex_colors(self) -> bool:
        return bool(self.colors) or self.color is not None

    @classmethod
    def read(cls, reader: 'MSHReader', chunk: ChunkRef) -> 'Segment':
        data = reader.data
        segment = cls()
        for child in iter_chunks(data, chunk.data_start, chunk.end):
            tag = child.tag
            if tag == 'MATI':
                value = read_struct(data, child.data_start, child.end, U32_STRUCT)
                if value is not None:
                    segment.material_index = value[0]
            elif tag == 'POSL':
                segment.vertex_count = read_u32(data, child.data_start) or 0
                segment.positions = reader.read_counted(child, VEC3_STRUCT, 'vertex positions')
            elif tag == 'NRML':
                segment.normals = reader.read_counted(child, VEC3_STRUCT, 'vertex normals')
            elif tag == 'UV0L':
                segment.uvs = reader.read_counted(child, VEC2_STRUCT, 'vertex UVs')
            elif tag == 'CLRL':
                segment.colors = reader.read_counted(child, COLOR_STRUCT, 'vertex colours')
            elif tag == 'CLRB':
                segment.color = read_struct(data, child.data_start, child.end, COLOR_STRUCT)
            elif tag == 'NDXT':
                triangles = reader.read_counted(child, TRIANGLE16_STRUCT, 'triangles')
                segment.triangles = [i for tri in triangles for i in tri]
            elif tag == 'STRP':
                raw = reader.read_counted(child, U16_STRUCT, 'strip indices')
                segment.strips = split_strips([i for (i,) in raw])
            elif tag == 'NDXL':
                segment.polygons = reader.read_polygons(child)
            elif tag == 'WGHT':
                rows = reader.read_counted(child, WEIGHT_STRUCT, 'vertex weights')
                segment.weights = SegmentWeights(
                    indices=[row[0::2] for row in rows],
                    weights=[row[1::2] for row in rows],
                )
        return segment


@dataclass
class Cloth:
    """GEOM/CLTH: cloth mesh plus its simulation constraints"""
    name: Optional[str] = None
    texture: Optional[str] = None
    # None when the file has no chunk for the list
    positions: Optional[List[Vec3]] = None
    uvs: Optional[List[Vec2]] = None
    triangles: Optional[List[int]] = None
    fixed_points: Optional[List[int]] = None
    fixed_weights: Optional[List[str]] = None  # bone names
    stretch_pairs: Optional[List[Tuple[int, int]]] = None
    cross_pairs: Optional[List[Tuple[int, int]]] = None
    bend_pairs: Optional[List[Tuple[int, int]]] = None

    @classmethod
    def read(cls, reader: 'MSHReader', chunk: ChunkRef, name: Optional[str] = None) -> 'Cloth':
        data = reader.data
        cloth = cls(name=name)
        for child in iter_chunks(data, chunk.data_start, chunk.end):
            tag = child.tag
            if tag == 'CTEX':
                cloth.texture = reader.add_texture(read_string(data, child.data_start, child.size))
            elif tag == 'CPOS':
                cloth.positions = reader.read_counted(child, VEC3_STRUCT, 'cloth positions')
            elif tag == 'CUV0':
                cloth.uvs = reader.read_counted(child, VEC2_STRUCT, 'cloth UVs')
            elif tag == 'FIDX':
                cloth.fixed_points = [i for (i,) in reader.read_counted(child, U32_STRUCT, 'cloth fixed points')]
            elif tag == 'FWGT':
                cloth.fixed_weights = reader.read_names(child)
            elif tag == 'CMSH':
                triangles = reader.read_counted(child, INDEX_TRIPLE_STRUCT, 'cloth triangles')
                cloth.triangles = [i for tri in triangles for i in tri]
            elif tag == 'SPRS':
                cloth.stretch_pairs = reader.read_counted(child, INDEX_PAIR_STRUCT, 'cloth stretch constraints')
            elif tag == 'CPRS':
                cloth.cross_pairs = reader.read_counted(child, INDEX_PAIR_STRUCT, 'cloth cross constraints')
            elif tag == 'BPRS':
                cloth.bend_pairs = reader.read_counted(child, INDEX_PAIR_STRUCT, 'cloth bend constraints')
        return cloth


@dataclass
class Geometry:
    """MODL/GEOM"""
    segments: Optional[List[Segment]] = None
    cloth: Optional[Cloth] = None
    envelope: Optional[List[int]] = None  # model indices (mndx) skinned to

    @property
    def kind(self) -> str:
        if self.segments:
            return 'segments'
        if self.cloth is not None:
            return 'cloth'
        return 'none'

    @property
    def vertex_count(self) -> int:
        return sum(len(s.positions or ()) for s in self.segments or ())

    @classmethod
    def read(cls, reader: 'MSHReader', chunk: ChunkRef, model_name: Optional[str] = None) -> 'Geometry':
        data = reader.data
        geometry = cls()
        for child in iter_chunks(data, chunk.data_start, chunk.end):
            if child.tag == 'SEGM':
                if geometry.segments is None:
                    geometry.segments = []
                geometry.segments.append(Segment.read(reader, child))
            elif child.tag == 'CLTH':
                if geometry.cloth is not None:
                    log.debug("Model %s has more than one CLTH, keeping the last", model_name)
                geometry.cloth = Cloth.read(reader, child, name=model_name)
            elif child.tag == 'ENVL':
                geometry.envelope = [i for (i,) in reader.read_counted(child, U32_STRUCT, 'envelope')]
        return geometry


@dataclass
class ModelRecord:
    """MODL: one node of the model hierarchy"""
    name: str = ''
    model_type: int = 0
    model_index: int = 0  # mndx, addressed by envelopes
    parent: Optional[str] = None
    flags: Optional[int] = None
    transform: Transform = field(default_factory=Transform)
    geometry: Optional[Geometry] = None

    @property
    def lookup_name(self) -> str:
        return self.name.lower()

    @property
    def parent_lookup_name(self) -> Optional[str]:
        return self.parent.lower() if self.parent else None

    @classmethod
    def read(cls, reader: 'MSHReader', chunk: ChunkRef) -> 'ModelRecord':
        data = reader.data
        model = cls()
        geom_chunk = None
        for child in iter_chunks(data, chunk.data_start, chunk.end):
            tag = child.tag
            if tag == 'MTYP':
                value = read_struct(data, child.data_start, child.end, U32_STRUCT)
                if value is not None:
                    model.model_type = value[0]
            elif tag == 'MNDX':
                value = read_struct(data, child.data_start, child.end, U32_STRUCT)
                if value is not None:
                    model.model_index = value[0]
            elif tag == 'NAME':
                model.name = read_string(data, child.data_start, child.size) or ''
            elif tag == 'PRNT':
                model.parent = read_string(data, child.data_start, child.size) or None
            elif tag == 'FLGS':
                value = read_struct(data, child.data_start, child.end, U32_STRUCT)
                if value is not None:
                    model.flags = value[0]
            elif tag == 'TRAN':
                tran = read_struct(data, child.data_start, child.end, TRANSFORM_STRUCT)
                if tran is not None:
                    model.transform = Transform(scale=tran[0:3], rotation=tran[3:7], translation=tran[7:10])
            elif tag == 'GEOM':
                geom_chunk = child
        # GEOM is read last so cloth records pick up the model name even when
        # NAME follows GEOM
        if geom_chunk is not None:
            model.geometry = Geometry.read(reader, geom_chunk, model_name=model.name)
        return model


# =============================================================================
# Reader session
# =============================================================================

class MSHReader:
    """Scratch state for one parse of one buffer.

    Holds the bytes, the unique texture set in first-seen order and the list
    of reported issues. Create a new reader for every buffer.
    """

    def __init__(self, data: bytes, options: Optional[ReaderOptions] = None):
        self.data = bytes(data)
        self.options = options or ReaderOptions()
        self._textures: Dict[str, None] = {}
        self.issues: List[str] = []

    @property
    def textures(self) -> List[str]:
        return list(self._textures)

    def add_texture(self, name: Optional[str]) -> Optional[str]:
        """Normalise a texture reference and remember it"""
        name = normalize_texture_name(name)
        if name is not None:
            self._textures.setdefault(name, None)
        return name

    def report(self, message: str, *args) -> None:
        """Record a recoverable problem; the parse carries on"""
        text = message % args if args else message
        log.warning(text)
        self.issues.append(text)

    # -------------------------------------------------------------------------
    # Element readers shared by the record classes
    # -------------------------------------------------------------------------

    def read_counted(self, chunk: ChunkRef, fmt: struct.Struct, what: str) -> List[tuple]:
        """Read a u32 count followed by that many records"""
        count = read_u32(self.data, chunk.data_start)
        if count is None or chunk.size < U32_STRUCT.size:
            self.report("%s chunk at 0x%X has no element count", chunk.tag, chunk.start)
            return []
        items = read_array(self.data, chunk.data_start + 4, chunk.end, fmt, count)
        if len(items) < count:
            self.report("Truncated %s at 0x%X: read %d of %d", what, chunk.start, len(items), count)
        return items

    def read_polygons(self, chunk: ChunkRef) -> List[List[int]]:
        """NDXL: polygon count, then per polygon a u16 corner count and its indices"""
        data = self.data
        end = min(chunk.end, len(data))
        count = read_u32(data, chunk.data_start) or 0
        offset = chunk.data_start + 4
        polygons = []
        for _ in range(count):
            corners = read_struct(data, offset, end, U16_STRUCT)
            if corners is None:
                break
            offset += 2
            indices = read_array(data, offset, end, U16_STRUCT, corners[0])
            if len(indices) < corners[0]:
                break
            polygons.append([i for (i,) in indices])
            offset += 2 * corners[0]
        if len(polygons) < count:
            self.report("Truncated polygons at 0x%X: read %d of %d", chunk.start, len(polygons), count)
        return polygons

    def read_names(self, chunk: ChunkRef) -> List[str]:
        """A u32 count followed by NUL-terminated strings"""
        data = self.data
        end = min(chunk.end, len(data))
        count = read_u32(data, chunk.data_start) or 0
        offset = chunk.data_start + 4
        names = []
        for _ in range(count):
            if offset >= end:
                break
            nul = data.find(b'\x00', offset, end)
            stop = end if nul < 0 else nul
            names.append(data[offset:stop].decode('latin-1'))
            offset = stop + 1
        if len(names) < count:
            self.report("Truncated name list at 0x%X: read %d of %d", chunk.start, len(names), count)
        return names

    def locate(self, tag: str, guesses: Sequence[int] = ()) -> Optional[ChunkRef]:
        """Find a chunk, trying the usual exporter offsets before a full scan"""
        for offset in guesses:
            chunk = find_chunk(self.data, tag, offset, offset + 4)
            if chunk is not None and chunk.start == offset:
                return chunk
        return find_chunk(self.data, tag)

    # -------------------------------------------------------------------------
    # Top level records
    # -------------------------------------------------------------------------

    def read_scene_info(self) -> Optional[SceneInfo]:
        chunk = self.locate('SINF', SCENE_INFO_OFFSETS)
        if chunk is None:
            return None
        info = SceneInfo.read(self, chunk)
        if self.options.debug:
            log.debug("Scene info: %s", info)
        return info

    def read_materials(self) -> List[Material]:
        chunk = self.locate('MATL', MATERIAL_LIST_OFFSETS)
        if chunk is None:
            return []
        count = read_u32(self.data, chunk.data_start) or 0
        materials = []
        for child in iter_chunks(self.data, chunk.data_start + 4, chunk.end):
            if len(materials) >= count:
                break
            if child.tag != 'MATD':
                continue
            material = Material.read(self, child)
            if self.options.debug:
                log.debug("Material %d: %s", len(materials), material)
            materials.append(material)
        if len(materials) < count:
            self.report("Material list declares %d materials, found %d", count, len(materials))
        return materials

    def read_models(self) -> List[ModelRecord]:
        models = []
        for chunk in find_all_chunks(self.data, 'MODL'):
            model = ModelRecord.read(self, chunk)
            if self.options.debug:
                log.debug("Model %d: %s (type %d, mndx %d, parent %s)",
                          len(models), model.name, model.model_type, model.model_index, model.parent)
            models.append(model)
        return models

    def read_animations(self, models: Sequence[ModelRecord]) -> Optional[AnimationData]:
        chunk = find_chunk(self.data, 'ANM2')
        if chunk is None:
            return None
        return read_anm2(self, chunk, models)


# =============================================================================
# Module level entry points
# =============================================================================

def read_scene_info(data: bytes) -> Optional[SceneInfo]:
    """Read the SINF block of an .msh buffer"""
    return MSHReader(data).read_scene_info()


def read_materials(data: bytes) -> List[Material]:
    """Read the material list of an .msh buffer"""
    return MSHReader(data).read_materials()


def read_models(data: bytes) -> List[ModelRecord]:
    """Read every MODL of an .msh buffer, in file order"""
    return MSHReader(data).read_models()


def read_animations(data: bytes, models: Sequence[ModelRecord]) -> Optional[AnimationData]:
    """Read the ANM2 block, resolving bone hashes against `models`"""
    return MSHReader(data).read_animations(models)
