"""
MSH Animation Block (ANM2) Definitions

ANM2 holds two children:
- CYCL: the named animation cycles (frame ranges) of the file
- KFR3: per-bone keyframes, the bone identified by a lower-case CRC-32 of
        its model name

Bone hashes are resolved back to model names here, once all models of the
file have been read.
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple, Union

from .msh_chunks import ChunkRef, iter_chunks, read_u32, read_struct, read_array
from ..utils.crc import calc_lower_crc, calc_lower_crc_msb

log = logging.getLogger(__name__)

# =============================================================================
# Struct formats
# =============================================================================

# CYCL entry (80 bytes)
#     char    name[64];
#     float   fps;
#     uint32  playStyle;
#     uint32  firstFrame;
#     uint32  lastFrame;
CYCLE_STRUCT = struct.Struct('<64s f I I I')

# KFR3 bone header (16 bytes)
#     uint32  crc;            // calc_lower_crc of the bone's model name
#     uint32  keyframeType;
#     uint32  numTranslations;
#     uint32  numRotations;
BONE_HEADER_STRUCT = struct.Struct('<I I I I')

# KFR3 samples
#     uint32  frame; float translation[3];   (16 bytes)
#     uint32  frame; float rotation[4];      (20 bytes, quaternion x, y, z, w)
TRANSLATION_KEY_STRUCT = struct.Struct('<I 3f')
ROTATION_KEY_STRUCT = struct.Struct('<I 4f')


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class AnimationCycle:
    """One CYCL entry"""
    name: str
    fps: float
    play_style: int
    first_frame: int
    last_frame: int

    @property
    def frame_count(self) -> int:
        return max(0, self.last_frame - self.first_frame)

    @property
    def duration(self) -> float:
        return self.frame_count / self.fps if self.fps > 0 else 0.0


@dataclass
class BoneKeyframes:
    """KFR3 keyframes of one bone.

    `bone` is the resolved model name (lower case) or, if no model matches the
    hash unambiguously, the raw 32-bit hash. Samples are kept as stored:
    sparse and not necessarily sorted.
    """
    bone: Union[str, int]
    crc: int
    keyframe_type: int = 0
    translations: List[Tuple[int, Tuple[float, float, float]]] = field(default_factory=list)
    rotations: List[Tuple[int, Tuple[float, float, float, float]]] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return isinstance(self.bone, str)


@dataclass
class AnimationData:
    """Decoded ANM2 block"""
    cycles: List[AnimationCycle] = field(default_factory=list)
    keyframes: List[BoneKeyframes] = field(default_factory=list)


# =============================================================================
# Bone hash resolution
# =============================================================================

def build_bone_hash_map(models: Sequence) -> Tuple[Dict[int, str], Dict[int, List[str]]]:
    """Map bone hashes to model lookup names.

    Both CRC table forms are registered for every model. Returns the
    unambiguous mapping and, separately, every hash claimed by more than one
    distinct name.
    """
    candidates: Dict[int, Dict[str, None]] = {}
    for model in models:
        name = model.lookup_name
        if not name:
            continue
        for crc in (calc_lower_crc(name), calc_lower_crc_msb(name)):
            candidates.setdefault(crc, {})[name] = None

    resolved = {}
    collisions = {}
    for crc, names in candidates.items():
        if len(names) == 1:
            resolved[crc] = next(iter(names))
        else:
            collisions[crc] = sorted(names)
    return resolved, collisions


# =============================================================================
# Readers
# =============================================================================

def read_cycles(reader, chunk: ChunkRef) -> List[AnimationCycle]:
    data = reader.data
    count = read_u32(data, chunk.data_start) or 0
    rows = read_array(data, chunk.data_start + 4, chunk.end, CYCLE_STRUCT, count)
    if len(rows) < count:
        reader.report("Truncated animation cycles at 0x%X: read %d of %d", chunk.start, len(rows), count)
    return [
        AnimationCycle(
            name=raw_name.split(b'\x00', 1)[0].decode('latin-1'),
            fps=fps,
            play_style=play_style,
            first_frame=first,
            last_frame=last,
        )
        for raw_name, fps, play_style, first, last in rows
    ]


def read_keyframes(reader, chunk: ChunkRef) -> List[BoneKeyframes]:
    data = reader.data
    end = min(chunk.end, len(data))
    count = read_u32(data, chunk.data_start) or 0
    offset = chunk.data_start + 4
    bones = []
    for _ in range(count):
        header = read_struct(data, offset, end, BONE_HEADER_STRUCT)
        if header is None:
            break
        crc, keyframe_type, num_translations, num_rotations = header
        offset += BONE_HEADER_STRUCT.size

        translations = read_array(data, offset, end, TRANSLATION_KEY_STRUCT, num_translations)
        offset += num_translations * TRANSLATION_KEY_STRUCT.size
        rotations = read_array(data, offset, end, ROTATION_KEY_STRUCT, num_rotations)
        offset += num_rotations * ROTATION_KEY_STRUCT.size

        bones.append(BoneKeyframes(
            bone=crc,
            crc=crc,
            keyframe_type=keyframe_type,
            translations=[(row[0], row[1:4]) for row in translations],
            rotations=[(row[0], row[1:5]) for row in rotations],
        ))
        if len(translations) < num_translations or len(rotations) < num_rotations:
            reader.report("Truncated keyframes for bone 0x%08X", crc)
            break
    if len(bones) < count:
        reader.report("Keyframe block declares %d bones, read %d", count, len(bones))
    return bones


def resolve_bones(reader, keyframes: Sequence[BoneKeyframes], models: Sequence) -> None:
    """Replace raw bone hashes with model names where the match is unique"""
    resolved, collisions = build_bone_hash_map(models)
    reported = set()
    for bone in keyframes:
        name = resolved.get(bone.crc)
        if name is not None:
            bone.bone = name
            continue
        if bone.crc in reported:
            continue
        reported.add(bone.crc)
        if bone.crc in collisions:
            reader.report("Bone hash 0x%08X is shared by models %s; left unresolved",
                          bone.crc, ', '.join(collisions[bone.crc]))
        else:
            reader.report("Keyframes for bone hash 0x%08X match no model", bone.crc)


def read_anm2(reader, chunk: ChunkRef, models: Sequence) -> AnimationData:
    """Decode an ANM2 chunk with an MSHReader session"""
    animation = AnimationData()
    for child in iter_chunks(reader.data, chunk.data_start, chunk.end):
        if child.tag == 'CYCL':
            animation.cycles = read_cycles(reader, child)
        elif child.tag == 'KFR3':
            animation.keyframes = read_keyframes(reader, child)
    resolve_bones(reader, animation.keyframes, models)

    if reader.options.debug:
        for cycle in animation.cycles:
            log.debug("Cycle %s: frames %d-%d at %.1f fps",
                      cycle.name, cycle.first_frame, cycle.last_frame, cycle.fps)
        log.debug("Keyframes for %d bones", len(animation.keyframes))
    return animation
