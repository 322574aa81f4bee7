"""
Zero Engine MSH Reader

Read Pandemic Studios .msh model files (Star Wars: Battlefront I/II) into
plain Python records and numpy vertex buffers.

File Contents:
- Scene info: name, frame range, bounding box
- Materials: colours, render flags, up to four textures
- Models: hierarchy, transforms, segmented geometry, skin weights, cloth
- Animation: named cycles and per-bone keyframes

Usage:
    import msh_io
    document = msh_io.read_file('rep_inf_trooper.msh')
    for node in document.meshes:
        print(node.name, node.mesh.vertex_count)
"""

import logging
from typing import Optional

from .formats.msh_chunks import ChunkRef, find_chunk, find_all_chunks, iter_chunks
from .formats.msh_format import (
    MSHError, MSHValidationError, ReaderOptions, MSHReader,
    SceneInfo, Material, MaterialAttributes, Transform, Segment, SegmentWeights,
    Cloth, Geometry, ModelRecord,
    read_scene_info, read_materials, read_models, read_animations,
)
from .formats.anm_format import AnimationCycle, BoneKeyframes, AnimationData
from .importers.import_msh import (
    MSHDocument, MSHImporter, SceneNode, MeshBuffers, GeometryGroup, build_mesh_buffers,
)
from .importers.import_anm import AnimationClip, BoneTrack, build_clip, build_clips
from .utils.crc import calc_lower_crc, calc_lower_crc_msb

__version__ = '1.0.0'

logging.getLogger(__name__).addHandler(logging.NullHandler())


def parse(data: bytes, options: Optional[ReaderOptions] = None) -> MSHDocument:
    """Parse a complete .msh buffer into an MSHDocument"""
    return MSHImporter(data, options).execute()


def read_file(filepath: str, options: Optional[ReaderOptions] = None) -> MSHDocument:
    """Read an .msh file from disk and parse it"""
    return MSHDocument.read(filepath, options)
