"""
Name conventions used by the Pandemic MSH tool chain.

The exporters never wrote a "render me" flag for helper geometry; instead the
artists' naming conventions decide what is a bone, a hardpoint, a shadow
volume, a collision hull or a low LOD. These lists are compatibility data and
must stay exactly as they are.
"""

import re
from typing import Optional

# Node kinds produced by classify_model
KIND_BONE = 'bone'
KIND_HARDPOINT = 'hardpoint'
KIND_MESH = 'mesh'
KIND_EMPTY = 'empty'

BONE_PREFIX = 'bone'
HARDPOINT_PREFIX = 'hp'

# Hidden by default when the model carries no FLGS chunk
HIDDEN_PREFIXES = ('sv_', 'shadowvolume', 'collision', 'p_', 'c_')
HIDDEN_SUFFIXES = ('shadowvolume', 'collision', '_lowrez', '_lowres', '_lod2', '_lod3')

SHADOW_VOLUME_PREFIXES = ('sv_', 'shadowvolume')
SHADOW_VOLUME_SUFFIXES = ('shadowvolume',)

TEXTURE_EXTENSION = '.tga'

_LOD_SUFFIX_RE = re.compile(r'_lod[23]|_lowres|_lowrez', re.IGNORECASE)


def normalize_texture_name(name: Optional[str]) -> Optional[str]:
    """Lower-case a texture reference and make sure it ends in .tga"""
    if not name:
        return None
    name = name.lower()
    if not name.endswith(TEXTURE_EXTENSION):
        name += TEXTURE_EXTENSION
    return name


def is_hidden_by_convention(name: str) -> bool:
    name = name.lower()
    return name.startswith(HIDDEN_PREFIXES) or name.endswith(HIDDEN_SUFFIXES)


def is_shadow_volume(name: str) -> bool:
    name = name.lower()
    return name.startswith(SHADOW_VOLUME_PREFIXES) or name.endswith(SHADOW_VOLUME_SUFFIXES)


def is_bone_name(name: str) -> bool:
    return name.lower().startswith(BONE_PREFIX)


def is_hardpoint_name(name: str) -> bool:
    return name.lower().startswith(HARDPOINT_PREFIX)


def classify_model(name: str, has_geometry: bool = False, enveloped: bool = False) -> str:
    """Decide what a model node is.

    Envelope membership is checked first: a node some mesh is skinned to is a
    bone whatever it is called. Hardpoints keep their kind even when the
    exporter attached geometry to them.
    """
    if enveloped or is_bone_name(name):
        return KIND_BONE
    if is_hardpoint_name(name):
        return KIND_HARDPOINT
    if has_geometry:
        return KIND_MESH
    return KIND_EMPTY


def lod_base_name(name: str) -> str:
    """Strip LOD / low-res markers: 'body_lod2' -> 'body'"""
    return _LOD_SUFFIX_RE.sub('', name)
