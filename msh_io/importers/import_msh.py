"""
MSH Document Assembler

Turns the typed records of one .msh buffer into an MSHDocument:
- classifies every model (bone, hardpoint, mesh, empty)
- decides default visibility from FLGS or the naming conventions
- resolves parents by case-insensitive name
- merges each mesh model's segments into one set of numpy vertex buffers,
  with per-segment geometry groups and envelope-remapped skin data

Cross references that cannot be resolved are logged and collected in
MSHDocument.issues; the document is still returned unless the reader runs
in strict mode.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..formats.msh_format import (
    MSHReader, ReaderOptions, MSHValidationError,
    SceneInfo, Material, ModelRecord, Segment,
)
from ..formats.anm_format import AnimationCycle, BoneKeyframes
from ..utils.naming import (
    KIND_BONE, KIND_HARDPOINT, KIND_MESH,
    classify_model, is_hidden_by_convention, is_shadow_volume, lod_base_name,
)
from ..utils.triangles import cleanup_triangles

log = logging.getLogger(__name__)

WHITE_BGRA = (255, 255, 255, 255)


# =============================================================================
# Output records
# =============================================================================

@dataclass
class GeometryGroup:
    """Range of the merged index buffer drawn with one material"""
    start: int
    count: int
    material_index: int


@dataclass
class MeshBuffers:
    """All segments of one model merged into shared vertex buffers.

    Rows of every per-vertex array line up with `positions`. Colours stay in
    the BGRA byte order of the file; use rgba_colors() for RGBA.
    """
    positions: np.ndarray                       # (N, 3) float32
    indices: np.ndarray                         # (M,) uint32, triangle list
    groups: List[GeometryGroup] = field(default_factory=list)
    normals: Optional[np.ndarray] = None        # (N, 3) float32
    uvs: Optional[np.ndarray] = None            # (N, 2) float32
    colors: Optional[np.ndarray] = None         # (N, 4) uint8, BGRA
    skin_indices: Optional[np.ndarray] = None   # (N, 4) uint32, model indices (mndx)
    skin_weights: Optional[np.ndarray] = None   # (N, 4) float32

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    def rgba_colors(self) -> Optional[np.ndarray]:
        if self.colors is None:
            return None
        return self.colors[:, [2, 1, 0, 3]]

    def bounds(self):
        """(min, max) corners, or None for an empty mesh"""
        if not len(self.positions):
            return None
        return self.positions.min(axis=0), self.positions.max(axis=0)


@dataclass
class SceneNode:
    """A model as the document presents it to consumers"""
    model: ModelRecord
    kind: str
    visible: bool
    parent: Optional[str] = None          # lookup name of the resolved parent
    children: List[str] = field(default_factory=list)
    mesh: Optional[MeshBuffers] = None

    @property
    def name(self) -> str:
        return self.model.name

    @property
    def lookup_name(self) -> str:
        return self.model.lookup_name


@dataclass
class MSHDocument:
    """Everything decoded from one .msh buffer"""
    scene_info: Optional[SceneInfo] = None
    materials: List[Material] = field(default_factory=list)
    models: List[ModelRecord] = field(default_factory=list)
    animations: List[AnimationCycle] = field(default_factory=list)
    keyframes: List[BoneKeyframes] = field(default_factory=list)
    textures: List[str] = field(default_factory=list)
    nodes: List[SceneNode] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)

    @classmethod
    def read(cls, filepath: str, options: Optional[ReaderOptions] = None) -> 'MSHDocument':
        """Read and assemble an .msh file from disk"""
        with open(filepath, 'rb') as f:
            file_data = f.read()

        return cls.read_from_bytes(file_data, options)

    @classmethod
    def read_from_bytes(cls, data: bytes, options: Optional[ReaderOptions] = None) -> 'MSHDocument':
        """Read and assemble an .msh file from bytes"""
        return MSHImporter(data, options).execute()

    def node(self, name: str) -> Optional[SceneNode]:
        """Look a node up by model name, ignoring case"""
        name = name.lower()
        for node in self.nodes:
            if node.lookup_name == name:
                return node
        return None

    def nodes_of_kind(self, kind: str) -> List[SceneNode]:
        return [n for n in self.nodes if n.kind == kind]

    @property
    def bones(self) -> List[SceneNode]:
        return self.nodes_of_kind(KIND_BONE)

    @property
    def hardpoints(self) -> List[SceneNode]:
        return self.nodes_of_kind(KIND_HARDPOINT)

    @property
    def meshes(self) -> List[SceneNode]:
        return self.nodes_of_kind(KIND_MESH)

    @property
    def roots(self) -> List[SceneNode]:
        return [n for n in self.nodes if n.parent is None]

    @property
    def has_cloth(self) -> bool:
        return any(m.geometry is not None and m.geometry.cloth is not None for m in self.models)

    @property
    def has_vertex_colors(self) -> bool:
        return any(
            segment.has_vertex_colors
            for model in self.models if model.geometry is not None
            for segment in model.geometry.segments or ()
        )

    @property
    def has_shadow_volume(self) -> bool:
        return any(is_shadow_volume(m.name) for m in self.models)

    @property
    def has_skin(self) -> bool:
        return any(n.mesh is not None and n.mesh.skin_indices is not None for n in self.nodes)

    def lod_groups(self) -> Dict[str, List[SceneNode]]:
        """Mesh nodes grouped by name with LOD / low-res markers removed"""
        groups: Dict[str, List[SceneNode]] = {}
        for node in self.meshes:
            groups.setdefault(lod_base_name(node.lookup_name), []).append(node)
        return groups

    def summary(self) -> Dict[str, object]:
        return {
            'name': self.scene_info.name if self.scene_info else None,
            'models': len(self.models),
            'meshes': len(self.meshes),
            'bones': len(self.bones),
            'hardpoints': len(self.hardpoints),
            'materials': len(self.materials),
            'textures': len(self.textures),
            'vertices': sum(n.mesh.vertex_count for n in self.nodes if n.mesh is not None),
            'triangles': sum(n.mesh.triangle_count for n in self.nodes if n.mesh is not None),
            'cycles': len(self.animations),
            'animated_bones': len(self.keyframes),
            'has_cloth': self.has_cloth,
            'has_vertex_colors': self.has_vertex_colors,
            'has_shadow_volume': self.has_shadow_volume,
            'issues': len(self.issues),
        }


# =============================================================================
# Buffer merging
# =============================================================================

def _fit_rows(rows, count: int, width: int, fill, dtype) -> np.ndarray:
    """Copy up to `count` rows into a (count, width) array padded with `fill`"""
    result = np.full((count, width), fill, dtype=dtype)
    if rows:
        source = np.asarray(rows, dtype=dtype).reshape(-1, width)[:count]
        result[:len(source)] = source
    return result


def build_mesh_buffers(model: ModelRecord, reader: MSHReader, material_count: int) -> Optional[MeshBuffers]:
    """Merge a model's segments into one set of vertex buffers.

    Args:
        model: Model whose geometry holds at least one segment
        reader: Session used to report bad cross references
        material_count: Length of the material list, for MATI checks

    Returns:
        MeshBuffers, or None when the model has no segments
    """
    geometry = model.geometry
    if geometry is None or not geometry.segments:
        return None
    segments: Sequence[Segment] = geometry.segments

    has_normals = any(s.normals for s in segments)
    has_uvs = any(s.uvs for s in segments)
    has_colors = any(s.has_vertex_colors for s in segments)
    envelope = geometry.envelope
    has_skin = envelope is not None and any(s.weights for s in segments)
    envelope_array = np.asarray(envelope or [0], dtype=np.uint32)

    positions, normals, uvs, colors = [], [], [], []
    indices, skin_indices, skin_weights = [], [], []
    groups = []
    vertex_offset = 0
    index_offset = 0

    for seg_idx, segment in enumerate(segments):
        if not 0 <= segment.material_index < material_count:
            reader.report("Model %s segment %d uses material %d, file has %d",
                          model.name, seg_idx, segment.material_index, material_count)

        seg_positions = _fit_rows(segment.positions, len(segment.positions or ()), 3, 0.0, np.float32)
        count = len(seg_positions)
        positions.append(seg_positions)
        if has_normals:
            normals.append(_fit_rows(segment.normals, count, 3, 0.0, np.float32))
        if has_uvs:
            uvs.append(_fit_rows(segment.uvs, count, 2, 0.0, np.float32))
        if has_colors:
            if segment.colors:
                colors.append(_fit_rows(segment.colors, count, 4, 255, np.uint8))
            else:
                flat = segment.color if segment.color is not None else WHITE_BGRA
                colors.append(np.tile(np.asarray(flat, dtype=np.uint8), (count, 1)))

        triangles = segment.triangle_list()
        if reader.options.cleanup_triangles:
            triangles = cleanup_triangles(triangles, seg_positions)
        if triangles and max(triangles) >= count:
            reader.report("Model %s segment %d references vertex %d of %d",
                          model.name, seg_idx, max(triangles), count)
        indices.append(np.asarray(triangles, dtype=np.uint32) + vertex_offset)
        groups.append(GeometryGroup(start=index_offset, count=len(triangles),
                                    material_index=segment.material_index))

        if has_skin:
            bone_slots = np.zeros((count, 4), dtype=np.uint32)
            weights = np.zeros((count, 4), dtype=np.float32)
            if segment.weights:
                slots = np.asarray(segment.weights.indices, dtype=np.int64).reshape(-1, 4)[:count]
                bad = slots >= len(envelope)
                if bad.any():
                    reader.report("Model %s segment %d has envelope index %d, envelope holds %d",
                                  model.name, seg_idx, int(slots[bad].max()), len(envelope))
                    slots[bad] = 0
                bone_slots[:len(slots)] = envelope_array[slots]
                weights = _fit_rows(segment.weights.weights, count, 4, 0.0, np.float32)
            skin_indices.append(bone_slots)
            skin_weights.append(weights)

        vertex_offset += count
        index_offset += len(triangles)

    return MeshBuffers(
        positions=np.concatenate(positions),
        indices=np.concatenate(indices),
        groups=groups,
        normals=np.concatenate(normals) if has_normals else None,
        uvs=np.concatenate(uvs) if has_uvs else None,
        colors=np.concatenate(colors) if has_colors else None,
        skin_indices=np.concatenate(skin_indices) if has_skin else None,
        skin_weights=np.concatenate(skin_weights) if has_skin else None,
    )


# =============================================================================
# Importer
# =============================================================================

class MSHImporter:
    """Reads one .msh buffer and assembles its document"""

    def __init__(self, data: bytes, options: Optional[ReaderOptions] = None):
        """
        Initialize importer.

        Args:
            data: Complete contents of an .msh file
            options: Parse configuration; defaults to ReaderOptions()
        """
        self.options = options or ReaderOptions()
        self.reader = MSHReader(data, self.options)
        self.document: Optional[MSHDocument] = None

    def execute(self) -> MSHDocument:
        """
        Execute import.

        Returns:
            The assembled document

        Raises:
            MSHValidationError: strict mode and at least one issue was reported
        """
        reader = self.reader
        document = MSHDocument()
        document.scene_info = reader.read_scene_info()
        document.materials = reader.read_materials()
        document.models = reader.read_models()

        animation = reader.read_animations(document.models)
        if animation is not None:
            document.animations = animation.cycles
            document.keyframes = animation.keyframes

        document.nodes = self._build_nodes(document)
        document.textures = reader.textures
        document.issues = reader.issues
        self.document = document

        if self.options.debug:
            log.debug("Read MSH: %s", document.summary())
        if self.options.strict and document.issues:
            raise MSHValidationError(document.issues)
        return document

    def _build_nodes(self, document: MSHDocument) -> List[SceneNode]:
        reader = self.reader
        models = document.models

        enveloped = set()
        for model in models:
            if model.geometry is not None and model.geometry.envelope:
                enveloped.update(model.geometry.envelope)

        by_index: Dict[int, ModelRecord] = {}
        for model in models:
            if model.model_index in by_index:
                reader.report("Model index %d used by both %s and %s",
                              model.model_index, by_index[model.model_index].name, model.name)
            else:
                by_index[model.model_index] = model

        for model in models:
            envelope = model.geometry.envelope if model.geometry is not None else None
            for index in envelope or ():
                if index not in by_index:
                    reader.report("Model %s is skinned to model index %d, which does not exist",
                                  model.name, index)

        nodes = []
        by_name: Dict[str, SceneNode] = {}
        for model in models:
            has_geometry = model.geometry is not None and model.geometry.kind != 'none'
            kind = classify_model(model.name, has_geometry, model.model_index in enveloped)
            if model.flags is not None:
                visible = model.flags == 0
            else:
                visible = not is_hidden_by_convention(model.name)
            node = SceneNode(model=model, kind=kind, visible=visible)
            if kind == KIND_MESH:
                node.mesh = build_mesh_buffers(model, reader, len(document.materials))
            nodes.append(node)
            by_name.setdefault(model.lookup_name, node)

        for node in nodes:
            parent_name = node.model.parent_lookup_name
            if not parent_name:
                continue
            parent = by_name.get(parent_name)
            if parent is None or parent is node:
                reader.report("Model %s has unknown parent %s", node.name, node.model.parent)
                continue
            node.parent = parent.lookup_name
            parent.children.append(node.lookup_name)

        if self.options.debug:
            for node in nodes:
                log.debug("Node %s: %s, %s, parent %s", node.name, node.kind,
                          'visible' if node.visible else 'hidden', node.parent)
        return nodes
