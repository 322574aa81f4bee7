"""
Index and colour helpers for MSH geometry segments.

Segments store faces in three encodings (NDXT triangle lists, STRP strips,
NDXL polygons). Everything here turns them into one counter-clockwise
triangle list.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

# STRP: two consecutive indices with this bit set start a new strip
STRIP_FLAG = 0x8000
STRIP_INDEX_MASK = 0x7FFF


def split_strips(raw_indices: Sequence[int]) -> List[List[int]]:
    """Split a packed STRP index stream into separate strips"""
    strips = []
    current = []
    count = len(raw_indices)
    for i, raw in enumerate(raw_indices):
        starts_strip = (raw & STRIP_FLAG) and i + 1 < count and (raw_indices[i + 1] & STRIP_FLAG)
        if starts_strip:
            if current:
                strips.append(current)
            current = []
        current.append(raw & STRIP_INDEX_MASK)
    if current:
        strips.append(current)
    return strips


def unroll_strip(strip: Sequence[int]) -> List[int]:
    """Unroll one strip; every odd triangle swaps its last two corners"""
    triangles = []
    for i in range(len(strip) - 2):
        if i % 2 == 0:
            triangles.extend((strip[i], strip[i + 1], strip[i + 2]))
        else:
            triangles.extend((strip[i], strip[i + 2], strip[i + 1]))
    return triangles


def unroll_strips(strips: Iterable[Sequence[int]]) -> List[int]:
    triangles = []
    for strip in strips:
        triangles.extend(unroll_strip(strip))
    return triangles


def triangulate_polygon(polygon: Sequence[int]) -> List[int]:
    """Fan-triangulate a convex polygon from its first vertex"""
    triangles = []
    for i in range(1, len(polygon) - 1):
        triangles.extend((polygon[0], polygon[i], polygon[i + 1]))
    return triangles


def triangulate_polygons(polygons: Iterable[Sequence[int]]) -> List[int]:
    triangles = []
    for polygon in polygons:
        triangles.extend(triangulate_polygon(polygon))
    return triangles


def cleanup_triangles(indices: Sequence[int], positions, epsilon: float = 1e-6) -> List[int]:
    """Drop degenerate, zero-area, out-of-range and duplicate triangles.

    Duplicates are matched regardless of winding; the first occurrence keeps
    its original corner order.
    """
    tris = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    points = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    if not len(tris) or not len(points):
        return []

    keep = (tris[:, 0] != tris[:, 1]) & (tris[:, 1] != tris[:, 2]) & (tris[:, 2] != tris[:, 0])
    keep &= ((tris >= 0) & (tris < len(points))).all(axis=1)

    safe = np.clip(tris, 0, len(points) - 1)
    a, b, c = points[safe[:, 0]], points[safe[:, 1]], points[safe[:, 2]]
    cross = np.cross(b - a, c - a)
    keep &= (np.abs(cross) >= epsilon).any(axis=1)

    result = []
    seen = set()
    for tri, ok in zip(tris.tolist(), keep.tolist()):
        if not ok:
            continue
        key = tuple(sorted(tri))
        if key in seen:
            continue
        seen.add(key)
        result.extend(tri)
    return result


# =============================================================================
# Colours
# =============================================================================

def bgra_to_rgba(color: Sequence) -> Tuple:
    """Swap the blue and red channels of a stored BGRA colour"""
    return (color[2], color[1], color[0], color[3])


# The swap is its own inverse
rgba_to_bgra = bgra_to_rgba


def bgra_float_to_rgb(color: Optional[Sequence[float]]) -> Optional[Tuple[float, float, float]]:
    """Material colour (BGRA floats) -> (r, g, b)"""
    if color is None:
        return None
    return (color[2], color[1], color[0])
