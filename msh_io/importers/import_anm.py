"""
MSH Animation Clip Builder

Cuts the file-wide KFR3 keyframes into one clip per CYCL entry. Samples are
filtered to the cycle's frame range, sorted by frame and timed relative to
the cycle start:

    time = (frame - first_frame) / fps
"""

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple, Union

import numpy as np

from ..formats.anm_format import AnimationCycle

log = logging.getLogger(__name__)


@dataclass
class BoneTrack:
    """Samples of one bone inside one clip"""
    bone: Union[str, int]
    translation_times: np.ndarray  # (T,) float32 seconds
    translations: np.ndarray       # (T, 3) float32
    rotation_times: np.ndarray     # (R,) float32 seconds
    rotations: np.ndarray          # (R, 4) float32 quaternion x, y, z, w

    @property
    def is_empty(self) -> bool:
        return not len(self.translation_times) and not len(self.rotation_times)


@dataclass
class AnimationClip:
    name: str
    duration: float
    fps: float
    tracks: List[BoneTrack] = field(default_factory=list)

    def track(self, bone: Union[str, int]):
        for track in self.tracks:
            if track.bone == bone:
                return track
        return None


def _cut(samples: Sequence[Tuple[int, tuple]], first: int, last: int, fps: float, width: int):
    kept = sorted((s for s in samples if first <= s[0] <= last), key=lambda s: s[0])
    times = np.asarray([(frame - first) / fps for frame, _ in kept], dtype=np.float32)
    values = np.asarray([value for _, value in kept], dtype=np.float32).reshape(-1, width)
    return times, values


def build_clip(document, cycle: AnimationCycle) -> AnimationClip:
    """Build the clip of one cycle.

    Args:
        document: MSHDocument holding the file's keyframes
        cycle: CYCL entry giving the frame range and rate

    Returns:
        AnimationClip with one track per bone that has samples in range
    """
    fps = cycle.fps if cycle.fps > 0 else 1.0
    if cycle.fps <= 0:
        log.warning("Cycle %s has fps %s, timing frames at 1 fps", cycle.name, cycle.fps)
    first, last = cycle.first_frame, cycle.last_frame

    clip = AnimationClip(name=cycle.name, duration=max(0, last - first) / fps, fps=cycle.fps)
    for bone in document.keyframes:
        translation_times, translations = _cut(bone.translations, first, last, fps, 3)
        rotation_times, rotations = _cut(bone.rotations, first, last, fps, 4)
        track = BoneTrack(
            bone=bone.bone,
            translation_times=translation_times,
            translations=translations,
            rotation_times=rotation_times,
            rotations=rotations,
        )
        if not track.is_empty:
            clip.tracks.append(track)
    return clip


def build_clips(document) -> List[AnimationClip]:
    """One clip per animation cycle of an MSHDocument"""
    return [build_clip(document, cycle) for cycle in document.animations]
