"""
Per-frame landmark containers.

A DetectionFrame carries whatever the detector produced for one video frame:
body landmarks in image space and in metric world space, one set per hand
and the face mesh. Any of them may be missing.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np


class LandmarkSet:
    """
    Fixed-length array of 3D landmarks with optional visibility scores.

    Example usage:
        landmarks = LandmarkSet.from_landmarks([
            {"x": 0.5, "y": 0.4, "z": -0.1, "visibility": 0.98},
            ...
        ])
        shoulder = landmarks[PoseLandmark.LEFT_SHOULDER]
    """

    def __init__(self, points, visibility=None):
        """
        Args:
            points: (N, 3) array of landmark coordinates
            visibility: Optional (N,) array of confidence scores in [0, 1]
        """
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError(f"Landmark points must have shape (N, 3), got {points.shape}")
        if visibility is not None:
            visibility = np.asarray(visibility, dtype=np.float64)
            if visibility.shape != (points.shape[0],):
                raise ValueError(f"Visibility must have shape ({points.shape[0]},), "
                                 f"got {visibility.shape}")
        self.points = points
        self.visibility = visibility

    @classmethod
    def from_landmarks(cls, landmarks):
        """
        Build a LandmarkSet from detector output.

        Accepts a sequence of dicts with x/y/z[/visibility] keys, objects with
        x/y/z[/visibility] attributes (MediaPipe landmark protos, including a
        NormalizedLandmarkList via its .landmark field), (x, y, z[, v]) tuples,
        or an (N, 3) / (N, 4) array. Visibility is kept only if every point
        has one.
        """
        if hasattr(landmarks, "landmark"):
            landmarks = landmarks.landmark

        if isinstance(landmarks, np.ndarray):
            if landmarks.ndim == 2 and landmarks.shape[1] == 4:
                return cls(landmarks[:, :3], landmarks[:, 3])
            return cls(landmarks)

        points = []
        visibility = []
        for lm in landmarks:
            if isinstance(lm, dict):
                points.append((lm["x"], lm["y"], lm["z"]))
                visibility.append(lm.get("visibility"))
            elif hasattr(lm, "x"):
                points.append((lm.x, lm.y, lm.z))
                visibility.append(_proto_visibility(lm))
            else:
                values = tuple(lm)
                points.append(values[:3])
                visibility.append(values[3] if len(values) > 3 else None)

        if points and all(v is not None for v in visibility):
            return cls(np.array(points, dtype=np.float64), np.array(visibility, dtype=np.float64))
        return cls(np.array(points, dtype=np.float64).reshape(-1, 3))

    def __len__(self):
        return self.points.shape[0]

    def __getitem__(self, index):
        return self.points[int(index)]

    def has_at_least(self, count):
        return len(self) >= count

    def visibility_of(self, index):
        """Visibility of one landmark; 1.0 when the detector gave none."""
        if self.visibility is None:
            return 1.0
        return float(self.visibility[int(index)])


def _proto_visibility(lm):
    if hasattr(lm, "HasField"):
        try:
            return lm.visibility if lm.HasField("visibility") else None
        except ValueError:
            return None
    return getattr(lm, "visibility", None)


@dataclass
class DetectionFrame:
    """One detector result. Each landmark set is optional."""

    pose: Optional[LandmarkSet] = None
    pose_world: Optional[LandmarkSet] = None
    left_hand: Optional[LandmarkSet] = None
    right_hand: Optional[LandmarkSet] = None
    face: Optional[LandmarkSet] = None


# detector result key -> DetectionFrame field
RESULT_KEYS = {
    "pose_landmarks": "pose",
    "pose_world_landmarks": "pose_world",
    "left_hand_landmarks": "left_hand",
    "right_hand_landmarks": "right_hand",
    "face_landmarks": "face",
}


def process_detection_result(result, verbose=False):
    """
    Convert a detector result into a DetectionFrame.

    Args:
        result: Dict (or object with matching attributes) shaped like a
            MediaPipe Holistic result:
                - pose_landmarks: 33 image-space points with visibility
                - pose_world_landmarks: 33 world-space points with visibility
                - left_hand_landmarks / right_hand_landmarks: 21 points
                - face_landmarks: 468 (or 478) points
            Missing or None entries are allowed.
        verbose: Print a message when a landmark set cannot be parsed

    Returns:
        DetectionFrame; malformed landmark sets are left as None
    """
    frame = DetectionFrame()
    for key, field in RESULT_KEYS.items():
        if isinstance(result, dict):
            raw = result.get(key)
        else:
            raw = getattr(result, key, None)
        if raw is None:
            continue
        try:
            setattr(frame, field, LandmarkSet.from_landmarks(raw))
        except (KeyError, TypeError, ValueError) as e:
            if verbose:
                print(f"[DetectionFrame] Skipping malformed {key}: {e}")
    return frame
