"""
Landmark input - detector topology and per-frame containers.

Example usage:
    from avatar_sync_sdk.landmarks import process_detection_result, PoseLandmark

    frame = process_detection_result(holistic_result)
    if frame.pose_world is not None:
        print(frame.pose_world[PoseLandmark.LEFT_SHOULDER])
"""

from .topology import (
    POSE_LANDMARK_COUNT,
    HAND_LANDMARK_COUNT,
    FACE_LANDMARK_COUNT,
    SIDES,
    PoseLandmark,
    HandLandmark,
    FaceLandmark,
    FINGER_BASES,
    pose_landmark,
    validate_topology,
)
from .frame import LandmarkSet, DetectionFrame, process_detection_result

__all__ = [
    "POSE_LANDMARK_COUNT",
    "HAND_LANDMARK_COUNT",
    "FACE_LANDMARK_COUNT",
    "SIDES",
    "PoseLandmark",
    "HandLandmark",
    "FaceLandmark",
    "FINGER_BASES",
    "pose_landmark",
    "validate_topology",
    "LandmarkSet",
    "DetectionFrame",
    "process_detection_result",
]
