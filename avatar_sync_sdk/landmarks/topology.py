"""
Landmark topology of the external detector.

Indices follow the MediaPipe Holistic layout: 33 body points, 21 points per
hand and a 468 point face mesh. They are a fixed contract with the detector;
every retargeter looks points up through these enums only.
"""

from enum import IntEnum


POSE_LANDMARK_COUNT = 33
HAND_LANDMARK_COUNT = 21
FACE_LANDMARK_COUNT = 468

SIDES = ("left", "right")


class PoseLandmark(IntEnum):
    NOSE = 0
    LEFT_EYE_INNER = 1
    LEFT_EYE = 2
    LEFT_EYE_OUTER = 3
    RIGHT_EYE_INNER = 4
    RIGHT_EYE = 5
    RIGHT_EYE_OUTER = 6
    LEFT_EAR = 7
    RIGHT_EAR = 8
    MOUTH_LEFT = 9
    MOUTH_RIGHT = 10
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_PINKY = 17
    RIGHT_PINKY = 18
    LEFT_INDEX = 19
    RIGHT_INDEX = 20
    LEFT_THUMB = 21
    RIGHT_THUMB = 22
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26
    LEFT_ANKLE = 27
    RIGHT_ANKLE = 28
    LEFT_HEEL = 29
    RIGHT_HEEL = 30
    LEFT_FOOT_INDEX = 31
    RIGHT_FOOT_INDEX = 32


class HandLandmark(IntEnum):
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_FINGER_MCP = 5
    INDEX_FINGER_PIP = 6
    INDEX_FINGER_DIP = 7
    INDEX_FINGER_TIP = 8
    MIDDLE_FINGER_MCP = 9
    MIDDLE_FINGER_PIP = 10
    MIDDLE_FINGER_DIP = 11
    MIDDLE_FINGER_TIP = 12
    RING_FINGER_MCP = 13
    RING_FINGER_PIP = 14
    RING_FINGER_DIP = 15
    RING_FINGER_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


# First landmark of each non-thumb finger; the next three follow it.
FINGER_BASES = {
    "index": HandLandmark.INDEX_FINGER_MCP,
    "middle": HandLandmark.MIDDLE_FINGER_MCP,
    "ring": HandLandmark.RING_FINGER_MCP,
    "pinky": HandLandmark.PINKY_MCP,
}


class FaceLandmark(IntEnum):
    """Face mesh points the face retargeter reads by name."""

    NOSE = 1
    NASAL = 4  # one point above the nose
    FACE_TOP = 10
    MOUTH_TOP = 13
    MOUTH_BOTTOM = 14
    RIGHT_EYE_BOTTOM = 23
    RIGHT_EYE_TOP = 27
    MOUTH_RIGHT = 78
    NOSE_RIGHT = 129
    FACE_BOTTOM = 152
    FACE_RIGHT = 234
    LEFT_EYE_BOTTOM = 253
    LEFT_EYE_TOP = 257
    MOUTH_LEFT = 308
    NOSE_LEFT = 358
    FACE_LEFT = 454


def pose_landmark(side, joint):
    """Look up a sided body landmark, e.g. pose_landmark("left", "shoulder")."""
    return PoseLandmark[f"{side.upper()}_{joint.upper()}"]


def validate_topology(pose=None, hand=None, face=None):
    """
    Check a detector's declared landmark counts against the enums above.

    Body and hand counts must match exactly. The face mesh may carry extra
    trailing points (refined iris landmarks) since the first 468 indices are
    unchanged.

    Raises:
        ValueError: If a declared count does not fit
    """
    if pose is not None and pose != POSE_LANDMARK_COUNT:
        raise ValueError(f"Detector declares {pose} body landmarks, "
                         f"expected {POSE_LANDMARK_COUNT}")
    if hand is not None and hand != HAND_LANDMARK_COUNT:
        raise ValueError(f"Detector declares {hand} hand landmarks, "
                         f"expected {HAND_LANDMARK_COUNT}")
    if face is not None and face < FACE_LANDMARK_COUNT:
        raise ValueError(f"Detector declares {face} face landmarks, "
                         f"expected at least {FACE_LANDMARK_COUNT}")
