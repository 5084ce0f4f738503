import numpy as np
import pytest

from avatar_sync_sdk.landmarks import (
    FACE_LANDMARK_COUNT,
    HAND_LANDMARK_COUNT,
    POSE_LANDMARK_COUNT,
    FaceLandmark,
    LandmarkSet,
    PoseLandmark as P,
)
from avatar_sync_sdk.retargeter import AvatarBinding, Bone, MorphMesh


HEAD_TARGETS = [
    "eyesWideLeft", "eyesWideRight",
    "eyeSquintLeft", "eyeSquintRight",
    "eyeBlinkLeft", "eyeBlinkRight",
    "mouthOpen", "jawOpen",
    "mouthSmileLeft", "mouthSmileRight",
    "noseSneerLeft", "noseSneerRight",
]


def _rig_rest_positions():
    """Rest positions (relative to the parent bone) of a small Ready Player Me style rig."""
    rest = {
        "Hips": (0.0, 1.0, 0.0),
        "Spine": (0.0, 0.1, 0.0),
        "Neck": (0.0, 0.15, 0.0),
    }
    for side, sign in (("Left", 1.0), ("Right", -1.0)):
        rest[f"{side}Arm"] = (sign * 0.1, 0.0, 0.0)
        rest[f"{side}ForeArm"] = (0.0, 0.28, 0.0)
        rest[f"{side}Hand"] = (0.0, 0.26, 0.0)
        rest[f"{side}UpLeg"] = (sign * 0.09, -0.05, 0.0)
        rest[f"{side}Leg"] = (0.0, 0.42, 0.0)
        rest[f"{side}Foot"] = (0.0, 0.4, 0.0)
        rest[f"{side}ToeBase"] = (0.0, 0.1, 0.1)

        rest[f"{side}HandThumb1"] = (sign * 0.03, 0.03, 0.02)
        rest[f"{side}HandThumb2"] = (0.0, 0.035, 0.0)
        rest[f"{side}HandThumb3"] = (0.0, 0.03, 0.0)
        rest[f"{side}HandThumb4"] = (0.0, 0.025, 0.0)
        for finger, x in (("Index", 0.03), ("Middle", 0.01), ("Ring", -0.01), ("Pinky", -0.03)):
            rest[f"{side}Hand{finger}1"] = (sign * x, 0.1, 0.0)
            rest[f"{side}Hand{finger}2"] = (0.0, 0.04, 0.0)
            rest[f"{side}Hand{finger}3"] = (0.0, 0.03, 0.0)
            rest[f"{side}Hand{finger}4"] = (0.0, 0.025, 0.0)
    return rest


@pytest.fixture
def rig_nodes():
    nodes = {name: Bone(name, pos) for name, pos in _rig_rest_positions().items()}
    nodes["Wolf3D_Head"] = MorphMesh.from_target_names("Wolf3D_Head", HEAD_TARGETS)
    nodes["Wolf3D_Teeth"] = MorphMesh.from_target_names("Wolf3D_Teeth", ["jawOpen"])
    return nodes


@pytest.fixture
def binding(rig_nodes):
    return AvatarBinding.from_nodes(rig_nodes)


def _pose_world_points():
    """World landmarks (meters, y down, origin between the hips) of a relaxed standing pose."""
    pts = np.zeros((POSE_LANDMARK_COUNT, 3))
    pts[P.NOSE] = (0.0, -0.6, -0.1)
    for side, sign in (("LEFT", 1.0), ("RIGHT", -1.0)):
        pts[P[f"{side}_SHOULDER"]] = (sign * 0.18, -0.45, 0.0)
        pts[P[f"{side}_ELBOW"]] = (sign * 0.22, -0.2, 0.02)
        pts[P[f"{side}_WRIST"]] = (sign * 0.25, 0.0, -0.06)
        pts[P[f"{side}_PINKY"]] = (sign * 0.26, 0.08, -0.05)
        pts[P[f"{side}_INDEX"]] = (sign * 0.24, 0.09, -0.09)
        pts[P[f"{side}_THUMB"]] = (sign * 0.22, 0.05, -0.09)
        pts[P[f"{side}_HIP"]] = (sign * 0.1, 0.0, 0.0)
        pts[P[f"{side}_KNEE"]] = (sign * 0.11, 0.42, -0.05)
        pts[P[f"{side}_ANKLE"]] = (sign * 0.11, 0.82, 0.0)
        pts[P[f"{side}_HEEL"]] = (sign * 0.11, 0.87, 0.04)
        pts[P[f"{side}_FOOT_INDEX"]] = (sign * 0.12, 0.88, -0.12)
    return pts


@pytest.fixture
def make_pose_world():
    """Factory: world body landmarks with uniform visibility and optional overrides."""
    def make(visibility=1.0, overrides=None, points=None):
        pts = _pose_world_points() if points is None else np.array(points, dtype=np.float64)
        vis = np.full(POSE_LANDMARK_COUNT, visibility, dtype=np.float64)
        for index, value in (overrides or {}).items():
            vis[index] = value
        return LandmarkSet(pts, vis)
    return make


@pytest.fixture
def make_pose_image():
    """Factory: image-space body landmarks with the hip midpoint at hip_mid_x."""
    def make(hip_mid_x=0.5):
        pts = np.full((POSE_LANDMARK_COUNT, 3), 0.5)
        pts[P.LEFT_HIP] = (hip_mid_x + 0.05, 0.6, 0.0)
        pts[P.RIGHT_HIP] = (hip_mid_x - 0.05, 0.6, 0.0)
        return LandmarkSet(pts, np.ones(POSE_LANDMARK_COUNT))
    return make


def _hand_points(curl=0.0):
    """Normalized hand landmarks, fingers pointing up the image; curl bends the index finger."""
    pts = np.zeros((HAND_LANDMARK_COUNT, 3))
    pts[0] = (0.5, 0.8, 0.0)
    # thumb
    pts[1] = (0.46, 0.77, -0.01)
    pts[2] = (0.43, 0.74, -0.015)
    pts[3] = (0.41, 0.71, -0.02)
    pts[4] = (0.40, 0.68, -0.02)
    for base, x in ((5, 0.46), (9, 0.49), (13, 0.52), (17, 0.55)):
        pts[base] = (x, 0.68, 0.0)
        pts[base + 1] = (x, 0.63, 0.0)
        pts[base + 2] = (x, 0.59, 0.0)
        pts[base + 3] = (x, 0.56, 0.0)
    if curl:
        pts[6] = (0.46, 0.65, -0.03 * curl)
        pts[7] = (0.46, 0.66, -0.06 * curl)
        pts[8] = (0.46, 0.69, -0.07 * curl)
    return pts


@pytest.fixture
def make_hand():
    def make(curl=0.0, visibility=None):
        pts = _hand_points(curl)
        vis = None if visibility is None else np.full(HAND_LANDMARK_COUNT, visibility)
        return LandmarkSet(pts, vis)
    return make


def _face_points(mouth_gap=0.0, right_eye_gap=0.02, left_eye_gap=0.02, turn=0.0):
    """
    Normalized face mesh.

    Unused mesh points sit on the face center. Gaps are in normalized image y.
    turn shifts the nose sideways to turn the head.
    """
    pts = np.tile([0.5, 0.5, 0.0], (FACE_LANDMARK_COUNT, 1))
    pts[FaceLandmark.FACE_LEFT] = (0.6, 0.5, 0.05)
    pts[FaceLandmark.FACE_RIGHT] = (0.4, 0.5, 0.05)
    pts[FaceLandmark.FACE_TOP] = (0.5, 0.35, 0.05)
    pts[FaceLandmark.FACE_BOTTOM] = (0.5, 0.65, 0.05)
    pts[FaceLandmark.NOSE] = (0.5 + turn, 0.52, -0.05)
    pts[FaceLandmark.NASAL] = (0.5 + turn, 0.50, -0.045)

    pts[FaceLandmark.RIGHT_EYE_TOP] = (0.45, 0.42 - right_eye_gap / 2, 0.0)
    pts[FaceLandmark.RIGHT_EYE_BOTTOM] = (0.45, 0.42 + right_eye_gap / 2, 0.0)
    pts[FaceLandmark.LEFT_EYE_TOP] = (0.55, 0.42 - left_eye_gap / 2, 0.0)
    pts[FaceLandmark.LEFT_EYE_BOTTOM] = (0.55, 0.42 + left_eye_gap / 2, 0.0)

    pts[FaceLandmark.MOUTH_TOP] = (0.5, 0.6 - mouth_gap / 2, 0.0)
    pts[FaceLandmark.MOUTH_BOTTOM] = (0.5, 0.6 + mouth_gap / 2, 0.0)
    pts[FaceLandmark.MOUTH_RIGHT] = (0.46, 0.6, 0.0)
    pts[FaceLandmark.MOUTH_LEFT] = (0.54, 0.6, 0.0)
    pts[FaceLandmark.NOSE_RIGHT] = (0.48, 0.53, 0.0)
    pts[FaceLandmark.NOSE_LEFT] = (0.52, 0.53, 0.0)
    return pts


@pytest.fixture
def make_face():
    def make(**kwargs):
        return LandmarkSet(_face_points(**kwargs))
    return make


def assert_all_finite(binding):
    for name, bone in binding.bones.items():
        assert np.all(np.isfinite(bone.quaternion)), name
        assert np.all(np.isfinite(bone.rotation)), name
        assert np.all(np.isfinite(bone.position)), name
    for name, mesh in binding.meshes.items():
        assert np.all(np.isfinite(mesh.morph_target_influences)), name


@pytest.fixture
def check_finite():
    return assert_all_finite
