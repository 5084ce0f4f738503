"""
Face retargeting: neck orientation and expression blend shapes.

All face landmarks are projected onto a face plane anchored at the nose and
divided by the measured face width/height, so the blend-shape thresholds do
not depend on how far the user sits from the camera.
"""

from dataclasses import dataclass

import numpy as np

from ..landmarks.topology import FACE_LANDMARK_COUNT, FaceLandmark
from ..utils.basis import Basis
from ..utils.quat_utils import EPS, safe_normalize
from ..utils.smoothing import normalize, smooth_euler, smooth_weight


NECK_PITCH_OFFSET = 0.1 * np.pi


@dataclass
class FaceProjection:
    """Face-plane frame plus every landmark in normalized plane coordinates."""

    basis: Basis
    face_pos: np.ndarray  # (N, 2)
    face_width: float
    face_height: float


def project_face(points, width, height):
    """
    Project face landmarks onto the face plane.

    The plane normal (z) points from the midpoint of the left/right face
    boundary to the nose; y points from the nose to the nasal point projected
    onto the plane; x = -(z cross y).

    Args:
        points: (N, 3) normalized face landmarks, N >= 468
        width, height: Capture resolution the coordinates are scaled by

    Returns:
        FaceProjection, or None on degenerate geometry
    """
    p = np.asarray(points, dtype=np.float64) * np.array([width, height, width])

    p_left = p[FaceLandmark.FACE_LEFT]
    p_right = p[FaceLandmark.FACE_RIGHT]
    p_mid = (p_left + p_right) / 2.0

    face_width = float(np.linalg.norm(p_right - p_left))
    face_height = float(np.linalg.norm(p[FaceLandmark.FACE_BOTTOM] - p[FaceLandmark.FACE_TOP]))
    if not face_width > EPS or not face_height > EPS:
        return None

    p_nose = p[FaceLandmark.NOSE]
    z_axis = safe_normalize(p_nose - p_mid)
    if z_axis is None:
        return None

    p_nasal = p[FaceLandmark.NASAL]
    p_nasal = p_nasal - z_axis * np.dot(z_axis, p_nasal - p_nose)
    y_axis = safe_normalize(p_nasal - p_nose)
    if y_axis is None:
        return None

    x_axis = -np.cross(z_axis, y_axis)

    rel = p - p_nose
    face_pos = np.column_stack([rel @ x_axis / face_width, rel @ y_axis / face_height])
    return FaceProjection(Basis(x_axis, y_axis, z_axis), face_pos, face_width, face_height)


def measure(rule, face_pos):
    """Raw landmark measurement a blend-shape rule maps to a weight."""
    if rule.measure == "gap":
        a, b = rule.landmarks
        return float(face_pos[a][1] - face_pos[b][1])
    return float(face_pos[rule.landmarks[0]][1])


class FaceRetargeter:
    """Drives the neck bone and the head/teeth blend shapes."""

    def __init__(self, binding, settings, rules):
        self.binding = binding
        self.settings = settings
        self.rules = rules

    def compute_weights(self, face_pos):
        """
        Unsmoothed blend-shape weights for one frame.

        Returns:
            Dict mapping (mesh name, target name) to a weight in [0, 1]
        """
        return {
            (rule.mesh, rule.target_name(self.settings)): normalize(measure(rule, face_pos), rule.min, rule.max)
            for rule in self.rules
        }

    def retarget(self, landmarks):
        """
        Retarget one frame of face landmarks.

        Returns:
            True if the face was updated
        """
        # face mesh visibility is not meaningful and is ignored
        if landmarks is None or not landmarks.has_at_least(FACE_LANDMARK_COUNT):
            return False

        projection = project_face(landmarks.points, self.settings.frame_width, self.settings.frame_height)
        if projection is None:
            if self.settings.verbose:
                print("[Retargeter] Degenerate face plane, holding")
            return False

        alpha = self.settings.smoothing
        neck = self.binding.bone("neck")
        if neck is not None:
            basis = projection.basis
            theta_x = np.arccos(np.clip(basis.z[0], -1.0, 1.0))
            theta_y = np.arccos(np.clip(basis.z[1], -1.0, 1.0))
            theta_z = np.arccos(np.clip(basis.y[0], -1.0, 1.0))
            rot_x = -(theta_y - np.pi / 2) + NECK_PITCH_OFFSET
            rot_y = theta_x - np.pi / 2
            rot_z = -(theta_z - np.pi / 2)
            sign = self.settings.yaw_sign
            smooth_euler(neck, rot_x, sign * rot_y, sign * rot_z, alpha=alpha)

        for (mesh_name, target), weight in self.compute_weights(projection.face_pos).items():
            mesh = self.binding.mesh(mesh_name)
            if mesh is not None:
                smooth_weight(mesh, target, weight, alpha=alpha)
        return True
