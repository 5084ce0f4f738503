"""
Local coordinate frames built from landmark geometry.

A frame is three orthonormal axes expressed in landmark space. Retargeters
rebuild one every update and hand it down a kinematic chain, re-orienting it
by each joint's rotation (see Basis.rotated).
"""

from dataclasses import dataclass

import numpy as np

from .quat_utils import (
    rotate_vec_by_quat,
    quat_from_unit_vectors,
    safe_normalize,
)


BASIS_LAYOUTS = ("columns", "swizzled")

WORLD_UP = np.array([0.0, 1.0, 0.0])
WORLD_FORWARD = np.array([0.0, 0.0, 1.0])


def build_basis_matrix(x_axis, y_axis, z_axis, layout="columns"):
    """
    Assemble the change-of-basis matrix for a frame.

    Args:
        x_axis, y_axis, z_axis: Frame axes
        layout: "columns" puts the axes in the matrix columns. "swizzled"
            uses the sign-permuted arrangement of the arm-only rig variant:
            rows (x.z, y.z, -z.z), (x.y, -y.y, z.y), (-x.x, y.x, -z.x)

    Returns:
        3x3 matrix
    """
    x, y, z = x_axis, y_axis, z_axis
    if layout == "columns":
        return np.column_stack([x, y, z]).astype(np.float64)
    if layout == "swizzled":
        return np.array([
            [x[2], y[2], -z[2]],
            [x[1], -y[1], z[1]],
            [-x[0], y[0], -z[0]],
        ], dtype=np.float64)
    raise ValueError(f"Unknown basis layout: {layout}. Supported: {list(BASIS_LAYOUTS)}")


def invert_basis(m):
    """
    Invert a change-of-basis matrix.

    Orthonormal matrices are inverted by transposition; anything else falls
    back to a general inverse.

    Returns:
        Inverse matrix, or None if m is singular
    """
    m = np.asarray(m, dtype=np.float64)
    if not np.all(np.isfinite(m)):
        return None
    if np.allclose(m.T @ m, np.eye(3), atol=1e-6):
        return m.T
    if abs(np.linalg.det(m)) < 1e-9:
        return None
    return np.linalg.inv(m)


def orthonormal_frame(x_dir, y_hint, fallback_up=WORLD_UP):
    """
    Build an orthonormal (x, y, z) frame from an x direction and an up hint.

    x is kept exactly; y is the hint made perpendicular to x; z = x cross y.
    If the hint is degenerate or parallel to x, fallback_up (then the world
    forward axis) is used instead, so a frame can always be derived from x
    alone.

    Returns:
        Tuple (x, y, z) of unit vectors, or None if x_dir is degenerate
    """
    x = safe_normalize(x_dir)
    if x is None:
        return None

    for hint in (y_hint, fallback_up, WORLD_FORWARD):
        if hint is None:
            continue
        y = safe_normalize(np.asarray(hint, dtype=np.float64) - np.dot(hint, x) * x)
        if y is not None and abs(np.dot(safe_normalize(hint), x)) < 0.9999:
            z = np.cross(x, y)
            return x, y, z
    return None


@dataclass(frozen=True)
class Basis:
    """Frame axes plus the matrix layout used to map world vectors into it."""

    x: np.ndarray
    y: np.ndarray
    z: np.ndarray
    layout: str = "columns"

    def matrix(self):
        return build_basis_matrix(self.x, self.y, self.z, self.layout)

    def rotated(self, q):
        """Return the frame with every axis rotated by quaternion q."""
        return Basis(
            rotate_vec_by_quat(self.x, q),
            rotate_vec_by_quat(self.y, q),
            rotate_vec_by_quat(self.z, q),
            self.layout,
        )


def rotate_bone(joint_pos, child_pos, rest_child_pos, basis):
    """
    Rotation a bone needs so its rest-pose child direction matches a limb.

    The observed limb (child_pos - joint_pos) is taken into the joint's local
    frame through the inverse basis; the avatar's rest-pose child offset gives
    the direction to rotate from.

    Args:
        joint_pos: Observed joint position (landmark space)
        child_pos: Observed child joint position (landmark space)
        rest_child_pos: Child bone's rest position relative to the joint bone
        basis: Basis at the joint

    Returns:
        Quaternion (w, x, y, z), or None on degenerate geometry
    """
    inv = invert_basis(basis.matrix())
    if inv is None:
        return None

    limb = np.asarray(child_pos, dtype=np.float64) - np.asarray(joint_pos, dtype=np.float64)
    user_limb = safe_normalize(inv @ limb)
    avatar_limb = safe_normalize(rest_child_pos)
    if user_limb is None or avatar_limb is None:
        return None

    return quat_from_unit_vectors(avatar_limb, user_limb)
