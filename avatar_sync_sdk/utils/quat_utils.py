"""
Quaternion utility functions for landmark retargeting.

All quaternions are in (w, x, y, z) format unless otherwise specified.
Euler angles are intrinsic XYZ, in radians.
"""

import warnings

import numpy as np
from scipy.spatial.transform import Rotation as R


EPS = 1e-9

IDENTITY_QUAT = np.array([1.0, 0.0, 0.0, 0.0])


def safe_normalize(v):
    """
    Normalize a vector, refusing near-zero input.

    Args:
        v: 3D vector

    Returns:
        Unit vector, or None if the vector has (near) zero length
    """
    v = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(v)
    if not np.isfinite(norm) or norm < EPS:
        return None
    return v / norm


def quat_normalize(q):
    """
    Normalize quaternion (w, x, y, z format).

    Args:
        q: Quaternion (w, x, y, z)

    Returns:
        Normalized quaternion, identity if q has (near) zero length
    """
    q = np.asarray(q, dtype=np.float64)
    norm = np.sqrt(q[0]*q[0] + q[1]*q[1] + q[2]*q[2] + q[3]*q[3])
    if norm < 1e-8:
        return IDENTITY_QUAT.copy()
    return q / norm


def rotate_vec_by_quat(v, q):
    """
    Rotate vector v by quaternion q (w, x, y, z format).
    Uses optimized Rodrigues' rotation formula.

    Args:
        v: 3D vector
        q: Quaternion (w, x, y, z)

    Returns:
        Rotated 3D vector
    """
    w, x, y, z = q[0], q[1], q[2], q[3]
    # t = 2 * cross(q_xyz, v)
    tx = 2.0 * (y * v[2] - z * v[1])
    ty = 2.0 * (z * v[0] - x * v[2])
    tz = 2.0 * (x * v[1] - y * v[0])
    # result = v + w * t + cross(q_xyz, t)
    return np.array([
        v[0] + w * tx + (y * tz - z * ty),
        v[1] + w * ty + (z * tx - x * tz),
        v[2] + w * tz + (x * ty - y * tx)
    ])


def quat_from_unit_vectors(v_from, v_to):
    """
    Shortest-arc rotation taking one unit vector onto another.

    Args:
        v_from: Unit 3D vector
        v_to: Unit 3D vector

    Returns:
        Quaternion (w, x, y, z) such that rotate_vec_by_quat(v_from, q) == v_to
    """
    r = float(np.dot(v_from, v_to)) + 1.0

    if r < 1e-8:
        # opposite vectors, any perpendicular axis will do
        if abs(v_from[0]) > abs(v_from[2]):
            q = np.array([0.0, -v_from[1], v_from[0], 0.0])
        else:
            q = np.array([0.0, 0.0, -v_from[2], v_from[1]])
    else:
        axis = np.cross(v_from, v_to)
        q = np.array([r, axis[0], axis[1], axis[2]])

    return quat_normalize(q)


def quat_slerp(q1, q2, t):
    """
    Spherical linear interpolation between quaternions.

    Args:
        q1: Start quaternion (w, x, y, z)
        q2: End quaternion (w, x, y, z)
        t: Interpolation factor [0, 1]

    Returns:
        Interpolated unit quaternion (w, x, y, z)
    """
    q1 = quat_normalize(q1)
    q2 = quat_normalize(q2)

    dot = float(np.dot(q1, q2))

    # take the shorter path
    if dot < 0.0:
        q2 = -q2
        dot = -dot

    if dot > 0.9995:
        return quat_normalize(q1 + t * (q2 - q1))

    theta_0 = np.arccos(dot)
    theta = theta_0 * t

    q2_perp = quat_normalize(q2 - q1 * dot)
    return q1 * np.cos(theta) + q2_perp * np.sin(theta)


def quat_to_euler(q):
    """
    Convert a quaternion to intrinsic XYZ Euler angles.

    Args:
        q: Quaternion (w, x, y, z)

    Returns:
        Euler angles (x, y, z) in radians
    """
    # scipy warns on gimbal lock and still returns a valid decomposition
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        return R.from_quat(quat_normalize(q), scalar_first=True).as_euler("XYZ")


def euler_to_quat(e):
    """
    Convert intrinsic XYZ Euler angles to a quaternion.

    Args:
        e: Euler angles (x, y, z) in radians

    Returns:
        Quaternion (w, x, y, z)
    """
    return R.from_euler("XYZ", np.asarray(e, dtype=np.float64)).as_quat(scalar_first=True)


def quat_angle(q):
    """Rotation angle of q (axis-angle magnitude) in radians, in [0, pi]."""
    return float(R.from_quat(quat_normalize(q), scalar_first=True).magnitude())
