"""
Utility functions for landmark retargeting.

This module provides:
    - quat_utils: Quaternion math utilities
    - basis: Local coordinate frames and the rotate_bone primitive
    - smoothing: EMA / slerp smoothing and threshold normalization
"""

from .quat_utils import (
    quat_normalize,
    quat_slerp,
    quat_from_unit_vectors,
    rotate_vec_by_quat,
    safe_normalize,
)
from .basis import Basis, build_basis_matrix, invert_basis, orthonormal_frame, rotate_bone
from .smoothing import DEFAULT_SMOOTHING, ema, normalize

__all__ = [
    "quat_normalize",
    "quat_slerp",
    "quat_from_unit_vectors",
    "rotate_vec_by_quat",
    "safe_normalize",
    "Basis",
    "build_basis_matrix",
    "invert_basis",
    "orthonormal_frame",
    "rotate_bone",
    "DEFAULT_SMOOTHING",
    "ema",
    "normalize",
]
