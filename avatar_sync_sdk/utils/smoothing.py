"""
Jitter smoothing for retargeted channels.

Every smoothed channel keeps its previous output and blends the new target
into it by a fixed factor: scalars and positions with an exponential moving
average, rotations by slerp toward the target quaternion.
"""

import numpy as np

from .quat_utils import quat_slerp


DEFAULT_SMOOTHING = 0.25


def ema(prev, next, alpha=DEFAULT_SMOOTHING):
    """
    Exponential moving average step, applied per component.

    Args:
        prev: Previous smoothed value (scalar or array)
        next: Newly computed value (scalar or array)
        alpha: Weight of the new value in [0, 1]

    Returns:
        prev * (1 - alpha) + next * alpha
    """
    return prev * (1.0 - alpha) + next * alpha


def normalize(val, lo, hi):
    """
    Map val linearly from [lo, hi] onto [0, 1], clamping at both ends.

    lo may be greater than hi, in which case the map is decreasing (a
    shrinking measurement raises the weight). With lo == hi the map is a
    step at hi.
    """
    if hi == lo:
        return 1.0 if val >= hi else 0.0
    result = (val - lo) / (hi - lo)
    if result < 0.0:
        return 0.0
    if result > 1.0:
        return 1.0
    return float(result)


def smooth_quaternion(bone, target, alpha=DEFAULT_SMOOTHING):
    """Slerp a bone's rotation toward target by alpha."""
    bone.set_quaternion(quat_slerp(bone.quaternion, target, alpha))


def smooth_euler(bone, rot_x=None, rot_y=None, rot_z=None, alpha=DEFAULT_SMOOTHING):
    """
    EMA each Euler component of a bone toward a target angle.

    Components passed as None keep their current value.
    """
    euler = np.array(bone.rotation, dtype=np.float64)
    for i, target in enumerate((rot_x, rot_y, rot_z)):
        if target is not None:
            euler[i] = ema(euler[i], target, alpha)
    bone.set_euler(euler)


def smooth_weight(mesh, target, value, alpha=DEFAULT_SMOOTHING):
    """
    EMA one blend-shape weight of a mesh toward value.

    Returns:
        False if the mesh has no such morph target, True otherwise
    """
    index = mesh.morph_target_dictionary.get(target)
    if index is None:
        return False
    influences = mesh.morph_target_influences
    influences[index] = ema(float(influences[index]), value, alpha)
    return True
