"""
Hand and finger retargeting.

Every finger joint is reduced to a single flexion angle, clamped to
[0, 90] degrees. The thumb bends about the bone x axis, the other fingers
about z.
"""

import numpy as np

from ..landmarks.topology import FINGER_BASES, HAND_LANDMARK_COUNT, HandLandmark
from ..utils.basis import Basis, rotate_bone
from ..utils.quat_utils import quat_angle, quat_to_euler, safe_normalize
from ..utils.smoothing import smooth_euler


MAX_FLEXION = np.pi / 2

# rest pose of the right thumb is mirrored on the rig
RIGHT_THUMB_OFFSET = 0.2 * np.pi

THUMB_JOINTS = (HandLandmark.THUMB_CMC, HandLandmark.THUMB_MCP, HandLandmark.THUMB_IP)


def hand_frame(joints, is_right):
    """
    Hand-local frame from wrist and knuckle landmarks.

    x runs from the middle knuckle to the wrist (reversed for the right
    hand), z from the ring to the index knuckle made perpendicular to x, and
    y = x cross z (reversed for the left hand).

    Returns:
        Basis, or None on degenerate geometry
    """
    x_axis = safe_normalize(joints[HandLandmark.WRIST] - joints[HandLandmark.MIDDLE_FINGER_MCP])
    z_hint = safe_normalize(joints[HandLandmark.INDEX_FINGER_MCP] - joints[HandLandmark.RING_FINGER_MCP])
    if x_axis is None or z_hint is None:
        return None
    if is_right:
        x_axis = -x_axis

    y_axis = safe_normalize(np.cross(x_axis, z_hint))
    if y_axis is None:
        return None
    if not is_right:
        y_axis = -y_axis

    z_axis = safe_normalize(z_hint - np.dot(z_hint, x_axis) * x_axis)
    return Basis(x_axis, y_axis, z_axis, "columns")


class HandRetargeter:
    """Drives the thumb and finger bones of one avatar from hand landmarks."""

    def __init__(self, binding, settings):
        self.binding = binding
        self.settings = settings

    def _log(self, message):
        if self.settings.verbose:
            print(f"[Retargeter] {message}")

    def retarget(self, landmarks, is_right):
        """
        Retarget one hand.

        Args:
            landmarks: Hand LandmarkSet (21 points, normalized image space)
            is_right: True for the detector's right-hand set

        Returns:
            True if the hand was updated
        """
        # hand detectors report no meaningful per-point visibility; it is ignored
        if landmarks is None or not landmarks.has_at_least(HAND_LANDMARK_COUNT):
            return False

        scale = np.array([self.settings.frame_width, -self.settings.frame_height, self.settings.frame_width])
        joints = landmarks.points * scale

        frame = hand_frame(joints, is_right)
        if frame is None:
            self._log("Degenerate hand frame, holding")
            return False

        side = self.settings.avatar_side("right" if is_right else "left")

        basis = frame
        for i, joint in enumerate(THUMB_JOINTS, start=1):
            basis = self._flex_joint(f"{side}_thumb{i}", f"{side}_thumb{i + 1}",
                                     joints[joint], joints[joint + 1], basis,
                                     is_thumb=True, is_right=is_right)

        for finger, base in FINGER_BASES.items():
            basis = frame
            for k in range(3):
                joint = base + k
                basis = self._flex_joint(f"{side}_{finger}{k + 1}", f"{side}_{finger}{k + 2}",
                                         joints[joint], joints[joint + 1], basis,
                                         is_thumb=False, is_right=is_right)
        return True

    def _flex_joint(self, bone_name, child_name, joint_pos, child_pos, basis, is_thumb, is_right):
        bone = self.binding.bone(bone_name)
        if bone is None:
            return basis
        child = self.binding.bone(child_name)
        if child is not None:
            rot = rotate_bone(joint_pos, child_pos, child.rest_position, basis)
            if rot is None:
                self._log(f"Degenerate finger segment at {bone_name}, holding")
            elif is_thumb:
                angle = float(np.clip(quat_angle(rot), 0.0, MAX_FLEXION))
                if is_right:
                    angle -= RIGHT_THUMB_OFFSET
                smooth_euler(bone, angle, None, None, alpha=self.settings.smoothing)
            else:
                angle = float(np.clip(quat_to_euler(rot)[2], 0.0, MAX_FLEXION))
                smooth_euler(bone, None, None, -angle if is_right else angle,
                             alpha=self.settings.smoothing)
        return basis.rotated(bone.quaternion)
