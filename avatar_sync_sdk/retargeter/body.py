"""
Body and limb retargeting from body world landmarks.

Upper and lower body are gated independently on shoulder and hip
visibility. The upper body drives the spine and both arm chains
(shoulder -> elbow -> wrist); the lower body drives root yaw, the root's
horizontal offset and both leg chains (hip -> knee -> ankle).
"""

import numpy as np

from ..landmarks.topology import POSE_LANDMARK_COUNT, SIDES, PoseLandmark, pose_landmark
from ..utils.basis import Basis, orthonormal_frame, rotate_bone
from ..utils.smoothing import ema, smooth_euler, smooth_quaternion


# empirical offsets of the spine angles
SPINE_PITCH_OFFSET = 1.2 * np.pi / 2
LOWER_SPINE_PITCH = 0.2 * np.pi / 2

LEG_BONES = ("hip", "knee", "ankle")


def _angle(component):
    return float(np.arccos(np.clip(component, -1.0, 1.0)))


class BodyRetargeter:
    """Drives spine, root and limb bones from one frame of body landmarks."""

    def __init__(self, binding, settings):
        self.binding = binding
        self.settings = settings

    def retarget(self, pose, pose_world):
        """
        Retarget one frame.

        Args:
            pose: Image-space body LandmarkSet (used for the root offset only),
                may be None
            pose_world: World-space body LandmarkSet

        Returns:
            Tuple (upper_updated, lower_updated)
        """
        if pose_world is None or not pose_world.has_at_least(POSE_LANDMARK_COUNT):
            return False, False
        if pose is not None and not pose.has_at_least(POSE_LANDMARK_COUNT):
            pose = None

        # detector y points down; negate into a y-up frame
        joints = -pose_world.points

        upper = self._retarget_upper(joints, pose_world)
        lower = self._retarget_lower(joints, pose, pose_world)
        return upper, lower

    def _visible(self, landmarks, *indices):
        threshold = self.settings.visibility_threshold
        return all(landmarks.visibility_of(i) > threshold for i in indices)

    def _log(self, message):
        if self.settings.verbose:
            print(f"[Retargeter] {message}")

    def _retarget_upper(self, joints, pose_world):
        if not self._visible(pose_world, PoseLandmark.LEFT_SHOULDER, PoseLandmark.RIGHT_SHOULDER):
            return False

        left = joints[PoseLandmark.LEFT_SHOULDER]
        right = joints[PoseLandmark.RIGHT_SHOULDER]
        frame = orthonormal_frame(right - left, (right + left) / 2.0)
        if frame is None:
            self._log("Shoulders coincide, skipping upper body")
            return False
        x_axis, y_axis, z_axis = frame

        spine = self.binding.bone("spine")
        if spine is not None:
            rot_x = _angle(z_axis[1]) - SPINE_PITCH_OFFSET
            rot_y = -_angle(z_axis[0]) + np.pi / 2
            rot_z = _angle(y_axis[0]) - np.pi / 2
            smooth_euler(spine, rot_x, self.settings.yaw_sign * rot_y, rot_z,
                         alpha=self.settings.smoothing)

        for user_side in SIDES:
            basis = Basis(x_axis, y_axis, z_axis, self.settings.basis_layout)
            self._retarget_arm(user_side, joints, basis)
        return True

    def _retarget_arm(self, user_side, joints, basis):
        side = self.settings.avatar_side(user_side)
        shoulder = joints[pose_landmark(user_side, "shoulder")]
        elbow = joints[pose_landmark(user_side, "elbow")]
        wrist = joints[pose_landmark(user_side, "wrist")]

        basis = self._drive_joint(f"{side}_shoulder", shoulder, elbow, f"{side}_elbow", basis)
        basis = self._drive_joint(f"{side}_elbow", elbow, wrist, f"{side}_wrist", basis)

        # wrist: aim the knuckle midpoint
        wrist_bone = self.binding.bone(f"{side}_wrist")
        pinky1 = self.binding.bone(f"{side}_pinky1")
        index1 = self.binding.bone(f"{side}_index1")
        if wrist_bone is None or pinky1 is None or index1 is None:
            return
        fingers_user = (joints[pose_landmark(user_side, "pinky")]
                        + joints[pose_landmark(user_side, "index")]) / 2.0
        fingers_avatar = (pinky1.rest_position + index1.rest_position) / 2.0
        rot = rotate_bone(wrist, fingers_user, fingers_avatar, basis)
        if rot is None:
            self._log(f"Degenerate {side} wrist direction, holding")
            return
        smooth_quaternion(wrist_bone, rot, alpha=self.settings.smoothing)

    def _drive_joint(self, bone_name, joint_pos, child_pos, child_name, basis):
        """Rotate one chain joint toward its child and return the re-oriented basis."""
        bone = self.binding.bone(bone_name)
        if bone is None:
            return basis
        child = self.binding.bone(child_name)
        if child is not None:
            rot = rotate_bone(joint_pos, child_pos, child.rest_position, basis)
            if rot is None:
                self._log(f"Degenerate limb at {bone_name}, holding")
            else:
                smooth_quaternion(bone, rot, alpha=self.settings.smoothing)
        return basis.rotated(bone.quaternion)

    def _reset_legs(self):
        for side in SIDES:
            for joint in LEG_BONES:
                bone = self.binding.bone(f"{side}_{joint}")
                if bone is not None:
                    bone.reset_rotation()

    def _retarget_lower(self, joints, pose, pose_world):
        if not self._visible(pose_world, PoseLandmark.LEFT_HIP, PoseLandmark.RIGHT_HIP):
            # no stale leg pose when hips drop out
            self._reset_legs()
            return False

        left = joints[PoseLandmark.LEFT_HIP]
        right = joints[PoseLandmark.RIGHT_HIP]
        # no landmark gives the pelvis up direction; the shoulder midpoint stands in
        shoulder_mid = (joints[PoseLandmark.LEFT_SHOULDER] + joints[PoseLandmark.RIGHT_SHOULDER]) / 2.0
        frame = orthonormal_frame(right - left, shoulder_mid)
        if frame is None:
            self._log("Hips coincide, skipping lower body")
            return False
        x_axis, y_axis, z_axis = frame

        alpha = self.settings.smoothing
        yaw = self.settings.yaw_sign * (-_angle(z_axis[0]) + np.pi / 2)

        hips = self.binding.bone("hips")
        if hips is not None:
            smooth_euler(hips, None, yaw, None, alpha=alpha)
        spine = self.binding.bone("spine")
        if spine is not None:
            smooth_euler(spine, LOWER_SPINE_PITCH, -yaw, None, alpha=alpha)

        if hips is not None and pose is not None:
            mid_x = (pose[PoseLandmark.LEFT_HIP][0] + pose[PoseLandmark.RIGHT_HIP][0]) / 2.0
            offset = (mid_x - 0.5) * self.settings.root_translation_scale
            hips.position[0] = ema(hips.position[0], offset, alpha)

        for user_side in SIDES:
            side = self.settings.avatar_side(user_side)
            hip = joints[pose_landmark(user_side, "hip")]
            knee = joints[pose_landmark(user_side, "knee")]
            ankle = joints[pose_landmark(user_side, "ankle")]
            foot = joints[pose_landmark(user_side, "foot_index")]

            basis = Basis(x_axis, y_axis, z_axis, self.settings.basis_layout)
            basis = self._drive_joint(f"{side}_hip", hip, knee, f"{side}_knee", basis)
            basis = self._drive_joint(f"{side}_knee", knee, ankle, f"{side}_ankle", basis)
            self._drive_joint(f"{side}_ankle", ankle, foot, f"{side}_foot", basis)
        return True
