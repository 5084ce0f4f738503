"""
Avatar Sync SDK Python - landmark to avatar retargeting SDK.

This package turns per-frame body, hand and face landmarks from a pose
detector (MediaPipe Holistic layout) into bone rotations, a root offset and
facial blend-shape weights on a rigged avatar.

Main classes:
    - AvatarBinding: Resolves the avatar's bones and blend-shape meshes once
    - Retargeter: Retargets one detection frame onto a binding
    - DetectionFrame: The landmark sets of one detector result

Example usage:
    from avatar_sync_sdk import AvatarBinding, Retargeter

    # Initialize
    binding = AvatarBinding.from_nodes(nodes, rig_type="readyplayerme")
    retargeter = Retargeter(binding, mirror=True)

    # Per detector result
    frame = retargeter.process_detection_result(result)
    status = retargeter.retarget(frame)
    # binding.bone("spine").quaternion = spine rotation (w, x, y, z)
    # binding.bone("hips").position[0] = root offset
    # binding.mesh("head").morph_target_influences = blend-shape weights
"""

from .landmarks import DetectionFrame, LandmarkSet, process_detection_result
from .retargeter import AvatarBinding, Bone, MorphMesh, Retargeter, RetargetStatus, retarget_frame

__version__ = "0.1.0"
__all__ = [
    "AvatarBinding",
    "Bone",
    "MorphMesh",
    "Retargeter",
    "RetargetStatus",
    "retarget_frame",
    "DetectionFrame",
    "LandmarkSet",
    "process_detection_result",
]
