"""
Retargeter - drives a rigged avatar from body, hand and face landmarks.

Example usage:
    from avatar_sync_sdk.retargeter import AvatarBinding, Retargeter

    # Bind once per session
    binding = AvatarBinding.from_nodes(nodes, rig_type="readyplayerme")
    retargeter = Retargeter(binding)

    # Once per detector result
    frame = retargeter.process_detection_result(result)
    retargeter.retarget(frame)
    # bone quaternions, hips position and blend-shape weights are
    # now updated on the bound handles
"""

from .binding import AvatarBinding, Bone, MorphMesh, bones_from_rest_positions, load_rig_config
from .config import RetargetSettings, BlendShapeRule, load_face_config
from .face import project_face
from .retargeter import Retargeter, RetargetStatus, retarget_frame

__all__ = [
    "AvatarBinding",
    "Bone",
    "MorphMesh",
    "bones_from_rest_positions",
    "load_rig_config",
    "RetargetSettings",
    "BlendShapeRule",
    "load_face_config",
    "project_face",
    "Retargeter",
    "RetargetStatus",
    "retarget_frame",
]
