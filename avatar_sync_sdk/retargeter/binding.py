"""
Avatar binding - resolves rig bones and blend-shape meshes once per session.

The rig owns its bone and morph state; the binding only keeps handles to it
under canonical names so the retargeters never look anything up by rig name
in the per-frame path.
"""

import json
import pathlib
import threading

import numpy as np

from ..landmarks.topology import SIDES
from ..utils.quat_utils import IDENTITY_QUAT, euler_to_quat, quat_normalize, quat_to_euler


# Package paths
HERE = pathlib.Path(__file__).parent
RIG_CONFIG_ROOT = HERE / "rig_configs"

RIG_CONFIG_DICT = {
    "readyplayerme": RIG_CONFIG_ROOT / "readyplayerme.json",
}

FINGERS = ("thumb", "index", "middle", "ring", "pinky")

ARM_JOINTS = ("shoulder", "elbow", "wrist")
LEG_JOINTS = ("hip", "knee", "ankle", "foot")


def hand_bone_names(side):
    return [f"{side}_{finger}{i}" for finger in FINGERS for i in range(1, 5)]


BONE_NAMES = (
    ["hips", "spine", "neck"]
    + [f"{side}_{joint}" for side in SIDES for joint in ARM_JOINTS + LEG_JOINTS]
    + [name for side in SIDES for name in hand_bone_names(side)]
)

MESH_NAMES = ("head", "teeth")

# feature -> bones (or meshes) it writes to
FEATURE_BONES = {
    "upper_body": ["spine"] + [f"{side}_{joint}" for side in SIDES for joint in ARM_JOINTS],
    "lower_body": ["hips"] + [f"{side}_{joint}" for side in SIDES for joint in LEG_JOINTS[:3]],
    "left_hand": hand_bone_names("left"),
    "right_hand": hand_bone_names("right"),
    "face": ["neck"],
}
FEATURE_MESHES = {
    "blend_shapes": ["head", "teeth"],
}


class Bone:
    """
    A skeleton node handle: rest position plus a local rotation.

    The rotation is stored both as a quaternion (w, x, y, z) and as intrinsic
    XYZ Euler angles; setting either one updates the other.
    """

    def __init__(self, name, rest_position=(0.0, 0.0, 0.0), quaternion=None):
        self.name = name
        self.rest_position = np.array(rest_position, dtype=np.float64)
        self.rest_quaternion = quat_normalize(IDENTITY_QUAT if quaternion is None else quaternion)
        self.position = self.rest_position.copy()
        self.quaternion = self.rest_quaternion.copy()
        self.rotation = quat_to_euler(self.quaternion)

    def set_quaternion(self, q):
        self.quaternion = quat_normalize(q)
        self.rotation = quat_to_euler(self.quaternion)

    def set_euler(self, e):
        self.rotation = np.array(e, dtype=np.float64)
        self.quaternion = euler_to_quat(self.rotation)

    def reset_rotation(self):
        """Snap to the identity rotation (no smoothing)."""
        self.quaternion = IDENTITY_QUAT.copy()
        self.rotation = np.zeros(3)

    def reset(self):
        """Restore the rest pose captured at construction."""
        self.position = self.rest_position.copy()
        self.set_quaternion(self.rest_quaternion)

    def __repr__(self):
        return f"Bone({self.name!r}, q={np.round(self.quaternion, 4).tolist()})"


class MorphMesh:
    """A mesh with named blend-shape weights."""

    def __init__(self, name, morph_target_dictionary, morph_target_influences=None):
        self.name = name
        self.morph_target_dictionary = dict(morph_target_dictionary)
        if morph_target_influences is None:
            size = max(self.morph_target_dictionary.values(), default=-1) + 1
            morph_target_influences = np.zeros(size)
        self.morph_target_influences = np.array(morph_target_influences, dtype=np.float64)
        self.rest_influences = self.morph_target_influences.copy()

    @classmethod
    def from_target_names(cls, name, targets):
        return cls(name, {target: i for i, target in enumerate(targets)})

    def weight(self, target):
        index = self.morph_target_dictionary.get(target)
        if index is None:
            return None
        return float(self.morph_target_influences[index])

    def reset(self):
        self.morph_target_influences[:] = self.rest_influences


def load_rig_config(rig_type="readyplayerme"):
    """
    Load a rig config: canonical bone/mesh name -> rig node name.

    Args:
        rig_type: Registered rig name or path to a JSON file

    Returns:
        Dict with "bones" and "meshes" tables
    """
    if rig_type in RIG_CONFIG_DICT:
        path = RIG_CONFIG_DICT[rig_type]
    else:
        path = pathlib.Path(rig_type)
        if not path.is_file():
            raise ValueError(f"Unknown rig type: {rig_type}. "
                             f"Supported: {list(RIG_CONFIG_DICT.keys())}")
    with open(path) as f:
        config = json.load(f)
    config.setdefault("meshes", {})
    return config


def bones_from_rest_positions(rest_positions):
    """Build Bone handles from a {name: (x, y, z)} rest-position table."""
    return {name: Bone(name, pos) for name, pos in rest_positions.items()}


class AvatarBinding:
    """
    Canonical-name handles to one avatar's bones and blend-shape meshes.

    Names that are absent (or unknown) simply disable whatever needs them;
    binding never fails because a rig is partial. Each binding owns its
    state, so several avatars can be driven side by side.

    Example usage:
        binding = AvatarBinding.from_nodes(gltf_nodes, rig_type="readyplayerme")
        print(binding.enabled_features())
    """

    def __init__(self, bones, meshes=None, verbose=False):
        """
        Args:
            bones: Dict mapping canonical bone names to Bone handles
            meshes: Dict mapping canonical mesh names ("head", "teeth") to
                MorphMesh handles
            verbose: Print which features are disabled
        """
        self.verbose = verbose
        self.lock = threading.Lock()

        self.bones = {}
        for name, bone in bones.items():
            if bone is None:
                continue
            if name not in BONE_NAMES:
                if verbose:
                    print(f"[AvatarBinding] Ignoring unknown bone name: {name}")
                continue
            self.bones[name] = bone

        self.meshes = {}
        for name, mesh in (meshes or {}).items():
            if mesh is None:
                continue
            if name not in MESH_NAMES:
                if verbose:
                    print(f"[AvatarBinding] Ignoring unknown mesh name: {name}")
                continue
            self.meshes[name] = mesh

        self.reset()

        if verbose:
            missing = self.missing_bones()
            if missing:
                print(f"[AvatarBinding] {len(missing)} bones not bound: {missing}")
            for feature, enabled in self.enabled_features().items():
                if not enabled:
                    print(f"[AvatarBinding] Feature disabled: {feature}")

    @classmethod
    def from_nodes(cls, nodes, rig_type="readyplayerme", verbose=False):
        """
        Bind a rig by its own node names.

        Args:
            nodes: Dict mapping rig node names to Bone / MorphMesh handles
            rig_type: Registered rig name or path to a rig config JSON
            verbose: Print which features are disabled

        Returns:
            AvatarBinding
        """
        config = load_rig_config(rig_type)
        bones = {name: nodes.get(node) for name, node in config["bones"].items()}
        meshes = {name: nodes.get(node) for name, node in config["meshes"].items()}
        return cls(bones, meshes, verbose=verbose)

    def bone(self, name):
        return self.bones.get(name)

    def mesh(self, name):
        return self.meshes.get(name)

    def missing_bones(self):
        return sorted(set(BONE_NAMES) - set(self.bones.keys()))

    def enabled_features(self):
        """
        Map each feature to whether anything it drives is bound.

        Returns:
            Dict like {"upper_body": True, "lower_body": False, ...}
        """
        features = {
            feature: any(name in self.bones for name in names)
            for feature, names in FEATURE_BONES.items()
        }
        for feature, names in FEATURE_MESHES.items():
            features[feature] = any(name in self.meshes for name in names)
        return features

    def reset(self):
        """Return every bound channel to its rest value."""
        for bone in self.bones.values():
            bone.reset()
        for mesh in self.meshes.values():
            mesh.reset()

    def snapshot(self):
        """
        Copy of the current outputs.

        Returns:
            Dict with:
                - "rotations": bone name -> quaternion (w, x, y, z)
                - "root_position": hips local position, or None
                - "weights": mesh name -> {target: weight}
        """
        hips = self.bones.get("hips")
        return {
            "rotations": {name: bone.quaternion.copy() for name, bone in self.bones.items()},
            "root_position": None if hips is None else hips.position.copy(),
            "weights": {
                name: {target: mesh.weight(target) for target in mesh.morph_target_dictionary}
                for name, mesh in self.meshes.items()
            },
        }
