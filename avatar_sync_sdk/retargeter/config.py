"""
Retargeting settings and the blend-shape rule tables.
"""

import functools
import json
import pathlib
from dataclasses import dataclass
from typing import Optional, Tuple

from ..landmarks.topology import FACE_LANDMARK_COUNT, SIDES
from ..utils.basis import BASIS_LAYOUTS
from ..utils.smoothing import DEFAULT_SMOOTHING


# Package paths
HERE = pathlib.Path(__file__).parent
FACE_CONFIG_ROOT = HERE / "face_configs"

FACE_CONFIG_DICT = {
    "arkit": FACE_CONFIG_ROOT / "arkit.json",
}

MEASURES = ("gap", "height")

VISIBILITY_THRESHOLD = 0.9

# capture resolution the normalized landmarks are scaled by
FRAME_WIDTH = 1920
FRAME_HEIGHT = 1080


@dataclass(frozen=True)
class RetargetSettings:
    """
    Tunables shared by the body, hand and face retargeters.

    mirror selects which avatar side a user's side drives. With mirror=True
    (selfie view) the user's left arm moves the avatar's right arm, sided
    face targets swap labels, and yaw angles keep the sign of the raw frame
    angles. With mirror=False sides map straight through and the spine, root
    and neck yaw (and neck roll) are negated.

    basis_layout selects how limb-chain frames are turned into a matrix, see
    utils.basis.build_basis_matrix.
    """

    smoothing: float = DEFAULT_SMOOTHING
    visibility_threshold: float = VISIBILITY_THRESHOLD
    mirror: bool = True
    basis_layout: str = "columns"
    frame_width: float = FRAME_WIDTH
    frame_height: float = FRAME_HEIGHT
    root_translation_scale: float = -1000.0
    verbose: bool = False

    def __post_init__(self):
        if self.basis_layout not in BASIS_LAYOUTS:
            raise ValueError(f"Unknown basis layout: {self.basis_layout}. "
                             f"Supported: {list(BASIS_LAYOUTS)}")
        if not 0.0 < self.smoothing <= 1.0:
            raise ValueError(f"Smoothing factor must be in (0, 1], got {self.smoothing}")
        if self.frame_width <= 0 or self.frame_height <= 0:
            raise ValueError("Frame size must be positive")

    @property
    def yaw_sign(self):
        return 1.0 if self.mirror else -1.0

    def avatar_side(self, user_side):
        """Avatar side driven by the given user side."""
        if not self.mirror:
            return user_side
        return "right" if user_side == "left" else "left"


@dataclass(frozen=True)
class BlendShapeRule:
    """One row of the face table: a landmark measurement mapped to a weight."""

    target: str
    side: Optional[str]
    mesh: str
    measure: str
    landmarks: Tuple[int, ...]
    min: float
    max: float

    def target_name(self, settings):
        if self.side is None:
            return self.target
        return self.target + settings.avatar_side(self.side).capitalize()


def load_face_config(face_config="arkit"):
    """
    Load a blend-shape rule table.

    Args:
        face_config: Registered config name or path to a JSON file

    Returns:
        List of BlendShapeRule

    Registered configs are parsed once per process; paths are read on
    every call.
    """
    if face_config in FACE_CONFIG_DICT:
        return list(_registered_face_config(face_config))
    path = pathlib.Path(face_config)
    if not path.is_file():
        raise ValueError(f"Unknown face config: {face_config}. "
                         f"Supported: {list(FACE_CONFIG_DICT.keys())}")
    return _read_face_config(path)


@functools.lru_cache(maxsize=None)
def _registered_face_config(name):
    return tuple(_read_face_config(FACE_CONFIG_DICT[name]))


def _read_face_config(path):
    with open(path) as f:
        config = json.load(f)

    rules = []
    for entry in config["blend_shapes"]:
        rule = BlendShapeRule(
            target=entry["target"],
            side=entry.get("side"),
            mesh=entry.get("mesh", "head"),
            measure=entry["measure"],
            landmarks=tuple(int(i) for i in entry["landmarks"]),
            min=float(entry["min"]),
            max=float(entry["max"]),
        )
        if rule.side is not None and rule.side not in SIDES:
            raise ValueError(f"Bad side {rule.side!r} for blend shape {rule.target}")
        if rule.measure not in MEASURES:
            raise ValueError(f"Bad measure {rule.measure!r} for blend shape {rule.target}")
        needed = 2 if rule.measure == "gap" else 1
        if len(rule.landmarks) != needed:
            raise ValueError(f"Blend shape {rule.target} needs {needed} landmarks, "
                             f"got {len(rule.landmarks)}")
        if any(not 0 <= i < FACE_LANDMARK_COUNT for i in rule.landmarks):
            raise ValueError(f"Blend shape {rule.target} references a landmark "
                             f"outside the face mesh")
        rules.append(rule)
    return rules
