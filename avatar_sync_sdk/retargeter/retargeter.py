"""
Retargeter class for driving a rigged avatar from detector landmarks.
"""

from dataclasses import dataclass

from ..landmarks.frame import process_detection_result
from ..landmarks.topology import validate_topology
from .body import BodyRetargeter
from .config import RetargetSettings, load_face_config
from .face import FaceRetargeter
from .hand import HandRetargeter


@dataclass
class RetargetStatus:
    """Which subsystems wrote to the avatar in one retarget() call."""

    upper_body: bool = False
    lower_body: bool = False
    left_hand: bool = False
    right_hand: bool = False
    face: bool = False

    def any(self):
        return self.upper_body or self.lower_body or self.left_hand or self.right_hand or self.face


class Retargeter:
    """
    Landmark retargeter for one avatar.

    Body, hands and face are retargeted independently: each landmark set
    present in a frame drives its own bones and blend shapes, and a missing
    set leaves them as they were.

    Example usage:
        binding = AvatarBinding.from_nodes(nodes, rig_type="readyplayerme")
        retargeter = Retargeter(binding, mirror=True)

        # once per detector result
        frame = retargeter.process_detection_result(result)
        status = retargeter.retarget(frame)
    """

    def __init__(
        self,
        binding,
        smoothing: float = 0.25,
        visibility_threshold: float = 0.9,
        mirror: bool = True,
        basis_layout: str = "columns",
        frame_width: float = 1920,
        frame_height: float = 1080,
        root_translation_scale: float = -1000.0,
        face_config: str = "arkit",
        detector_topology: dict = None,
        verbose: bool = False,
    ):
        """
        Initialize the retargeter.

        Args:
            binding: AvatarBinding of the avatar to drive
            smoothing: EMA / slerp factor for every channel
            visibility_threshold: Confidence above which shoulders/hips count
                as visible
            mirror: Selfie mapping (user left drives avatar right)
            basis_layout: Limb-chain basis layout ("columns" or "swizzled")
            frame_width: Capture width the normalized landmarks are scaled by
            frame_height: Capture height the normalized landmarks are scaled by
            root_translation_scale: Root x offset per unit of normalized hip
                displacement from the image center
            face_config: Blend-shape table name or JSON path
            detector_topology: Optional landmark counts declared by the
                detector, e.g. {"pose": 33, "hand": 21, "face": 468}
            verbose: Print skipped joints and subsystems
        """
        if detector_topology:
            validate_topology(**detector_topology)

        self.binding = binding
        self.verbose = verbose
        self.settings = RetargetSettings(
            smoothing=smoothing,
            visibility_threshold=visibility_threshold,
            mirror=mirror,
            basis_layout=basis_layout,
            frame_width=frame_width,
            frame_height=frame_height,
            root_translation_scale=root_translation_scale,
            verbose=verbose,
        )

        if verbose:
            print(f"[Retargeter] Loading face config: {face_config}")
        self.blend_shape_rules = load_face_config(face_config)

        self.body = BodyRetargeter(binding, self.settings)
        self.hands = HandRetargeter(binding, self.settings)
        self.face = FaceRetargeter(binding, self.settings, self.blend_shape_rules)

    def process_detection_result(self, result):
        """
        Convert a detector result dict into a DetectionFrame.

        Args:
            result: Dict with pose_landmarks, pose_world_landmarks,
                left_hand_landmarks, right_hand_landmarks, face_landmarks
                (any may be missing)

        Returns:
            DetectionFrame suitable for retarget()
        """
        return process_detection_result(result, verbose=self.verbose)

    def retarget(self, frame):
        """
        Retarget one detection frame onto the avatar, in place.

        Args:
            frame: DetectionFrame

        Returns:
            RetargetStatus

        Raises:
            RuntimeError: If another retarget of the same avatar is in flight
        """
        if not self.binding.lock.acquire(blocking=False):
            raise RuntimeError("A retarget is already running for this avatar")
        try:
            status = RetargetStatus()
            status.upper_body, status.lower_body = self.body.retarget(frame.pose, frame.pose_world)
            status.left_hand = self.hands.retarget(frame.left_hand, is_right=False)
            status.right_hand = self.hands.retarget(frame.right_hand, is_right=True)
            status.face = self.face.retarget(frame.face)
            return status
        finally:
            self.binding.lock.release()


def retarget_frame(binding, frame, **settings):
    """
    Retarget one frame onto a binding and return it.

    Args:
        binding: AvatarBinding, updated in place
        frame: DetectionFrame
        **settings: Retargeter keyword arguments

    Returns:
        The same AvatarBinding
    """
    Retargeter(binding, **settings).retarget(frame)
    return binding
