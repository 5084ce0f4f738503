from types import SimpleNamespace
from unittest import mock

import numpy as np
import pytest

from avatar_sync_sdk import DetectionFrame, Retargeter, RetargetStatus, retarget_frame
from avatar_sync_sdk.retargeter import AvatarBinding, Bone
from avatar_sync_sdk.retargeter import config
from avatar_sync_sdk.utils.quat_utils import IDENTITY_QUAT


def _result(pose_world, pose_image, hand, face):
    """Detector result dict with array-shaped landmark lists."""
    return {
        "pose_landmarks": np.column_stack([pose_image.points, pose_image.visibility]),
        "pose_world_landmarks": np.column_stack([pose_world.points, pose_world.visibility]),
        "left_hand_landmarks": hand.points.tolist(),
        "right_hand_landmarks": hand.points.tolist(),
        "face_landmarks": face.points,
    }


def test_full_result_updates_everything(binding, make_pose_world, make_pose_image, make_hand, make_face,
                                        check_finite):
    retargeter = Retargeter(binding)
    result = _result(make_pose_world(), make_pose_image(0.55), make_hand(curl=0.5), make_face(mouth_gap=0.04))

    status = retargeter.retarget(retargeter.process_detection_result(result))

    assert status == RetargetStatus(True, True, True, True, True)
    assert status.any()
    check_finite(binding)
    assert binding.bone("hips").position[0] != 0.0
    assert binding.mesh("head").weight("mouthOpen") > 0.0


def test_empty_frame_changes_nothing(binding):
    before = binding.snapshot()
    status = Retargeter(binding).retarget(DetectionFrame())
    assert not status.any()
    after = binding.snapshot()
    for name, q in before["rotations"].items():
        np.testing.assert_array_equal(after["rotations"][name], q)
    assert after["weights"] == before["weights"]


def test_subsets_are_independent(binding, make_pose_world, make_face):
    retargeter = Retargeter(binding)
    retargeter.retarget(DetectionFrame(pose_world=make_pose_world()))
    spine = binding.bone("spine").quaternion.copy()
    shoulder = binding.bone("left_shoulder").quaternion.copy()

    status = retargeter.retarget(DetectionFrame(face=make_face(mouth_gap=0.04)))

    assert status == RetargetStatus(face=True)
    np.testing.assert_array_equal(binding.bone("spine").quaternion, spine)
    np.testing.assert_array_equal(binding.bone("left_shoulder").quaternion, shoulder)
    np.testing.assert_array_equal(binding.bone("left_index1").quaternion, IDENTITY_QUAT)
    assert binding.mesh("head").weight("mouthOpen") > 0.0


def test_concurrent_retarget_of_same_avatar_is_rejected(binding, make_face):
    retargeter = Retargeter(binding)
    frame = DetectionFrame(face=make_face())

    binding.lock.acquire()
    try:
        with pytest.raises(RuntimeError):
            retargeter.retarget(frame)
    finally:
        binding.lock.release()

    assert retargeter.retarget(frame).face


def test_lock_is_released_after_each_call(binding, make_face):
    retargeter = Retargeter(binding)
    retargeter.retarget(DetectionFrame(face=make_face()))
    assert not binding.lock.locked()


def test_avatars_are_independent(rig_nodes, make_pose_world):
    first = AvatarBinding.from_nodes(rig_nodes)
    second = AvatarBinding({"spine": Bone("Spine", (0.0, 0.1, 0.0))})

    Retargeter(first).retarget(DetectionFrame(pose_world=make_pose_world()))

    assert not np.allclose(first.bone("spine").quaternion, IDENTITY_QUAT)
    np.testing.assert_array_equal(second.bone("spine").quaternion, IDENTITY_QUAT)
    assert second.lock is not first.lock


def test_retarget_frame_returns_binding(binding, make_pose_world):
    out = retarget_frame(binding, DetectionFrame(pose_world=make_pose_world()), mirror=False)
    assert out is binding
    assert not np.allclose(binding.bone("spine").quaternion, IDENTITY_QUAT)


@pytest.mark.parametrize("kwargs", [
    {"basis_layout": "rows"},
    {"smoothing": 0.0},
    {"smoothing": 1.5},
    {"frame_width": 0},
    {"face_config": "not_a_config"},
    {"detector_topology": {"pose": 25}},
    {"detector_topology": {"face": 400}},
])
def test_bad_settings_raise(binding, kwargs):
    with pytest.raises(ValueError):
        Retargeter(binding, **kwargs)


def test_refined_face_topology_is_accepted(binding):
    retargeter = Retargeter(binding, detector_topology={"pose": 33, "hand": 21, "face": 478})
    assert retargeter.settings.frame_width == 1920


def test_verbose_logging(binding, capsys):
    Retargeter(binding, verbose=True)
    assert "[Retargeter] Loading face config: arkit" in capsys.readouterr().out


def test_verbose_reports_skipped_geometry(binding, capsys):
    flat = np.full((468, 3), 0.5)
    retargeter = Retargeter(binding, verbose=True)
    retargeter.retarget(retargeter.process_detection_result({"face_landmarks": flat}))
    assert "Degenerate face plane" in capsys.readouterr().out


def _landmark_objects(points):
    """Task-API style landmark objects that report zero visibility on every point."""
    return [SimpleNamespace(x=x, y=y, z=z, visibility=0.0) for x, y, z in points]


def test_zero_visibility_hand_and_face_objects_still_drive_avatar(binding, make_hand, make_face):
    retargeter = Retargeter(binding)
    result = {
        "left_hand_landmarks": _landmark_objects(make_hand(curl=1.0).points),
        "right_hand_landmarks": _landmark_objects(make_hand(curl=1.0).points),
        "face_landmarks": _landmark_objects(make_face(mouth_gap=0.04).points),
    }

    frame = retargeter.process_detection_result(result)
    status = retargeter.retarget(frame)

    assert frame.face.visibility_of(1) == 0.0
    assert status == RetargetStatus(left_hand=True, right_hand=True, face=True)
    assert binding.mesh("head").weight("mouthOpen") > 0.0


def test_retarget_frame_does_not_reread_face_config(binding, make_pose_world, make_face):
    frame = DetectionFrame(pose_world=make_pose_world(), face=make_face(mouth_gap=0.04))
    retarget_frame(binding, frame)

    with mock.patch.object(config.json, "load", wraps=config.json.load) as load:
        for _ in range(5):
            retarget_frame(binding, frame)

    assert load.call_count == 0
    assert binding.mesh("head").weight("mouthOpen") > 0.0


def test_cached_face_config_is_not_shared_mutably():
    rules = config.load_face_config("arkit")
    rules.clear()
    assert len(config.load_face_config("arkit")) == 13
