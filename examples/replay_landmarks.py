#!/usr/bin/env python3
"""
Example: Replay recorded detector results onto an avatar rig.

This script reads a JSON-lines recording (one MediaPipe-Holistic-shaped
result per line), retargets every frame onto an avatar described by a rest
pose file, and prints the resulting spine rotation, root offset and a few
blend-shape weights at a fixed playback rate.

Rest pose file format:
    {
        "bones": {"Hips": [0, 1, 0], "Spine": [0, 0.1, 0], ...},
        "meshes": {"Wolf3D_Head": ["eyeBlinkLeft", ...], ...}
    }
Bone values are rest positions relative to the parent bone.

Usage:
    python replay_landmarks.py --recording session.jsonl --rig rest_pose.json
    python replay_landmarks.py --recording session.jsonl --rig rest_pose.json --fps 30 --direct
"""

import argparse
import json

import numpy as np
from loop_rate_limiters import RateLimiter

from avatar_sync_sdk import AvatarBinding, Bone, MorphMesh, Retargeter


def load_rest_pose(path):
    """Build rig node handles from a rest pose file."""
    with open(path) as f:
        rig = json.load(f)
    nodes = {name: Bone(name, pos) for name, pos in rig.get("bones", {}).items()}
    for name, targets in rig.get("meshes", {}).items():
        nodes[name] = MorphMesh.from_target_names(name, targets)
    return nodes


def main():
    parser = argparse.ArgumentParser(description="Replay recorded landmarks onto an avatar")

    parser.add_argument(
        "--recording",
        required=True,
        help="JSON-lines file of detector results",
    )

    parser.add_argument(
        "--rig",
        required=True,
        help="Rest pose JSON of the avatar",
    )

    parser.add_argument(
        "--rig_type",
        default="readyplayerme",
        help="Rig config used to resolve node names (default: readyplayerme)",
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=30.0,
        help="Playback rate (default: 30)",
    )

    parser.add_argument(
        "--direct",
        action="store_true",
        default=False,
        help="Map user sides straight to avatar sides (no selfie mirroring)",
    )

    parser.add_argument(
        "--swizzled",
        action="store_true",
        default=False,
        help="Use the swizzled limb basis layout",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print binding and retargeting details",
    )

    args = parser.parse_args()

    print(f"[Main] Binding rig {args.rig} ({args.rig_type})...")
    binding = AvatarBinding.from_nodes(load_rest_pose(args.rig), rig_type=args.rig_type, verbose=args.verbose)
    features = binding.enabled_features()
    print(f"[Main] Enabled: {[name for name, on in features.items() if on]}")

    retargeter = Retargeter(
        binding,
        mirror=not args.direct,
        basis_layout="swizzled" if args.swizzled else "columns",
        verbose=args.verbose,
    )

    rate_limiter = RateLimiter(frequency=args.fps, warn=False)

    frame_idx = 0
    try:
        with open(args.recording) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    result = json.loads(line)
                except json.JSONDecodeError as e:
                    print(f"[Main] Skipping bad line {frame_idx}: {e}")
                    continue

                frame = retargeter.process_detection_result(result)
                status = retargeter.retarget(frame)

                spine = binding.bone("spine")
                hips = binding.bone("hips")
                head = binding.mesh("head")
                parts = [f"[Frame {frame_idx}]"]
                if spine is not None:
                    parts.append(f"spine={np.round(spine.quaternion, 3).tolist()}")
                if hips is not None:
                    parts.append(f"root_x={hips.position[0]:.1f}")
                if head is not None:
                    for target in ("mouthOpen", "eyeBlinkLeft", "eyeBlinkRight"):
                        weight = head.weight(target)
                        if weight is not None:
                            parts.append(f"{target}={weight:.2f}")
                if not status.any():
                    parts.append("(no update)")
                print(" ".join(parts))

                frame_idx += 1
                rate_limiter.sleep()
    except KeyboardInterrupt:
        print("\n[Main] Stopping...")
    finally:
        print(f"[Main] Replayed {frame_idx} frames")


if __name__ == "__main__":
    main()
