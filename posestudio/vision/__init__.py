"""Skeleton definitions and pose drawing."""

from posestudio.vision.skeleton import POSE_KEYPOINTS, POSE_LIMBS, draw_pose

__all__ = ["POSE_KEYPOINTS", "POSE_LIMBS", "draw_pose"]
