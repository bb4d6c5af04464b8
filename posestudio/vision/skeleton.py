from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from posestudio.types import Landmark

# Landmark order of the MediaPipe Pose Landmarker; the feature vector follows it.
POSE_KEYPOINTS = [
    "nose",
    "left_eye_inner",
    "left_eye",
    "left_eye_outer",
    "right_eye_inner",
    "right_eye",
    "right_eye_outer",
    "left_ear",
    "right_ear",
    "mouth_left",
    "mouth_right",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_pinky",
    "right_pinky",
    "left_index",
    "right_index",
    "left_thumb",
    "right_thumb",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
    "left_heel",
    "right_heel",
    "left_foot_index",
    "right_foot_index",
]

POSE_LIMBS = [
    (0, 1),
    (1, 2),
    (2, 3),
    (3, 7),
    (0, 4),
    (4, 5),
    (5, 6),
    (6, 8),
    (9, 10),
    (11, 12),
    (11, 13),
    (13, 15),
    (15, 17),
    (15, 19),
    (15, 21),
    (17, 19),
    (12, 14),
    (14, 16),
    (16, 18),
    (16, 20),
    (16, 22),
    (18, 20),
    (11, 23),
    (12, 24),
    (23, 24),
    (23, 25),
    (24, 26),
    (25, 27),
    (26, 28),
    (27, 29),
    (28, 30),
    (29, 31),
    (30, 32),
    (27, 31),
    (28, 32),
]

# Colors (BGR)
LIMB_COLOR: Tuple[int, int, int] = (238, 221, 255)
LANDMARK_COLOR: Tuple[int, int, int] = (255, 0, 255)


def to_pixels(landmarks: Sequence[Landmark], width: int, height: int) -> List[Tuple[int, int]]:
    return [(int(lm.x * width), int(lm.y * height)) for lm in landmarks]


def draw_pose(
    frame: np.ndarray,
    landmarks: Optional[Sequence[Landmark]],
    limb_thickness: int = 5,
    landmark_radius: int = 4,
) -> np.ndarray:
    """Draw limbs and joints onto ``frame`` in place and return it."""
    if not landmarks:
        return frame

    height, width = frame.shape[:2]
    points = to_pixels(landmarks, width, height)

    for a, b in POSE_LIMBS:
        if a >= len(points) or b >= len(points):
            continue
        cv2.line(frame, points[a], points[b], LIMB_COLOR, limb_thickness, cv2.LINE_AA)

    for point in points:
        cv2.circle(frame, point, landmark_radius, LANDMARK_COLOR, -1, cv2.LINE_AA)
        cv2.circle(frame, point, landmark_radius, (0, 0, 0), 1, cv2.LINE_AA)

    return frame
