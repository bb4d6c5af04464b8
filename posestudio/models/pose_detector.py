"""
Pose detection using the MediaPipe Pose Landmarker.

The detector runs on one still image per call (IMAGE running mode); callers
invoke it once per buffered frame.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision as mp_vision

from posestudio.config import DetectionConfig
from posestudio.errors import ModelNotFoundError
from posestudio.types import Landmark

logger = logging.getLogger(__name__)


class PoseDetector(ABC):
    """Maps a frame to an ordered landmark list, or ``None`` when nobody is found."""

    @abstractmethod
    def detect(self, frame: np.ndarray) -> Optional[List[Landmark]]:
        """
        Detect a single pose.

        Args:
            frame: BGR image as numpy array (OpenCV format)

        Returns:
            Landmarks in detector order, or None if no pose was detected
        """
        pass

    def close(self):
        """Release resources."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class MediaPipePoseDetector(PoseDetector):
    """
    MediaPipe Tasks ``PoseLandmarker`` in IMAGE mode.

    Args:
        model_path: Path to ``pose_landmarker_*.task``
        num_poses: Maximum poses per image; only the first is returned
        min_pose_detection_confidence: Detector score threshold
        min_pose_presence_confidence: Presence score threshold
        delegate: ``"cpu"`` or ``"gpu"``
    """

    def __init__(
        self,
        model_path: Path,
        num_poses: int = 1,
        min_pose_detection_confidence: float = 0.5,
        min_pose_presence_confidence: float = 0.5,
        delegate: str = "cpu",
    ):
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise ModelNotFoundError(
                f"Pose model not found: {self.model_path}\n"
                f"Please run: posestudio download-models"
            )

        logger.info(f"Loading pose landmarker: {self.model_path.name}")

        base_delegate = (
            mp_python.BaseOptions.Delegate.GPU
            if delegate == "gpu"
            else mp_python.BaseOptions.Delegate.CPU
        )
        options = mp_vision.PoseLandmarkerOptions(
            base_options=mp_python.BaseOptions(
                model_asset_path=str(self.model_path),
                delegate=base_delegate,
            ),
            running_mode=mp_vision.RunningMode.IMAGE,
            num_poses=num_poses,
            min_pose_detection_confidence=min_pose_detection_confidence,
            min_pose_presence_confidence=min_pose_presence_confidence,
        )
        self._landmarker: Optional[mp_vision.PoseLandmarker] = (
            mp_vision.PoseLandmarker.create_from_options(options)
        )

        logger.info("✓ Pose landmarker loaded")

    @classmethod
    def from_config(cls, config: DetectionConfig) -> "MediaPipePoseDetector":
        return cls(
            model_path=config.model_path,
            num_poses=config.num_poses,
            min_pose_detection_confidence=config.min_pose_detection_confidence,
            min_pose_presence_confidence=config.min_pose_presence_confidence,
            delegate=config.delegate,
        )

    def detect(self, frame: np.ndarray) -> Optional[List[Landmark]]:
        if self._landmarker is None:
            raise RuntimeError("Pose landmarker has been closed")

        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb_frame)
        result = self._landmarker.detect(mp_image)

        if not result.pose_landmarks:
            return None

        return [
            Landmark(
                x=lm.x,
                y=lm.y,
                z=lm.z,
                visibility=lm.visibility if lm.visibility is not None else 1.0,
            )
            for lm in result.pose_landmarks[0]
        ]

    def close(self):
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
