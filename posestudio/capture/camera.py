"""
Webcam capture.

Wraps ``cv2.VideoCapture`` behind a small start/stop/read interface so the
capture session can be driven by a fake source in tests.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import cv2
import numpy as np

from posestudio.config import CaptureConfig
from posestudio.errors import DeviceError

logger = logging.getLogger(__name__)


class FrameSource(ABC):
    """A live source of video frames."""

    @abstractmethod
    def start(self) -> None:
        """Open the source. Raises DeviceError on failure."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Release the source."""
        pass

    @abstractmethod
    def read(self) -> Optional[np.ndarray]:
        """Current frame (BGR), or None if no frame is available."""
        pass

    @property
    @abstractmethod
    def is_live(self) -> bool:
        pass


class CameraDevice(FrameSource):
    """
    Webcam opened through OpenCV.

    Args:
        camera_index: OpenCV device index
        width: Requested frame width
        height: Requested frame height
    """

    def __init__(self, camera_index: int = 0, width: int = 1280, height: int = 720):
        self.camera_index = camera_index
        self.width = width
        self.height = height
        self._cap: Optional[cv2.VideoCapture] = None

    @classmethod
    def from_config(cls, config: CaptureConfig) -> "CameraDevice":
        return cls(config.camera_index, config.width, config.height)

    def start(self) -> None:
        if self.is_live:
            return

        cap = cv2.VideoCapture(self.camera_index)
        if not cap.isOpened():
            cap.release()
            raise DeviceError(
                f"Could not open camera {self.camera_index} "
                f"(device unavailable or permission denied)"
            )

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._cap = cap

        self.width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or self.width
        self.height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or self.height
        logger.info(f"Camera {self.camera_index} opened at {self.width}x{self.height}")

    def stop(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Camera {self.camera_index} released")

    def read(self) -> Optional[np.ndarray]:
        if self._cap is None:
            return None
        ok, frame = self._cap.read()
        if not ok:
            logger.debug("Camera frame read failed")
            return None
        return frame

    @property
    def is_live(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
