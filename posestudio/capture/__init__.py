"""Video capture sources."""

from posestudio.capture.camera import CameraDevice, FrameSource

__all__ = ["CameraDevice", "FrameSource"]
