"""
Error types for Pose Studio.

None of these are fatal to the application: device errors and malformed
input leave the capture session in Idle, a degenerate evaluation is reported
instead of producing an undefined accuracy.
"""

from typing import List, Optional


class PoseStudioError(Exception):
    """Base class for all Pose Studio errors."""


class DeviceError(PoseStudioError):
    """The capture device could not be opened or read."""


class MalformedSampleError(PoseStudioError, ValueError):
    """A pose sample's feature vector does not match the expected length."""

    def __init__(self, message: str, indices: Optional[List[int]] = None):
        super().__init__(message)
        self.indices = indices or []


class DegenerateEvaluationError(PoseStudioError):
    """Evaluation was requested on an empty test set."""


class ModelNotFoundError(PoseStudioError, FileNotFoundError):
    """A required model asset is missing on disk."""
