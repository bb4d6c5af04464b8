"""
Core data types for Pose Studio.
"""

from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple

import numpy as np

# MediaPipe Pose Landmarker emits a fixed set of 33 body joints per pose.
POSE_LANDMARK_COUNT = 33

# Each landmark contributes (x, y, z) to the flat feature vector.
VALUES_PER_LANDMARK = 3


class Landmark(NamedTuple):
    """A single body joint in normalized image coordinates."""

    x: float
    y: float
    z: float
    visibility: float = 1.0


@dataclass
class PoseSample:
    """Flat landmark vector tagged with its ground-truth label."""

    data: List[float]
    label: str

    def to_dict(self) -> Dict:
        """Convert to dictionary for export."""
        return {
            "data": [float(v) for v in self.data],
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "PoseSample":
        """Create from an exported dictionary."""
        return cls(data=[float(v) for v in data["data"]], label=str(data["label"]))


@dataclass
class Frame:
    """A captured video image, alive only between capture and pose extraction."""

    image: np.ndarray
    timestamp: float


@dataclass(frozen=True)
class Prediction:
    """A single classifier answer."""

    label: str
    confidence: float


@dataclass
class EvaluationReport:
    """
    Result of evaluating a classifier on a held-out test set.

    ``per_label_correct`` holds the correct answers per label; ``per_label_total`` and
    :meth:`recall` extend it with per-class denominators.
    """

    correct: int
    total: int
    per_label_correct: Dict[str, int] = field(default_factory=dict)
    per_label_total: Dict[str, int] = field(default_factory=dict)
    mistakes: List[tuple[str, str]] = field(default_factory=list)  # (expected, predicted)

    @property
    def accuracy(self) -> float:
        return self.correct / self.total

    def recall(self, label: str) -> float:
        """Fraction of test rows with ``label`` that were classified correctly."""
        total = self.per_label_total.get(label, 0)
        if total == 0:
            return 0.0
        return self.per_label_correct.get(label, 0) / total

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        return {
            "correct": self.correct,
            "total": self.total,
            "accuracy": self.accuracy,
            "per_label_correct": dict(self.per_label_correct),
            "per_label_total": dict(self.per_label_total),
        }
