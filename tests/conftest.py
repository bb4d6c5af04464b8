"""Shared fixtures: a manual clock scheduler and fake capture components."""

from typing import Callable, List, Optional, Sequence

import numpy as np
import pytest

from posestudio.capture.camera import FrameSource
from posestudio.config import AppConfig, TrainingConfig
from posestudio.core.scheduler import Scheduler, TimerHandle
from posestudio.errors import DeviceError
from posestudio.models.classifier import Classifier, TrainingHistory
from posestudio.models.pose_detector import PoseDetector
from posestudio.types import Landmark, PoseSample, Prediction


class ManualTimer(TimerHandle):
    def __init__(self, due: int, interval: Optional[int], callback: Callable[[], None], seq: int):
        self.due = due
        self.interval = interval
        self.callback = callback
        self.seq = seq
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired


class ManualScheduler(Scheduler):
    """Scheduler driven by :meth:`advance`; timers due at the same time fire in creation order."""

    def __init__(self):
        self.time_ms = 0
        self._timers: List[ManualTimer] = []
        self._seq = 0

    def _add(self, delay_ms: int, interval: Optional[int], callback) -> ManualTimer:
        self._seq += 1
        timer = ManualTimer(self.time_ms + delay_ms, interval, callback, self._seq)
        self._timers.append(timer)
        return timer

    def call_later(self, delay_ms, callback):
        return self._add(delay_ms, None, callback)

    def call_every(self, interval_ms, callback):
        return self._add(interval_ms, interval_ms, callback)

    def now(self) -> float:
        return self.time_ms / 1000.0

    @property
    def pending(self) -> int:
        return sum(1 for timer in self._timers if timer.active)

    def advance(self, ms: int) -> None:
        target = self.time_ms + ms
        while True:
            due = [t for t in self._timers if t.active and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self.time_ms = timer.due
            if timer.interval is None:
                timer.fired = True
            else:
                timer.due += timer.interval
            timer.callback()
        self.time_ms = target
        self._timers = [t for t in self._timers if t.active]


class FakeFrameSource(FrameSource):
    def __init__(self, fail_on_start: bool = False):
        self.fail_on_start = fail_on_start
        self.live = False
        self.reads = 0

    def start(self) -> None:
        if self.fail_on_start:
            raise DeviceError("Could not open camera 0 (permission denied)")
        self.live = True

    def stop(self) -> None:
        self.live = False

    def read(self):
        if not self.live:
            return None
        self.reads += 1
        frame = np.zeros((48, 64, 3), dtype=np.uint8)
        frame[0, 0, 0] = self.reads % 256
        return frame

    @property
    def is_live(self) -> bool:
        return self.live


class FakeDetector(PoseDetector):
    """Returns ``landmarks`` for every frame, or None where ``hit`` says so."""

    def __init__(self, landmarks=None, hit: Optional[Callable[[int], bool]] = None):
        self.landmarks = landmarks if landmarks is not None else make_landmarks()
        self.hit = hit or (lambda i: True)
        self.calls = 0
        self.closed = False

    def detect(self, frame):
        index = self.calls
        self.calls += 1
        if not self.hit(index):
            return None
        return list(self.landmarks)

    def close(self):
        self.closed = True


class NearestCentroidClassifier(Classifier):
    """Deterministic stand-in for the neural network."""

    def __init__(self):
        self.rows: List[List[float]] = []
        self.row_labels: List[str] = []
        self.centroids = {}
        self.normalized = False
        self.classified: List[List[float]] = []

    def add_training_row(self, vector, label):
        self.rows.append(vector)
        self.row_labels.append(label)

    def clear(self):
        self.rows = []
        self.row_labels = []
        self.centroids = {}
        self.normalized = False

    def normalize(self):
        self.normalized = True

    def train(self, config: TrainingConfig, on_complete=None):
        data = np.asarray(self.rows)
        labels = np.asarray(self.row_labels)
        self.centroids = {
            label: data[labels == label].mean(axis=0) for label in sorted(set(self.row_labels))
        }
        if on_complete is not None:
            on_complete()
        return TrainingHistory(losses=[0.0])

    def classify(self, vector):
        if not self.centroids:
            raise RuntimeError("Classifier has not been trained")
        self.classified.append(vector)
        point = np.asarray(vector)
        scores = {
            label: 1.0 / (1.0 + float(np.linalg.norm(point - centroid)))
            for label, centroid in self.centroids.items()
        }
        total = sum(scores.values())
        ranked = sorted(scores.items(), key=lambda item: -item[1])
        return [Prediction(label, score / total) for label, score in ranked]


def make_landmarks(offset: float = 0.0, count: int = 33) -> List[Landmark]:
    return [
        Landmark(x=offset + i * 0.01, y=0.5 + offset, z=-0.1 * offset, visibility=0.9)
        for i in range(count)
    ]


def make_sample(label: str, value: float, length: int = 99) -> PoseSample:
    return PoseSample(data=[value] * length, label=label)


def make_samples(pairs: Sequence[tuple]) -> List[PoseSample]:
    """Build samples from ``(label, value)`` pairs."""
    return [make_sample(label, value) for label, value in pairs]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def source():
    return FakeFrameSource()


@pytest.fixture
def detector():
    return FakeDetector()


@pytest.fixture
def classifier():
    return NearestCentroidClassifier()


@pytest.fixture
def config(tmp_path):
    config = AppConfig()
    config.export.output_dir = tmp_path / "exports"
    config.training.seed = 7
    return config
