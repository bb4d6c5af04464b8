"""
Studio controller.

Ties the capture device, pose detector, capture session, dataset and
classifier together. Both the GUI and the headless CLI drive the studio
through this object; all state changes happen on the scheduler's thread.
"""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np

from posestudio.capture.camera import FrameSource
from posestudio.config import AppConfig
from posestudio.core.dataset import Dataset, flatten, load_datasets, validate_samples
from posestudio.core.scheduler import Scheduler, TimerGroup
from posestudio.core.session import CaptureSession
from posestudio.core.trainer import TrainingOutcome, train_and_evaluate
from posestudio.errors import DeviceError, MalformedSampleError
from posestudio.export.json_export import export_json
from posestudio.models.classifier import Classifier
from posestudio.models.pose_detector import PoseDetector
from posestudio.types import Landmark, PoseSample, Prediction

logger = logging.getLogger(__name__)


@dataclass
class TestResult:
    """Result of a one-shot test classification."""

    frame: Optional[np.ndarray] = None
    landmarks: Optional[List[Landmark]] = None
    predictions: List[Prediction] = field(default_factory=list)

    @property
    def detected(self) -> bool:
        return self.landmarks is not None

    @property
    def top(self) -> Optional[Prediction]:
        return self.predictions[0] if self.predictions else None


class StudioController:
    """
    Owner of all mutable studio state.

    Args:
        config: Application configuration
        scheduler: Timer source shared by the capture session and test shots
        source: Frame source (webcam)
        detector: Pose detector
        classifier: Classifier used for training and test shots
        dataset: Initial dataset; an empty one is created if omitted
    """

    def __init__(
        self,
        config: AppConfig,
        scheduler: Scheduler,
        source: FrameSource,
        detector: PoseDetector,
        classifier: Classifier,
        dataset: Optional[Dataset] = None,
    ):
        self.config = config
        self.scheduler = scheduler
        self.source = source
        self.detector = detector
        self.classifier = classifier

        landmark_count = config.detection.landmark_count
        self.dataset = dataset if dataset is not None else Dataset(landmark_count=landmark_count)

        self.session = CaptureSession(
            scheduler, source, detector, self.dataset, config.capture, landmark_count
        )
        self.session.on_error = self._report_error
        self._test_timers = TimerGroup(scheduler)

        self.last_error: Optional[str] = None
        self.last_outcome: Optional[TrainingOutcome] = None

        self.on_test_result: Optional[Callable[[TestResult], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    @property
    def labels(self) -> List[str]:
        return list(self.config.capture.labels)

    @property
    def is_live(self) -> bool:
        return self.source.is_live

    def _report_error(self, message: str) -> None:
        self.last_error = message
        logger.error(message)
        if self.on_error is not None:
            self.on_error(message)

    # Device -----------------------------------------------------------------

    def start_device(self) -> bool:
        """Open the capture device. Returns False if it could not be opened."""
        try:
            self.source.start()
        except DeviceError as e:
            self._report_error(str(e))
            return False

        self.last_error = None
        return True

    def stop_device(self) -> None:
        """Release the capture device, aborting any session or test shot."""
        self.session.cancel("capture device stopped")
        self._test_timers.cancel_all()
        self.source.stop()

    # Capture ----------------------------------------------------------------

    def select_label(self, label: str) -> bool:
        if label not in self.config.capture.labels:
            logger.warning(f"Unknown pose label '{label}'")
        return self.session.select_label(label)

    def schedule_test(self) -> bool:
        """
        Take a test shot after the configured delay.

        Any capture session in flight is discarded. The shot grabs one frame,
        runs detection, releases the device and classifies the pose. The
        result is delivered through ``on_test_result``.
        """
        if not self.source.is_live:
            logger.warning("Ignoring test request: capture device is not running")
            return False

        self.session.cancel("test classification requested")
        self._test_timers.cancel_all()
        self._test_timers.call_later(self.config.capture.test_delay_ms, self._run_test)
        logger.info(f"Test shot in {self.config.capture.test_delay_ms / 1000:.1f}s")
        return True

    def _run_test(self) -> None:
        result = self.run_test()
        if self.on_test_result is not None:
            self.on_test_result(result)

    def run_test(self) -> TestResult:
        """Grab one frame now, release the device and classify the pose."""
        self._test_timers.cancel_all()
        frame = self.source.read()
        self.source.stop()

        result = TestResult(frame=frame)
        if frame is None:
            self._report_error("No frame available for the test shot")
            return result

        result.landmarks = self.detector.detect(frame)
        if result.landmarks is None:
            logger.warning("No pose detected in the test shot")
            return result

        vector = flatten(result.landmarks)
        sample = PoseSample(data=vector, label="")
        try:
            validate_samples([sample], self.config.detection.landmark_count)
        except MalformedSampleError as e:
            self._report_error(f"Rejected test shot: {e}")
            return result

        try:
            result.predictions = self.classifier.classify(vector)
        except RuntimeError as e:
            self._report_error(f"Cannot classify test shot: {e}")
            return result

        top = result.top
        logger.info(f"Test shot classified as {top.label} ({top.confidence:.2f})")
        return result

    # Data -------------------------------------------------------------------

    def load_datasets(self, paths: Optional[List[Path]] = None) -> int:
        """Append samples from dataset files. Returns the number added."""
        paths = paths if paths is not None else self.config.training.datasets
        loaded = load_datasets(paths, self.dataset.landmark_count)
        return self.dataset.extend(loaded.samples)

    def export(self, path: Optional[Path] = None) -> Path:
        """Write the dataset as JSON, defaulting to the configured export file."""
        if path is None:
            path = self.config.export.output_dir / self.config.export.filename
        return export_json(self.dataset, path)

    def train(self, rng: Optional[random.Random] = None) -> TrainingOutcome:
        """Shuffle, split, train and evaluate on the current dataset."""
        self.last_outcome = train_and_evaluate(
            self.dataset,
            self.classifier,
            self.config.training,
            labels=self.labels,
            rng=rng,
        )
        return self.last_outcome

    def install_classifier(self, classifier: Classifier, outcome: Optional[TrainingOutcome] = None) -> None:
        """Replace the classifier with one trained elsewhere (e.g. a worker thread)."""
        self.classifier = classifier
        if outcome is not None:
            self.last_outcome = outcome

    def close(self) -> None:
        self.stop_device()
        self.detector.close()
