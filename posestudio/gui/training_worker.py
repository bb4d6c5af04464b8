from __future__ import annotations

import random
from typing import List, Optional

from PySide6.QtCore import QThread, Signal

from posestudio.config import AppConfig
from posestudio.core.dataset import Dataset
from posestudio.core.trainer import train_and_evaluate
from posestudio.errors import PoseStudioError
from posestudio.models.classifier import NeuralNetworkClassifier


class TrainingWorker(QThread):
    """
    Trains a fresh classifier on a snapshot of the dataset.

    The worker never touches the studio's live classifier; the trained one is
    handed back through ``finished_training`` and installed on the GUI thread.
    """

    epoch_done = Signal(int, float)
    finished_training = Signal(object, object)  # (classifier, TrainingOutcome)
    error = Signal(str)

    def __init__(self, config: AppConfig, dataset: Dataset, labels: List[str]) -> None:
        super().__init__()
        self.config = config
        self.snapshot = Dataset(dataset.samples, landmark_count=dataset.landmark_count)
        self.labels = labels
        self.seed: Optional[int] = config.training.seed

    def run(self) -> None:
        classifier = NeuralNetworkClassifier(self.config.classifier)
        try:
            outcome = train_and_evaluate(
                self.snapshot,
                classifier,
                self.config.training,
                labels=self.labels,
                rng=random.Random(self.seed),
            )
        except (PoseStudioError, ValueError, RuntimeError) as exc:
            self.error.emit(str(exc))
            return

        self.finished_training.emit(classifier, outcome)
