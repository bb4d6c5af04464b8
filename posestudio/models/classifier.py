"""
Pose classifiers.

``NeuralNetworkClassifier`` is a small dense network in PyTorch with the
default layout of 32, 8 and 16 ReLU units with a softmax output,
Adam with learning rate 0.15, min-max normalized inputs.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import numpy as np
import torch
from torch import nn

from posestudio.config import ClassifierConfig, TrainingConfig
from posestudio.types import Prediction

logger = logging.getLogger(__name__)


@dataclass
class TrainingHistory:
    """Per-epoch mean loss of one training run."""

    losses: List[float] = field(default_factory=list)

    @property
    def final_loss(self) -> float:
        return self.losses[-1] if self.losses else float("nan")


class Classifier(ABC):
    """Opaque trainable classifier over flat feature vectors."""

    @abstractmethod
    def add_training_row(self, vector: Sequence[float], label: str) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Forget all training rows and any trained state."""
        pass

    @abstractmethod
    def normalize(self) -> None:
        """Fit feature scaling on the rows added so far."""
        pass

    @abstractmethod
    def train(
        self,
        config: TrainingConfig,
        on_complete: Optional[Callable[[], None]] = None,
    ) -> TrainingHistory:
        pass

    @abstractmethod
    def classify(self, vector: Sequence[float]) -> List[Prediction]:
        """Predictions ranked by descending confidence."""
        pass


def build_network(input_size: int, hidden_units: Sequence[int], num_classes: int) -> nn.Module:
    layers: List[nn.Module] = []
    previous = input_size
    for units in hidden_units:
        layers.append(nn.Linear(previous, units))
        layers.append(nn.ReLU())
        previous = units
    # Softmax is applied at classification time; CrossEntropyLoss wants logits
    layers.append(nn.Linear(previous, num_classes))
    return nn.Sequential(*layers)


class NeuralNetworkClassifier(Classifier):
    """
    Dense neural network classifier.

    Example:
        >>> clf = NeuralNetworkClassifier()
        >>> for sample in train_rows:
        ...     clf.add_training_row(sample.data, sample.label)
        >>> clf.normalize()
        >>> clf.train(TrainingConfig(epochs=50))
        >>> clf.classify(vector)[0].label
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()
        self.device = torch.device(self.config.device)

        self._rows: List[List[float]] = []
        self._row_labels: List[str] = []

        self.labels: List[str] = []
        self.input_min: Optional[np.ndarray] = None
        self.input_max: Optional[np.ndarray] = None
        self.model: Optional[nn.Module] = None

    @property
    def is_trained(self) -> bool:
        return self.model is not None

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    def add_training_row(self, vector: Sequence[float], label: str) -> None:
        self._rows.append([float(v) for v in vector])
        self._row_labels.append(label)

    def clear(self) -> None:
        """Forget all training rows and the trained network."""
        self._rows.clear()
        self._row_labels.clear()
        self.labels = []
        self.input_min = None
        self.input_max = None
        self.model = None

    def normalize(self) -> None:
        if not self._rows:
            raise ValueError("No training rows to normalize")

        data = np.asarray(self._rows, dtype=np.float32)
        self.input_min = data.min(axis=0)
        self.input_max = data.max(axis=0)

    def _scale(self, data: np.ndarray) -> np.ndarray:
        if self.input_min is None or self.input_max is None:
            return data
        span = self.input_max - self.input_min
        # Constant features map to 0
        span = np.where(span == 0, 1.0, span)
        return (data - self.input_min) / span

    def train(
        self,
        config: Optional[TrainingConfig] = None,
        on_complete: Optional[Callable[[], None]] = None,
        on_epoch_end: Optional[Callable[[int, float], None]] = None,
    ) -> TrainingHistory:
        """
        Train the network on every row added so far.

        Args:
            config: Epochs and batch size
            on_complete: Called once training has finished
            on_epoch_end: Called with (epoch, mean loss) after each epoch

        Returns:
            TrainingHistory with per-epoch losses
        """
        config = config or TrainingConfig()
        if not self._rows:
            raise ValueError("No training rows added")

        self.labels = sorted(set(self._row_labels))
        label_index = {label: i for i, label in enumerate(self.labels)}

        inputs = torch.tensor(
            self._scale(np.asarray(self._rows, dtype=np.float32)),
            dtype=torch.float32,
            device=self.device,
        )
        targets = torch.tensor(
            [label_index[label] for label in self._row_labels],
            dtype=torch.long,
            device=self.device,
        )

        self.model = build_network(
            inputs.shape[1], self.config.hidden_units, len(self.labels)
        ).to(self.device)
        optimizer = torch.optim.Adam(self.model.parameters(), lr=self.config.learning_rate)
        criterion = nn.CrossEntropyLoss()

        batch_size = max(1, config.batch_size)
        history = TrainingHistory()

        logger.info(
            f"Training on {len(self._rows)} rows, {len(self.labels)} labels, "
            f"{config.epochs} epochs"
        )

        for epoch in range(config.epochs):
            self.model.train()
            permutation = torch.randperm(inputs.shape[0], device=self.device)
            epoch_losses = []

            for start in range(0, inputs.shape[0], batch_size):
                batch = permutation[start:start + batch_size]
                optimizer.zero_grad()
                loss = criterion(self.model(inputs[batch]), targets[batch])
                loss.backward()
                optimizer.step()
                epoch_losses.append(loss.item())

            mean_loss = float(np.mean(epoch_losses))
            history.losses.append(mean_loss)
            logger.debug(f"Epoch {epoch + 1}/{config.epochs}: loss={mean_loss:.4f}")
            if on_epoch_end is not None:
                on_epoch_end(epoch, mean_loss)

        self.model.eval()
        logger.info(f"Finished training (loss={history.final_loss:.4f})")
        if on_complete is not None:
            on_complete()
        return history

    def classify(self, vector: Sequence[float]) -> List[Prediction]:
        if self.model is None:
            raise RuntimeError("Classifier has not been trained")

        data = self._scale(np.asarray([vector], dtype=np.float32))
        with torch.no_grad():
            logits = self.model(torch.tensor(data, dtype=torch.float32, device=self.device))
            probabilities = torch.softmax(logits, dim=1)[0].cpu().numpy()

        ranked = np.argsort(-probabilities)
        return [Prediction(self.labels[i], float(probabilities[i])) for i in ranked]

    def save(self, path: Path) -> None:
        """Save weights, normalization bounds and labels."""
        if self.model is None:
            raise RuntimeError("Classifier has not been trained")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        torch.save(
            {
                "hidden_units": list(self.config.hidden_units),
                "labels": self.labels,
                "input_size": self.model[0].in_features,
                "input_min": self.input_min,
                "input_max": self.input_max,
                "state_dict": self.model.state_dict(),
            },
            path,
        )
        logger.info(f"Saved classifier to {path}")

    @classmethod
    def load(cls, path: Path, config: Optional[ClassifierConfig] = None) -> "NeuralNetworkClassifier":
        """Load a classifier written by :meth:`save`."""
        checkpoint = torch.load(Path(path), map_location="cpu", weights_only=False)

        config = config or ClassifierConfig()
        config.hidden_units = list(checkpoint["hidden_units"])

        classifier = cls(config)
        classifier.labels = list(checkpoint["labels"])
        classifier.input_min = checkpoint["input_min"]
        classifier.input_max = checkpoint["input_max"]
        classifier.model = build_network(
            checkpoint["input_size"], config.hidden_units, len(classifier.labels)
        ).to(classifier.device)
        classifier.model.load_state_dict(checkpoint["state_dict"])
        classifier.model.eval()

        logger.info(f"Loaded classifier from {path} ({len(classifier.labels)} labels)")
        return classifier
