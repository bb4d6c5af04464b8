"""
Training and held-out evaluation of a pose classifier.
"""

import logging
import random
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from posestudio.config import TrainingConfig
from posestudio.core.dataset import Dataset, shuffle_split, validate_samples
from posestudio.errors import DegenerateEvaluationError
from posestudio.models.classifier import Classifier, TrainingHistory
from posestudio.types import POSE_LANDMARK_COUNT, EvaluationReport, PoseSample

logger = logging.getLogger(__name__)


@dataclass
class TrainingOutcome:
    """Result of a full shuffle/split, train and evaluate run."""

    history: TrainingHistory
    report: EvaluationReport
    train_size: int
    test_size: int


def train(
    train_set: Sequence[PoseSample],
    classifier: Classifier,
    config: Optional[TrainingConfig] = None,
    landmark_count: int = POSE_LANDMARK_COUNT,
    on_complete: Optional[Callable[[], None]] = None,
) -> TrainingHistory:
    """
    Feed every training row to ``classifier``, normalize and train.

    Raises:
        MalformedSampleError: if any row has the wrong vector length
        ValueError: if ``train_set`` is empty
    """
    config = config or TrainingConfig()
    if not train_set:
        raise ValueError("Training set is empty")

    validate_samples(train_set, landmark_count)

    classifier.clear()
    for sample in train_set:
        classifier.add_training_row(list(sample.data), sample.label)
    logger.info(f"Classifier filled with data ({len(train_set)} rows)")

    classifier.normalize()
    return classifier.train(config, on_complete=on_complete)


def evaluate(
    test_set: Sequence[PoseSample],
    classifier: Classifier,
    labels: Optional[Sequence[str]] = None,
    landmark_count: int = POSE_LANDMARK_COUNT,
) -> EvaluationReport:
    """
    Classify every test row and tally the answers.

    Per-label counts cover ``labels`` (reported even when zero) plus every
    label found in the test set.

    Raises:
        DegenerateEvaluationError: if ``test_set`` is empty
    """
    if not test_set:
        raise DegenerateEvaluationError("Cannot evaluate on an empty test set")

    validate_samples(test_set, landmark_count)

    report = EvaluationReport(correct=0, total=len(test_set))
    for label in labels or []:
        report.per_label_correct[label] = 0
        report.per_label_total[label] = 0

    for sample in test_set:
        predictions = classifier.classify(list(sample.data))
        predicted = predictions[0].label if predictions else None

        report.per_label_total[sample.label] = report.per_label_total.get(sample.label, 0) + 1
        report.per_label_correct.setdefault(sample.label, 0)

        if predicted == sample.label:
            report.correct += 1
            report.per_label_correct[sample.label] += 1
        else:
            report.mistakes.append((sample.label, predicted))
            logger.info(
                f"Classifier thinks this is a {predicted} while the actual label is {sample.label}"
            )

    logger.info(f"Got {report.correct} correct answers out of {report.total}")
    logger.info(
        ", ".join(f"{label}: {count}" for label, count in report.per_label_correct.items())
    )
    logger.info(f"Accuracy of the model is about {report.accuracy * 100:.1f}%")
    return report


def train_and_evaluate(
    dataset: Dataset,
    classifier: Classifier,
    config: Optional[TrainingConfig] = None,
    labels: Optional[Sequence[str]] = None,
    rng: Optional[random.Random] = None,
) -> TrainingOutcome:
    """
    Shuffle and split ``dataset``, train on the first part, evaluate on the rest.

    Args:
        dataset: Samples to partition
        classifier: Fresh classifier to train
        config: Epochs, batch size, split fraction, seed
        labels: Known labels always present in the per-label counts
        rng: Random source for the shuffle; defaults to one seeded from config

    Returns:
        TrainingOutcome with training history and evaluation report
    """
    config = config or TrainingConfig()
    rng = rng or random.Random(config.seed)

    train_set, test_set = shuffle_split(
        dataset,
        train_fraction=config.train_fraction,
        rng=rng,
        skip_boundary_row=config.skip_boundary_row,
    )
    logger.info(f"Training on {len(train_set)} samples, testing on {len(test_set)}")

    history = train(train_set, classifier, config, dataset.landmark_count)
    report = evaluate(test_set, classifier, labels, dataset.landmark_count)

    return TrainingOutcome(
        history=history,
        report=report,
        train_size=len(train_set),
        test_size=len(test_set),
    )
