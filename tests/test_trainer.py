import random

import pytest

from conftest import NearestCentroidClassifier, make_sample, make_samples

from posestudio.config import TrainingConfig
from posestudio.core.dataset import Dataset
from posestudio.core.trainer import evaluate, train, train_and_evaluate
from posestudio.errors import DegenerateEvaluationError, MalformedSampleError


def trained(rows):
    classifier = NearestCentroidClassifier()
    train(make_samples(rows), classifier, TrainingConfig())
    return classifier


def test_train_feeds_rows_and_normalizes():
    classifier = NearestCentroidClassifier()

    train(make_samples([("a", 0.0), ("b", 1.0)]), classifier, TrainingConfig())

    assert len(classifier.rows) == 2
    assert classifier.normalized
    assert set(classifier.centroids) == {"a", "b"}


def test_train_rejects_malformed_rows():
    classifier = NearestCentroidClassifier()
    rows = [make_sample("a", 0.0), make_sample("a", 0.0, length=60)]

    with pytest.raises(MalformedSampleError):
        train(rows, classifier)

    assert classifier.rows == []


def test_train_rejects_empty_set():
    with pytest.raises(ValueError):
        train([], NearestCentroidClassifier())


def test_train_twice_starts_from_scratch():
    classifier = trained([("a", 0.0), ("b", 1.0)])
    train(make_samples([("c", 0.5)]), classifier)

    assert classifier.row_labels == ["c"]


def test_evaluate_empty_test_set():
    with pytest.raises(DegenerateEvaluationError):
        evaluate([], trained([("a", 0.0)]))


def test_evaluate_counts_per_label():
    classifier = trained([("handsUp", 0.0), ("eyesCovered", 1.0)])
    test_set = make_samples([("handsUp", 0.1), ("handsUp", 0.9), ("eyesCovered", 0.8)])

    report = evaluate(test_set, classifier, labels=["handsUp", "eyesCovered", "fakeSurprise"])

    assert report.correct == 2
    assert report.total == 3
    assert report.accuracy == pytest.approx(2 / 3)
    assert report.per_label_correct == {"handsUp": 1, "eyesCovered": 1, "fakeSurprise": 0}
    assert report.per_label_total == {"handsUp": 2, "eyesCovered": 1, "fakeSurprise": 0}
    assert report.recall("handsUp") == 0.5
    assert report.recall("fakeSurprise") == 0.0
    assert report.mistakes == [("handsUp", "eyesCovered")]


def test_evaluate_logs_mistakes(caplog):
    classifier = trained([("handsUp", 0.0), ("eyesCovered", 1.0)])

    with caplog.at_level("INFO", logger="posestudio.core.trainer"):
        evaluate(make_samples([("handsUp", 1.0)]), classifier)

    assert "thinks this is a eyesCovered while the actual label is handsUp" in caplog.text
    assert "Got 0 correct answers out of 1" in caplog.text


def test_evaluate_passes_copies_to_classifier():
    classifier = trained([("a", 0.0), ("b", 1.0)])
    test_set = make_samples([("a", 0.0)])

    evaluate(test_set, classifier)
    classifier.classified[0].append(5.0)

    assert len(test_set[0].data) == 99


def test_evaluate_rejects_malformed_rows():
    classifier = trained([("a", 0.0)])
    with pytest.raises(MalformedSampleError):
        evaluate([make_sample("a", 0.0, length=3)], classifier)


def test_train_and_evaluate_split_sizes():
    dataset = Dataset(make_samples([("a", 0.0), ("b", 1.0)] * 5))
    classifier = NearestCentroidClassifier()

    outcome = train_and_evaluate(dataset, classifier, TrainingConfig(), rng=random.Random(1))

    assert outcome.train_size == 8
    assert outcome.test_size == 2
    assert outcome.report.total == 2
    assert outcome.history.losses == [0.0]


def test_train_and_evaluate_skip_boundary_row():
    dataset = Dataset(make_samples([("a", 0.0), ("b", 1.0)] * 5))

    outcome = train_and_evaluate(
        dataset,
        NearestCentroidClassifier(),
        TrainingConfig(skip_boundary_row=True, seed=4),
    )

    assert outcome.train_size == 8
    assert outcome.test_size == 1


def test_train_and_evaluate_is_reproducible_with_seed():
    dataset = Dataset(make_samples([("a", 0.0), ("b", 1.0), ("a", 0.2), ("b", 0.6)] * 5))

    first = train_and_evaluate(dataset, NearestCentroidClassifier(), TrainingConfig(seed=11))
    second = train_and_evaluate(dataset, NearestCentroidClassifier(), TrainingConfig(seed=11))

    assert first.report.to_dict() == second.report.to_dict()
    assert first.report.mistakes == second.report.mistakes


def test_train_and_evaluate_degenerate_split():
    dataset = Dataset(make_samples([("a", 0.0)] * 4))

    with pytest.raises(DegenerateEvaluationError):
        train_and_evaluate(
            dataset, NearestCentroidClassifier(), TrainingConfig(train_fraction=1.0)
        )
