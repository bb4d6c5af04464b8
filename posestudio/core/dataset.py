"""
Dataset building: landmark flattening, validation, merging and splitting.
"""

import json
import logging
import math
import random
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from posestudio.errors import MalformedSampleError
from posestudio.types import (
    POSE_LANDMARK_COUNT,
    VALUES_PER_LANDMARK,
    Landmark,
    PoseSample,
)

logger = logging.getLogger(__name__)


def flatten(landmarks: Sequence[Landmark]) -> List[float]:
    """
    Flatten an ordered landmark list into ``[x0, y0, z0, x1, y1, z1, ...]``.

    Visibility is not part of the feature vector.
    """
    vector: List[float] = []
    for lm in landmarks:
        vector.append(float(lm.x))
        vector.append(float(lm.y))
        vector.append(float(lm.z))
    return vector


def expected_length(landmark_count: int = POSE_LANDMARK_COUNT) -> int:
    return landmark_count * VALUES_PER_LANDMARK


def validate_samples(
    samples: Sequence[PoseSample], landmark_count: int = POSE_LANDMARK_COUNT
) -> None:
    """
    Reject samples whose vector length is not ``3 * landmark_count``.

    Raises:
        MalformedSampleError: listing the offending row indices
    """
    length = expected_length(landmark_count)
    bad = [i for i, sample in enumerate(samples) if len(sample.data) != length]
    if bad:
        raise MalformedSampleError(
            f"{len(bad)} sample(s) do not have {length} values "
            f"({landmark_count} landmarks x {VALUES_PER_LANDMARK}): rows {bad[:10]}",
            indices=bad,
        )


class Dataset:
    """
    Insertion-ordered collection of pose samples.

    Only grows by appending the samples of a completed capture session.
    """

    def __init__(
        self,
        samples: Optional[Iterable[PoseSample]] = None,
        landmark_count: int = POSE_LANDMARK_COUNT,
    ):
        self.landmark_count = landmark_count
        self._samples: List[PoseSample] = []
        if samples is not None:
            self.extend(samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[PoseSample]:
        return iter(self._samples)

    def __getitem__(self, index: int) -> PoseSample:
        return self._samples[index]

    @property
    def samples(self) -> List[PoseSample]:
        """Copy of the rows; callers never mutate the dataset through it."""
        return list(self._samples)

    @property
    def labels(self) -> List[str]:
        """Distinct labels in first-seen order."""
        seen: List[str] = []
        for sample in self._samples:
            if sample.label not in seen:
                seen.append(sample.label)
        return seen

    def extend(self, samples: Iterable[PoseSample]) -> int:
        """Validate and append samples. Returns the number appended."""
        new = list(samples)
        validate_samples(new, self.landmark_count)
        self._samples.extend(new)
        return len(new)

    def clear(self) -> None:
        self._samples.clear()

    def to_list(self) -> List[dict]:
        return [sample.to_dict() for sample in self._samples]

    @classmethod
    def from_list(
        cls, rows: Iterable[dict], landmark_count: int = POSE_LANDMARK_COUNT
    ) -> "Dataset":
        return cls((PoseSample.from_dict(row) for row in rows), landmark_count)


def merge(first: Dataset, second: Dataset) -> Dataset:
    """Concatenate two datasets, ``first`` before ``second``."""
    merged = Dataset(landmark_count=first.landmark_count)
    merged.extend(first)
    merged.extend(second)
    return merged


def fisher_yates(rows: List, rng: random.Random) -> None:
    """Shuffle ``rows`` in place, uniformly over all permutations."""
    for i in range(len(rows) - 1, 0, -1):
        j = rng.randint(0, i)
        rows[i], rows[j] = rows[j], rows[i]


def shuffle_split(
    dataset: Dataset,
    train_fraction: float = 0.8,
    rng: Optional[random.Random] = None,
    skip_boundary_row: bool = False,
) -> Tuple[List[PoseSample], List[PoseSample]]:
    """
    Shuffle a copy of the dataset and split it into ``(train, test)``.

    The split index is ``floor(len * train_fraction)``. With
    ``skip_boundary_row`` the test partition starts one row past the split
    index, matching older recorded runs where that row was never used.

    Args:
        dataset: Dataset to partition (left untouched)
        train_fraction: Share of rows used for training
        rng: Random source driving the shuffle
        skip_boundary_row: Drop the first row after the split index

    Returns:
        (train, test) lists of samples
    """
    if not 0.0 <= train_fraction <= 1.0:
        raise ValueError(f"train_fraction must be within [0, 1], got {train_fraction}")

    rows = dataset.samples
    fisher_yates(rows, rng or random.Random())

    boundary = math.floor(len(rows) * train_fraction)
    train = rows[:boundary]
    test = rows[boundary + 1:] if skip_boundary_row else rows[boundary:]

    logger.debug(
        f"Split {len(rows)} samples into {len(train)} train / {len(test)} test"
    )
    return train, test


def load_dataset(path: Path, landmark_count: int = POSE_LANDMARK_COUNT) -> Dataset:
    """Load a dataset previously written by the JSON exporter."""
    with open(path, "r") as f:
        rows = json.load(f)

    if not isinstance(rows, list):
        raise MalformedSampleError(f"{path} does not contain a JSON array of samples")

    try:
        dataset = Dataset.from_list(rows, landmark_count)
    except MalformedSampleError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedSampleError(f"{path} contains a malformed row: {e}") from e

    logger.info(f"Loaded {len(dataset)} samples from {path}")
    return dataset


def load_datasets(
    paths: Sequence[Path], landmark_count: int = POSE_LANDMARK_COUNT
) -> Dataset:
    """Load several dataset files and merge them in the given order."""
    combined = Dataset(landmark_count=landmark_count)
    for path in paths:
        combined = merge(combined, load_dataset(path, landmark_count))
    return combined
