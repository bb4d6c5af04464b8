"""Core capture, dataset and training components."""

from posestudio.core.controller import StudioController, TestResult
from posestudio.core.dataset import Dataset, flatten, load_dataset, merge, shuffle_split
from posestudio.core.scheduler import QtScheduler, Scheduler, TimerGroup
from posestudio.core.session import CapturePhase, CaptureSession, SessionResult
from posestudio.core.trainer import TrainingOutcome, evaluate, train, train_and_evaluate

__all__ = [
    "StudioController",
    "TestResult",
    "Dataset",
    "flatten",
    "load_dataset",
    "merge",
    "shuffle_split",
    "QtScheduler",
    "Scheduler",
    "TimerGroup",
    "CapturePhase",
    "CaptureSession",
    "SessionResult",
    "TrainingOutcome",
    "evaluate",
    "train",
    "train_and_evaluate",
]
