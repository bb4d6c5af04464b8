"""
Timed capture sessions.

A session records one pose label:

    IDLE -> ARMED_COUNTDOWN -> COLLECTING -> FINALIZING -> IDLE

The countdown gives the subject time to pose, collection samples a frame at a
fixed cadence into the sample buffer, and finalization turns every buffered
frame with a detected pose into a labeled sample appended to the dataset.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import numpy as np

from posestudio.capture.camera import FrameSource
from posestudio.config import CaptureConfig
from posestudio.core.dataset import Dataset, expected_length, flatten
from posestudio.core.scheduler import Scheduler, TimerGroup
from posestudio.models.pose_detector import PoseDetector
from posestudio.types import Frame, PoseSample

logger = logging.getLogger(__name__)


class CapturePhase(Enum):
    """Phases of a capture session."""

    IDLE = "idle"
    ARMED_COUNTDOWN = "armed_countdown"
    COLLECTING = "collecting"
    FINALIZING = "finalizing"


@dataclass
class SessionResult:
    """Outcome of a finalized session."""

    label: str
    frames_captured: int
    samples_added: int

    @property
    def frames_skipped(self) -> int:
        return self.frames_captured - self.samples_added


class SampleBuffer:
    """Frames captured during the collection window."""

    def __init__(self):
        self._frames: List[Frame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def append(self, image: np.ndarray, timestamp: float) -> None:
        # The source may reuse its frame memory
        self._frames.append(Frame(image=image.copy(), timestamp=timestamp))

    def drain(self) -> List[Frame]:
        """Return all buffered frames and empty the buffer."""
        frames = self._frames
        self._frames = []
        return frames

    def clear(self) -> None:
        self._frames.clear()


def extract_samples(
    frames: List[Frame],
    detector: PoseDetector,
    label: str,
    landmark_count: int = 33,
) -> List[PoseSample]:
    """
    Run pose detection over ``frames`` and build labeled samples.

    Frames without a detection are skipped. Detections with the wrong number
    of landmarks are rejected.
    """
    length = expected_length(landmark_count)
    samples: List[PoseSample] = []

    for frame in frames:
        landmarks = detector.detect(frame.image)
        if not landmarks:
            continue

        vector = flatten(landmarks)
        if len(vector) != length:
            logger.warning(
                f"Rejected detection with {len(landmarks)} landmarks "
                f"(expected {landmark_count})"
            )
            continue

        samples.append(PoseSample(data=vector, label=label))

    return samples


class CaptureSession:
    """
    Capture session state machine.

    Owns a single :class:`TimerGroup`; entering any phase cancels every timer
    scheduled by the previous one, so a reset never leaves a stale countdown,
    sampler or stop timer behind.

    Args:
        scheduler: Timer source (Qt event loop or manual clock)
        source: Live frame source
        detector: Pose detector run during finalization
        dataset: Dataset that receives the finalized samples
        config: Session timing
        landmark_count: Landmarks per detected pose
    """

    def __init__(
        self,
        scheduler: Scheduler,
        source: FrameSource,
        detector: PoseDetector,
        dataset: Dataset,
        config: Optional[CaptureConfig] = None,
        landmark_count: int = 33,
    ):
        self.scheduler = scheduler
        self.source = source
        self.detector = detector
        self.dataset = dataset
        self.config = config or CaptureConfig()
        self.landmark_count = landmark_count

        self.phase = CapturePhase.IDLE
        self.label: Optional[str] = None
        self.buffer = SampleBuffer()

        # Phase timestamps (scheduler clock, seconds)
        self.armed_at: Optional[float] = None
        self.collecting_at: Optional[float] = None

        self._timers = TimerGroup(scheduler)
        self._generation = 0

        # Callbacks
        self.on_phase_changed: Optional[Callable[[CapturePhase, Optional[str]], None]] = None
        self.on_finished: Optional[Callable[[SessionResult], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    @property
    def is_active(self) -> bool:
        return self.phase != CapturePhase.IDLE

    @property
    def pending_timers(self) -> int:
        return self._timers.pending

    def _enter(self, phase: CapturePhase) -> None:
        self._timers.cancel_all()
        self.phase = phase
        if self.on_phase_changed is not None:
            self.on_phase_changed(phase, self.label)

    def _guarded(self, callback: Callable[[], None]) -> Callable[[], None]:
        generation = self._generation

        def run():
            if generation != self._generation:
                return
            callback()

        return run

    def select_label(self, label: str) -> bool:
        """
        Start a new session for ``label``.

        Any session in flight is discarded first. Returns False (and does
        nothing) when the frame source is not live.
        """
        if not self.source.is_live:
            logger.warning(f"Ignoring pose '{label}': capture device is not running")
            return False

        if self.is_active:
            logger.info(f"Restarting capture: discarding session for '{self.label}'")
        self.reset()

        self._generation += 1
        self.label = label
        self.armed_at = self.scheduler.now()
        self._enter(CapturePhase.ARMED_COUNTDOWN)
        self._timers.call_later(
            self.config.countdown_ms, self._guarded(self._start_collecting)
        )

        logger.info(f"Prepare to pose: '{label}'")
        return True

    def reset(self) -> None:
        """Cancel all timers, discard buffered frames and return to IDLE."""
        self._generation += 1
        self.buffer.clear()
        self.label = None
        self.armed_at = None
        self.collecting_at = None
        self._enter(CapturePhase.IDLE)

    def cancel(self, reason: str = "") -> None:
        """Abort an in-flight session without finalizing it."""
        if not self.is_active:
            return
        logger.info(
            f"Capture session for '{self.label}' cancelled"
            + (f": {reason}" if reason else "")
        )
        self.reset()

    def _start_collecting(self) -> None:
        self.collecting_at = self.scheduler.now()
        self._enter(CapturePhase.COLLECTING)
        self._timers.call_every(
            self.config.sample_interval_ms, self._guarded(self._sample_frame)
        )
        self._timers.call_later(
            self.config.collection_ms, self._guarded(self._finalize)
        )
        logger.info("Pose collection in progress")

    def _sample_frame(self) -> None:
        if not self.source.is_live:
            self.cancel("capture device released during collection")
            return

        image = self.source.read()
        if image is None:
            return
        self.buffer.append(image, self.scheduler.now())

    def _finalize(self) -> None:
        if not self.source.is_live:
            self.cancel("capture device released during collection")
            return

        label = self.label
        self._enter(CapturePhase.FINALIZING)
        frames = self.buffer.drain()

        try:
            samples = extract_samples(frames, self.detector, label, self.landmark_count)
            added = self.dataset.extend(samples)
        except Exception as e:
            logger.exception(f"Pose extraction failed for '{label}'")
            if self.on_error is not None:
                self.on_error(f"Pose extraction failed for '{label}': {e}")
            return
        finally:
            self.reset()

        result = SessionResult(label=label, frames_captured=len(frames), samples_added=added)
        logger.info(
            f"Done recording for '{label}': {added} samples from "
            f"{len(frames)} frames ({result.frames_skipped} without a pose)"
        )

        if self.on_finished is not None:
            self.on_finished(result)
