"""Record instances of the target sound and distil them into a profile.

The recorder watches ambient frames, learns a noise baseline, then captures
anything that rises clearly above it.  Each completed capture becomes one
:class:`~sound_trigger.profile.SoundSample`.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from .audio.capture import DeviceBusy, MicrophoneCapture, PermissionDenied, default_capture
from .features import Frame, extract_frame
from .profile import SoundProfile, SoundSample, build_profile
from .ticker import IntervalTicker, ManualTicker

log = logging.getLogger(__name__)

BASELINE_FRAMES = 30
MIN_THRESHOLD = 0.15
BASELINE_MULTIPLIER = 2.0
MAX_RECORDING_FRAMES = 60
DECAY_WINDOW = 5
DECAY_RATIO = 0.5
MIN_SAMPLE_FRAMES = 3
ATTACK_PEAK_RATIO = 0.8
DEFAULT_ATTACK_MS = 50.0


class CalibrationState(str, enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    RECORDING = "recording"
    PROCESSING = "processing"


@dataclass(frozen=True)
class RecorderState:
    phase: CalibrationState = CalibrationState.LISTENING
    baseline_sum: float = 0.0
    baseline_frames: int = 0
    buffer: Tuple[Frame, ...] = field(default_factory=tuple)

    @property
    def baseline(self) -> float:
        return self.baseline_sum / max(1, self.baseline_frames)

    @property
    def threshold(self) -> float:
        return max(MIN_THRESHOLD, BASELINE_MULTIPLIER * self.baseline)

    @property
    def baseline_ready(self) -> bool:
        return self.baseline_frames >= BASELINE_FRAMES


def segment_sample(buffer: Sequence[Frame]) -> Optional[SoundSample]:
    """Summarise a finished recording, or ``None`` if it is too short."""
    if len(buffer) < MIN_SAMPLE_FRAMES:
        return None

    levels = np.array([f.level for f in buffer], dtype=np.float64)
    peak = float(levels.max())

    n_bins = len(buffer[0].frequency)
    freq = np.mean([np.asarray(f.frequency[:n_bins], dtype=np.float64) for f in buffer], axis=0)

    attack_idx = int(np.flatnonzero(levels >= ATTACK_PEAK_RATIO * peak)[0])
    if attack_idx > 0:
        attack_ms = buffer[attack_idx].timestamp - buffer[0].timestamp
    else:
        attack_ms = DEFAULT_ATTACK_MS

    return SoundSample(
        peak_level=peak,
        avg_level=float(levels.mean()),
        frequency_data=tuple(float(v) for v in freq),
        attack_time_ms=float(attack_ms),
        duration_ms=float(buffer[-1].timestamp - buffer[0].timestamp),
    )


def _recording_finished(buffer: Sequence[Frame], threshold: float) -> bool:
    if len(buffer) <= DECAY_WINDOW:
        return False
    if len(buffer) > MAX_RECORDING_FRAMES:
        return True
    recent = np.mean([f.level for f in buffer[-DECAY_WINDOW:]])
    return bool(recent < threshold * DECAY_RATIO)


def record_step(
    frame: Frame, state: RecorderState
) -> Tuple[RecorderState, Optional[SoundSample]]:
    """Advance the recorder by one frame.

    Returns the new state and the sample completed by this frame, if any.
    """
    if state.phase == CalibrationState.IDLE:
        return state, None

    if not state.baseline_ready:
        state = replace(
            state,
            baseline_sum=state.baseline_sum + frame.level,
            baseline_frames=state.baseline_frames + 1,
        )
    threshold = state.threshold

    if state.phase == CalibrationState.RECORDING:
        buffer = state.buffer + (frame,)
        if not _recording_finished(buffer, threshold):
            return replace(state, buffer=buffer), None
        # processing is entered and left within this step
        log.debug("Recording finished after %d frames", len(buffer))
        sample = segment_sample(buffer)
        if sample is None:
            log.debug("Discarded %d-frame recording", len(buffer))
        return replace(state, phase=CalibrationState.LISTENING, buffer=()), sample

    if frame.level > threshold and state.baseline_ready:
        log.debug("Onset at level=%.3f (threshold=%.3f)", frame.level, threshold)
        return replace(state, phase=CalibrationState.RECORDING, buffer=(frame,)), None

    return state, None


def _monotonic_ms() -> float:
    return time.monotonic() * 1_000.0


class SoundCalibration:
    """Collect samples of the target sound from the microphone."""

    def __init__(
        self,
        *,
        capture: Optional[MicrophoneCapture] = None,
        ticker: Optional[IntervalTicker | ManualTicker] = None,
        clock: Callable[[], float] = _monotonic_ms,
        smoothing: float = 0.1,
        on_sample: Optional[Callable[[SoundSample], None]] = None,
    ) -> None:
        self.capture = capture if capture is not None else default_capture()
        self.ticker = ticker if ticker is not None else IntervalTicker()
        self.clock = clock
        self.smoothing = smoothing
        self.on_sample = on_sample

        self._recorder = RecorderState(phase=CalibrationState.IDLE)
        self._samples: list[SoundSample] = []
        self._current_level = 0.0

    @property
    def state(self) -> CalibrationState:
        return self._recorder.phase

    @property
    def samples(self) -> tuple[SoundSample, ...]:
        return tuple(self._samples)

    @property
    def current_level(self) -> float:
        return self._current_level

    def start(self) -> bool:
        """Begin (or restart) calibration with an empty sample collection.

        Returns ``False`` if the microphone is denied or held by another
        consumer.
        """
        self._samples = []
        self._recorder = RecorderState(phase=CalibrationState.LISTENING)
        if self.capture.owner is self:
            return True
        try:
            self.capture.acquire(self)
        except DeviceBusy as exc:
            log.error("Cannot start calibration: %s", exc)
            self._recorder = RecorderState(phase=CalibrationState.IDLE)
            return False
        except PermissionDenied as exc:
            log.error("Microphone access denied: %s", exc)
            self._recorder = RecorderState(phase=CalibrationState.IDLE)
            return False
        self.capture.set_smoothing(self.smoothing)
        self.ticker.start(self._tick)
        log.info("Calibration listening")
        return True

    def stop(self) -> None:
        """Stop listening and release the microphone. Keeps recorded samples."""
        self.ticker.stop()
        if self.capture.owner is self:
            self.capture.release()
        self._recorder = RecorderState(phase=CalibrationState.IDLE)
        self._current_level = 0.0

    def __enter__(self) -> "SoundCalibration":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def clear_samples(self) -> None:
        self._samples = []

    def build_profile(self) -> Optional[SoundProfile]:
        return build_profile(self._samples)

    def _tick(self) -> None:
        frame = extract_frame(self.capture.frequency_data(), timestamp=self.clock())
        self.process_frame(frame)

    def process_frame(self, frame: Frame) -> Optional[SoundSample]:
        """Feed one frame to the recorder; return a newly completed sample."""
        self._current_level = frame.level
        previous = self._recorder.phase
        self._recorder, sample = record_step(frame, self._recorder)
        if self._recorder.phase != previous:
            log.debug("Calibration %s -> %s", previous.value, self._recorder.phase.value)
        if sample is not None:
            self._samples.append(sample)
            log.info(
                "Recorded sample %d: peak=%.3f  duration=%.0f ms",
                len(self._samples),
                sample.peak_level,
                sample.duration_ms,
            )
            if self.on_sample is not None:
                self.on_sample(sample)
        return sample
