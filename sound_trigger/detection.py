from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Tuple

from .audio.capture import DeviceBusy, MicrophoneCapture, PermissionDenied, default_capture
from .features import Frame, extract_frame
from .profile import DEFAULT_PROFILE, SoundProfile
from .similarity import compute_similarity
from .ticker import IntervalTicker, ManualTicker

log = logging.getLogger(__name__)

#: Level rise per frame that marks the start of an attack.
ONSET_DELTA = 0.05
#: How long after an onset a frame still counts as part of the attack.
ATTACK_WINDOW_MS = 200.0
#: Fraction of the effective threshold under which a pending onset is dropped.
ONSET_DECAY_FLOOR = 0.5
#: Minimum level rise per frame for untrained (level-only) triggering.
FALLBACK_DELTA = 0.02
#: Similarity a trained match must exceed.
MATCH_SIMILARITY = 0.5


@dataclass(frozen=True)
class TransientState:
    prev_level: float = 0.0
    onset: Optional[float] = None


@dataclass(frozen=True)
class TriggerState:
    transient: TransientState = field(default_factory=TransientState)
    last_trigger: Optional[float] = None


@dataclass(frozen=True)
class Decision:
    """What happened while processing one frame."""

    fired: bool
    similarity: float
    is_transient: bool
    delta: float


def detect_transient(
    level: float,
    now: float,
    state: TransientState,
    effective_threshold: float,
) -> Tuple[TransientState, bool]:
    """Track the attack window of a rising sound.

    Returns the updated ``TransientState`` and whether ``now`` lies within
    :data:`ATTACK_WINDOW_MS` of a qualifying rise.
    """
    onset = state.onset
    if level - state.prev_level > ONSET_DELTA and onset is None:
        onset = now

    is_transient = onset is not None and (now - onset) < ATTACK_WINDOW_MS

    if level < effective_threshold * ONSET_DECAY_FLOOR:
        onset = None

    return TransientState(prev_level=level, onset=onset), is_transient


def resolve_profile(profile: Optional[SoundProfile]) -> SoundProfile:
    """Untrained or missing profiles both mean the fallback profile."""
    if profile is None or profile.sample_count == 0:
        return DEFAULT_PROFILE
    return profile


def decide(
    frame: Frame,
    state: TriggerState,
    profile: Optional[SoundProfile],
    threshold: float,
    cooldown_ms: float,
) -> Tuple[TriggerState, Decision]:
    """Advance the trigger state machine by one frame.

    ``threshold`` only applies when no trained profile is given.
    """
    profile = resolve_profile(profile)
    trained = profile.trained
    level = frame.level
    now = frame.timestamp
    delta = level - state.transient.prev_level

    effective = profile.min_trigger_level if trained else threshold

    if level <= effective:
        transient, is_transient = detect_transient(level, now, state.transient, effective)
        return (
            replace(state, transient=transient),
            Decision(fired=False, similarity=0.0, is_transient=is_transient, delta=delta),
        )

    similarity = compute_similarity(level, frame.frequency, profile)
    transient, is_transient = detect_transient(level, now, state.transient, effective)

    if trained:
        should_trigger = similarity > MATCH_SIMILARITY and is_transient
    else:
        should_trigger = level > threshold and delta > FALLBACK_DELTA

    cooled = state.last_trigger is None or (now - state.last_trigger) > cooldown_ms
    fired = should_trigger and cooled
    if fired:
        # force re-arm
        transient = replace(transient, onset=None)
        state = TriggerState(transient=transient, last_trigger=now)
    else:
        state = replace(state, transient=transient)

    return state, Decision(
        fired=fired, similarity=similarity, is_transient=is_transient, delta=delta
    )


def _monotonic_ms() -> float:
    return time.monotonic() * 1_000.0


class SoundTrigger:
    """Listen to the microphone and call ``on_trigger`` once per matching sound.

    Frames are pulled from ``capture`` on every tick of ``ticker``;
    :meth:`process_frame` can also be fed synthetic frames directly.
    """

    def __init__(
        self,
        on_trigger: Callable[[], None],
        *,
        enabled: bool = False,
        threshold: float = 0.5,
        cooldown_ms: float = 500.0,
        sound_profile: Optional[SoundProfile] = None,
        capture: Optional[MicrophoneCapture] = None,
        ticker: Optional[IntervalTicker | ManualTicker] = None,
        clock: Callable[[], float] = _monotonic_ms,
        smoothing: float = 0.2,
    ) -> None:
        self.on_trigger = on_trigger
        self.threshold = threshold
        self.cooldown_ms = cooldown_ms
        self.sound_profile = sound_profile
        self.capture = capture if capture is not None else default_capture()
        self.ticker = ticker if ticker is not None else IntervalTicker()
        self.clock = clock
        self.smoothing = smoothing

        self._state = TriggerState()
        self._listening = False
        self._has_permission: Optional[bool] = None
        self._audio_level = 0.0
        self._similarity = 0.0
        self._enabled = False
        self.enabled = enabled

    # ------------------------------------------------------------------ #
    # observable state
    # ------------------------------------------------------------------ #
    @property
    def is_listening(self) -> bool:
        return self._listening

    @property
    def has_permission(self) -> Optional[bool]:
        return self._has_permission

    @property
    def audio_level(self) -> float:
        return self._audio_level

    @property
    def similarity(self) -> float:
        return self._similarity

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value:
            self.start()
        elif self._listening:
            self.stop()
        else:
            self._enabled = False

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        """Acquire the microphone and begin processing frames.

        Denied access is recorded in :attr:`has_permission` and not retried.
        If another consumer holds the microphone the trigger stays disabled.
        """
        if self._listening:
            return
        try:
            self.capture.acquire(self)
        except PermissionDenied as exc:
            log.error("Microphone access denied: %s", exc)
            self._has_permission = False
            self._enabled = False
            return
        except DeviceBusy as exc:
            log.error("Cannot start detection: %s", exc)
            self._enabled = False
            return

        self._enabled = True
        self.capture.set_smoothing(self.smoothing)
        self._has_permission = True
        self._listening = True
        self._state = TriggerState()
        self.ticker.start(self._tick)

    def stop(self) -> None:
        """Stop processing and release the microphone. Safe to repeat."""
        self._enabled = False
        self.ticker.stop()
        if self.capture.owner is self:
            self.capture.release()
        self._listening = False
        self._state = TriggerState()
        self._audio_level = 0.0
        self._similarity = 0.0

    def __enter__(self) -> "SoundTrigger":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    # ------------------------------------------------------------------ #
    # frame processing
    # ------------------------------------------------------------------ #
    def _tick(self) -> None:
        if not (self._enabled and self._listening):
            return
        frame = extract_frame(self.capture.frequency_data(), timestamp=self.clock())
        self.process_frame(frame)

    def process_frame(self, frame: Frame) -> bool:
        """Feed one frame through the detector; return whether it fired."""
        self._audio_level = frame.level
        self._state, decision = decide(
            frame, self._state, self.sound_profile, self.threshold, self.cooldown_ms
        )
        self._similarity = decision.similarity
        if decision.fired:
            log.info(
                "Trigger at level=%.3f  similarity=%.3f", frame.level, decision.similarity
            )
            self.on_trigger()
        return decision.fired
