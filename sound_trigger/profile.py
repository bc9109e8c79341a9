"""Acoustic profile built from calibration samples."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Sequence

import numpy as np

log = logging.getLogger(__name__)

PROFILE_DIR = os.path.join(os.path.expanduser("~"), ".sound_trigger")
PROFILE_FILE = os.path.join(PROFILE_DIR, "profile.json")

#: ``min_trigger_level`` as a fraction of the averaged peak level.
TRIGGER_LEVEL_RATIO = 0.6


@dataclass(frozen=True)
class SoundSample:
    """Descriptors of one recorded instance of the target sound."""

    peak_level: float
    avg_level: float
    frequency_data: tuple[float, ...]
    attack_time_ms: float
    duration_ms: float


@dataclass(frozen=True)
class SoundProfile:
    """Reusable template of the target sound.

    ``sample_count == 0`` marks an untrained profile; detection then falls
    back to a plain level threshold.
    """

    peak_level: float
    avg_level: float
    min_trigger_level: float
    frequency_signature: tuple[float, ...] = field(default_factory=tuple)
    attack_time_ms: float = 50.0
    duration_ms: float = 150.0
    sample_count: int = 0

    def __post_init__(self) -> None:
        if self.sample_count > 0 and (self.peak_level <= 0 or self.min_trigger_level <= 0):
            raise ValueError("trained profile needs positive peak_level and min_trigger_level")

    @property
    def trained(self) -> bool:
        return self.sample_count > 0

    @classmethod
    def from_dict(cls, data: dict) -> "SoundProfile":
        return cls(
            peak_level=float(data["peak_level"]),
            avg_level=float(data["avg_level"]),
            min_trigger_level=float(data["min_trigger_level"]),
            frequency_signature=tuple(float(v) for v in data.get("frequency_signature", ())),
            attack_time_ms=float(data.get("attack_time_ms", 50.0)),
            duration_ms=float(data.get("duration_ms", 150.0)),
            sample_count=int(data.get("sample_count", 0)),
        )


DEFAULT_PROFILE = SoundProfile(
    peak_level=0.5,
    avg_level=0.3,
    min_trigger_level=0.4,
)


def build_profile(samples: Sequence[SoundSample]) -> SoundProfile | None:
    """Fold ``samples`` into a single :class:`SoundProfile`.

    Returns ``None`` when there is nothing to fold.  Samples without any
    level cannot form a trained profile and raise ``ValueError``.
    """
    if not samples:
        return None

    peak = float(np.mean([s.peak_level for s in samples]))
    avg = float(np.mean([s.avg_level for s in samples]))
    attack = float(np.mean([s.attack_time_ms for s in samples]))
    duration = float(np.mean([s.duration_ms for s in samples]))

    # vector length comes from the first sample
    n_bins = len(samples[0].frequency_data)
    freq = np.zeros(n_bins, dtype=np.float64)
    for s in samples:
        freq += np.asarray(s.frequency_data[:n_bins], dtype=np.float64) / len(samples)

    peak_bin = float(freq.max()) if n_bins else 0.0
    if peak_bin > 0:
        freq = freq / peak_bin

    profile = SoundProfile(
        peak_level=peak,
        avg_level=avg,
        min_trigger_level=peak * TRIGGER_LEVEL_RATIO,
        frequency_signature=tuple(float(v) for v in freq),
        attack_time_ms=attack,
        duration_ms=duration,
        sample_count=len(samples),
    )
    log.info(
        "Built profile from %d samples: peak=%.3f  min_trigger=%.3f",
        profile.sample_count,
        profile.peak_level,
        profile.min_trigger_level,
    )
    return profile


def save_profile(profile: SoundProfile, path: str = PROFILE_FILE) -> None:
    """Persist ``profile`` to ``path`` in JSON format."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    data = asdict(profile)
    data["frequency_signature"] = list(profile.frequency_signature)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)


def load_profile(path: str = PROFILE_FILE) -> SoundProfile | None:
    """Return the saved profile, or ``None`` if there is no usable one."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        log.warning("Could not read profile %s: %s", path, exc)
        return None
    try:
        return SoundProfile.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        log.warning("Ignoring malformed profile %s: %s", path, exc)
        return None
