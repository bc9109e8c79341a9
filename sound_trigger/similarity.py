from __future__ import annotations

from typing import Sequence

import numpy as np

from .profile import SoundProfile

LEVEL_WEIGHT = 0.6
SPECTRAL_WEIGHT = 0.4
#: Fraction of ``min_trigger_level`` under which a trained match is rejected.
REJECT_FLOOR = 0.7


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity over the common prefix of ``a`` and ``b``.

    Returns ``0.0`` when either vector has zero norm.
    """
    n = min(len(a), len(b))
    va = np.asarray(a, dtype=np.float64)[:n]
    vb = np.asarray(b, dtype=np.float64)[:n]
    denom = float(np.linalg.norm(va)) * float(np.linalg.norm(vb))
    if denom <= 0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def compute_similarity(
    level: float, frequency: Sequence[float], profile: SoundProfile
) -> float:
    """Score how well the current frame matches ``profile`` (0..1).

    Untrained profiles degrade to a plain level gate.
    """
    if profile.sample_count == 0:
        return 1.0 if level >= profile.min_trigger_level else 0.0

    if level < profile.min_trigger_level * REJECT_FLOOR:
        return 0.0

    level_score = min(1.0, level / profile.peak_level)

    freq_score = 1.0
    if len(profile.frequency_signature) > 0 and len(frequency) > 0:
        freq_score = cosine_similarity(profile.frequency_signature, frequency)

    return LEVEL_WEIGHT * level_score + SPECTRAL_WEIGHT * freq_score
