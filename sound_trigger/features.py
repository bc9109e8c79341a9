from __future__ import annotations

from dataclasses import dataclass

import numpy as np

#: Largest value produced by the byte frequency tap.
BYTE_MAX = 255


@dataclass(frozen=True)
class Frame:
    """One snapshot of overall level and spectral shape."""

    level: float
    frequency: np.ndarray
    timestamp: float = 0.0


def extract_frame(
    magnitudes: np.ndarray, max_magnitude: float = BYTE_MAX, timestamp: float = 0.0
) -> Frame:
    """Normalise raw bin magnitudes into a :class:`Frame`.

    ``level`` is the mean magnitude divided by ``max_magnitude`` and each bin
    of ``frequency`` is scaled the same way, so both land in ``[0, 1]``.
    """
    mags = np.asarray(magnitudes, dtype=np.float64)
    if mags.ndim != 1 or mags.size == 0:
        raise ValueError(f"magnitudes must be a non-empty 1-D array (got shape {mags.shape})")
    if max_magnitude <= 0:
        raise ValueError("max_magnitude must be > 0")

    frequency = mags / max_magnitude
    level = float(mags.sum() / (mags.size * max_magnitude))
    return Frame(level=level, frequency=frequency, timestamp=timestamp)
