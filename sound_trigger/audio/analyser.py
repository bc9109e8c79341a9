"""Byte-scaled frequency snapshots of the most recent audio window."""

from __future__ import annotations

import numpy as np
from scipy.fft import rfft
from scipy.signal import get_window


class FrequencyAnalyser:
    """Smoothed magnitude spectrum mapped onto ``0..255``.

    Parameters
    ----------
    fft_size:
        Transform size; a power of two.  Produces ``fft_size // 2`` bins.
    smoothing:
        Weight of the previous snapshot when blending in a new one.
    min_db, max_db:
        Decibel range mapped linearly onto ``0..255``.
    """

    def __init__(
        self,
        fft_size: int = 512,
        smoothing: float = 0.2,
        *,
        min_db: float = -100.0,
        max_db: float = -30.0,
    ) -> None:
        if fft_size < 32 or fft_size & (fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32 (got {fft_size})")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        if max_db <= min_db:
            raise ValueError("max_db must be > min_db")
        self.fft_size = fft_size
        self.smoothing = smoothing
        self.min_db = min_db
        self.max_db = max_db
        self._window = get_window("blackman", fft_size)
        self._smoothed = np.zeros(self.bin_count, dtype=np.float64)

    @property
    def bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        self._smoothed[:] = 0.0

    def byte_frequency_data(self, samples: np.ndarray) -> np.ndarray:
        """Return the ``uint8`` magnitude snapshot for ``samples``.

        ``samples`` is zero-padded on the left (or trimmed to the most recent
        ``fft_size`` values) before the transform.
        """
        block = np.asarray(samples, dtype=np.float64)
        if block.ndim != 1:
            raise ValueError(f"samples must be a 1-D array (got shape {block.shape})")
        if block.size >= self.fft_size:
            block = block[-self.fft_size :]
        else:
            block = np.pad(block, (self.fft_size - block.size, 0))

        spectrum = np.abs(rfft(block * self._window))[: self.bin_count] / self.fft_size
        self._smoothed = self.smoothing * self._smoothed + (1.0 - self.smoothing) * spectrum

        with np.errstate(divide="ignore"):
            db = 20.0 * np.log10(self._smoothed)
        scaled = (db - self.min_db) * (255.0 / (self.max_db - self.min_db))
        return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)
