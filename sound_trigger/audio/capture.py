from __future__ import annotations

import contextlib
import logging
import threading
from typing import Any, Callable, Optional

import numpy as np

from .analyser import FrequencyAnalyser
from .stream import PermissionDenied, open_input

log = logging.getLogger(__name__)

__all__ = ["DeviceBusy", "MicrophoneCapture", "PermissionDenied", "default_capture"]


class DeviceBusy(RuntimeError):
    """The microphone is already held by another consumer."""


class MicrophoneCapture:
    """Exclusive handle on the microphone plus a frequency-analysis tap.

    The audio callback keeps the newest ``fft_size`` mono samples in a ring
    buffer; :meth:`frequency_data` turns them into a byte snapshot on demand.
    """

    def __init__(
        self,
        *,
        samplerate: int = 44_100,
        blocksize: int = 256,
        fft_size: int = 512,
        smoothing: float = 0.2,
        device: Optional[int | str] = None,
        opener: Callable[..., Any] = open_input,
    ) -> None:
        self.samplerate = samplerate
        self.blocksize = blocksize
        self.device = device
        self.analyser = FrequencyAnalyser(fft_size, smoothing)
        self._opener = opener
        self._buf = np.zeros(fft_size, dtype=np.float32)
        self._buf_index = 0
        self._buf_lock = threading.Lock()
        self._stack: Optional[contextlib.ExitStack] = None
        self._owner: Any = None

    @property
    def active(self) -> bool:
        return self._stack is not None

    @property
    def owner(self) -> Any:
        return self._owner

    @property
    def bin_count(self) -> int:
        return self.analyser.bin_count

    def set_smoothing(self, smoothing: float) -> None:
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        self.analyser.smoothing = smoothing

    def _callback(self, indata: np.ndarray, frames: int, time: Any, status: Any) -> None:
        mono = indata.mean(axis=1) if indata.shape[1] > 1 else indata[:, 0]
        n = len(mono)
        with self._buf_lock:
            if n >= len(self._buf):
                self._buf[:] = mono[-len(self._buf) :]
                self._buf_index = 0
                return
            end = self._buf_index + n
            if end <= len(self._buf):
                self._buf[self._buf_index : end] = mono
            else:
                first = len(self._buf) - self._buf_index
                self._buf[self._buf_index :] = mono[:first]
                self._buf[: n - first] = mono[first:]
            self._buf_index = end % len(self._buf)

    def acquire(self, owner: Any = None) -> None:
        """Open the input stream on behalf of ``owner``.

        A no-op if ``owner`` already holds the device.  Raises
        :class:`DeviceBusy` if someone else does and
        :class:`PermissionDenied` if the device cannot be opened.
        """
        if self._stack is not None:
            if self._owner is owner:
                return
            raise DeviceBusy(f"Microphone already in use by {self._owner!r}")

        stack = contextlib.ExitStack()
        stack.enter_context(
            self._opener(
                samplerate=self.samplerate,
                blocksize=self.blocksize,
                callback=self._callback,
                device=self.device,
            )
        )
        self._stack = stack
        self._owner = owner
        log.info("Microphone acquired by %r", owner)

    def release(self) -> None:
        """Close the stream and forget buffered audio. Safe to repeat."""
        stack, self._stack = self._stack, None
        owner, self._owner = self._owner, None
        if stack is not None:
            stack.close()
            log.info("Microphone released by %r", owner)
        with self._buf_lock:
            self._buf[:] = 0.0
            self._buf_index = 0
        self.analyser.reset()

    def frequency_data(self) -> np.ndarray:
        """Return the current ``uint8`` snapshot, oldest sample first."""
        with self._buf_lock:
            window = np.concatenate([self._buf[self._buf_index :], self._buf[: self._buf_index]])
        return self.analyser.byte_frequency_data(window)


_default: Optional[MicrophoneCapture] = None
_default_lock = threading.Lock()


def default_capture() -> MicrophoneCapture:
    """Return the process-wide capture used when no other one is supplied.

    Detectors and calibrations built without an explicit ``capture`` all
    share this instance, so only one of them can hold the microphone.
    """
    global _default
    with _default_lock:
        if _default is None:
            _default = MicrophoneCapture()
        return _default
