import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from sound_trigger.audio.capture import DeviceBusy, PermissionDenied
from sound_trigger.features import Frame


def make_frame(level, timestamp=0.0, shape=None):
    """Frame whose spectrum is ``shape`` scaled to ``level``."""
    if shape is None:
        shape = np.ones(16)
    return Frame(level=level, frequency=np.asarray(shape) * level, timestamp=timestamp)


class FakeCapture:
    """Stands in for MicrophoneCapture without touching any audio device."""

    def __init__(self, data=None, deny=False):
        self.data = np.zeros(256, dtype=np.uint8) if data is None else data
        self.deny = deny
        self.owner = None
        self.acquire_calls = 0
        self.release_calls = 0
        self.smoothing = None

    def acquire(self, owner=None):
        self.acquire_calls += 1
        if self.deny:
            raise PermissionDenied("denied")
        if self.owner is not None and self.owner is not owner:
            raise DeviceBusy("busy")
        self.owner = owner

    def release(self):
        self.release_calls += 1
        self.owner = None

    def set_smoothing(self, smoothing):
        self.smoothing = smoothing

    def frequency_data(self):
        return self.data


@pytest.fixture
def fake_capture():
    return FakeCapture()
