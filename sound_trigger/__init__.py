"""Real-time detection of a calibrated impulsive sound (knock, clap, ...)."""

from .calibration import CalibrationState, SoundCalibration
from .detection import SoundTrigger
from .features import Frame, extract_frame
from .profile import DEFAULT_PROFILE, SoundProfile, SoundSample, build_profile

__all__ = [
    "CalibrationState",
    "DEFAULT_PROFILE",
    "Frame",
    "SoundCalibration",
    "SoundProfile",
    "SoundSample",
    "SoundTrigger",
    "build_profile",
    "extract_frame",
]
