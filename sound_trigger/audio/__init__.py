from .analyser import FrequencyAnalyser
from .capture import DeviceBusy, MicrophoneCapture, default_capture
from .stream import PermissionDenied, open_input

__all__ = [
    "DeviceBusy",
    "FrequencyAnalyser",
    "MicrophoneCapture",
    "PermissionDenied",
    "default_capture",
    "open_input",
]
