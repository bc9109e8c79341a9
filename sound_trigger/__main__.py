"""Command line entry point: calibrate a sound or listen for it."""

from __future__ import annotations

import argparse
import logging
import time

from . import logging as log_setup
from .actions import KeyPressAction
from .audio.capture import MicrophoneCapture
from .calibration import SoundCalibration
from .config import load_config
from .detection import SoundTrigger
from .profile import PROFILE_FILE, load_profile, save_profile
from .ticker import IntervalTicker

log = logging.getLogger("sound_trigger")


def _calibrate(args, capture: MicrophoneCapture, cfg) -> int:
    calib = SoundCalibration(
        capture=capture,
        ticker=IntervalTicker(cfg.tick_rate),
        smoothing=cfg.calibration_smoothing,
        on_sample=lambda s: print(f"  sample {len(calib.samples)}: peak {s.peak_level:.2f}"),
    )
    if not calib.start():
        return 1
    print(f"Make the sound {args.samples} times, pausing between each (Ctrl-C to stop)")
    deadline = time.monotonic() + args.timeout
    try:
        while len(calib.samples) < args.samples and time.monotonic() < deadline:
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        calib.stop()

    profile = calib.build_profile()
    if profile is None:
        print("No samples recorded; profile not saved")
        return 1
    save_profile(profile, args.profile)
    print(f"Saved profile from {profile.sample_count} samples to {args.profile}")
    return 0


def _listen(args, capture: MicrophoneCapture, cfg) -> int:
    profile = load_profile(args.profile)
    if profile is None:
        log.warning("No profile at %s; using level-only detection", args.profile)

    count = 0
    action = KeyPressAction(args.press_key) if args.press_key else None

    def _on_trigger() -> None:
        nonlocal count
        count += 1
        print(f"{time.strftime('%H:%M:%S')}  TRIGGER (count: {count})")
        if action is not None:
            action()

    trigger = SoundTrigger(
        _on_trigger,
        threshold=args.threshold if args.threshold is not None else cfg.threshold,
        cooldown_ms=args.cooldown_ms if args.cooldown_ms is not None else cfg.cooldown_ms,
        sound_profile=profile,
        capture=capture,
        ticker=IntervalTicker(cfg.tick_rate),
        smoothing=cfg.smoothing,
    )
    trigger.enabled = True
    if not trigger.is_listening:
        return 1
    print("Listening…  (Ctrl-C to stop)")
    try:
        while True:
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        trigger.stop()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Detect a calibrated knock or clap from the microphone",
    )
    parser.add_argument(
        "--calibrate",
        action="store_true",
        help="Record samples of the sound and save a profile",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=5,
        help="Number of samples to record when calibrating",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Give up calibrating after this many seconds",
    )
    parser.add_argument("--profile", default=PROFILE_FILE, help="Path to the profile JSON")
    parser.add_argument("--threshold", type=float, help="Fallback sensitivity (0-1)")
    parser.add_argument("--cooldown-ms", type=float, help="Minimum time between triggers")
    parser.add_argument("--press-key", help="Tap this key on every trigger")
    parser.add_argument("--device", help="Input device name or index")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")
    args = parser.parse_args(argv)

    log_setup.setup(logging.DEBUG if args.verbose else logging.INFO)
    cfg = load_config()
    device = args.device if args.device is not None else cfg.device
    if isinstance(device, str) and device.isdigit():
        device = int(device)

    capture = MicrophoneCapture(
        samplerate=cfg.samplerate,
        blocksize=cfg.blocksize,
        fft_size=cfg.fft_size,
        smoothing=cfg.smoothing,
        device=device,
    )
    try:
        if args.calibrate:
            return _calibrate(args, capture, cfg)
        return _listen(args, capture, cfg)
    finally:
        capture.release()


if __name__ == "__main__":  # pragma: no cover - manual entry point
    raise SystemExit(main())
