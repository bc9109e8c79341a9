from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields

log = logging.getLogger(__name__)


@dataclass
class TriggerConfig:
    threshold: float = 0.5
    cooldown_ms: float = 500.0
    samplerate: int = 44_100
    blocksize: int = 256
    fft_size: int = 512
    smoothing: float = 0.2
    calibration_smoothing: float = 0.1
    tick_rate: float = 60.0
    device: str | None = None


CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".sound_trigger")
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.json")


def load_config(path: str = CONFIG_FILE) -> TriggerConfig:
    """Return saved settings or defaults if unavailable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return TriggerConfig()
    except (OSError, ValueError) as exc:
        log.warning("Could not read config %s: %s", path, exc)
        return TriggerConfig()

    known = {f.name for f in fields(TriggerConfig)}
    try:
        return TriggerConfig(**{k: v for k, v in data.items() if k in known})
    except (AttributeError, TypeError) as exc:
        log.warning("Ignoring malformed config %s: %s", path, exc)
        return TriggerConfig()


def save_config(config: TriggerConfig, path: str = CONFIG_FILE) -> None:
    """Persist ``config`` to ``path`` in JSON format."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f)
