import json
import logging

import pytest

from sound_trigger.profile import (
    SoundProfile,
    SoundSample,
    build_profile,
    load_profile,
    save_profile,
)


def _sample(peak, freq, attack=30.0, duration=120.0):
    return SoundSample(
        peak_level=peak,
        avg_level=peak / 2,
        frequency_data=tuple(freq),
        attack_time_ms=attack,
        duration_ms=duration,
    )


def test_empty_collection_has_no_profile():
    assert build_profile([]) is None


def test_averages_and_normalises():
    samples = [
        _sample(0.8, [0.2, 0.4, 0.1], attack=20.0, duration=100.0),
        _sample(0.6, [0.4, 0.2, 0.1], attack=40.0, duration=140.0),
    ]
    profile = build_profile(samples)
    assert profile.sample_count == 2
    assert profile.trained
    assert profile.peak_level == pytest.approx(0.7)
    assert profile.avg_level == pytest.approx(0.35)
    assert profile.min_trigger_level == pytest.approx(0.42)
    assert profile.attack_time_ms == pytest.approx(30.0)
    assert profile.duration_ms == pytest.approx(120.0)
    assert profile.frequency_signature == pytest.approx((1.0, 1.0, 1 / 3))
    assert max(profile.frequency_signature) == 1.0


def test_silent_spectrum_left_unnormalised():
    profile = build_profile([_sample(0.5, [0.0, 0.0])])
    assert profile.frequency_signature == (0.0, 0.0)
    assert profile.sample_count == 1


def test_save_and_load(tmp_path):
    profile = build_profile([_sample(0.9, [0.3, 0.6, 0.9])])
    path = tmp_path / "nested" / "profile.json"
    save_profile(profile, path=str(path))
    assert load_profile(path=str(path)) == profile


def test_load_missing_profile(tmp_path):
    assert load_profile(path=str(tmp_path / "nope.json")) is None


def test_load_malformed_profile(tmp_path, caplog):
    path = tmp_path / "profile.json"
    path.write_text(json.dumps({"peak_level": 0.5}), encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="sound_trigger.profile"):
        assert load_profile(path=str(path)) is None
    assert any("malformed" in r.message for r in caplog.records)


def test_from_dict_defaults():
    profile = SoundProfile.from_dict(
        {"peak_level": 0.5, "avg_level": 0.3, "min_trigger_level": 0.4}
    )
    assert profile.sample_count == 0
    assert not profile.trained
    assert profile.frequency_signature == ()


@pytest.mark.parametrize(
    "peak, min_trigger",
    [(0.0, 0.1), (0.5, 0.0), (-0.2, 0.3)],
)
def test_trained_profile_needs_positive_levels(peak, min_trigger):
    with pytest.raises(ValueError):
        SoundProfile(peak_level=peak, avg_level=0.0, min_trigger_level=min_trigger, sample_count=2)


def test_untrained_profile_allows_zero_levels():
    profile = SoundProfile(peak_level=0.0, avg_level=0.0, min_trigger_level=0.0)
    assert not profile.trained


def test_load_rejects_zero_peak_profile(tmp_path, caplog):
    path = tmp_path / "profile.json"
    path.write_text(
        json.dumps(
            {"peak_level": 0, "avg_level": 0, "min_trigger_level": 0.1, "sample_count": 2}
        ),
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING, logger="sound_trigger.profile"):
        assert load_profile(path=str(path)) is None
    assert any("malformed" in r.message for r in caplog.records)
