import numpy as np
import pytest

from sound_trigger.profile import DEFAULT_PROFILE, SoundProfile
from sound_trigger.similarity import compute_similarity, cosine_similarity


def _trained(signature=(), peak=0.9, min_level=0.5):
    return SoundProfile(
        peak_level=peak,
        avg_level=0.5,
        min_trigger_level=min_level,
        frequency_signature=tuple(signature),
        sample_count=3,
    )


def test_cosine_identical_vectors():
    v = [0.2, 0.9, 0.4]
    assert cosine_similarity(v, v) == pytest.approx(1.0)


def test_cosine_scale_invariant_and_symmetric():
    a = np.array([1.0, 0.5, 0.0, 0.25])
    b = a * 0.3
    assert cosine_similarity(a, b) == pytest.approx(1.0)
    c = np.array([0.1, 0.7, 0.3, 0.0])
    assert cosine_similarity(a, c) == pytest.approx(cosine_similarity(c, a))


def test_cosine_zero_vector():
    assert cosine_similarity([0, 0, 0], [1, 2, 3]) == 0.0
    assert cosine_similarity([1, 2, 3], [0, 0, 0]) == 0.0


def test_cosine_bounded_for_non_negative():
    rng = np.random.default_rng(0)
    for _ in range(50):
        a = rng.random(8)
        b = rng.random(8)
        assert 0.0 <= cosine_similarity(a, b) <= 1.0 + 1e-12


def test_cosine_uses_common_prefix():
    assert cosine_similarity([1, 0, 5], [1, 0]) == pytest.approx(1.0)


def test_untrained_is_level_gate():
    assert compute_similarity(0.4, [0.0] * 4, DEFAULT_PROFILE) == 1.0
    assert compute_similarity(0.39, [1.0] * 4, DEFAULT_PROFILE) == 0.0


def test_trained_rejects_quiet_frames():
    # floor is 0.7 * 0.5 = 0.35
    assert compute_similarity(0.34, [1.0] * 4, _trained()) == 0.0


def test_trained_without_signature_ignores_spectrum():
    score = compute_similarity(0.45, [0.3, 0.1], _trained())
    assert score == pytest.approx(0.6 * 0.5 + 0.4)


def test_trained_blends_level_and_spectrum():
    profile = _trained(signature=[1.0, 0.0])
    # orthogonal spectrum, level above peak
    assert compute_similarity(1.0, [0.0, 1.0], profile) == pytest.approx(0.6)
    # matching spectrum
    assert compute_similarity(0.9, [0.8, 0.0], profile) == pytest.approx(1.0)


def test_trained_with_empty_frame_vector():
    profile = _trained(signature=[1.0, 0.5])
    assert compute_similarity(0.9, [], profile) == pytest.approx(1.0)
