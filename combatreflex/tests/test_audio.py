import numpy as np
import pytest

from combatreflex.core.audio import (
    CUES,
    SAMPLE_RATE,
    CueSounds,
    Tone,
    render_cue,
    render_tone,
    to_wav_bytes,
)


def test_every_cue_has_a_player():
    for name in CUES:
        assert callable(getattr(CueSounds, f"play_{name}"))


@pytest.mark.parametrize("name", sorted(CUES))
def test_cue_renders_in_range(name):
    samples = render_cue(CUES[name])
    assert samples.dtype == np.float32
    assert samples.ndim == 1
    assert np.abs(samples).max() <= 1.0
    assert np.abs(samples).max() > 0.05


def test_tone_length_and_envelope():
    t = Tone("sine", 440, 0.1, 0.01, 0.09)
    s = render_tone(t)
    assert len(s) == int(round(0.1 * SAMPLE_RATE))
    # starts and ends silent
    assert abs(s[0]) < 1e-6
    assert np.abs(s[-20:]).max() < 0.01


def test_cue_offsets_extend_length():
    tones = CUES["warning"]
    last = tones[-1]
    samples = render_cue(tones)
    assert len(samples) == int(round((last.start + last.duration) * SAMPLE_RATE)) + 1


def test_wav_bytes():
    data = to_wav_bytes(render_cue(CUES["kick"]))
    assert data[:4] == b"RIFF"
    assert data[8:12] == b"WAVE"


def test_play_is_noop_until_ready():
    sounds = CueSounds()
    assert not sounds.ready
    for name in CUES:
        getattr(sounds, f"play_{name}")()


def test_init_failure_stays_silent(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")
    sounds = CueSounds(cache_dir=blocker)
    assert sounds.init() is False
    assert not sounds.ready
    sounds.play_punch()
