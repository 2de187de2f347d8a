"""
Tests for envgen.render: automation evaluation and offline envelope rendering.
"""

import numpy as np
import pytest

from envgen.core.curves import CurveKind
from envgen.core.timeline import EnvelopeEvent
from envgen.errors import InvalidStateError
from envgen.render import (
    AudioParam,
    BufferSource,
    GainNode,
    OfflineContext,
    render_automation,
    render_envelope,
)


def _at(env: np.ndarray, sr: float, t: float) -> float:
    return float(env[int(round(t * sr))])


# ---------------------------------------------------------------------
# Automation timeline
# ---------------------------------------------------------------------

def test_default_value_before_first_event():
    times = np.array([0.0, 0.5, 1.0, 1.5])
    events = [EnvelopeEvent.set_value(2.0, 1.0)]
    out = render_automation(events, 0.25, times)
    np.testing.assert_allclose(out, [0.25, 0.25, 2.0, 2.0])


def test_linear_ramp_runs_from_previous_event():
    times = np.array([0.0, 1.0, 1.5, 2.0, 3.0])
    events = [
        EnvelopeEvent.set_value(0.0, 1.0),
        EnvelopeEvent.ramp_to(1.0, 2.0, CurveKind.LINEAR),
    ]
    out = render_automation(events, 0.0, times)
    np.testing.assert_allclose(out, [0.0, 0.0, 0.5, 1.0, 1.0])


def test_exponential_ramp_is_geometric():
    times = np.array([0.0, 0.5, 1.0])
    events = [
        EnvelopeEvent.set_value(0.01, 0.0),
        EnvelopeEvent.ramp_to(1.0, 1.0, CurveKind.EXPONENTIAL),
    ]
    out = render_automation(events, 0.0, times)
    np.testing.assert_allclose(out, [0.01, 0.1, 1.0])


def test_exponential_ramp_from_zero_holds_previous_value():
    times = np.array([0.0, 0.5, 1.0])
    events = [
        EnvelopeEvent.set_value(0.0, 0.0),
        EnvelopeEvent.ramp_to(1.0, 1.0, CurveKind.EXPONENTIAL),
    ]
    out = render_automation(events, 0.0, times)
    np.testing.assert_allclose(out, [0.0, 0.0, 1.0])


def test_value_curve_interpolates_then_holds():
    times = np.array([0.0, 0.25, 0.5, 1.0, 2.0])
    events = [EnvelopeEvent.value_curve([0.0, 1.0, 0.0], 0.0, 1.0)]
    out = render_automation(events, 0.5, times)
    np.testing.assert_allclose(out, [0.0, 0.5, 1.0, 0.0, 0.0])


def test_ramp_after_value_curve_starts_at_curve_end():
    times = np.array([1.0, 1.5, 2.0])
    events = [
        EnvelopeEvent.value_curve([0.0, 1.0], 0.0, 1.0),
        EnvelopeEvent.ramp_to(0.0, 2.0, CurveKind.LINEAR),
    ]
    out = render_automation(events, 0.0, times)
    np.testing.assert_allclose(out, [1.0, 0.5, 0.0])


def test_audio_param_validates_calls():
    param = AudioParam(1.0)
    with pytest.raises(ValueError):
        param.exponential_ramp_to_value_at_time(0.0, 1.0)
    with pytest.raises(ValueError):
        param.set_value_at_time(1.0, -0.5)
    with pytest.raises(ValueError):
        param.set_value_curve_at_time([], 0.0, 1.0)
    with pytest.raises(ValueError):
        param.set_value_curve_at_time([0.0, 1.0], 0.0, 0.0)
    assert param.events == []


def test_audio_param_sums_inputs():
    ctx = OfflineContext(sample_rate=4)
    param = ctx.create_param(0.5)
    source = ctx.create_buffer_source()
    buf = ctx.create_buffer(1, 1, 4)
    buf.get_channel_data(0)[0] = 1.0
    source.buffer = buf
    source.loop = True
    gain = ctx.create_gain()
    gain.gain.value = 2.0
    source.connect(gain)
    gain.connect(param)
    source.start(0.5)

    np.testing.assert_allclose(ctx.render(param, 1.0), [0.5, 0.5, 2.5, 2.5])


# ---------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------

def test_buffer_source_plays_once_without_loop():
    ctx = OfflineContext(sample_rate=4)
    source = ctx.create_buffer_source()
    buf = ctx.create_buffer(1, 2, 4)
    buf.get_channel_data(0)[:] = [0.25, 0.75]
    source.buffer = buf
    source.start(0.25)

    out = source.render(ctx.times(1.5))
    np.testing.assert_allclose(out, [0.0, 0.25, 0.75, 0.0, 0.0, 0.0])


def test_buffer_source_stop_and_double_start():
    source = BufferSource()
    source.start(0.0)
    with pytest.raises(InvalidStateError):
        source.start(1.0)
    source.stop(2.0)
    source.stop(1.0)
    assert source.stop_time == 1.0


def test_gain_without_inputs_is_silent():
    node = GainNode(3.0)
    np.testing.assert_allclose(node.render(np.array([0.0, 1.0])), [0.0, 0.0])


# ---------------------------------------------------------------------
# Full envelope
# ---------------------------------------------------------------------

def test_render_linear_envelope_levels(stage_settings):
    sr = 1000.0
    env = render_envelope(
        dict(stage_settings, release_time=0.5),
        start=0.6,
        release=2.0,
        sample_rate=sr,
    )
    assert env.shape == (2500,)
    assert _at(env, sr, 0.1) == 0.0  # source not started yet
    assert _at(env, sr, 0.65) == pytest.approx(0.5)  # held at start level through delay
    assert _at(env, sr, 0.8) == pytest.approx(0.75)  # half way up the attack
    assert _at(env, sr, 1.0) == pytest.approx(1.0)  # hold at peak
    assert _at(env, sr, 1.4) == pytest.approx(0.925)  # half way down the decay
    assert _at(env, sr, 1.8) == pytest.approx(0.85)  # sustain
    assert _at(env, sr, 2.25) == pytest.approx(0.675)  # half way through release


def test_render_exponential_attack_is_geometric():
    sr = 1000.0
    env = render_envelope(
        {"curve": "exponential", "attack_time": 1.0, "decay_time": 0.5, "sustain_level": 0.5},
        start=0.0,
        duration=3.0,
        sample_rate=sr,
    )
    # start level resolved to 0.001, attack from 0.001 to 1 on the normalized stage
    expected_mid = 0.001 + 0.999 * 0.001 * (1000.0 ** 0.5)
    assert _at(env, sr, 0.0) == pytest.approx(0.001 + 0.999 * 0.001)
    assert _at(env, sr, 0.5) == pytest.approx(expected_mid)
    assert _at(env, sr, 2.0) == pytest.approx(0.001 + 0.999 * 0.5)


@pytest.mark.parametrize(
    "settings",
    [
        {"curve": "exponential"},
        {"curve": "exponential", "max_level": 0, "start_level": -3},
        {"curve": "exponential", "sustain_level": 0, "release_time": 0.2},
        {"attack_curve": "exponential", "decay_curve": "exponential", "release_curve": "exponential"},
    ],
)
def test_exponential_settings_never_target_zero(settings):
    env = render_envelope(settings, start=0.1, release=0.5, sample_rate=200.0)
    assert np.all(np.isfinite(env))


def test_render_initial_value_curve():
    env = render_envelope({"initial_value_curve": [0.0, 1.0], "sample_rate": 4}, sample_rate=100.0)
    assert env.shape == (50,)
    assert _at(env, 100.0, 0.25) == pytest.approx(0.5)


def test_render_release_value_curve_until_source_stops():
    env = render_envelope(
        {"release_value_curve": [1.0, 0.0], "sample_rate": 10, "attack_time": 0.1},
        start=0.0,
        release=1.0,
        sample_rate=100.0,
    )
    # curve of 2 samples at 10 Hz lasts 0.2s after release
    assert env.shape == (120,)
    assert _at(env, 100.0, 1.1) == pytest.approx(0.5)
