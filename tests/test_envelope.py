"""
Tests for the envgen.envelope controller against a recording host.
"""

import pytest

from envgen.core.curves import CurveKind
from envgen.envelope import Envelope, EnvelopeState
from envgen.errors import AlreadyStartedError, InvalidStateError


# ---------------------------------------------------------------------
# Construction / graph wiring
# ---------------------------------------------------------------------

def test_holds_on_to_context_and_resolves_settings(recording_context):
    settings = {"curve": "exponential"}
    env = Envelope(recording_context, settings)
    assert env.context is recording_context
    assert env.config.curve is CurveKind.EXPONENTIAL
    assert env.config.sample_rate == recording_context.sample_rate
    # caller's record is left alone
    assert settings == {"curve": "exponential"}
    assert env.state is EnvelopeState.IDLE
    assert env.released_at is None


def test_creates_looping_source_of_ones(recording_context):
    env = Envelope(recording_context, {})
    assert env.source.loop is True
    assert env.source.buffer.get_channel_data(0) == [1.0, 1.0]


def test_settings_and_ones_buffer_share_the_context_rate(recording_context):
    recording_context.sample_rate = 22050.0
    env = Envelope(recording_context, {})
    assert env.config.sample_rate == 22050.0
    assert env.source.buffer.sample_rate == 22050.0


def test_wires_four_gain_stages(recording_context):
    env = Envelope(recording_context, {})
    assert env.source.connections == [env.attack_decay_node, env.output_node]
    assert env.attack_decay_node.connections == [env.release_node]
    assert env.release_node.connections == [env.amp_node]
    assert env.amp_node.connections == [env.output_node.gain]


def test_output_and_amp_gains_carry_levels(recording_context):
    env = Envelope(recording_context, {"start_level": 12, "max_level": 15})
    assert env.output_node.gain.value == 12
    assert env.amp_node.gain.value == 3


def test_connect_routes_output(recording_context):
    env = Envelope(recording_context, {})
    target = object()
    env.connect(target)
    assert env.output_node.connections == [target]


# ---------------------------------------------------------------------
# start
# ---------------------------------------------------------------------

def test_start_schedules_linear_stages(recording_context, stage_settings):
    env = Envelope(recording_context, stage_settings)
    env.start(0.6)
    gain = env.attack_decay_node.gain

    assert gain.called_with("set_value_at_time", 0.0, 0.6)
    assert gain.called_with("set_value_at_time", 0.0, 0.7)
    assert gain.called_with("linear_ramp_to_value_at_time", 1.0, 0.9)
    assert gain.called_with("set_value_at_time", 1.0, 1.2)
    assert gain.called_with("linear_ramp_to_value_at_time", 0.7, 1.6)
    assert env.source.starts == [0.6]
    assert env.state is EnvelopeState.STARTED


def test_start_exponential_uses_floor(recording_context, stage_settings):
    env = Envelope(recording_context, dict(stage_settings, curve="exponential"))
    env.start(0.6)
    gain = env.attack_decay_node.gain
    assert gain.called_with("set_value_at_time", 0.001, 0.6)
    assert gain.called_with("set_value_at_time", 0.001, 0.7)
    assert gain.called_with("exponential_ramp_to_value_at_time", 1.0, 0.9)


def test_attack_curve_override(recording_context, stage_settings):
    env = Envelope(recording_context, dict(stage_settings, attack_curve="exponential"))
    env.start(0.6)
    gain = env.attack_decay_node.gain
    assert gain.called_with("exponential_ramp_to_value_at_time", 1.0, 0.9)
    assert gain.called_with("linear_ramp_to_value_at_time", 0.7, 1.6)


def test_decay_curve_override(recording_context, stage_settings):
    env = Envelope(recording_context, dict(stage_settings, decay_curve="exponential"))
    env.start(0.6)
    assert env.attack_decay_node.gain.called_with("exponential_ramp_to_value_at_time", 0.7, 1.6)


def test_double_start_fails(recording_context):
    env = Envelope(recording_context, {})
    env.start(0.0)
    with pytest.raises(AlreadyStartedError, match="already been started"):
        env.start(1.0)
    assert env.source.starts == [0.0]


def test_start_with_initial_value_curve(recording_context):
    env = Envelope(recording_context, {"initial_value_curve": [0.0, 1.0, 0.5], "sample_rate": 3})
    env.start(2.0)
    assert env.attack_decay_node.gain.calls == [
        ("set_value_curve_at_time", (0.0, 1.0, 0.5), 2.0, 1.0)
    ]


# ---------------------------------------------------------------------
# release / stop
# ---------------------------------------------------------------------

def test_release_linear(recording_context):
    env = Envelope(recording_context, {"curve": "linear", "start_level": 0.5, "release_time": 0.8})
    env.start(0.0)
    env.release(0.9)
    gain = env.release_node.gain

    assert gain.called_with("set_value_at_time", 1.0, 0.9)
    assert gain.called_with("linear_ramp_to_value_at_time", 0.0, 1.7)
    assert env.source.stops == [pytest.approx(1.7)]
    assert env.released_at == 0.9
    assert env.state is EnvelopeState.RELEASED


def test_release_exponential(recording_context):
    env = Envelope(recording_context, {"curve": "exponential", "start_level": 0.5, "release_time": 0.8})
    env.start(0.0)
    env.release(0.9)
    assert env.release_node.gain.called_with("exponential_ramp_to_value_at_time", 0.001, 1.7)


def test_release_value_curve_stops_source_after_curve(recording_context):
    env = Envelope(
        recording_context,
        {"release_value_curve": [1.0, 0.5, 0.0, 0.0], "release_time": 0.1, "sample_rate": 2},
    )
    env.start(0.0)
    env.release(1.0)
    assert env.source.stops == [pytest.approx(3.0)]
    # completion time reports the configured release time
    assert env.get_release_complete_time() == pytest.approx(1.1)


def test_release_before_start_fails(recording_context):
    env = Envelope(recording_context, {})
    with pytest.raises(InvalidStateError):
        env.release(1.0)
    assert env.released_at is None
    assert env.release_node.gain.calls == []


def test_second_release_fails_without_scheduling(recording_context):
    env = Envelope(recording_context, {"release_time": 1.0})
    env.start(0.0)
    env.release(2.0)
    calls = list(env.release_node.gain.calls)
    with pytest.raises(InvalidStateError, match="already been called"):
        env.release(5.0)
    assert env.released_at == 2.0
    assert env.release_node.gain.calls == calls


def test_stop_stops_source_without_release(recording_context):
    env = Envelope(recording_context, {})
    env.stop(0.9)
    assert env.source.stops == [0.9]
    assert env.release_node.gain.calls == []


# ---------------------------------------------------------------------
# get_release_complete_time
# ---------------------------------------------------------------------

def test_release_complete_time(recording_context):
    env = Envelope(recording_context, {"release_time": 3})
    env.start(0.0)
    env.release(1)
    assert env.get_release_complete_time() == 4


def test_release_complete_time_before_release_fails(recording_context):
    env = Envelope(recording_context, {"release_time": 3})
    with pytest.raises(InvalidStateError, match="Release has not been called"):
        env.get_release_complete_time()
    env.start(0.0)
    with pytest.raises(InvalidStateError, match="Release has not been called"):
        env.get_release_complete_time()
