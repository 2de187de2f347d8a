# tests/conftest.py
from __future__ import annotations

import pytest


class RecordingParam:
    """Automation consumer that records every call as (method, args)."""

    def __init__(self, value: float = 1.0) -> None:
        self.value = value
        self.calls: list[tuple] = []

    def set_value_at_time(self, value, time):
        self.calls.append(("set_value_at_time", value, time))

    def linear_ramp_to_value_at_time(self, value, time):
        self.calls.append(("linear_ramp_to_value_at_time", value, time))

    def exponential_ramp_to_value_at_time(self, value, time):
        self.calls.append(("exponential_ramp_to_value_at_time", value, time))

    def set_value_curve_at_time(self, values, time, duration):
        self.calls.append(("set_value_curve_at_time", tuple(values), time, duration))

    def called_with(self, method, *args) -> bool:
        for call in self.calls:
            if call[0] != method or len(call) - 1 != len(args):
                continue
            if all(a == pytest.approx(b) for a, b in zip(call[1:], args)):
                return True
        return False


class RecordingGain:
    def __init__(self) -> None:
        self.gain = RecordingParam(1.0)
        self.connections: list = []

    def connect(self, target):
        self.connections.append(target)
        return target


class RecordingBuffer:
    def __init__(self, n_channels, length, sample_rate) -> None:
        self.sample_rate = sample_rate
        self.channels = [[0.0] * length for _ in range(n_channels)]

    def get_channel_data(self, channel):
        return self.channels[channel]


class RecordingSource:
    def __init__(self) -> None:
        self.buffer = None
        self.loop = False
        self.connections: list = []
        self.starts: list[float] = []
        self.stops: list[float] = []

    def connect(self, target):
        self.connections.append(target)
        return target

    def start(self, when):
        self.starts.append(when)

    def stop(self, when):
        self.stops.append(when)


class RecordingContext:
    def __init__(self, sample_rate: float = 44100.0) -> None:
        self.sample_rate = sample_rate
        self.gains: list[RecordingGain] = []

    def create_gain(self):
        node = RecordingGain()
        self.gains.append(node)
        return node

    def create_buffer(self, n_channels, length, sample_rate):
        return RecordingBuffer(n_channels, length, sample_rate)

    def create_buffer_source(self):
        return RecordingSource()


@pytest.fixture
def recording_context() -> RecordingContext:
    return RecordingContext()


@pytest.fixture
def recording_param() -> RecordingParam:
    return RecordingParam()


@pytest.fixture
def stage_settings() -> dict:
    return {
        "curve": "linear",
        "delay_time": 0.1,
        "attack_time": 0.2,
        "hold_time": 0.3,
        "decay_time": 0.4,
        "start_level": 0.5,
        "sustain_level": 0.7,
    }
