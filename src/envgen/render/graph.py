# src/envgen/render/graph.py
"""Offline gain graph: buffers, sources, gain nodes and a rendering context."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

import numpy as np

from envgen.core.settings import EnvelopeConfig
from envgen.core.timeline import stage_times
from envgen.envelope import Envelope
from envgen.errors import InvalidStateError

from .automation import AudioParam

__all__ = [
    "AudioBufferData",
    "GainNode",
    "BufferSource",
    "OfflineContext",
    "render_envelope",
]

_LOGGER = logging.getLogger("envgen.render")


class AudioBufferData:
    """Channel-major sample storage, shape (C, N)."""

    def __init__(self, n_channels: int, length: int, sample_rate: float) -> None:
        if n_channels <= 0 or length <= 0:
            raise ValueError("Buffer needs at least one channel and one sample")
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {sample_rate!r}")
        self.sample_rate = float(sample_rate)
        self._data = np.zeros((int(n_channels), int(length)), dtype=np.float64)

    @property
    def n_channels(self) -> int:
        return int(self._data.shape[0])

    @property
    def length(self) -> int:
        return int(self._data.shape[1])

    def get_channel_data(self, channel: int) -> np.ndarray:
        # a view: writes land in the buffer
        return self._data[channel]


class _Node:
    def __init__(self) -> None:
        self._inputs: list[Any] = []

    def add_input(self, node: Any) -> None:
        self._inputs.append(node)

    def connect(self, target: Any) -> Any:
        target.add_input(self)
        return target

    def _mix_inputs(self, times: np.ndarray) -> np.ndarray:
        out = np.zeros(np.shape(times), dtype=np.float64)
        for node in self._inputs:
            out = out + node.render(times)
        return out


class GainNode(_Node):
    def __init__(self, gain: float = 1.0) -> None:
        super().__init__()
        self.gain = AudioParam(gain)

    def render(self, times: np.ndarray) -> np.ndarray:
        return self._mix_inputs(times) * self.gain.render(times)


class BufferSource(_Node):
    """
    Plays channel 0 of a buffer between start and stop.

    A later ``stop`` call replaces an earlier one.
    """

    def __init__(self) -> None:
        super().__init__()
        self.buffer: Optional[AudioBufferData] = None
        self.loop = False
        self.start_time: Optional[float] = None
        self.stop_time: Optional[float] = None

    def start(self, when: float = 0.0) -> None:
        if self.start_time is not None:
            raise InvalidStateError("Buffer source has already been started.")
        self.start_time = float(when)

    def stop(self, when: float = 0.0) -> None:
        self.stop_time = float(when)

    def render(self, times: np.ndarray) -> np.ndarray:
        t = np.asarray(times, dtype=np.float64)
        out = np.zeros(t.shape, dtype=np.float64)
        if self.buffer is None or self.start_time is None:
            return out

        stop = np.inf if self.stop_time is None else self.stop_time
        active = (t >= self.start_time) & (t < stop)
        data = self.buffer.get_channel_data(0)
        idx = np.floor((t[active] - self.start_time) * self.buffer.sample_rate).astype(np.int64)
        if self.loop:
            idx = idx % data.shape[0]
            out[active] = data[idx]
        else:
            valid = idx < data.shape[0]
            played = np.zeros(idx.shape, dtype=np.float64)
            played[valid] = data[idx[valid]]
            out[active] = played
        return out


class OfflineContext:
    """
    Synchronous host for envelopes: builds nodes and renders parameters.

    Parameters
    ----------
    sample_rate : float, default=48000.0
        Rendering rate in Hz; also the rate reported to envelopes.
    """

    def __init__(self, sample_rate: float = 48000.0) -> None:
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {sample_rate!r}")
        self.sample_rate = float(sample_rate)

    def create_gain(self) -> GainNode:
        return GainNode()

    def create_buffer(self, n_channels: int, length: int, sample_rate: float) -> AudioBufferData:
        return AudioBufferData(n_channels, length, sample_rate)

    def create_buffer_source(self) -> BufferSource:
        return BufferSource()

    def create_param(self, value: float = 0.0) -> AudioParam:
        """A free-standing parameter to connect envelopes into."""
        return AudioParam(value)

    def times(self, duration: float) -> np.ndarray:
        n = max(0, int(round(duration * self.sample_rate)))
        return np.arange(n, dtype=np.float64) / self.sample_rate

    def render(self, target: Any, duration: float) -> np.ndarray:
        """Render `target` (param or node) over [0, duration)."""
        return np.asarray(target.render(self.times(duration)), dtype=np.float64)


def render_envelope(
    settings: Union[Mapping[str, Any], EnvelopeConfig, None] = None,
    *,
    start: float = 0.0,
    release: Optional[float] = None,
    duration: Optional[float] = None,
    sample_rate: float = 48000.0,
) -> np.ndarray:
    """
    Render one envelope to a sample array.

    Parameters
    ----------
    settings : mapping or EnvelopeConfig, optional
        Envelope settings (resolved with the context's sample rate).
    start : float, default=0.0
        Start instant in seconds.
    release : float or None
        Release instant; None renders without a release stage.
    duration : float or None
        Rendered length in seconds. Defaults to the instant the source stops
        (after release) or the end of the decay stage (without release).
    sample_rate : float, default=48000.0
        Sampling rate in Hz.

    Returns
    -------
    env : ndarray, shape (N,)
        Parameter values at ``arange(N) / sample_rate``.
    """
    context = OfflineContext(sample_rate)
    envelope = Envelope(context, settings)
    target = context.create_param(0.0)
    envelope.connect(target)
    envelope.start(start)

    if release is not None:
        envelope.release(release)

    if duration is None:
        stop_time = envelope.source.stop_time
        if stop_time is not None:
            duration = stop_time
        elif envelope.config.initial_value_curve is not None:
            duration = start + len(envelope.config.initial_value_curve) / float(
                envelope.config.sample_rate or sample_rate
            )
        else:
            duration = stage_times(envelope.config, start).decay_end

    _LOGGER.debug("Rendering envelope for %.6fs at %.1f Hz", duration, sample_rate)
    return context.render(target, duration)
