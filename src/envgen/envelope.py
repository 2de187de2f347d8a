# src/envgen/envelope.py
"""
DAHDSR envelope controller wired against a host audio context.

The host supplies gain nodes, buffers and buffer sources (see the protocols
below). The envelope routes a constant signal of ones through

    source -> attack_decay -> release -> amp -> output.gain
    source -> output

so the parameter connected to ``output`` receives
``start_level + (max_level - start_level) * attack_decay * release``.
Attack/decay and release are scheduled on a normalized 0..1 scale; the amp
and output gains carry the absolute levels.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, Union

from envgen.core.settings import EnvelopeConfig, resolve_settings
from envgen.core.timeline import apply_events, build_attack_decay, build_release
from envgen.errors import AlreadyStartedError, InvalidStateError

__all__ = [
    "AutomationParam",
    "AudioNode",
    "GainNode",
    "AudioBuffer",
    "BufferSource",
    "AudioContext",
    "EnvelopeState",
    "Envelope",
]

_LOGGER = logging.getLogger("envgen.envelope")


# ---------------------------------------------------------------------
# Host protocols
# ---------------------------------------------------------------------

class AutomationParam(Protocol):
    value: float

    def set_value_at_time(self, value: float, time: float) -> Any: ...

    def linear_ramp_to_value_at_time(self, value: float, time: float) -> Any: ...

    def exponential_ramp_to_value_at_time(self, value: float, time: float) -> Any: ...

    def set_value_curve_at_time(self, values: Any, time: float, duration: float) -> Any: ...


class AudioNode(Protocol):
    def connect(self, target: Any) -> Any: ...


class GainNode(AudioNode, Protocol):
    gain: AutomationParam


class AudioBuffer(Protocol):
    def get_channel_data(self, channel: int) -> Any: ...


class BufferSource(AudioNode, Protocol):
    buffer: Any
    loop: bool

    def start(self, when: float) -> Any: ...

    def stop(self, when: float) -> Any: ...


class AudioContext(Protocol):
    sample_rate: float

    def create_gain(self) -> GainNode: ...

    def create_buffer(self, n_channels: int, length: int, sample_rate: float) -> AudioBuffer: ...

    def create_buffer_source(self) -> BufferSource: ...


# ---------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------

class EnvelopeState(Enum):
    IDLE = "idle"
    STARTED = "started"
    RELEASED = "released"


class Envelope:
    """
    One envelope instance attached to a host context.

    Parameters
    ----------
    context : AudioContext
        Host providing gain nodes and buffer sources. Its `sample_rate`
        converts value-curve lengths to durations when the settings lack one.
    settings : mapping or EnvelopeConfig, optional
        Partial settings, resolved once with :func:`resolve_settings`.
    """

    def __init__(
        self,
        context: AudioContext,
        settings: Union[Mapping[str, Any], EnvelopeConfig, None] = None,
    ) -> None:
        self.context = context
        self.config = resolve_settings(
            settings,
            sample_rate=context.sample_rate,
        )
        self.state = EnvelopeState.IDLE
        self.released_at: Optional[float] = None

        self.source = self._get_ones_buffer_source()
        self.attack_decay_node = context.create_gain()
        self.release_node = context.create_gain()
        self.amp_node = context.create_gain()
        self.output_node = context.create_gain()

        self.output_node.gain.value = self.config.start_level
        self.amp_node.gain.value = self.config.max_level - self.config.start_level

        self.source.connect(self.attack_decay_node)
        self.source.connect(self.output_node)
        self.attack_decay_node.connect(self.release_node)
        self.release_node.connect(self.amp_node)
        self.amp_node.connect(self.output_node.gain)

    def _get_ones_buffer_source(self) -> BufferSource:
        """Looping source pegged at 1 that drives the gain chain."""
        context = self.context
        buffer = context.create_buffer(1, 2, context.sample_rate)
        data = buffer.get_channel_data(0)
        data[0] = 1.0
        data[1] = 1.0

        source = context.create_buffer_source()
        source.buffer = buffer
        source.loop = True
        return source

    def connect(self, target: Any) -> None:
        """Route the envelope output to `target` (usually a parameter)."""
        self.output_node.connect(target)

    def start(self, when: float) -> None:
        """Schedule delay, attack, hold, decay and sustain from `when`."""
        if self.state is not EnvelopeState.IDLE:
            raise AlreadyStartedError("Envelope has already been started.")

        events = build_attack_decay(self.config, when)
        apply_events(self.attack_decay_node.gain, events)
        self.source.start(when)
        self.state = EnvelopeState.STARTED
        _LOGGER.debug("Envelope started at t=%.6f", when)

    def release(self, when: float) -> None:
        """Schedule the release stage from `when` and stop the source after it."""
        if self.state is EnvelopeState.IDLE:
            raise InvalidStateError("Envelope has not been started.")
        if self.released_at is not None:
            raise InvalidStateError("Release has already been called.")

        events, release_time = build_release(self.config, when)
        self.released_at = when
        apply_events(self.release_node.gain, events)
        self.source.stop(when + release_time)
        self.state = EnvelopeState.RELEASED
        _LOGGER.debug(
            "Envelope released at t=%.6f, source stops at t=%.6f",
            when,
            when + release_time,
        )

    def stop(self, when: float) -> None:
        """Stop the source at `when`, skipping release shaping."""
        self.source.stop(when)
        _LOGGER.debug("Envelope source stopped at t=%.6f", when)

    def get_release_complete_time(self) -> float:
        """
        Instant at which the release finishes, so a caller can stop its voice.

        Uses the configured `release_time`, also when a release value curve
        determined the actual release length.
        """
        if self.released_at is None:
            raise InvalidStateError("Release has not been called.")
        return self.released_at + self.config.release_time
