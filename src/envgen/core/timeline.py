# src/envgen/core/timeline.py
"""Stage-boundary arithmetic and automation-event schedules."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from envgen.errors import MissingSampleRateError

from .curves import CurveKind, Stage, ramp_kind_for
from .settings import EXPONENTIAL_FLOOR, EnvelopeConfig

__all__ = [
    "EventKind",
    "EnvelopeEvent",
    "StageTimes",
    "stage_times",
    "build_attack_decay",
    "build_release",
    "apply_events",
]

_LOGGER = logging.getLogger("envgen.timeline")


class EventKind(str, Enum):
    SET_VALUE = "set-value"
    RAMP_TO = "ramp-to"
    SET_VALUE_CURVE = "set-value-curve"


@dataclass(frozen=True)
class EnvelopeEvent:
    """
    One automation instruction.

    Attributes
    ----------
    time : float
        Absolute instant (seconds, host clock).
    kind : EventKind
        SET_VALUE pins `value` at `time`; RAMP_TO arrives at `value` at
        `time` following `curve`; SET_VALUE_CURVE plays `samples` over
        `duration` starting at `time`.
    """
    time: float
    kind: EventKind
    value: float = 0.0
    curve: Optional[CurveKind] = None
    samples: Optional[Tuple[float, ...]] = None
    duration: Optional[float] = None

    @classmethod
    def set_value(cls, value: float, time: float) -> "EnvelopeEvent":
        return cls(time=float(time), kind=EventKind.SET_VALUE, value=float(value))

    @classmethod
    def ramp_to(cls, value: float, time: float, curve: CurveKind) -> "EnvelopeEvent":
        return cls(
            time=float(time),
            kind=EventKind.RAMP_TO,
            value=float(value),
            curve=CurveKind(curve),
        )

    @classmethod
    def value_curve(
        cls,
        samples: Sequence[float],
        time: float,
        duration: float,
    ) -> "EnvelopeEvent":
        samples = tuple(float(s) for s in samples)
        return cls(
            time=float(time),
            kind=EventKind.SET_VALUE_CURVE,
            value=samples[-1] if samples else 0.0,
            samples=samples,
            duration=float(duration),
        )

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"time": self.time, "kind": self.kind.value}
        if self.kind is EventKind.SET_VALUE_CURVE:
            out["samples"] = list(self.samples or ())
            out["duration"] = self.duration
        else:
            out["value"] = self.value
        if self.curve is not None:
            out["curve"] = self.curve.value
        return out


class StageTimes(NamedTuple):
    attack_start: float
    attack_end: float
    decay_start: float
    decay_end: float


def stage_times(config: EnvelopeConfig, start: float) -> StageTimes:
    """Absolute stage boundaries for an envelope started at `start`."""
    attack_start = start + config.delay_time
    attack_end = attack_start + config.attack_time
    decay_start = attack_end + config.hold_time
    decay_end = decay_start + config.decay_time
    return StageTimes(attack_start, attack_end, decay_start, decay_end)


def _curve_duration(samples: Sequence[float], sample_rate: Optional[float]) -> float:
    if not sample_rate or sample_rate <= 0:
        raise MissingSampleRateError(
            "A sample_rate is required to schedule an explicit value curve."
        )
    return len(samples) / float(sample_rate)


def _floor_for(kind: CurveKind) -> float:
    # exponential ramps cannot leave or reach exactly 0
    return EXPONENTIAL_FLOOR if kind is CurveKind.EXPONENTIAL else 0.0


def build_attack_decay(config: EnvelopeConfig, start: float) -> List[EnvelopeEvent]:
    """
    Schedule delay, attack, hold and decay on a normalized 0..1 scale.

    Returns a single SET_VALUE_CURVE event when the config carries an
    `initial_value_curve`, otherwise five time-ordered events:
    floor at `start`, floor at attack start, ramp to 1 at attack end,
    1 at decay start, ramp to `sustain_level` at decay end.
    """
    if config.initial_value_curve is not None:
        duration = _curve_duration(config.initial_value_curve, config.sample_rate)
        events = [EnvelopeEvent.value_curve(config.initial_value_curve, start, duration)]
        _LOGGER.debug("Initial value curve at t=%.6f for %.6fs", start, duration)
        return events

    attack_kind = ramp_kind_for(config, Stage.ATTACK)
    decay_kind = ramp_kind_for(config, Stage.DECAY)
    times = stage_times(config, start)
    floor = _floor_for(attack_kind)

    events = [
        EnvelopeEvent.set_value(floor, start),
        # second anchor holds the floor flat through the delay
        EnvelopeEvent.set_value(floor, times.attack_start),
        EnvelopeEvent.ramp_to(1.0, times.attack_end, attack_kind),
        # re-anchor the peak so the hold stays flat
        EnvelopeEvent.set_value(1.0, times.decay_start),
        EnvelopeEvent.ramp_to(config.sustain_level, times.decay_end, decay_kind),
    ]
    _LOGGER.debug(
        "Attack/decay scheduled from t=%.6f: attack %s, decay %s, sustain at t=%.6f",
        start,
        attack_kind.value,
        decay_kind.value,
        times.decay_end,
    )
    return events


def build_release(
    config: EnvelopeConfig,
    release: float,
) -> Tuple[List[EnvelopeEvent], float]:
    """
    Schedule the release stage on a normalized 0..1 scale.

    Returns
    -------
    events : list of EnvelopeEvent
        Either one SET_VALUE_CURVE event (when `release_value_curve` is set)
        or full scale at `release` followed by a ramp to the release floor.
    release_time : float
        Effective release duration. A release value curve determines it from
        its own length; otherwise it is the configured `release_time`.
    """
    if config.release_value_curve is not None:
        duration = _curve_duration(config.release_value_curve, config.sample_rate)
        events = [EnvelopeEvent.value_curve(config.release_value_curve, release, duration)]
        _LOGGER.debug("Release value curve at t=%.6f for %.6fs", release, duration)
        return events, duration

    release_kind = ramp_kind_for(config, Stage.RELEASE)
    release_time = config.release_time
    events = [
        EnvelopeEvent.set_value(1.0, release),
        EnvelopeEvent.ramp_to(_floor_for(release_kind), release + release_time, release_kind),
    ]
    _LOGGER.debug(
        "Release scheduled at t=%.6f: %s over %.6fs",
        release,
        release_kind.value,
        release_time,
    )
    return events, release_time


def apply_events(param: Any, events: Sequence[EnvelopeEvent]) -> None:
    """
    Hand `events` to an automation consumer.

    `param` must provide ``set_value_at_time``, ``linear_ramp_to_value_at_time``,
    ``exponential_ramp_to_value_at_time`` and ``set_value_curve_at_time``.
    """
    for event in events:
        if event.kind is EventKind.SET_VALUE:
            param.set_value_at_time(event.value, event.time)
        elif event.kind is EventKind.RAMP_TO:
            if event.curve is CurveKind.EXPONENTIAL:
                param.exponential_ramp_to_value_at_time(event.value, event.time)
            else:
                param.linear_ramp_to_value_at_time(event.value, event.time)
        elif event.kind is EventKind.SET_VALUE_CURVE:
            param.set_value_curve_at_time(list(event.samples or ()), event.time, event.duration)
        else:
            raise ValueError(f"Unknown event kind: {event.kind!r}")
