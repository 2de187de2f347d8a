# src/envgen/render/automation.py
"""Offline automation parameter: records events and renders them with numpy."""
from __future__ import annotations

from typing import Any, List, Sequence

import numpy as np

from envgen.core.curves import CurveKind
from envgen.core.timeline import EnvelopeEvent, EventKind

__all__ = ["AudioParam", "render_automation"]


def _ramp_segment(
    t: np.ndarray,
    t0: float,
    v0: float,
    t1: float,
    v1: float,
    curve: CurveKind,
) -> np.ndarray:
    frac = (t - t0) / (t1 - t0)
    if curve is CurveKind.EXPONENTIAL:
        if v0 == 0.0 or v0 * v1 <= 0.0:
            # undefined law: hold the previous value until the ramp ends
            return np.full(t.shape, v0, dtype=np.float64)
        return v0 * np.power(v1 / v0, frac)
    return v0 + (v1 - v0) * frac


def _curve_segment(
    t: np.ndarray,
    start: float,
    duration: float,
    samples: Sequence[float],
) -> np.ndarray:
    values = np.asarray(samples, dtype=np.float64)
    n = values.shape[0]
    if n == 1 or duration <= 0.0:
        return np.full(t.shape, values[-1], dtype=np.float64)
    pos = (t - start) * (n - 1) / duration
    idx = np.clip(np.floor(pos).astype(np.int64), 0, n - 2)
    frac = pos - idx
    return values[idx] + (values[idx + 1] - values[idx]) * frac


def render_automation(
    events: Sequence[EnvelopeEvent],
    default: float,
    times: np.ndarray,
) -> np.ndarray:
    """
    Evaluate an automation timeline at `times`.

    Semantics follow the Web Audio AudioParam model:
    - before the first event the parameter holds `default`;
    - a SET_VALUE event holds its value until the next event;
    - a RAMP_TO event runs from the previous event's value and time to its
      own value and time, then holds;
    - a SET_VALUE_CURVE event interpolates its samples linearly over its
      duration, then holds the last sample.

    Events sharing an instant keep their insertion order.
    """
    t = np.asarray(times, dtype=np.float64)
    out = np.full(t.shape, float(default), dtype=np.float64)

    ordered = sorted(events, key=lambda e: e.time)
    prev_time = 0.0
    prev_value = float(default)

    for i, event in enumerate(ordered):
        next_time = ordered[i + 1].time if i + 1 < len(ordered) else np.inf

        if event.kind is EventKind.RAMP_TO:
            if event.time > prev_time:
                mask = (t >= prev_time) & (t < event.time)
                out[mask] = _ramp_segment(
                    t[mask],
                    prev_time,
                    prev_value,
                    event.time,
                    event.value,
                    event.curve or CurveKind.LINEAR,
                )
            hold = (t >= event.time) & (t < next_time)
            out[hold] = event.value
            prev_time, prev_value = event.time, event.value

        elif event.kind is EventKind.SET_VALUE:
            hold = (t >= event.time) & (t < next_time)
            out[hold] = event.value
            prev_time, prev_value = event.time, event.value

        elif event.kind is EventKind.SET_VALUE_CURVE:
            samples = event.samples or (event.value,)
            duration = float(event.duration or 0.0)
            end = event.time + duration
            mask = (t >= event.time) & (t < min(end, next_time))
            out[mask] = _curve_segment(t[mask], event.time, duration, samples)
            hold = (t >= end) & (t < next_time)
            out[hold] = samples[-1]
            prev_time, prev_value = end, float(samples[-1])

        else:
            raise ValueError(f"Unknown event kind: {event.kind!r}")

    return out


class AudioParam:
    """
    Automatable parameter with an intrinsic value and audio-rate inputs.

    The rendered value is the automation timeline (starting from `value`)
    plus the sum of every node connected to the parameter.
    """

    def __init__(self, value: float = 0.0) -> None:
        self.value = float(value)
        self._events: List[EnvelopeEvent] = []
        self._inputs: List[Any] = []

    @property
    def events(self) -> List[EnvelopeEvent]:
        return sorted(self._events, key=lambda e: e.time)

    @property
    def inputs(self) -> List[Any]:
        return list(self._inputs)

    def add_input(self, node: Any) -> None:
        self._inputs.append(node)

    @staticmethod
    def _check_time(time: float) -> float:
        time = float(time)
        if not np.isfinite(time) or time < 0.0:
            raise ValueError(f"Automation time must be finite and >= 0, got {time!r}")
        return time

    def set_value_at_time(self, value: float, time: float) -> "AudioParam":
        self._events.append(EnvelopeEvent.set_value(value, self._check_time(time)))
        return self

    def linear_ramp_to_value_at_time(self, value: float, time: float) -> "AudioParam":
        self._events.append(
            EnvelopeEvent.ramp_to(value, self._check_time(time), CurveKind.LINEAR)
        )
        return self

    def exponential_ramp_to_value_at_time(self, value: float, time: float) -> "AudioParam":
        if float(value) == 0.0:
            raise ValueError("Exponential ramp target must be non-zero")
        self._events.append(
            EnvelopeEvent.ramp_to(value, self._check_time(time), CurveKind.EXPONENTIAL)
        )
        return self

    def set_value_curve_at_time(
        self,
        values: Sequence[float],
        time: float,
        duration: float,
    ) -> "AudioParam":
        values = [float(v) for v in values]
        if not values:
            raise ValueError("Value curve must contain at least one sample")
        if float(duration) <= 0.0:
            raise ValueError(f"Value curve duration must be > 0, got {duration!r}")
        self._events.append(
            EnvelopeEvent.value_curve(values, self._check_time(time), duration)
        )
        return self

    def automation_values(self, times: np.ndarray) -> np.ndarray:
        return render_automation(self._events, self.value, times)

    def render(self, times: np.ndarray) -> np.ndarray:
        out = self.automation_values(times)
        for node in self._inputs:
            out = out + node.render(times)
        return out
