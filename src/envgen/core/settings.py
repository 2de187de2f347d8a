# src/envgen/core/settings.py
"""Envelope settings: defaults, aliases and exponential-safe clamping."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional, Tuple, Union

import numpy as np

from .curves import CurveKind, Stage, parse_curve, ramp_kind_for

__all__ = [
    "EXPONENTIAL_FLOOR",
    "EnvelopeConfig",
    "SETTING_ALIASES",
    "resolve_settings",
]

_LOGGER = logging.getLogger("envgen.settings")

# Smallest magnitude substituted for zero when a stage ramps exponentially.
EXPONENTIAL_FLOOR = 0.001

# camelCase spellings accepted as aliases of the snake_case field names
SETTING_ALIASES = {
    "attackCurve": "attack_curve",
    "decayCurve": "decay_curve",
    "releaseCurve": "release_curve",
    "delayTime": "delay_time",
    "attackTime": "attack_time",
    "holdTime": "hold_time",
    "decayTime": "decay_time",
    "releaseTime": "release_time",
    "startLevel": "start_level",
    "maxLevel": "max_level",
    "sustainLevel": "sustain_level",
    "initialValueCurve": "initial_value_curve",
    "releaseValueCurve": "release_value_curve",
    "sampleRate": "sample_rate",
}

ValueCurve = Tuple[float, ...]


@dataclass(frozen=True)
class EnvelopeConfig:
    """
    Fully resolved DAHDSR settings.

    Times are in seconds. Levels are absolute except `sustain_level`, which is
    a multiplier (0..1 nominal) applied between `start_level` and `max_level`.
    Instances are produced by :func:`resolve_settings` and never mutated.
    """
    curve: CurveKind = CurveKind.LINEAR
    attack_curve: Optional[CurveKind] = None
    decay_curve: Optional[CurveKind] = None
    release_curve: Optional[CurveKind] = None
    delay_time: float = 0.0
    attack_time: float = 0.0
    hold_time: float = 0.0
    decay_time: float = EXPONENTIAL_FLOOR
    release_time: float = 0.0
    start_level: float = 0.0
    max_level: float = 1.0
    sustain_level: float = 1.0
    initial_value_curve: Optional[ValueCurve] = None
    release_value_curve: Optional[ValueCurve] = None
    sample_rate: Optional[float] = None

    def as_settings(self) -> dict[str, Any]:
        """Return the config as a plain settings mapping (snake_case keys)."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, CurveKind):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            out[f.name] = value
        return out


# ---------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------

def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            out = float(value)
        except OverflowError:
            return None
        if math.isfinite(out):
            return out
    return None


def _duration(value: Any, default: float = 0.0) -> float:
    out = _number(value)
    if out is None or out < 0.0:
        return default
    return out


def _level(value: Any, default: float) -> float:
    out = _number(value)
    return default if out is None else out


def _value_curve(value: Any) -> Optional[ValueCurve]:
    if value is None or isinstance(value, (str, bytes)):
        return None
    try:
        arr = np.asarray(value, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError, OverflowError):
        return None
    if arr.size == 0 or not np.all(np.isfinite(arr)):
        return None
    return tuple(float(v) for v in arr)


def _sample_rate(value: Any) -> Optional[float]:
    out = _number(value)
    if out is None or out <= 0.0:
        return None
    return out


def _normalize_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(EnvelopeConfig)}
    out: dict[str, Any] = {}
    for key, value in raw.items():
        name = SETTING_ALIASES.get(key, key)
        if name not in known:
            _LOGGER.debug("Ignoring unknown envelope setting %r", key)
            continue
        # snake_case wins over its camelCase alias
        if name in out and key != name:
            continue
        out[name] = value
    return out


# ---------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------

def _signed_floor(negative: bool) -> float:
    return -EXPONENTIAL_FLOOR if negative else EXPONENTIAL_FLOOR


def resolve_settings(
    raw: Union[Mapping[str, Any], EnvelopeConfig, None] = None,
    *,
    sample_rate: Optional[float] = None,
) -> EnvelopeConfig:
    """
    Turn a partial settings record into a complete, exponential-safe config.

    Parameters
    ----------
    raw : mapping, EnvelopeConfig or None
        Settings keyed by snake_case names (camelCase aliases accepted).
        Missing or malformed values fall back to their defaults.
    sample_rate : float or None
        Rate used to convert value-curve lengths to durations when `raw`
        does not carry its own.

    Returns
    -------
    config : EnvelopeConfig
        Never raises. Zero levels are nudged to +/-0.001 where the stage that
        touches them ramps exponentially, and a zero decay time becomes 0.001
        so the decay ramp never lands on the attack-end anchor.
    """
    if raw is None:
        settings: dict[str, Any] = {}
    elif isinstance(raw, EnvelopeConfig):
        settings = raw.as_settings()
    else:
        settings = _normalize_keys(raw)

    rate = _sample_rate(settings.get("sample_rate"))
    if rate is None:
        rate = _sample_rate(sample_rate)

    draft = EnvelopeConfig(
        curve=parse_curve(settings.get("curve")) or CurveKind.LINEAR,
        attack_curve=parse_curve(settings.get("attack_curve")),
        decay_curve=parse_curve(settings.get("decay_curve")),
        release_curve=parse_curve(settings.get("release_curve")),
        delay_time=_duration(settings.get("delay_time")),
        attack_time=_duration(settings.get("attack_time")),
        hold_time=_duration(settings.get("hold_time")),
        decay_time=_duration(settings.get("decay_time")),
        release_time=_duration(settings.get("release_time")),
        start_level=_level(settings.get("start_level"), 0.0),
        max_level=_level(settings.get("max_level"), 1.0),
        sustain_level=_level(settings.get("sustain_level"), 1.0),
        initial_value_curve=_value_curve(settings.get("initial_value_curve")),
        release_value_curve=_value_curve(settings.get("release_value_curve")),
        sample_rate=rate,
    )

    attack_exp = ramp_kind_for(draft, Stage.ATTACK) is CurveKind.EXPONENTIAL
    decay_exp = ramp_kind_for(draft, Stage.DECAY) is CurveKind.EXPONENTIAL
    release_exp = ramp_kind_for(draft, Stage.RELEASE) is CurveKind.EXPONENTIAL

    start_level = draft.start_level
    if start_level == 0.0 and attack_exp:
        start_level = _signed_floor(draft.max_level < 0.0)
        _LOGGER.debug("start_level 0 -> %s for exponential attack", start_level)

    max_level = draft.max_level
    if max_level == 0.0 and (attack_exp or decay_exp or release_exp):
        max_level = _signed_floor(start_level < 0.0)
        _LOGGER.debug("max_level 0 -> %s for exponential ramps", max_level)

    sustain_level = draft.sustain_level
    if sustain_level == 0.0 and (decay_exp or release_exp):
        # multiplier, not an absolute level: always positive
        sustain_level = EXPONENTIAL_FLOOR
        _LOGGER.debug("sustain_level 0 -> %s for exponential decay/release", sustain_level)

    decay_time = draft.decay_time
    if decay_time == 0.0:
        decay_time = EXPONENTIAL_FLOOR

    return replace(
        draft,
        start_level=start_level,
        max_level=max_level,
        sustain_level=sustain_level,
        decay_time=decay_time,
    )
