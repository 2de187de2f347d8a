# src/envgen/core/curves.py
"""Ramp laws and per-stage curve resolution."""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .settings import EnvelopeConfig

__all__ = ["CurveKind", "Stage", "parse_curve", "ramp_kind_for"]


class CurveKind(str, Enum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class Stage(str, Enum):
    ATTACK = "attack"
    DECAY = "decay"
    RELEASE = "release"


def parse_curve(value: Any) -> Optional[CurveKind]:
    """
    Interpret a curve setting.

    Accepts a :class:`CurveKind` or one of the strings ``"linear"`` /
    ``"exponential"`` (case-insensitive). Anything else yields None.
    """
    if isinstance(value, CurveKind):
        return value
    if isinstance(value, str):
        try:
            return CurveKind(value.strip().lower())
        except ValueError:
            return None
    return None


def ramp_kind_for(config: "EnvelopeConfig", stage: Stage) -> CurveKind:
    """
    Return the ramp law governing `stage`.

    The per-stage override (attack_curve, decay_curve, release_curve) wins
    when it is set and recognized; otherwise the global `curve` applies.
    """
    stage = Stage(stage)
    if stage is Stage.ATTACK:
        override = config.attack_curve
    elif stage is Stage.DECAY:
        override = config.decay_curve
    else:
        override = config.release_curve

    kind = parse_curve(override)
    if kind is not None:
        return kind
    return parse_curve(config.curve) or CurveKind.LINEAR
