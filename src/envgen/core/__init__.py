"""
envgen.core
===========

Pure schedule-generation primitives for DAHDSR envelopes.

Submodules
----------
- :mod:`envgen.core.curves`   : Ramp laws and per-stage curve selection.
- :mod:`envgen.core.settings` : Settings defaults and exponential-safe clamping.
- :mod:`envgen.core.timeline` : Stage boundaries and automation events.
"""

from .curves import CurveKind, Stage, parse_curve, ramp_kind_for
from .settings import (
    EXPONENTIAL_FLOOR,
    EnvelopeConfig,
    resolve_settings,
)
from .timeline import (
    EventKind,
    EnvelopeEvent,
    StageTimes,
    stage_times,
    build_attack_decay,
    build_release,
    apply_events,
)

__all__ = [
    # curves
    "CurveKind",
    "Stage",
    "parse_curve",
    "ramp_kind_for",
    # settings
    "EXPONENTIAL_FLOOR",
    "EnvelopeConfig",
    "resolve_settings",
    # timeline
    "EventKind",
    "EnvelopeEvent",
    "StageTimes",
    "stage_times",
    "build_attack_decay",
    "build_release",
    "apply_events",
]
