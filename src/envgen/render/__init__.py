"""
envgen.render
=============

Offline, numpy-backed host for envelope schedules.

Submodules
----------
- :mod:`envgen.render.automation` : AudioParam and timeline evaluation.
- :mod:`envgen.render.graph`      : Gain nodes, buffer sources, offline context.
"""

from .automation import AudioParam, render_automation
from .graph import (
    AudioBufferData,
    GainNode,
    BufferSource,
    OfflineContext,
    render_envelope,
)

__all__ = [
    "AudioParam",
    "render_automation",
    "AudioBufferData",
    "GainNode",
    "BufferSource",
    "OfflineContext",
    "render_envelope",
]
