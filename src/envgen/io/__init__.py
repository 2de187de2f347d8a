"""
envgen.io
=========

File helpers for envelope shapes.

This module exposes:
- Audio read/write via soundfile, with mono downmix
- Loading explicit value curves from audio files
- CSV export of rendered envelopes

Submodules:
- envgen.io.audio
"""

from .audio import (
    read_audio,
    read_value_curve,
    write_audio,
    write_envelope_csv,
    to_mono,
)

__all__ = [
    "read_audio",
    "read_value_curve",
    "write_audio",
    "write_envelope_csv",
    "to_mono",
]
