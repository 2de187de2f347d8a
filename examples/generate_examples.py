"""
Render a handful of envelope presets to audio and CSV files.

Features
--------
- Renders each preset with the offline host (numpy, no audio device).
- Applies every envelope to a sine tone so the shapes can be heard.
- Writes the raw envelope as FLOAT WAV and CSV next to the tone.

Outputs
-------
samples/output/envelopes/

Run
---
python examples/generate_examples.py
"""

from __future__ import annotations

from pathlib import Path

import numpy as np

from envgen.io import write_audio, write_envelope_csv
from envgen.render import render_envelope

THIS_FILE = Path(__file__).resolve()
PROJECT_ROOT = THIS_FILE.parent.parent
OUTPUT_DIR = PROJECT_ROOT / "samples" / "output" / "envelopes"

SR = 48000
TONE_HZ = 220.0

PRESETS = {
    "pluck": {
        "curve": "exponential",
        "attack_time": 0.005,
        "decay_time": 0.4,
        "sustain_level": 0.0,
        "release_time": 0.2,
    },
    "pad": {
        "curve": "linear",
        "delay_time": 0.1,
        "attack_time": 0.8,
        "hold_time": 0.2,
        "decay_time": 0.6,
        "sustain_level": 0.6,
        "release_time": 1.2,
    },
    "swell": {
        "attack_curve": "exponential",
        "release_curve": "linear",
        "attack_time": 1.5,
        "decay_time": 0.3,
        "sustain_level": 0.8,
        "release_time": 0.5,
    },
    "offset": {
        "curve": "linear",
        "start_level": 0.2,
        "max_level": 0.9,
        "attack_time": 0.05,
        "decay_time": 0.2,
        "sustain_level": 0.5,
        "release_time": 0.3,
    },
}


def render_preset(name: str, settings: dict, release_at: float = 2.0) -> None:
    env = render_envelope(settings, start=0.0, release=release_at, sample_rate=SR)
    t = np.arange(env.shape[0]) / SR
    tone = 0.5 * np.sin(2.0 * np.pi * TONE_HZ * t) * env

    write_audio(OUTPUT_DIR / f"{name}__envelope.wav", env, SR, subtype="FLOAT")
    write_envelope_csv(OUTPUT_DIR / f"{name}__envelope.csv", env[::48], SR / 48)
    write_audio(OUTPUT_DIR / f"{name}__tone.wav", tone, SR, subtype="PCM_16")
    print(f"  {name}: {env.shape[0] / SR:.2f}s, peak {env.max():.3f}")


def main() -> int:
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    print(f"Output directory: {OUTPUT_DIR}")
    for name, settings in PRESETS.items():
        render_preset(name, settings)
    print("\nDone.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
