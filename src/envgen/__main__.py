"""
Command-line entry for the envgen package.

Usage
-----
$ python -m envgen
"""

from . import __version__
from .core import build_attack_decay, build_release, resolve_settings
from .render import render_envelope


def _diagnostics():
    print(f"envgen DAHDSR envelope generator v{__version__}\n")

    settings = {
        "curve": "exponential",
        "delay_time": 0.1,
        "attack_time": 0.2,
        "hold_time": 0.3,
        "decay_time": 0.4,
        "sustain_level": 0.5,
        "release_time": 0.8,
    }
    config = resolve_settings(settings)

    print("Attack/decay schedule from t=0.0:")
    for event in build_attack_decay(config, 0.0):
        print(f"  {event.time:7.3f}s  {event.kind.value:<16} {event.value:.3f}")

    events, release_time = build_release(config, 2.0)
    print(f"\nRelease schedule from t=2.0 ({release_time:.3f}s):")
    for event in events:
        print(f"  {event.time:7.3f}s  {event.kind.value:<16} {event.value:.3f}")

    env = render_envelope(settings, start=0.0, release=2.0, sample_rate=1000.0)
    print(f"\nRendered {env.shape[0]} samples at 1 kHz")
    print(f"  range: [{env.min():.4f}, {env.max():.4f}]")

    print("\nAll checks done ✅")


if __name__ == "__main__":
    _diagnostics()
