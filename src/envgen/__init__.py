"""
envgen
DAHDSR envelope schedule generator.
"""

# Robust version detection that works even when not installed
try:
    from importlib import metadata as _metadata
except Exception:
    _metadata = None  # type: ignore

try:
    __version__ = _metadata.version("envgen") if _metadata else "0.0.0.dev0"
except Exception:
    # Not installed (dev mode) or no metadata available
    __version__ = "0.0.0.dev0"

# Re-export the public surface for convenience
from . import core, io, render  # noqa: E402
from .core import CurveKind, EnvelopeConfig, EnvelopeEvent, EventKind, Stage, resolve_settings  # noqa: E402
from .envelope import Envelope, EnvelopeState  # noqa: E402
from .errors import (  # noqa: E402
    AlreadyStartedError,
    EnvelopeError,
    InvalidStateError,
    MissingSampleRateError,
)

__all__ = [
    "core",
    "io",
    "render",
    "CurveKind",
    "Stage",
    "EnvelopeConfig",
    "EnvelopeEvent",
    "EventKind",
    "resolve_settings",
    "Envelope",
    "EnvelopeState",
    "EnvelopeError",
    "InvalidStateError",
    "AlreadyStartedError",
    "MissingSampleRateError",
    "__version__",
]
