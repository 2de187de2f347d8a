from __future__ import annotations


class EnvelopeError(Exception):
    """Base error for the envgen library."""


class InvalidStateError(EnvelopeError):
    """Raised when an envelope method is called out of lifecycle order."""


class AlreadyStartedError(InvalidStateError):
    """Raised when start() is called on an envelope that already started."""


class MissingSampleRateError(EnvelopeError, ValueError):
    """Raised when a value curve is scheduled without a sample rate."""
