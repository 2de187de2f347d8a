"""
envgen.cli
==========

Command-line interface: ``envgen schedule`` and ``envgen render``.
"""

from .envgen_cli import main

__all__ = ["main"]
