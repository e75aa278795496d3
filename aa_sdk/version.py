"""
Version helpers for the aa-sdk package.
We keep a static __version__ (PEP 440) used in the HTTP User-Agent and the CLI.
"""

from __future__ import annotations

# Bump this when publishing
__version__ = "0.1.0"

__all__ = ["__version__"]
