"""
aa_sdk.cli
==========

`aa-sdk` command-line interface (Typer). See :mod:`aa_sdk.cli.main`.
"""

from __future__ import annotations

from .main import app, main  # noqa: F401

__all__ = ["app", "main"]
