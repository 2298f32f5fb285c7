"""Structural sentence fingerprinting, sentence-bank matching and batch processing."""

from __future__ import annotations

__version__ = "0.1.0"
