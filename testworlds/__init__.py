"""Test world isolation and deterministic AI fixture replay."""

__version__ = "0.1.0"
