"""ghassist: GitHub event normalization, gating and mode preparation."""

__version__ = "0.1.0"
