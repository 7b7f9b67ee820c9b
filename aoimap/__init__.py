"""AOI-MAP - define, persist and reconcile geographic areas of interest."""

__version__ = "0.1.0"
