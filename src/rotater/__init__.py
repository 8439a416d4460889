"""ROTATER climate-monitoring backend."""

__version__ = "1.0.0"
