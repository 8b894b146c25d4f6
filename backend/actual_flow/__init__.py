"""Actual Flow: import Lunch Flow transactions into Actual Budget."""

__version__ = "1.0.0"
