"""Equity Research Pro - staged sources, report and memo generation."""

__version__ = "0.1.0"
