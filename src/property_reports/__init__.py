"""Analytical reports over property sales and assessment records."""

__version__ = "0.1.0"
