"""Affiliate administration: affiliate records and operator commands."""

__version__ = "0.1.0"
