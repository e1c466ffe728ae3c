"""Compact binary tries for sorted integer sets, their bit vectors, and query-log reading."""

__version__ = "1.0.0"