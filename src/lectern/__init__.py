"""Lectern: event-driven invalidation of the LMS analytics cache."""

__version__ = "0.1.0"
