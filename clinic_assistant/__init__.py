"""Clinic assistant: conversational intent routing, slot availability and booking."""

__version__ = "0.3.0"
