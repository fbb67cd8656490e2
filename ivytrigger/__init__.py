"""Ivy Trigger — dependency snapshot evaluator."""

__version__ = "0.1.0"
