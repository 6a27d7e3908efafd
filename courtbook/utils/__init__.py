"""Utility helpers - structured logging and campus timezone."""
