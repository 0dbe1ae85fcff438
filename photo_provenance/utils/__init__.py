"""Shared helpers used across pipeline stages."""
