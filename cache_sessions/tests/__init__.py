"""Tests for :mod:`cache_sessions`."""
