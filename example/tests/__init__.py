"""Tests for the example application."""
