"""Tests for the Sleeved engine."""
