"""Diagnostics and runtime toggles."""
