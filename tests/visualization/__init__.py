"""Rescaling and entanglement feedback tests."""
