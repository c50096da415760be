"""Outer surfaces: UCI loop and REST API."""
