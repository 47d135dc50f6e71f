"""Acquisition and rendering core."""
