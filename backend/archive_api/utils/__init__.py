"""Utility helpers for the Archive API."""
