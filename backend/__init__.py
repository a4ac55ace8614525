"""Nua Archive backend packages."""
