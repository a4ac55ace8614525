"""Typer command line client for the Nua Archive API."""
