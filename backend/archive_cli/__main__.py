"""Console entry point for the archive CLI."""
from __future__ import annotations

from dotenv import load_dotenv

from .app import app


def main() -> None:
    """Execute the Typer application."""

    load_dotenv()
    app()


if __name__ == "__main__":
    main()
