"""Command-line front end for PrepDeck."""

from .main import app, main

__all__ = ["app", "main"]
