"""safelite.cli — Typer command-line tools for wallet owners."""

from .main import app, get_app, main

__all__ = ["app", "get_app", "main"]
