"""Command-line interface for Dhwani."""

from .main import main

__all__ = ["main"]
