"""
CLI interface package for PromptBank.

This package contains the Typer application and its command handlers.
"""

__all__ = ["app"]
