"""
Configuration package for PromptBank.

This package contains settings management and logging setup.
"""

__all__ = ["settings"]
