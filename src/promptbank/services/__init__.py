"""
Services for PromptBank.

This package contains clipboard support and the agent directory integration.
"""

__all__ = ["clipboard", "integration"]
