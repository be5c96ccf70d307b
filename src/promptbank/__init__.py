"""
PromptBank - a local library of reusable prompts.

This package stores named prompts with categories, tags and {{variable}}
placeholders in a single JSON file, and renders them on demand.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from typing import Final

# Package metadata
VERSION: Final[str] = __version__
PACKAGE_NAME: Final[str] = "promptbank"

__all__ = [
    "__version__",
    "VERSION",
    "PACKAGE_NAME",
]
