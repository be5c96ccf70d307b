"""
Variable substitution for prompt content.

Placeholders use the ``{{identifier}}`` form, where an identifier is made of
ASCII letters, digits and underscores. There is no escape syntax for a
literal ``{{``.
"""

import re
from typing import Dict, Iterable, List, Mapping

from .errors import ValidationError

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")


def extract_variables(content: str) -> List[str]:
    """Extract placeholder names from content.

    Args:
        content: Prompt content

    Returns:
        Distinct variable names in order of first appearance
    """
    seen: Dict[str, None] = {}
    for match in PLACEHOLDER_PATTERN.finditer(content):
        seen.setdefault(match.group(1), None)
    return list(seen)


def apply(content: str, bindings: Mapping[str, str]) -> str:
    """Substitute bound values into content.

    Unbound placeholders are kept verbatim. Substituted values are not
    scanned again.

    Args:
        content: Prompt content
        bindings: Variable name to value mapping

    Returns:
        Rendered content
    """
    def _replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name in bindings:
            return str(bindings[name])
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, content)


def missing_variables(content: str, bindings: Mapping[str, str]) -> List[str]:
    """Return placeholders in content that have no binding."""
    return [name for name in extract_variables(content) if name not in bindings]


def parse_bindings(pairs: Iterable[str]) -> Dict[str, str]:
    """Parse ``key=value`` strings into a bindings mapping.

    The first ``=`` separates key from value, so values may contain ``=``.
    A later pair for the same key wins.

    Args:
        pairs: Strings of the form ``key=value``

    Returns:
        Bindings mapping

    Raises:
        ValidationError: If a pair has no ``=`` or an empty key
    """
    bindings: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValidationError(
                f"Invalid variable '{pair}'. Use the format key=value",
                field="var"
            )
        key, value = pair.split("=", 1)
        key = key.strip()
        if not key:
            raise ValidationError(
                f"Invalid variable '{pair}'. Variable name is empty",
                field="var"
            )
        bindings[key] = value
    return bindings
