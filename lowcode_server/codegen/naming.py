"""
Identifier case conversion for generated code.
"""

import re

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")


def split_words(text: str) -> list:
    """Split display names and identifiers ('Order item', 'orderItem') into words."""
    return _WORD_RE.findall(text or "")


def pascal_case(text: str) -> str:
    return "".join(word[:1].upper() + word[1:].lower() for word in split_words(text))


def camel_case(text: str) -> str:
    pascal = pascal_case(text)
    return pascal[:1].lower() + pascal[1:]


def kebab_case(text: str) -> str:
    return "-".join(word.lower() for word in split_words(text))
