"""
Shared utility functions
"""

from typing import Tuple

from .constants import FILTER_LABELS


def filter_label(filter_key: str) -> str:
    """
    Human-readable label for a taxonomy key.

    Args:
        filter_key: Taxonomy key such as 'cooking_method'

    Returns:
        Label used in the "All ..." placeholder, e.g. 'Cooking Method'
    """
    if filter_key in FILTER_LABELS:
        return FILTER_LABELS[filter_key]
    return ' '.join(word[:1].upper() + word[1:] for word in filter_key.replace('_', ' ').split(' '))


def parse_assignment(text: str) -> Tuple[str, str]:
    """Split 'key=value' (value may be empty) as given on the command line"""
    key, sep, value = text.partition('=')
    key = key.strip()
    if not sep or not key:
        raise ValueError(f"Expected key=value, got '{text}'")
    return key, value.strip()
