"""
Token quota rules for paid blog generation.

This module is the single source of truth for how much a generation costs.
It lives in core/ so both service and API layers can import from it.
"""

import math

# One token buys up to this many characters of source text
CHARACTERS_PER_TOKEN = 15000

# Shortest source text accepted for generation
MIN_SOURCE_CHARACTERS = 100


def calculate_tokens_used(text: str) -> int:
    """Return the token cost of generating a post from ``text``.

    ``ceil(len(text) / 15000)``: empty text costs nothing, any other text
    costs at least one token.
    """
    return math.ceil(len(text) / CHARACTERS_PER_TOKEN)
