"""Unit tests for token quota calculation."""

import pytest

from core.quota import CHARACTERS_PER_TOKEN, calculate_tokens_used


class TestCalculateTokensUsed:
    @pytest.mark.parametrize(
        "length, expected",
        [
            (0, 0),
            (1, 1),
            (100, 1),
            (15000, 1),
            (15001, 2),
            (30000, 2),
            (45001, 4),
        ],
    )
    def test_rounds_up_per_block(self, length: int, expected: int):
        assert calculate_tokens_used("a" * length) == expected

    def test_counts_whitespace(self):
        text = " " * (CHARACTERS_PER_TOKEN + 1)
        assert calculate_tokens_used(text) == 2
