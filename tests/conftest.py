"""Shared test fixtures."""

import pytest


class WordCounter:
    """Counts whitespace-separated words, so budgets in tests are exact."""

    def count(self, text: str) -> int:
        return len(text.split())


@pytest.fixture
def word_counter() -> WordCounter:
    return WordCounter()
