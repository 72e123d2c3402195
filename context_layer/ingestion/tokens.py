"""Token counting backed by tiktoken."""

import logging
from functools import lru_cache

import tiktoken

logger = logging.getLogger(__name__)

DEFAULT_TOKENIZER_MODEL = "gpt-4"


class TokenCounter:
    """Counts tokens with a single tiktoken encoding.

    Building the encoding is the expensive part, so one instance should be
    created per run and shared. After construction the counter is
    read-only and safe to call from several chunkers at once.

    Args:
        model: OpenAI model name whose encoding to use (``gpt-4`` maps to
            ``cl100k_base``).
    """

    def __init__(self, model: str = DEFAULT_TOKENIZER_MODEL) -> None:
        self._model = model
        self._encoding = tiktoken.encoding_for_model(model)
        logger.debug("Loaded tokenizer %s for model %s", self._encoding.name, model)

    @property
    def model(self) -> str:
        return self._model

    def count(self, text: str) -> int:
        """Return the number of tokens in ``text``.

        Special-token markers such as ``<|endoftext|>`` are counted as plain
        text instead of being rejected.
        """
        if not text:
            return 0
        return len(self._encoding.encode(text, disallowed_special=()))


@lru_cache(maxsize=None)
def get_default_counter(model: str = DEFAULT_TOKENIZER_MODEL) -> TokenCounter:
    """Return a process-wide counter for ``model``, built on first use."""
    return TokenCounter(model)


def count_tokens(text: str) -> int:
    """Count tokens with the default GPT-4 counter."""
    return get_default_counter().count(text)
