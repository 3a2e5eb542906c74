"""
Context token budget management.

Treat prompt context as a resource with a budget.

Considerations:
- Budgets are expressed in tokens of one encoding, never characters
- The overall budget is split across item categories by fixed ratios
- Text handed to ranking is clipped so the ranking call stays cheap
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, List, Optional

import tiktoken

from shared.config import BudgetSplitConfig, settings

from .exceptions import check_budget

logger = logging.getLogger(__name__)

TokenCounter = Callable[[str], int]


class Tokenizer:
    """
    Thin wrapper over a tiktoken encoding.

    The encoding is loaded lazily so importing this module never
    triggers a download.

    Usage:
        tokenizer = Tokenizer(model_name="gpt-4o")
        tokenizer.count("hello world")
    """

    def __init__(self, encoding_name: str = None, model_name: str = None):
        self.encoding_name = encoding_name or settings.tokenizer.encoding_name
        self.model_name = model_name
        self._enc = None

    @property
    def encoding(self) -> tiktoken.Encoding:
        """Lazy load the encoding."""
        if self._enc is None:
            if self.model_name:
                try:
                    self._enc = tiktoken.encoding_for_model(self.model_name)
                except KeyError:
                    logger.warning(
                        f"No tokenizer registered for model {self.model_name}, "
                        f"falling back to {self.encoding_name}"
                    )
            if self._enc is None:
                self._enc = tiktoken.get_encoding(self.encoding_name)
        return self._enc

    def encode(self, text: str) -> List[int]:
        return self.encoding.encode(text or "", disallowed_special=())

    def decode(self, tokens: List[int]) -> str:
        return self.encoding.decode(tokens)

    def count(self, text: str) -> int:
        """Count tokens in text."""
        if not text:
            return 0
        return len(self.encode(text))


@lru_cache()
def get_tokenizer(encoding_name: str = None, model_name: str = None) -> Tokenizer:
    """Get a cached tokenizer instance."""
    return Tokenizer(
        encoding_name=encoding_name,
        model_name=model_name or settings.tokenizer.model_name,
    )


def count_tokens(text: str) -> int:
    """Count tokens in text with the default tokenizer."""
    return get_tokenizer().count(text)


def truncate_text(
    text: str,
    max_tokens: int,
    tokenizer: Optional[Tokenizer] = None,
) -> str:
    """
    Clip text to at most max_tokens tokens, keeping the beginning.

    Args:
        text: Text to truncate
        max_tokens: Maximum tokens
        tokenizer: Tokenizer to measure with (default tokenizer if None)

    Returns:
        Truncated text
    """
    if not text:
        return ""
    check_budget(max_tokens)

    tokenizer = tokenizer or get_tokenizer()
    tokens = tokenizer.encode(text)

    if len(tokens) <= max_tokens:
        return text

    return tokenizer.decode(tokens[:max_tokens])


@dataclass
class CategoryBudgets:
    """Token budget allocation per item category."""

    content: int
    resource: int
    document: int

    @property
    def total(self) -> int:
        return self.content + self.resource + self.document


def split_budget(
    max_tokens: int,
    config: Optional[BudgetSplitConfig] = None,
) -> CategoryBudgets:
    """
    Split an overall token budget across content, resources and documents.

    Each share is floored, so the shares never sum above max_tokens.

    Args:
        max_tokens: Overall token budget
        config: Ratio configuration (settings.budget_split if None)

    Returns:
        CategoryBudgets allocation
    """
    check_budget(max_tokens)
    config = config or settings.budget_split

    return CategoryBudgets(
        content=math.floor(max_tokens * config.content_ratio),
        resource=math.floor(max_tokens * config.resource_ratio),
        document=math.floor(max_tokens * config.document_ratio),
    )
