"""
Context Budgeting Module.

Treat prompt context as a resource with a budget.

This module handles:
- Token counting and text truncation
- Splitting an overall budget across item categories
- Candidate item and fragment types
- Fragment assembly and budget truncation

Usage:
    from context import assemble_chunks, split_budget, truncate_chunks

    budgets = split_budget(8000)
    text = assemble_chunks(truncate_chunks(fragments, budgets.document))
"""

from .chunk_assembly import CHUNK_SEPARATOR, assemble_chunks, truncate_chunks
from .context_budgeting import (
    CategoryBudgets,
    Tokenizer,
    count_tokens,
    get_tokenizer,
    split_budget,
    truncate_text,
)
from .context_items import (
    ContentItem,
    ContextItem,
    DocumentItem,
    Fragment,
    MentionedContext,
    ResourceItem,
)
from .exceptions import ContextPackingError, InvalidBudgetError, SearchServiceError

__all__ = [
    "assemble_chunks",
    "truncate_chunks",
    "CHUNK_SEPARATOR",
    "Tokenizer",
    "get_tokenizer",
    "count_tokens",
    "truncate_text",
    "CategoryBudgets",
    "split_budget",
    "ContentItem",
    "ContextItem",
    "DocumentItem",
    "ResourceItem",
    "Fragment",
    "MentionedContext",
    "ContextPackingError",
    "InvalidBudgetError",
    "SearchServiceError",
]
