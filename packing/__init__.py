"""
Context Packing Module.

Pack ranked, variable-length context items into nested token budgets.

Per item the packer decides:
- Include whole (small, relevant, asks for whole content)
- Include recalled fragments (oversized or partial)
- Leave out (budget exhausted)

Usage:
    from packing import ContextComposer

    composer = ContextComposer(service, user)
    packed = await composer.compose(query, mentioned_context, max_tokens=8000)
"""

from .category_packer import CategoryPacker, PackingResult
from .context_composer import ContextComposer
from .item_adapters import (
    CONTENT,
    DOCUMENTS,
    RESOURCES,
    ContentAdapter,
    DocumentAdapter,
    ItemAdapter,
    ResourceAdapter,
)

__all__ = [
    "ContextComposer",
    "CategoryPacker",
    "PackingResult",
    "ItemAdapter",
    "ContentAdapter",
    "DocumentAdapter",
    "ResourceAdapter",
    "CONTENT",
    "DOCUMENTS",
    "RESOURCES",
]
