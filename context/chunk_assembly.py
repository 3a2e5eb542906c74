"""
Fragment assembly and budget truncation.

Retrieved fragments arrive in relevance order. Before they are handed
to the LLM they are put back into document order (when offsets are
known) and joined with a visible gap marker so the model can tell
where text was skipped.
"""

import logging
from typing import List, Optional, Sequence

from .context_budgeting import TokenCounter, count_tokens
from .context_items import Fragment

logger = logging.getLogger(__name__)

CHUNK_SEPARATOR = " [...] "


def assemble_chunks(
    chunks: Optional[Sequence[Fragment]] = None,
    separator: str = CHUNK_SEPARATOR,
) -> str:
    """
    Join fragments into one string.

    Fragments are sorted by start offset when every fragment has one;
    otherwise retrieval order is kept. The input is not mutated.

    Example:
        >>> assemble_chunks([Fragment("b", start=5), Fragment("a", start=1)])
        'a [...] b'
    """
    if not chunks:
        return ""

    ordered = list(chunks)
    if all(chunk.start is not None for chunk in ordered):
        ordered.sort(key=lambda chunk: chunk.start)

    return separator.join(chunk.text for chunk in ordered)


def truncate_chunks(
    chunks: Sequence[Fragment],
    max_tokens: int,
    token_counter: TokenCounter = count_tokens,
) -> List[Fragment]:
    """
    Keep the longest prefix of chunks that fits max_tokens.

    Stops at the first chunk that would overflow; later, smaller
    chunks are not considered.

    Args:
        chunks: Fragments in priority order
        max_tokens: Token budget
        token_counter: Token counting function

    Returns:
        Prefix of chunks
    """
    result = []
    used_tokens = 0

    for chunk in chunks:
        chunk_tokens = token_counter(chunk.text)
        if used_tokens + chunk_tokens > max_tokens:
            break
        result.append(chunk)
        used_tokens += chunk_tokens

    if len(result) < len(chunks):
        logger.debug(
            f"Truncated chunks to {len(result)}/{len(chunks)} "
            f"({used_tokens} tokens, budget {max_tokens})"
        )

    return result
