"""
Sentence-level text splitting for on-the-fly indexing.

Free text that has never been indexed is cut into sentence-aligned
chunks before it is embedded. Each chunk remembers where it starts in
the source text so retrieved chunks can be put back in reading order.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from context.context_budgeting import Tokenizer, get_tokenizer
from context.context_items import Fragment

logger = logging.getLogger(__name__)

# Common abbreviations that shouldn't end a sentence. Matched case-sensitively
# so a sentence ending in "no." still splits.
ABBREVIATIONS = (
    "Mr", "Mrs", "Ms", "Dr", "Prof", "Sr", "Jr", "vs", "etc",
    "eg", "ie", "al", "Inc", "Ltd", "Corp", "No", "Fig",
)

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?。！？])\s+")
_DOT = "<DOT>"


@dataclass
class Sentence:
    """A sentence with position information."""

    text: str
    start: int
    end: int


def split_into_sentences(text: str) -> List[Sentence]:
    """
    Split text into sentences with their offsets in text.

    Abbreviations and decimal numbers do not end a sentence.
    """
    protected = text
    for abbr in ABBREVIATIONS:
        protected = re.sub(rf"\b({abbr})\.", rf"\1{_DOT}", protected)
    protected = re.sub(r"(\d)\.(\d)", rf"\1{_DOT}\2", protected)

    sentences = []
    position = 0
    for part in _SENTENCE_BOUNDARY.split(protected):
        restored = part.replace(_DOT, ".")
        stripped = restored.strip()
        if not stripped:
            continue

        start = text.find(stripped, position)
        if start == -1:
            start = position
        end = start + len(stripped)
        sentences.append(Sentence(text=stripped, start=start, end=end))
        position = end

    return sentences


class SentenceSplitter:
    """
    Group sentences into chunks of at most max_tokens tokens.

    A single sentence longer than max_tokens becomes a chunk of its own.

    Usage:
        splitter = SentenceSplitter(max_tokens=256)
        fragments = splitter.split(long_text, metadata={"title": "Notes"})
    """

    def __init__(
        self,
        max_tokens: int = 256,
        overlap_sentences: int = 0,
        tokenizer: Optional[Tokenizer] = None,
    ):
        """
        Args:
            max_tokens: Maximum tokens per chunk
            overlap_sentences: Sentences repeated at the start of the next chunk
            tokenizer: Tokenizer used to measure sentences
        """
        self.max_tokens = max_tokens
        self.overlap_sentences = overlap_sentences
        self.tokenizer = tokenizer or get_tokenizer()

    def _make_fragment(
        self,
        sentences: List[Sentence],
        text: str,
        index: int,
        metadata: Dict[str, Any],
    ) -> Fragment:
        start, end = sentences[0].start, sentences[-1].end
        return Fragment(
            text=text[start:end],
            start=start,
            metadata={**metadata, "chunk_index": index, "start": start, "end": end},
        )

    def split(self, text: str, metadata: Optional[Dict[str, Any]] = None) -> List[Fragment]:
        """
        Split text into sentence-aligned fragments.

        Args:
            text: Text to split
            metadata: Metadata copied onto every fragment

        Returns:
            Fragments in document order
        """
        metadata = metadata or {}
        sentences = split_into_sentences(text or "")
        if not sentences:
            return []

        fragments = []
        current: List[Sentence] = []
        current_tokens = 0

        for sentence in sentences:
            sentence_tokens = self.tokenizer.count(sentence.text)

            if current and current_tokens + sentence_tokens > self.max_tokens:
                fragments.append(self._make_fragment(current, text, len(fragments), metadata))
                if self.overlap_sentences > 0:
                    current = current[-self.overlap_sentences:]
                    current_tokens = sum(self.tokenizer.count(s.text) for s in current)
                else:
                    current = []
                    current_tokens = 0

            current.append(sentence)
            current_tokens += sentence_tokens

        if current:
            fragments.append(self._make_fragment(current, text, len(fragments), metadata))

        logger.debug(f"Split {len(text)} chars into {len(fragments)} chunks")
        return fragments
