"""
Chunking Module.

Sentence-aligned chunking for text indexed on the fly. Chunks carry
their start offset so recalled chunks can be reassembled in order.

Usage:
    from chunking import SentenceSplitter

    fragments = SentenceSplitter(max_tokens=256).split(text)
"""

from .sentence_splitter import Sentence, SentenceSplitter, split_into_sentences

__all__ = [
    "SentenceSplitter",
    "Sentence",
    "split_into_sentences",
]
