"""Tests for sentence-aligned chunking."""

from conftest import WordTokenizer

from chunking.sentence_splitter import SentenceSplitter, split_into_sentences


def test_split_into_sentences_offsets():
    text = "First one. Second one!  Third?"

    sentences = split_into_sentences(text)

    assert [s.text for s in sentences] == ["First one.", "Second one!", "Third?"]
    for sentence in sentences:
        assert text[sentence.start:sentence.end] == sentence.text


def test_abbreviations_and_decimals_do_not_split():
    sentences = split_into_sentences("Dr. Smith paid 3.5 million. Done.")

    assert [s.text for s in sentences] == ["Dr. Smith paid 3.5 million.", "Done."]


def test_lowercase_words_matching_abbreviations_end_sentences():
    sentences = split_into_sentences("The answer is no. Try again later. See No. 5 above.")

    assert [s.text for s in sentences] == [
        "The answer is no.",
        "Try again later.",
        "See No. 5 above.",
    ]


def test_empty_text():
    assert split_into_sentences("") == []
    assert SentenceSplitter(tokenizer=WordTokenizer()).split("   ") == []


def test_groups_sentences_under_token_limit():
    splitter = SentenceSplitter(max_tokens=4, tokenizer=WordTokenizer())
    text = "One two. Three four. Five six seven eight nine."

    fragments = splitter.split(text, metadata={"title": "t"})

    assert [f.text for f in fragments] == ["One two. Three four.", "Five six seven eight nine."]
    assert [f.start for f in fragments] == [0, 21]
    assert fragments[1].metadata == {"title": "t", "chunk_index": 1, "start": 21, "end": len(text)}


def test_overlap_repeats_last_sentence():
    splitter = SentenceSplitter(max_tokens=2, overlap_sentences=1, tokenizer=WordTokenizer())

    fragments = splitter.split("A b. C d. E f.")

    assert [f.text for f in fragments] == ["A b.", "A b. C d.", "C d. E f."]
