"""
Text Processing Utilities.

Centralized tokenization and segmentation used by every pipeline stage, so
extraction, relationship detection and enrichment agree on what a "token"
and a "sentence" are.

Functions
---------
**normalize_token(word)**
    Lower-case a word and strip everything that is not a letter or digit.
    Accented letters are kept ("relación" stays "relación").

**tokenize(text)**
    Whitespace split followed by normalize_token, empty results dropped.

**iter_words(text)**
    Like tokenize, but also yields the surface form and character offset.

**split_into_sentences(text)**
    Split on sentence punctuation (.!?) and line breaks.

**split_into_paragraphs(text)**
    Split on blank lines.

**read_text_with_fallback(file_path)**
    Decode a file as UTF-8, or Latin-1 when that fails.

**truncate_text(text, max_length)**
    Truncate text with suffix ("...") for previews.

Design Decisions
----------------
1. **Regex-based**: No NLP models required; behavior is deterministic.
2. **Shared by all stages**: A concept found by extraction is always found
   again by co-occurrence detection.
"""

import re
from pathlib import Path
from typing import Iterator, List, Set, Tuple

_WORD = re.compile(r"\S+")
_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)
_EDGE_PUNCTUATION = re.compile(r"^[\W_]+|[\W_]+$", re.UNICODE)
_SENTENCE_BOUNDARY = re.compile(r"[.!?]+|\n+")
_PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n")
_HEADING_MARKER = re.compile(r"^\s{0,3}#{1,6}\s+")


def normalize_token(word: str) -> str:
    """Normalize a single word for frequency counting.

    Examples:
        >>> normalize_token("Ideas,")
        'ideas'
        >>> normalize_token("relación")
        'relación'
    """
    return _NON_WORD.sub("", word.lower())


def tokenize(text: str) -> List[str]:
    """Split text into normalized tokens.

    Examples:
        >>> tokenize("Mapas conceptuales organizan ideas.")
        ['mapas', 'conceptuales', 'organizan', 'ideas']
    """
    tokens = []
    for word in text.split():
        token = normalize_token(word)
        if token:
            tokens.append(token)
    return tokens


def iter_words(text: str) -> Iterator[Tuple[str, str, int]]:
    """Yield (token, surface form, character offset) for each word.

    The surface form keeps the original casing with leading and trailing
    punctuation removed. Words that normalize to nothing are skipped.

    Examples:
        >>> list(iter_words("Hola, Mundo!"))
        [('hola', 'Hola', 0), ('mundo', 'Mundo', 6)]
    """
    for match in _WORD.finditer(text):
        word = match.group(0)
        token = normalize_token(word)
        if token:
            yield token, _EDGE_PUNCTUATION.sub("", word), match.start()


def count_words(text: str) -> int:
    """Number of whitespace-separated words."""
    return len(text.split())


def normalize_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces.

    Examples:
        >>> normalize_whitespace("Hello\\n\\tWorld")
        'Hello World'
    """
    return re.sub(r"\s+", " ", text).strip()


def strip_heading_marker(line: str) -> str:
    """Remove a leading Markdown heading marker from a line."""
    return _HEADING_MARKER.sub("", line)


def split_into_sentences(text: str) -> List[str]:
    """Split text into sentences.

    Sentence punctuation and line breaks both end a sentence, so Markdown
    headings become sentences of their own.

    Examples:
        >>> split_into_sentences("Hello world. How are you?")
        ['Hello world', 'How are you']
    """
    sentences = []
    for part in _SENTENCE_BOUNDARY.split(text):
        sentence = normalize_whitespace(strip_heading_marker(part))
        if sentence:
            sentences.append(sentence)
    return sentences


def split_into_paragraphs(text: str) -> List[str]:
    """Split text into non-empty paragraphs."""
    return [p.strip() for p in _PARAGRAPH_BOUNDARY.split(text) if p.strip()]


def sentence_token_sets(sentences: List[str]) -> List[Set[str]]:
    """Normalized token set for each sentence."""
    return [set(tokenize(sentence)) for sentence in sentences]


def read_text_with_fallback(file_path: Path) -> str:
    """Read a text file as UTF-8 (BOM tolerated), falling back to Latin-1.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    data = file_path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def truncate_text(text: str, max_length: int, suffix: str = "...") -> str:
    """Cut text to max_length characters, ending in suffix when cut.

    Examples:
        >>> truncate_text("This is a long sentence", 10)
        'This is...'
        >>> truncate_text("Short", 10)
        'Short'
    """
    if len(text) <= max_length:
        return text
    return text[: max_length - len(suffix)].rstrip() + suffix
