"""String similarity for concept deduplication.

    similarity("idea", "ideas")            -> 0.7 + 0.3 * 4/5 = 0.94
    similarity("concept map", "mind map")  -> shared-word ratio 1/3
"""

from __future__ import annotations

from conceptforge.shared.text_utils import tokenize

CONTAINMENT_BASE = 0.7
CONTAINMENT_SPAN = 0.3


def similarity(first: str, second: str) -> float:
    """Similarity of two concept names in [0, 1].

    Identical names score 1.0. When one name contains the other the score
    lies in [0.7, 1.0] and grows with the length ratio. Otherwise it is the
    ratio of shared words to all distinct words.
    """
    a = first.strip().lower()
    b = second.strip().lower()
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0

    shorter, longer = sorted((a, b), key=len)
    if shorter in longer:
        return CONTAINMENT_BASE + CONTAINMENT_SPAN * len(shorter) / len(longer)

    words_a = set(tokenize(a))
    words_b = set(tokenize(b))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)
