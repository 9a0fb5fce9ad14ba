"""Query reduction for keyword-based search engines."""

from typing import List

MAX_KEYWORDS = 12

# Portuguese and English function words
STOP_WORDS = frozenset(
    {
        "a", "o", "e", "de", "da", "do", "em", "para", "com", "por", "que",
        "um", "uma", "os", "as", "no", "na", "é", "são", "foi", "está", "tem",
        "sobre", "fez", "fazer", "como", "mais", "menos", "muito", "pouco",
        "seu", "sua", "ele", "ela", "eles", "elas", "nos", "das", "dos", "nas",
        "aos", "pela", "pelo", "entre", "após", "até", "desde",
        "the", "is", "are", "was", "were", "in", "on", "at", "to", "for", "of",
        "and", "an", "has", "have", "it", "its", "this", "that", "with", "be",
        "been", "being", "by", "from", "or", "but", "not", "also",
    }
)

_STRIP_CHARS = ".,!?;:\"'()[]«»"


def extract_keywords(claim: str, max_keywords: int = MAX_KEYWORDS) -> str:
    """Reduce a claim sentence to a keyword query.

    Capitalized words (likely proper nouns) are kept first in their
    original case, followed by the remaining content words lowercased.
    Stop words and words of two characters or fewer are dropped.

    Args:
        claim: Claim text
        max_keywords: Maximum number of keywords to keep

    Returns:
        Space-separated keywords, or an empty string
    """
    proper_nouns: List[str] = []
    words: List[str] = []

    for word in claim.split():
        cleaned = word.strip(_STRIP_CHARS)
        lowered = cleaned.lower()
        if len(lowered) <= 2 or lowered in STOP_WORDS:
            continue
        if cleaned[:1].isupper():
            proper_nouns.append(cleaned)
        else:
            words.append(lowered)

    return " ".join((proper_nouns + words)[:max_keywords])
