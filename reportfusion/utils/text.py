"""Text processing utilities for ReportFusion.

Lexical helpers behind the semantic similarity component: Indonesian-aware
normalization, domain keyword and entity extraction, and set/vector overlap
measures. All functions are stateless with no I/O.
"""

from __future__ import annotations

import math
import re
from collections import Counter
from typing import FrozenSet, Iterable, List, Sequence

# ── Vocabulary ────────────────────────────────────────────────────────────────
STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "yang", "dan", "di", "ke", "dari", "untuk", "dengan", "ini", "itu",
        "ada", "adalah", "atau", "juga", "akan", "pada", "oleh", "dalam",
        "tidak", "bisa", "dapat", "sudah", "masih", "harus", "kalau", "jika",
        "tapi", "tetapi",
    }
)

INFRASTRUCTURE_TERMS: FrozenSet[str] = frozenset(
    {
        "jalan", "jembatan", "trotoar", "lampu", "drainase", "got", "selokan",
        "pipa", "kabel", "tiang", "aspal", "beton", "rusak", "bocor", "pecah",
    }
)

# Matched as substrings: "jalanan" and "rt05" both count as location words
LOCATION_TERMS: Sequence[str] = (
    "jalan", "jl", "gang", "gg", "rt", "rw", "kelurahan", "kecamatan",
    "depan", "belakang", "samping", "dekat", "sekitar",
)

ISSUE_TERMS: FrozenSet[str] = frozenset(
    {
        "rusak", "bocor", "pecah", "roboh", "kotor", "bau", "macet", "gelap",
        "bahaya", "tidak", "kurang", "buruk", "jelek", "parah",
    }
)

# ── Patterns ──────────────────────────────────────────────────────────────────
# Keep word characters plus Latin-1 Supplement/Extended-A and Latin Extended Additional
_PUNCT_RE = re.compile(r"[^\w\s\u00C0-\u017F\u1E00-\u1EFF]")
_WHITESPACE_RE = re.compile(r"\s+")

_NUMBER_RE = re.compile(r"\d+")
_STREET_RE = re.compile(r"jalan?\s+[\w\s]+|jl\.?\s*[\w\s]+", re.IGNORECASE)
_RT_RW_RE = re.compile(r"rt\s*\d+|rw\s*\d+", re.IGNORECASE)

_MIN_KEYWORD_LEN = 2      # keywords must be longer than this
_MIN_FREQUENT_LEN = 3     # frequent words must be longer than this
_MIN_FREQUENCY = 2


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace and drop stop words.

    Args:
        text: Raw report description.

    Returns:
        Space-joined normalized tokens (empty string if nothing survives).
    """
    if not text:
        return ""
    cleaned = _PUNCT_RE.sub(" ", text.lower().strip())
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return " ".join(w for w in cleaned.split(" ") if w and w not in STOP_WORDS)


def tokenize(normalized: str) -> List[str]:
    """Split normalized text into tokens."""
    return [w for w in normalized.split(" ") if w]


def extract_keywords(normalized: str) -> List[str]:
    """Extract domain keywords from normalized text.

    A keyword is a word longer than two characters that is an infrastructure
    or issue term or contains a location term, or any word longer than three
    characters occurring at least twice.

    Args:
        normalized: Output of normalize_text().

    Returns:
        Distinct keywords in first-occurrence order.
    """
    words = [w for w in tokenize(normalized) if len(w) > _MIN_KEYWORD_LEN]

    important = [
        w
        for w in words
        if w in INFRASTRUCTURE_TERMS
        or w in ISSUE_TERMS
        or any(term in w for term in LOCATION_TERMS)
    ]
    counts = Counter(words)
    frequent = [
        w for w, freq in counts.items() if freq >= _MIN_FREQUENCY and len(w) > _MIN_FREQUENT_LEN
    ]
    return list(dict.fromkeys(important + frequent))


def extract_entities(normalized: str) -> List[str]:
    """Extract numbers, street-name phrases and RT/RW codes.

    Args:
        normalized: Output of normalize_text().

    Returns:
        Lowercased entity strings (may contain duplicates).
    """
    entities: List[str] = list(_NUMBER_RE.findall(normalized))
    entities.extend(m.lower().strip() for m in _STREET_RE.findall(normalized))
    entities.extend(m.lower().strip() for m in _RT_RW_RE.findall(normalized))
    return entities


def jaccard(a: Iterable[str], b: Iterable[str]) -> float:
    """Jaccard index of two collections treated as sets (0.0 when both are empty)."""
    set_a, set_b = set(a), set(b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def cosine_similarity(normalized_a: str, normalized_b: str) -> float:
    """Cosine similarity of term-frequency vectors of two normalized texts."""
    freq_a = Counter(tokenize(normalized_a))
    freq_b = Counter(tokenize(normalized_b))
    if not freq_a or not freq_b:
        return 0.0

    vocabulary = sorted(set(freq_a) | set(freq_b))
    dot = sum(freq_a[w] * freq_b[w] for w in vocabulary)
    mag_a = math.sqrt(sum(v * v for v in freq_a.values()))
    mag_b = math.sqrt(sum(v * v for v in freq_b.values()))
    if mag_a == 0 or mag_b == 0:
        return 0.0
    return dot / (mag_a * mag_b)


def length_similarity(normalized_a: str, normalized_b: str) -> float:
    """Ratio of the shorter to the longer text length in characters."""
    len_a, len_b = len(normalized_a), len(normalized_b)
    if len_a == 0 and len_b == 0:
        return 1.0
    if len_a == 0 or len_b == 0:
        return 0.0
    return min(len_a, len_b) / max(len_a, len_b)
