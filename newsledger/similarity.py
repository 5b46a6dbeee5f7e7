"""String similarity used by search and by the API's comparison helper."""
from rapidfuzz.distance import Levenshtein

EXACT_SCORE = 100
CONTAINS_SCORE = 80
MIN_TOKEN_LENGTH = 4
LONG_INPUT = 10000


def title_score(query: str, title: str) -> int:
    """
    Score how well a free-text query matches an article title, 0..100.

    Exact (case/whitespace-insensitive) match scores 100, containment either
    way scores 80. Otherwise it is the share of query words longer than three
    characters that contain, or are contained in, some title word.
    """
    q = query.lower().strip()
    t = title.lower().strip()
    if not q or not t:
        return 0
    if q == t:
        return EXACT_SCORE
    if q in t or t in q:
        return CONTAINS_SCORE

    query_words = [w for w in q.split() if len(w) >= MIN_TOKEN_LENGTH]
    if not query_words:
        return 0
    title_words = t.split()
    matched = sum(1 for qw in query_words if any(tw in qw or qw in tw for tw in title_words))
    # half-up, not banker's rounding
    return int(100 * matched / len(query_words) + 0.5)


def levenshtein_distance(a: str, b: str) -> int:
    """Classical edit distance; insert, delete and substitute all cost 1."""
    return Levenshtein.distance(a, b)


def word_overlap(a: str, b: str) -> float:
    """Jaccard ratio of the two word sets, as a percentage."""
    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 100.0
    return round(100 * len(words_a & words_b) / len(union), 2)


def similarity(a: str, b: str) -> float:
    """
    Percentage similarity of two arbitrary strings.

    Uses normalized edit distance, falling back to word-set overlap when
    either input is longer than 10000 characters.
    """
    if a == b:
        return 100.0
    if not a or not b:
        return 0.0

    s1 = a.lower().strip()
    s2 = b.lower().strip()
    if s1 == s2:
        return 100.0
    if len(s1) > LONG_INPUT or len(s2) > LONG_INPUT:
        return word_overlap(s1, s2)

    longest = max(len(s1), len(s2))
    return round((longest - levenshtein_distance(s1, s2)) / longest * 100, 2)
