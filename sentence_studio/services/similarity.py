import math
import re

_NON_WORD = re.compile(r'[^A-Za-z0-9\s]')
_WHITESPACE = re.compile(r'\s+')


def normalize_text(raw: str) -> str:
    """Lowercase, drop hyphens and punctuation, collapse whitespace."""
    text = raw.lower().replace('-', '')
    text = _NON_WORD.sub('', text)
    return _WHITESPACE.sub(' ', text).strip()


def calculate_similarity(reference: str, transcript: str) -> int:
    """
    Word-overlap score between a reference sentence and a spoken transcript, 0-100.

    Each reference word found anywhere in the transcript counts once per occurrence.
    The denominator is the longer of the two word lists, so extra words in the
    transcript lower the score.
    """
    if not reference or not transcript:
        return 0

    ref = normalize_text(reference)
    said = normalize_text(transcript)

    if ref == said:
        return 100

    ref_words = [w for w in ref.split(' ') if w]
    said_words = [w for w in said.split(' ') if w]

    if not ref_words or not said_words:
        return 0

    said_set = set(said_words)
    matches = sum(1 for word in ref_words if word in said_set)
    denominator = max(len(ref_words), len(said_words))

    # half-up, not banker's rounding
    return int(math.floor(matches / denominator * 100 + 0.5))
