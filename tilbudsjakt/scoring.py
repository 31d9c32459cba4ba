"""Relevance scoring of an offer against an ingredient synset."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .text import normalize, tokenize
from .units import extract_price

if TYPE_CHECKING:
    from .offers import Offer
    from .synsets import Synset

# Score weights
HIT_WEIGHT = 0.35
EXACT_PHRASE_BONUS = 0.25
BRAND_BONUS = 0.20
EXCLUSION_WEIGHT = 0.25
MAX_EXCLUSION_PENALTY = 0.6
MAX_PRICE_PENALTY = 0.4

# Synset matches must score strictly above this to be kept
ACCEPTANCE_THRESHOLD = 0.15

# Hits per synonym match type
PHRASE_HITS = 2
TOKEN_HITS = 1

DISQUALIFIED_REASON = "disqualified by strict matching"


@dataclass
class ScoreResult:
    """Score in [0, 1] with human-readable reasons."""

    score: float
    reasons: list[str] = field(default_factory=list)


def count_hits(
    synonyms: Iterable[str],
    normalized_title: str,
    token_set: set[str] | frozenset[str],
) -> tuple[int, bool]:
    """
    Count how strongly a synset's synonyms match an offer title.

    Each synonym contributes through the first branch that applies:
    - the whole phrase appears in the normalized title: +2, exact match
    - a multi-word synonym whose tokens all appear in the title: +1
    - a single-word synonym present as a title token: +1

    Args:
        synonyms: Synonyms of the resolved synset
        normalized_title: ``normalize(offer.title)``
        token_set: ``set(tokenize(offer.title))``

    Returns:
        Tuple of (hits, exact_match)
    """
    hits = 0
    exact_match = False

    for synonym in synonyms:
        phrase = normalize(synonym)
        if not phrase:
            continue

        synonym_tokens = tokenize(synonym)

        if phrase in normalized_title:
            hits += PHRASE_HITS
            exact_match = True
        elif len(synonym_tokens) > 1 and all(token in token_set for token in synonym_tokens):
            hits += TOKEN_HITS
        elif len(synonym_tokens) == 1 and synonym_tokens[0] in token_set:
            hits += TOKEN_HITS

    return hits, exact_match


def count_exclusions(exclude: Iterable[str], normalized_title: str) -> int:
    """Count excluded terms (e.g. "pølse" for kjøttdeig) present in a title."""
    count = 0
    for term in exclude:
        key = normalize(term)
        if key and key in normalized_title:
            count += 1
    return count


def score_candidate(
    synset: "Synset",
    offer: "Offer",
    hits: int,
    exclusion_count: int,
    brand_boost: bool,
    exact_match: bool,
) -> ScoreResult:
    """
    Score an offer that matched a synset.

    Combines hit count, exact phrase bonus, brand bonus, exclusion penalty
    and price-ceiling penalty, then clamps to [0, 1]. With strict matching,
    any excluded term disqualifies the offer outright.

    Args:
        synset: The resolved synset
        offer: Candidate offer
        hits: Synonym hits from ``count_hits``
        exclusion_count: Excluded terms found in the title
        brand_boost: Title contains a brand listed for the synset
        exact_match: A full synonym phrase appears in the title

    Returns:
        ScoreResult with score and reasons
    """
    if synset.strict_matching and exclusion_count > 0:
        return ScoreResult(score=0.0, reasons=[DISQUALIFIED_REASON])

    score = hits * HIT_WEIGHT
    reasons = []

    if hits > 0:
        reasons.append(f"{hits} synonym hits")

    if exact_match:
        score += EXACT_PHRASE_BONUS
        reasons.append("exact phrase match")

    if brand_boost:
        score += BRAND_BONUS
        reasons.append("known brand")

    if exclusion_count > 0:
        penalty = min(MAX_EXCLUSION_PENALTY, EXCLUSION_WEIGHT * exclusion_count)
        score -= penalty
        reasons.append(f"{exclusion_count} excluded terms (-{penalty:.2f})")

    price = extract_price(offer)
    if synset.max_price and price > synset.max_price:
        price_penalty = min(MAX_PRICE_PENALTY, (price - synset.max_price) / synset.max_price)
        score -= price_penalty
        reasons.append(f"price above ceiling ({price:g} kr > {synset.max_price:g} kr)")

    return ScoreResult(
        score=max(0.0, min(1.0, score)),
        reasons=reasons or ["base matching"],
    )
