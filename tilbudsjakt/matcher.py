"""Ingredient to offer matching logic."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any

from .offers import Offer
from .scoring import (
    ACCEPTANCE_THRESHOLD,
    count_exclusions,
    count_hits,
    score_candidate,
)
from .synsets import Category, Synset, SynsetRegistry, category_to_json
from .text import OfferAttributes, normalize, parse_attributes, tokenize
from .units import PackSize, extract_price, parse_pack_size

logger = logging.getLogger(__name__)

# Result caps
MAX_SYNSET_MATCHES = 8
MAX_FALLBACK_MATCHES = 6

# Fallback word search scores
FALLBACK_TITLE_SCORE = 0.8
FALLBACK_DESCRIPTION_SCORE = 0.4
FALLBACK_PRICE_LIMIT = 200.0
FALLBACK_PRICE_PENALTY = 0.3
# Fallback scores this close are ordered by price instead
FALLBACK_TIE_MARGIN = 0.1

FALLBACK_REASON = "fallback exact word match"
FALLBACK_CATEGORY = Category(top="Ukategorisert", mid="Annet", leaf="Ukjent")


@dataclass
class MatchResult:
    """An offer matched to an ingredient, with score and explanation."""

    offer: Offer
    score: float
    reasons: list[str]
    ingredient: str
    category: Category | str | None = None
    pack_size: PackSize | None = None
    attributes: OfferAttributes = field(default_factory=OfferAttributes)

    @property
    def store(self) -> str:
        return self.offer.store

    @property
    def price(self) -> float:
        return extract_price(self.offer)

    def to_dict(self) -> dict[str, Any]:
        """Flatten the offer and add match details for serialization."""
        return {
            **self.offer.to_dict(),
            "matchScore": round(self.score, 4),
            "matchReason": ", ".join(self.reasons),
            "reasons": list(self.reasons),
            "ingredient": self.ingredient,
            "category": category_to_json(self.category),
            "packSize": self.pack_size.to_dict() if self.pack_size else None,
            "attributes": self.attributes.to_dict(),
        }


class OfferMatcher:
    """Matches ingredient names against catalog offers.

    Ingredients with a synset are scored on synonym hits, exclusions, brands
    and price ceilings. Unknown ingredients fall back to a whole-word search
    on the offer title and description.
    """

    def __init__(self, registry: SynsetRegistry) -> None:
        self.registry = registry

    def find_matches(self, ingredient: str | None, offers: Sequence[Offer]) -> list[MatchResult]:
        """
        Find the best offers for one ingredient.

        Args:
            ingredient: Ingredient name, e.g. "kjøttdeig"
            offers: Canonical offers to search

        Returns:
            Matches sorted best first; at most 8 for synset matches and 6 for
            fallback matches. Empty for blank ingredients or no offers.
        """
        if not ingredient or not isinstance(ingredient, str) or not ingredient.strip():
            return []
        if not offers:
            return []

        synset = self.registry.lookup(ingredient)
        if synset is None:
            logger.debug("No synset for %r, using fallback search", ingredient)
            return self.fallback_search(ingredient, offers)

        logger.debug(
            "Matching %r with synset %r (synonyms: %s; excludes: %s)",
            ingredient,
            synset.canonical,
            ", ".join(synset.synonyms),
            ", ".join(synset.exclude) or "none",
        )
        return self.match_synset(synset, offers)

    def match_synset(self, synset: Synset, offers: Sequence[Offer]) -> list[MatchResult]:
        """Score every offer against a synset and keep the best matches."""
        matches = []

        for offer in offers:
            text = offer.title
            normalized = normalize(text)
            tokens = tokenize(text)
            token_set = set(tokens)

            hits, exact_match = count_hits(synset.synonyms, normalized, token_set)
            if hits == 0:
                continue

            exclusion_count = count_exclusions(synset.exclude, normalized)
            attributes = parse_attributes(text)
            brand_boost = synset.has_brand(attributes.brand) or synset.mentions_brand(
                " ".join(tokens)
            )

            result = score_candidate(
                synset, offer, hits, exclusion_count, brand_boost, exact_match
            )

            if result.score > ACCEPTANCE_THRESHOLD:
                matches.append(
                    MatchResult(
                        offer=offer,
                        score=result.score,
                        reasons=result.reasons,
                        ingredient=synset.canonical,
                        category=synset.category,
                        pack_size=parse_pack_size(text),
                        attributes=attributes,
                    )
                )

        # Stable sort keeps catalog order for equal scores
        matches.sort(key=lambda m: m.score, reverse=True)
        logger.debug("%r: %d synset matches", synset.canonical, len(matches))
        return matches[:MAX_SYNSET_MATCHES]

    def fallback_search(self, ingredient: str, offers: Sequence[Offer]) -> list[MatchResult]:
        """
        Whole-word search for ingredients without a synset.

        A title hit scores 0.8 and a description-only hit 0.4; offers above
        200 kr lose 0.3. Only positive scores are kept.
        """
        term = ingredient.strip().lower()
        pattern = re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
        matches = []

        for offer in offers:
            if pattern.search(offer.title):
                score = FALLBACK_TITLE_SCORE
            elif pattern.search(offer.description):
                score = FALLBACK_DESCRIPTION_SCORE
            else:
                continue

            if extract_price(offer) > FALLBACK_PRICE_LIMIT:
                score -= FALLBACK_PRICE_PENALTY

            if score <= 0:
                continue

            matches.append(
                MatchResult(
                    offer=offer,
                    score=score,
                    reasons=[FALLBACK_REASON],
                    ingredient=term,
                    category=FALLBACK_CATEGORY,
                    pack_size=parse_pack_size(offer.title),
                    attributes=parse_attributes(offer.title),
                )
            )

        logger.debug("%r (fallback): %d word matches", ingredient, len(matches))
        matches.sort(key=cmp_to_key(_compare_fallback))
        return matches[:MAX_FALLBACK_MATCHES]


def _compare_fallback(a: MatchResult, b: MatchResult) -> float:
    """Order by score, but by price when scores are within the tie margin."""
    if abs(a.score - b.score) > FALLBACK_TIE_MARGIN:
        return b.score - a.score
    return a.price - b.price
