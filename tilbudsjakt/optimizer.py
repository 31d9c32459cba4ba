"""Store optimization across ingredients ("shop at as few stores as possible")."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from .matcher import MatchResult
from .offers import UNKNOWN_STORE
from .synsets import Category, category_to_json

logger = logging.getLogger(__name__)

MAX_PREFERRED_STORES = 3
MAX_EXTRA_OFFERS = 2
MAX_OFFERS_PER_INGREDIENT = 3


@dataclass
class IngredientGroup:
    """Matched offers for one queried ingredient."""

    ingredient: str
    canonical: str
    offers: list[MatchResult]
    category: Category | str | None = None
    recommended_store: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "ingredient": self.ingredient,
            "canonical": self.canonical,
            "offers": [match.to_dict() for match in self.offers],
            "category": category_to_json(self.category),
            "recommendedStore": self.recommended_store,
        }


@dataclass
class StoreCoverage:
    """Distinct ingredients one store has offers for."""

    count: int = 0
    ingredients: list[str] = field(default_factory=list)


def _store_name(match: MatchResult) -> str:
    return match.store or UNKNOWN_STORE


def build_store_coverage(groups: Sequence[IngredientGroup]) -> dict[str, StoreCoverage]:
    """
    Count, per store, how many distinct ingredients it has an offer for.

    A store with five offers for the same ingredient counts once.
    """
    coverage: dict[str, StoreCoverage] = {}

    for group in groups:
        for match in group.offers:
            store = _store_name(match)
            entry = coverage.setdefault(store, StoreCoverage())
            if group.ingredient not in entry.ingredients:
                entry.count += 1
                entry.ingredients.append(group.ingredient)

    return coverage


def rank_stores(
    coverage: dict[str, StoreCoverage], limit: int = MAX_PREFERRED_STORES
) -> list[str]:
    """Rank stores by ingredient coverage; ties keep first-seen order."""
    ranked = sorted(coverage.items(), key=lambda item: item[1].count, reverse=True)
    return [store for store, entry in ranked[:limit] if entry.count > 0]


def _sort_price(match: MatchResult) -> float:
    price = match.price
    return price if price > 0 else math.inf


def optimize_group(
    group: IngredientGroup,
    preferred_stores: Sequence[str],
    max_offers: int = MAX_OFFERS_PER_INGREDIENT,
) -> IngredientGroup:
    """
    Reorder one ingredient's offers towards the preferred stores.

    Offers from preferred stores come first (in store rank order), followed by
    up to two offers from other stores. The list is then sorted by price and
    cut to ``max_offers``.
    """
    if not group.offers:
        return group

    candidates: list[MatchResult] = []
    for store in preferred_stores:
        candidates.extend(m for m in group.offers if _store_name(m) == store)

    others = [m for m in group.offers if _store_name(m) not in preferred_stores]
    candidates.extend(others[:MAX_EXTRA_OFFERS])

    # Same object listed twice; equal-looking distinct offers are kept
    seen: set[int] = set()
    unique = []
    for match in candidates:
        if id(match) not in seen:
            seen.add(id(match))
            unique.append(match)

    unique.sort(key=_sort_price)

    return replace(
        group,
        offers=unique[:max_offers],
        recommended_store=preferred_stores[0] if preferred_stores else None,
    )


def optimize_store_selection(
    groups: Sequence[IngredientGroup],
    coverage: dict[str, StoreCoverage] | None = None,
    max_offers: int = MAX_OFFERS_PER_INGREDIENT,
) -> list[IngredientGroup]:
    """
    Concentrate offers into the stores that cover the most ingredients.

    Args:
        groups: Per-ingredient match lists, in query order
        coverage: Store coverage; built from ``groups`` when omitted
        max_offers: Offers kept per ingredient

    Returns:
        New groups with reordered, capped offers and a recommended store
    """
    if coverage is None:
        coverage = build_store_coverage(groups)

    preferred_stores = rank_stores(coverage)
    logger.debug("Preferred stores: %s", ", ".join(preferred_stores) or "none")

    return [optimize_group(group, preferred_stores, max_offers) for group in groups]
