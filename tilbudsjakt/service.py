"""Deal finding across ingredients: the entry points used by front ends."""

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from .categories import CategoryTagger
from .config import get_categories_file, get_meals_file, get_offers_dir, get_synsets_file
from .matcher import MatchResult, OfferMatcher
from .meals import MealCatalog
from .offers import Offer, OfferStore
from .optimizer import (
    MAX_OFFERS_PER_INGREDIENT,
    IngredientGroup,
    build_store_coverage,
    optimize_store_selection,
)
from .synsets import SynsetRegistry

logger = logging.getLogger(__name__)


class DealFinder:
    """Finds and ranks offers for a shopping list.

    Owns no global state: the synset registry, offer snapshot, category
    tagger and meal catalog are passed in, so several finders (or tests)
    can coexist.
    """

    def __init__(
        self,
        matcher: OfferMatcher,
        offer_store: OfferStore,
        tagger: CategoryTagger | None = None,
        meals: MealCatalog | None = None,
    ) -> None:
        self.matcher = matcher
        self.offer_store = offer_store
        self.tagger = tagger or CategoryTagger()
        self.meals = meals if meals is not None else MealCatalog()

    @classmethod
    def from_config(
        cls,
        offers_dir: Path | None = None,
        synsets_file: Path | None = None,
        categories_file: Path | None = None,
        meals_file: Path | None = None,
    ) -> "DealFinder":
        """
        Build a finder from files, defaulting to the configured locations.

        Args:
            offers_dir: Directory of "<store>_offers.json" files
            synsets_file: Synset JSON file
            categories_file: Category alias JSON file
            meals_file: Meal suggestion JSON file
        """
        tagger = CategoryTagger.from_file(categories_file or get_categories_file())
        registry = SynsetRegistry(synsets_file or get_synsets_file())
        offer_store = OfferStore.from_directory(offers_dir or get_offers_dir(), tagger=tagger)
        meals = MealCatalog.from_file(meals_file or get_meals_file())
        return cls(OfferMatcher(registry), offer_store, tagger, meals)

    @property
    def registry(self) -> SynsetRegistry:
        return self.matcher.registry

    def find_matches(
        self, ingredient: str | None, offers: Sequence[Offer] | None = None
    ) -> list[MatchResult]:
        """Match one ingredient against the given offers or the current snapshot."""
        if offers is None:
            offers = self.offer_store.offers
        return self.matcher.find_matches(ingredient, offers)

    def find_matching_offers(self, ingredient: str | None) -> list[dict[str, Any]]:
        """Match one ingredient and return flat offer dicts with match details."""
        return [match.to_dict() for match in self.find_matches(ingredient)]

    def get_best_offers(
        self, ingredients: Iterable[Any], max_offers: int = MAX_OFFERS_PER_INGREDIENT
    ) -> list[IngredientGroup]:
        """
        Find the best offers for a list of ingredients.

        Each ingredient is matched separately; the results are then biased
        towards the stores that cover the most ingredients and capped per
        ingredient.

        Args:
            ingredients: Ingredient names; non-strings and blanks are skipped
            max_offers: Offers kept per ingredient (three by default)

        Returns:
            One IngredientGroup per valid ingredient, in query order. Groups
            for ingredients without matches have no offers.
        """
        offers = self.offer_store.offers
        groups = []

        for ingredient in ingredients:
            if not isinstance(ingredient, str) or not ingredient.strip():
                continue

            matches = self.matcher.find_matches(ingredient, offers)
            if matches:
                logger.info("Found %d matches for %r", len(matches), ingredient)
                canonical = matches[0].ingredient
                category = matches[0].category
            else:
                logger.info("No matches for %r", ingredient)
                synset = self.registry.lookup(ingredient)
                canonical = synset.canonical if synset else ingredient.strip().lower()
                category = synset.category if synset else None

            groups.append(
                IngredientGroup(
                    ingredient=ingredient,
                    canonical=canonical,
                    offers=matches,
                    category=category,
                )
            )

        coverage = build_store_coverage(groups)
        logger.debug(
            "Store coverage: %s",
            {store: entry.count for store, entry in coverage.items()},
        )
        return optimize_store_selection(groups, coverage, max_offers)

    def get_meal_offers(
        self, name: str, max_offers: int = MAX_OFFERS_PER_INGREDIENT
    ) -> list[IngredientGroup] | None:
        """
        Find the best offers for every ingredient of a meal.

        Returns:
            Ingredient groups as from get_best_offers, or None for an unknown meal
        """
        meal = self.meals.get_meal_by_name(name)
        if meal is None:
            logger.info("Unknown meal %r", name)
            return None
        return self.get_best_offers(meal.ingredients, max_offers)

    def get_category_offers(self, category: str) -> list[Offer]:
        """Get the current offers tagged with a category."""
        return self.tagger.search_by_category(self.offer_store.offers, category)

    def reload_synsets(self) -> int:
        """Reload the synset table without restarting."""
        count = self.registry.reload()
        logger.info("Reloaded %d synsets", count)
        return count
