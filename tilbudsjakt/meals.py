"""Meal suggestions: named dishes with the ingredients to shop for."""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MEAL_CATEGORY = "annet"


class MealError(Exception):
    """Exception raised for invalid or unreadable meal data."""

    pass


@dataclass(frozen=True)
class Meal:
    """A dish and its shopping-list ingredients."""

    name: str
    ingredients: tuple[str, ...]
    category: str = DEFAULT_MEAL_CATEGORY
    instructions: str = ""
    difficulty: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Meal":
        """
        Create a meal from its JSON record.

        Raises:
            MealError: If the name is missing or the ingredients are not a list
        """
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise MealError(f"Meal without name: {dict(data)!r}")

        ingredients = data.get("ingredients")
        if not isinstance(ingredients, list):
            raise MealError(f"Ingredients for '{name}' must be a list")

        return cls(
            name=name.strip(),
            ingredients=tuple(str(i).strip() for i in ingredients if i and str(i).strip()),
            category=str(data.get("category") or DEFAULT_MEAL_CATEGORY),
            instructions=str(data.get("instructions") or ""),
            difficulty=str(data.get("difficulty") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "ingredients": list(self.ingredients),
            "category": self.category,
            "instructions": self.instructions,
        }
        if self.difficulty:
            data["difficulty"] = self.difficulty
        return data


def parse_meals(records: Iterable[Any]) -> list[Meal]:
    """Parse meal records, skipping invalid ones with a warning."""
    meals = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-object meal record: %r", record)
            continue
        try:
            meals.append(Meal.from_dict(record))
        except MealError as e:
            logger.warning("Skipping invalid meal: %s", e)
    return meals


def load_meals_file(path: Path) -> list[Meal]:
    """
    Load meals from a JSON file.

    Raises:
        MealError: If the file cannot be read or is not a JSON array
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise MealError(f"Failed to load meals from {path}: {e}") from e

    if not isinstance(data, list):
        raise MealError(f"Expected a JSON array of meals in {path}")

    return parse_meals(data)


class MealCatalog:
    """Read-only collection of meal suggestions."""

    def __init__(self, meals: Iterable[Meal] = (), path: Path | None = None):
        self.path = path
        self._meals = tuple(meals)

    @classmethod
    def from_file(cls, path: Path) -> "MealCatalog":
        """Create a catalog from a JSON file; load errors give an empty catalog."""
        try:
            meals = load_meals_file(path)
        except MealError as e:
            logger.warning("%s", e)
            meals = []
        logger.info("Loaded %d meals", len(meals))
        return cls(meals, path=path)

    @property
    def meals(self) -> tuple[Meal, ...]:
        return self._meals

    def __len__(self) -> int:
        return len(self._meals)

    def reload(self) -> int:
        """Reload meals from the catalog file, keeping the old ones on failure."""
        if self.path is None:
            return len(self._meals)

        try:
            meals = load_meals_file(self.path)
        except MealError as e:
            logger.warning("%s; keeping %d loaded meals", e, len(self._meals))
            return len(self._meals)

        self._meals = tuple(meals)
        logger.info("Reloaded %d meals", len(self._meals))
        return len(self._meals)

    def get_meal_by_name(self, name: Any) -> Meal | None:
        """Find a meal by name (case-insensitive)."""
        if not isinstance(name, str) or not name.strip():
            return None

        key = name.strip().lower()
        return next((meal for meal in self._meals if meal.name.lower() == key), None)

    def search_meals(self, query: Any) -> list[Meal]:
        """
        Find meals whose name or one of whose ingredients contains the query.

        An empty query returns every meal.
        """
        if not isinstance(query, str) or not query.strip():
            return list(self._meals)

        term = query.strip().lower()
        return [
            meal
            for meal in self._meals
            if term in meal.name.lower() or any(term in i.lower() for i in meal.ingredients)
        ]

    def get_meals_by_category(self, category: Any) -> list[Meal]:
        """Get the meals in a category (case-insensitive)."""
        if not isinstance(category, str) or not category.strip():
            return []

        key = category.strip().lower()
        return [meal for meal in self._meals if meal.category.lower() == key]
