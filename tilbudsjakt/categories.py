"""Broad category tagging of offers by title aliases."""

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .offers import Offer

logger = logging.getLogger(__name__)

DEFAULT_TAG = "annet"


class CategoryError(Exception):
    """Exception raised when category data cannot be loaded."""

    pass


def load_categories_file(path: Path) -> list[dict[str, Any]]:
    """
    Load category records from a JSON file.

    Raises:
        CategoryError: If the file cannot be read or is not a JSON array
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise CategoryError(f"Failed to load categories from {path}: {e}") from e

    if not isinstance(data, list):
        raise CategoryError(f"Expected a JSON array of categories in {path}")

    return data


def _valid_records(records: Iterable[Any]) -> list[dict[str, Any]]:
    valid = []
    for record in records:
        if (
            isinstance(record, Mapping)
            and record.get("category")
            and isinstance(record.get("aliases"), list)
        ):
            valid.append(dict(record))
    return valid


class CategoryTagger:
    """Tags offer titles with categories like "kjøtt" or "meieri"."""

    def __init__(self, categories: Iterable[Mapping[str, Any]] = (), path: Path | None = None):
        self.path = path
        self._categories = _valid_records(categories)

    @classmethod
    def from_file(cls, path: Path) -> "CategoryTagger":
        """Create a tagger from a JSON file; load errors give an empty tagger."""
        try:
            records = load_categories_file(path)
        except CategoryError as e:
            logger.warning("%s", e)
            records = []
        return cls(records, path=path)

    @property
    def categories(self) -> list[dict[str, Any]]:
        return list(self._categories)

    def reload(self) -> int:
        """Reload categories from the file the tagger was created from."""
        if self.path is None:
            return len(self._categories)

        try:
            records = load_categories_file(self.path)
        except CategoryError as e:
            logger.warning("%s; keeping %d loaded categories", e, len(self._categories))
            return len(self._categories)

        self._categories = _valid_records(records)
        logger.info("Reloaded %d categories", len(self._categories))
        return len(self._categories)

    def tag_product(self, title: Any) -> list[str]:
        """
        Tag a product title with every category whose alias it contains.

        Returns:
            Category names in definition order, or ["annet"] when none match
        """
        if not title or not isinstance(title, str):
            return [DEFAULT_TAG]

        title_lower = title.lower()
        tags: list[str] = []

        for record in self._categories:
            category = record["category"]
            if category in tags:
                continue
            for alias in record["aliases"]:
                if isinstance(alias, str) and alias and alias.lower() in title_lower:
                    tags.append(category)
                    break

        return tags or [DEFAULT_TAG]

    def get_category_by_name(self, name: str) -> dict[str, Any] | None:
        """Find a category record by name (case-insensitive)."""
        if not name:
            return None

        name_lower = name.lower()
        for record in self._categories:
            if str(record["category"]).lower() == name_lower:
                return record
        return None

    def search_by_category(self, offers: Iterable["Offer"], name: str) -> list["Offer"]:
        """Get the offers whose title is tagged with a category."""
        record = self.get_category_by_name(name)
        if record is None:
            return []

        category = record["category"]
        return [offer for offer in offers if category in self.tag_product(offer.title)]
