"""Ingredient synonym sets (synsets) and the registry that resolves them."""

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from rapidfuzz import fuzz, process

from .text import normalize, tokenize

logger = logging.getLogger(__name__)


class SynsetError(Exception):
    """Exception raised for invalid synset data."""

    pass


@dataclass(frozen=True)
class Category:
    """Three-level product category, e.g. Kjøtt > Storfe > Kjøttdeig."""

    top: str
    mid: str = ""
    leaf: str = ""

    @classmethod
    def from_value(cls, value: Any) -> "Category | str | None":
        """Build a category from a {top, mid, leaf} mapping; strings pass through."""
        if isinstance(value, Mapping):
            return cls(
                top=str(value.get("top", "")),
                mid=str(value.get("mid", "")),
                leaf=str(value.get("leaf", "")),
            )
        if isinstance(value, str):
            return value
        return None

    def to_dict(self) -> dict[str, str]:
        return {"top": self.top, "mid": self.mid, "leaf": self.leaf}

    def __str__(self) -> str:
        return " > ".join(part for part in (self.top, self.mid, self.leaf) if part)


def category_to_json(category: "Category | str | None") -> dict[str, str] | str | None:
    """Serialize a category that may be structured, a plain string or missing."""
    if isinstance(category, Category):
        return category.to_dict()
    return category


def _string_list(data: Mapping[str, Any], key: str, canonical: str) -> list[str]:
    """Read an optional list-of-strings field, dropping empty entries.

    Raises:
        SynsetError: If the field is present but not a list
    """
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SynsetError(f"'{key}' for '{canonical}' must be a list, got {type(value).__name__}")
    return [str(item) for item in value if item]


@dataclass(frozen=True)
class Synset:
    """A canonical ingredient with its synonyms, exclusions and brands."""

    canonical: str
    synonyms: tuple[str, ...]
    exclude: tuple[str, ...] = ()
    brands: tuple[str, ...] = ()
    category: Category | str | None = None
    max_price: float | None = None
    strict_matching: bool = False
    # Normalized brand names, used for the brand bonus
    brand_keys: frozenset[str] = field(init=False, compare=False, repr=False)
    # Tokenized brand phrases, matched as whole words in titles
    brand_phrases: tuple[str, ...] = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "synonyms", tuple(self.synonyms))
        object.__setattr__(self, "exclude", tuple(self.exclude))
        object.__setattr__(self, "brands", tuple(self.brands))
        object.__setattr__(self, "brand_keys", frozenset(normalize(b) for b in self.brands))
        phrases = (" ".join(tokenize(b)) for b in self.brands)
        object.__setattr__(self, "brand_phrases", tuple(p for p in phrases if p))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Synset":
        """
        Create a synset from its JSON record.

        The canonical term is added to the synonyms if it is missing.

        Raises:
            SynsetError: If the record has no canonical name or a list field
                has the wrong type
        """
        canonical = str(data.get("canonical") or "").strip()
        if not canonical:
            raise SynsetError(f"Synset without canonical name: {dict(data)!r}")

        synonyms = _string_list(data, "synonyms", canonical)
        if normalize(canonical) not in {normalize(s) for s in synonyms}:
            synonyms.insert(0, canonical)

        brands = tuple(_string_list(data, "brands", canonical))

        max_price = data.get("maxPrice")
        try:
            max_price = float(max_price) if max_price is not None else None
        except (TypeError, ValueError):
            raise SynsetError(f"Invalid maxPrice for '{canonical}': {max_price!r}") from None

        return cls(
            canonical=canonical,
            synonyms=tuple(synonyms),
            exclude=tuple(_string_list(data, "exclude", canonical)),
            brands=brands,
            category=Category.from_value(data.get("category")),
            max_price=max_price if max_price and max_price > 0 else None,
            strict_matching=bool(data.get("strictMatching", False)),
        )

    def has_brand(self, brand: str | None) -> bool:
        """Check if a (normalized) brand is listed for this synset."""
        return bool(brand) and normalize(brand) in self.brand_keys

    def mentions_brand(self, title_words: str) -> bool:
        """Check if a listed brand appears as whole words in a tokenized title.

        Args:
            title_words: ``" ".join(tokenize(title))``
        """
        padded = f" {title_words} "
        return any(f" {phrase} " in padded for phrase in self.brand_phrases)


@dataclass(frozen=True)
class SynsetTable:
    """Immutable lookup table over a list of synsets."""

    synsets: tuple[Synset, ...]
    by_canonical: Mapping[str, Synset]
    by_synonym: Mapping[str, Synset]

    @classmethod
    def build(cls, synsets: Iterable[Synset]) -> "SynsetTable":
        items = tuple(synsets)
        by_canonical: dict[str, Synset] = {}
        by_synonym: dict[str, Synset] = {}

        for synset in items:
            by_canonical.setdefault(synset.canonical.lower(), synset)
            for synonym in synset.synonyms:
                key = normalize(synonym)
                if key:
                    by_synonym.setdefault(key, synset)

        return cls(synsets=items, by_canonical=by_canonical, by_synonym=by_synonym)

    @classmethod
    def empty(cls) -> "SynsetTable":
        return cls.build(())


def parse_synsets(records: Any) -> list[Synset]:
    """
    Parse a list of synset records, skipping invalid ones.

    Raises:
        SynsetError: If the data is not a list of records
    """
    if not isinstance(records, list):
        raise SynsetError("Synset data must be a JSON array")

    synsets = []
    for record in records:
        if not isinstance(record, Mapping):
            logger.warning("Skipping non-object synset record: %r", record)
            continue
        try:
            synsets.append(Synset.from_dict(record))
        except SynsetError as e:
            logger.warning("Skipping invalid synset: %s", e)

    return synsets


def load_synsets_file(path: Path) -> list[Synset]:
    """
    Load synsets from a JSON file.

    Raises:
        SynsetError: If the file cannot be read or parsed
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise SynsetError(f"Failed to load synsets from {path}: {e}") from e

    return parse_synsets(data)


class SynsetRegistry:
    """Resolves ingredient names to synsets.

    The registry reads from a source (a JSON file path or a list of records)
    and keeps an immutable table. ``reload()`` builds a complete new table
    before swapping the reference, so a query sees either the old or the new
    table, never a partial one.
    """

    def __init__(self, source: Path | str | list[Mapping[str, Any]] | None = None) -> None:
        self._source = Path(source) if isinstance(source, str) else source
        self._table = self._load()

    def _load(self) -> SynsetTable:
        if self._source is None:
            return SynsetTable.empty()

        try:
            if isinstance(self._source, Path):
                synsets = load_synsets_file(self._source)
            else:
                synsets = parse_synsets(self._source)
        except SynsetError as e:
            logger.error("%s; falling back to an empty synonym table", e)
            return SynsetTable.empty()

        logger.info("Loaded %d synsets", len(synsets))
        return SynsetTable.build(synsets)

    def reload(self) -> int:
        """Reload synsets from the source without restarting.

        Returns:
            Number of synsets in the new table
        """
        table = self._load()
        self._table = table
        return len(table.synsets)

    @property
    def synsets(self) -> tuple[Synset, ...]:
        return self._table.synsets

    def __len__(self) -> int:
        return len(self._table.synsets)

    def lookup(self, ingredient: str | None) -> Synset | None:
        """
        Find the synset for an ingredient.

        Tries the canonical name (case-insensitive) first, then every synonym
        under normalization.

        Args:
            ingredient: Ingredient name as entered by the shopper

        Returns:
            Matching Synset, or None to trigger fallback search
        """
        if not ingredient or not isinstance(ingredient, str):
            return None

        table = self._table
        synset = table.by_canonical.get(ingredient.strip().lower())
        if synset is not None:
            return synset

        key = normalize(ingredient)
        return table.by_synonym.get(key) if key else None

    def suggest(self, ingredient: str | None, limit: int = 3, min_score: int = 70) -> list[str]:
        """
        Suggest canonical names close to an unknown ingredient.

        Handles typos and inflections ("kjottdeg", "tomater") that an exact
        lookup misses.

        Args:
            ingredient: Ingredient name that did not resolve
            limit: Maximum number of suggestions
            min_score: Minimum rapidfuzz WRatio score (0-100)

        Returns:
            Canonical names, best first
        """
        query = normalize(ingredient)
        if not query:
            return []

        table = self._table
        choices = {synset.canonical: normalize(synset.canonical) for synset in table.synsets}
        results = process.extract(
            query,
            choices,
            scorer=fuzz.WRatio,
            limit=limit,
            score_cutoff=min_score,
        )
        return [canonical for _choice, _score, canonical in results]
