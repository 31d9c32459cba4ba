"""Canonical offer records and loading of stored catalog offers."""

import json
import logging
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .units import parse_price

if TYPE_CHECKING:
    from .categories import CategoryTagger

logger = logging.getLogger(__name__)

UNKNOWN_STORE = "Ukjent butikk"
UNKNOWN_TITLE = "Ukjent produkt"

# Offer file keys (file name without "_offers.json") -> display names
STORE_NAMES: dict[str, str] = {
    "rema_1000": "Rema 1000",
    "kiwi": "Kiwi",
    "meny": "Meny",
    "coop_extra": "Coop Extra",
    "bunnpris": "Bunnpris",
    "coop_mega": "Coop Mega",
    "coop_marked": "Coop Marked",
    "coop_prix": "Coop Prix",
    "coop_obs": "Coop Obs",
    "obs": "Obs",
    "spar": "Spar",
}

OFFERS_FILE_SUFFIX = "_offers.json"


class OfferLoadError(Exception):
    """Exception raised when stored offers cannot be read."""

    pass


@dataclass(frozen=True)
class Offer:
    """A catalog offer in canonical shape.

    Every known raw shape (flat fields, nested ``pricing``, catalog hotspot
    quantity objects) is mapped into this record by ``offer_from_dict``
    before it reaches the matcher.
    """

    title: str
    store: str = UNKNOWN_STORE
    price: float | None = None
    description: str = ""
    quantity: str = ""
    unit: str = ""
    size: float | None = None
    pieces: int = 1
    hotspot_id: str | None = None
    original_price: float | None = None
    valid_from: str | None = None
    valid_to: str | None = None
    image_url: str | None = None
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "title": self.title,
            "store": self.store,
            "price": self.price,
            "description": self.description,
            "quantity": self.quantity,
            "unit": self.unit,
            "size": self.size,
            "pieces": self.pieces,
            "hotspotId": self.hotspot_id,
            "originalPrice": self.original_price,
            "validFrom": self.valid_from,
            "validTo": self.valid_to,
            "imageUrl": self.image_url,
            "tags": list(self.tags),
        }


def normalize_store_name(store_key: str) -> str:
    """
    Convert an offer file key to a store display name.

    Examples:
        "rema_1000" -> "Rema 1000"
        "coop_extra" -> "Coop Extra"
        "joker_nord" -> "Joker Nord"
    """
    key = store_key.strip().lower()
    if key in STORE_NAMES:
        return STORE_NAMES[key]

    return re.sub(r"\b\w", lambda m: m.group(0).upper(), key.replace("_", " "))


def _range_value(value: Any) -> Any:
    """Unwrap catalog range objects like {"from": 1.5, "to": 1.5}."""
    if isinstance(value, Mapping):
        return value.get("from", value.get("to"))
    return value


def _to_float(value: Any) -> float | None:
    """Parse a size or piece count; missing, non-numeric and non-finite values give None."""
    value = _range_value(value)
    if value is None or isinstance(value, bool) or value == "":
        return None
    try:
        number = float(str(value).replace(",", "."))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _format_number(value: float) -> str:
    return f"{value:g}"


def format_quantity(size: float | None, unit: str, pieces: int) -> str:
    """
    Format a pack quantity for display.

    Examples:
        (1.5, "l", 6) -> "6 × 1.5l"
        (160, "g", 1) -> "160g"
        (None, "", 1) -> ""
    """
    if size is None or not unit:
        return ""

    amount = f"{_format_number(size)}{unit}"
    if pieces > 1:
        return f"{pieces} × {amount}"
    return amount


def _parse_quantity(raw: Mapping[str, Any]) -> tuple[str, str, float | None, int]:
    """Read (quantity, unit, size, pieces) from the known raw offer shapes."""
    quantity = raw.get("quantity")

    if isinstance(quantity, Mapping):
        # Catalog shape: {"unit": {"symbol": "l"}, "size": {...}, "pieces": {...}}
        unit_field = quantity.get("unit")
        size_field = quantity.get("size")
        pieces_field = quantity.get("pieces")
        quantity_text = None
    else:
        unit_field = raw.get("unit")
        size_field = raw.get("size")
        pieces_field = raw.get("pieces")
        quantity_text = quantity if isinstance(quantity, str) else None

    if isinstance(unit_field, Mapping):
        unit_field = unit_field.get("symbol")
    unit = unit_field if isinstance(unit_field, str) else ""

    size = _to_float(size_field)

    pieces_value = _to_float(pieces_field)
    pieces = int(pieces_value) if pieces_value and pieces_value >= 1 else 1

    if quantity_text is None:
        quantity_text = format_quantity(size, unit, pieces)

    return quantity_text, unit, size, pieces


def offer_from_dict(
    raw: Mapping[str, Any],
    store: str | None = None,
    tagger: "CategoryTagger | None" = None,
) -> Offer:
    """
    Map a raw offer record into a canonical Offer.

    Args:
        raw: Offer as stored by the catalog ingestion (flat or nested shape)
        store: Store name to use when the record does not carry one
        tagger: Optional category tagger used to fill ``tags``

    Returns:
        Canonical Offer
    """
    title = raw.get("title") or raw.get("heading") or UNKNOWN_TITLE

    dealer = raw.get("dealer")
    dealer_name = dealer.get("name") if isinstance(dealer, Mapping) else None
    store_name = raw.get("store") or dealer_name or store or UNKNOWN_STORE

    pricing = raw.get("pricing") if isinstance(raw.get("pricing"), Mapping) else {}
    price = parse_price(pricing.get("price") or raw.get("price") or raw.get("priceText"))
    original_price = parse_price(pricing.get("pre_price") or raw.get("originalPrice"))

    quantity, unit, size, pieces = _parse_quantity(raw)

    hotspot_id = raw.get("hotspotId") or raw.get("hotspot_id")
    tags = tuple(tagger.tag_product(title)) if tagger else tuple(raw.get("tags") or ())

    return Offer(
        title=str(title),
        store=str(store_name),
        price=price if price > 0 else None,
        description=str(raw.get("description") or ""),
        quantity=quantity,
        unit=unit,
        size=size,
        pieces=pieces,
        hotspot_id=str(hotspot_id) if hotspot_id else None,
        original_price=original_price if original_price > 0 else None,
        valid_from=raw.get("validFrom") or raw.get("run_from"),
        valid_to=raw.get("validTo") or raw.get("run_till"),
        image_url=raw.get("imageUrl"),
        tags=tags,
    )


def offer_key(offer: Offer) -> tuple[Any, ...]:
    """Business key identifying an offer: hotspot id, else title+store+price+unit."""
    if offer.hotspot_id:
        return ("hotspot", offer.hotspot_id)
    return ("fields", offer.title, offer.store, offer.price, offer.unit)


def dedupe_offers(offers: Iterable[Offer]) -> list[Offer]:
    """Remove duplicate offers by business key, keeping the first occurrence."""
    seen: set[tuple[Any, ...]] = set()
    unique = []

    for offer in offers:
        key = offer_key(offer)
        if key in seen:
            continue
        seen.add(key)
        unique.append(offer)

    return unique


def load_offers_file(
    path: Path,
    store: str | None = None,
    tagger: "CategoryTagger | None" = None,
) -> list[Offer]:
    """
    Load offers from a JSON array file.

    Args:
        path: Path to a "<store>_offers.json" file
        store: Store name; derived from the file name when omitted
        tagger: Optional category tagger

    Returns:
        Canonical offers from the file

    Raises:
        OfferLoadError: If the file cannot be read or is not a JSON array
    """
    if store is None:
        store = normalize_store_name(path.name.removesuffix(OFFERS_FILE_SUFFIX))

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise OfferLoadError(f"Failed to load offers from {path}: {e}") from e

    if not isinstance(data, list):
        raise OfferLoadError(f"Expected a JSON array in {path}")

    return [
        offer_from_dict(raw, store=store, tagger=tagger)
        for raw in data
        if isinstance(raw, Mapping)
    ]


def load_offers_dir(directory: Path, tagger: "CategoryTagger | None" = None) -> list[Offer]:
    """
    Load and deduplicate all offer files in a directory.

    Unreadable files are logged and skipped.
    """
    if not directory.is_dir():
        logger.warning("Offers directory not found: %s", directory)
        return []

    offers: list[Offer] = []
    for path in sorted(directory.glob(f"*{OFFERS_FILE_SUFFIX}")):
        try:
            loaded = load_offers_file(path, tagger=tagger)
        except OfferLoadError as e:
            logger.warning("%s", e)
            continue
        logger.debug("Loaded %d offers from %s", len(loaded), path.name)
        offers.extend(loaded)

    unique = dedupe_offers(offers)
    logger.info("Loaded %d offers (%d duplicates dropped)", len(unique), len(offers) - len(unique))
    return unique


class OfferStore:
    """Holds the current offer snapshot shared by concurrent queries."""

    def __init__(self, offers: Iterable[Offer] = ()) -> None:
        self._offers: tuple[Offer, ...] = tuple(offers)

    @classmethod
    def from_directory(
        cls, directory: Path, tagger: "CategoryTagger | None" = None
    ) -> "OfferStore":
        """Create a store from a directory of offer files."""
        return cls(load_offers_dir(directory, tagger=tagger))

    @property
    def offers(self) -> tuple[Offer, ...]:
        return self._offers

    def replace(self, offers: Iterable[Offer]) -> None:
        """Swap in a new snapshot. Readers keep whichever tuple they already hold."""
        self._offers = tuple(offers)

    def __len__(self) -> int:
        return len(self._offers)
