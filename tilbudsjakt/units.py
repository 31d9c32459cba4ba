"""Price and pack-size parsing for catalog offers."""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from .offers import Offer

BaseUnit = Literal["g", "ml"]


# Pack-size units -> (multiplier to base unit, base unit).
# "stk" has no physical size; its base unit stays "g" but its total is a
# piece count and must not be compared with mass or volume totals.
UNIT_INFO: dict[str, tuple[float, BaseUnit]] = {
    # Mass -> grams
    "kg": (1000.0, "g"),
    "hg": (100.0, "g"),
    "g": (1.0, "g"),
    # Volume -> milliliters
    "l": (1000.0, "ml"),
    "dl": (100.0, "ml"),
    "cl": (10.0, "ml"),
    "ml": (1.0, "ml"),
    # Count
    "stk": (1.0, "g"),
}

# Accepted pack-size grammar (case-insensitive):
#   [COUNT ("x" | "×" | "stk" | "stk.")] AMOUNT UNIT
# COUNT is an integer, AMOUNT digits with an optional "." or "," decimal part,
# UNIT one of kg, g, hg, l, dl, cl, ml, stk followed by a word boundary.
#   "400g", "1,5 kg", "6 × 1.5l", "4x100g", "2 stk 250 g", "10 stk"
PACK_SIZE_RE = re.compile(
    r"(?:(\d+)\s*(?:x|×|stk\.?)\s*)?(\d+[.,]?\d*)\s*(kg|g|hg|l|dl|cl|ml|stk)\b",
    re.IGNORECASE,
)

# "N × size unit" in a quantity string, e.g. "6 × 1.5l" or "4 x 100g"
MULTI_PACK_RE = re.compile(r"(\d+)\s*[×x]\s*[\d.,]+[a-zA-Z]+")

_PRICE_CHARS_RE = re.compile(r"[^\d,.\-]")
_LEADING_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


@dataclass
class PackSize:
    """Pack size parsed from an offer title or quantity string."""

    count: int
    amount: float
    unit: str
    total_amount: float
    base_unit: BaseUnit

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "count": self.count,
            "amount": self.amount,
            "unit": self.unit,
            "totalAmount": self.total_amount,
            "baseUnit": self.base_unit,
        }


@dataclass
class UnitPrice:
    """Normalized price per kilogram or per litre."""

    value: float
    unit: Literal["kg", "l"]

    def __str__(self) -> str:
        return format_unit_price(self)


def parse_price(value: Any) -> float:
    """
    Parse a price value in any of the formats seen in catalog data.

    Handles numbers, price objects with a "value" key and strings like
    "129,-", "45,90 kr" or "kr 12.50". Never raises.

    Returns:
        Parsed price, or 0.0 when nothing numeric is found
    """
    if isinstance(value, Mapping):
        value = value.get("value")

    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else 0.0

    cleaned = _PRICE_CHARS_RE.sub("", str(value)).replace(",", ".", 1)
    match = _LEADING_NUMBER_RE.match(cleaned)
    if not match:
        return 0.0

    try:
        price = float(match.group(0))
    except ValueError:
        return 0.0
    return price if math.isfinite(price) else 0.0


def extract_price(offer: "Offer | Mapping[str, Any] | None") -> float:
    """
    Extract the numeric price of an offer.

    Raw catalog records are read in priority order: nested ``pricing.price``,
    flat ``price``, then the free-text ``priceText`` field. Canonical offers
    carry an already-parsed price.

    Args:
        offer: Canonical Offer or raw offer mapping

    Returns:
        Price in NOK, or 0.0 when missing or unparseable
    """
    if offer is None:
        return 0.0

    if isinstance(offer, Mapping):
        pricing = offer.get("pricing")
        nested = pricing.get("price") if isinstance(pricing, Mapping) else None
        value = nested or offer.get("price") or offer.get("priceText")
        return parse_price(value)

    return parse_price(getattr(offer, "price", None))


def parse_pack_size(text: str | None) -> PackSize | None:
    """
    Parse a pack size from free text.

    Examples:
        "Gilde Kjøttdeig 400g" -> PackSize(1, 400, "g", 400, "g")
        "6 × 1.5l" -> PackSize(6, 1.5, "l", 9000, "ml")
        "Egg 12 stk" -> PackSize(1, 12, "stk", 12, "g")

    Returns:
        PackSize or None if no size is found
    """
    if not text:
        return None

    match = PACK_SIZE_RE.search(str(text))
    if not match:
        return None

    count = int(match.group(1)) if match.group(1) else 1
    amount = float(match.group(2).replace(",", "."))
    unit = match.group(3).lower()

    multiplier, base_unit = UNIT_INFO[unit]

    return PackSize(
        count=count,
        amount=amount,
        unit=unit,
        total_amount=count * amount * multiplier,
        base_unit=base_unit,
    )


def get_piece_count(quantity: str | None, pieces: int | None) -> int:
    """Get the number of items in a multi-pack.

    A "N × size unit" quantity string with a positive N wins over the
    ``pieces`` field; non-positive counts fall back to 1.
    """
    if quantity and isinstance(quantity, str):
        match = MULTI_PACK_RE.search(quantity)
        if match and int(match.group(1)) > 0:
            return int(match.group(1))

    return pieces if pieces and pieces > 0 else 1


def calculate_unit_price(offer: "Offer") -> UnitPrice | None:
    """
    Calculate the price per kg or per litre of an offer.

    Uses the offer's ``size`` and ``unit`` fields together with its piece
    count, so "6 × 1.5l" for 99 kr gives 11 kr/l.

    Args:
        offer: Canonical offer

    Returns:
        UnitPrice, or None for missing prices, non-positive sizes or units
        other than g, ml and l
    """
    price = extract_price(offer)
    size = offer.size
    unit = (offer.unit or "").lower()

    if price <= 0 or not size or size <= 0 or not unit:
        return None

    total_size = size * get_piece_count(offer.quantity, offer.pieces)

    if unit == "g":
        return UnitPrice(value=price / total_size * 1000, unit="kg")
    if unit == "ml":
        return UnitPrice(value=price / total_size * 1000, unit="l")
    if unit == "l":
        return UnitPrice(value=price / total_size, unit="l")

    return None


def format_unit_price(unit_price: UnitPrice | None) -> str:
    """
    Format a unit price for display.

    Prices below 10 keep two decimals, larger prices are rounded:
    "4.50 kr/l", "248 kr/kg".
    """
    if unit_price is None:
        return ""

    if unit_price.value < 10:
        amount = f"{unit_price.value:.2f}"
    else:
        amount = f"{round(unit_price.value)}"

    return f"{amount} kr/{unit_price.unit}"
