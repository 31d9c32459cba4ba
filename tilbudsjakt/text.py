"""Text normalization and tokenization for Norwegian product titles."""

import re
from dataclasses import dataclass

# Lowercase characters folded to ASCII. The Norwegian letters map to their
# two-letter transliterations; the accented vowels show up in imported brands
# ("crème fraîche", "müsli").
CHARACTER_FOLDS: dict[str, str] = {
    "æ": "ae",
    "ø": "oe",
    "å": "aa",
    "ä": "ae",
    "ö": "oe",
    "ü": "ue",
    "é": "e",
    "è": "e",
    "ê": "e",
    "ë": "e",
    "î": "i",
    "ô": "o",
}

_FOLD_TABLE = str.maketrans(CHARACTER_FOLDS)

# Punctuation replaced by a space during normalization. Dots and commas inside
# numbers ("1.5l") are kept so pack sizes survive normalization.
_PUNCTUATION_RE = re.compile(r"[,;:()\[\]{}]")
_WHITESPACE_RE = re.compile(r"\s+")

# Extra token separators: hyphen, en dash, em dash, underscore, slash, plus
# and the multiplication sign used in multi-pack sizes.
_TOKEN_SEPARATOR_RE = re.compile(r"[\-–—_/+×]")

# Norwegian grocery brands recognised in offer titles (normalized form)
KNOWN_BRANDS: tuple[str, ...] = (
    "tine",
    "q",
    "synnoeve",
    "prior",
    "gilde",
    "first price",
    "rema",
    "eldorado",
    "toro",
    "freia",
    "uncle ben",
    "nortura",
    "leroy",
    "salmar",
    "stabburet",
    "finsbraaten",
    "jarlsberg",
    "president",
    "bakehuset",
    "mutti",
    "santa maria",
    "old el paso",
    "barilla",
    "mission",
    "nidar",
    "mesterbakeren",
    "friele",
    "evergood",
    "ali",
)

_SINGLE_WORD_BRANDS = frozenset(b for b in KNOWN_BRANDS if " " not in b)
_MULTI_WORD_BRANDS = tuple(b for b in KNOWN_BRANDS if " " in b)

ORGANIC_WORDS = ("oeko", "oekologisk", "organic", "naturell")
LACTOSE_FREE_WORDS = ("laktosefri", "laktosefritt", "lactose free")
FROZEN_WORDS = ("frossen", "fryst", "dypfryst", "frozen")
FRESH_WORDS = ("fersk", "fresh", "ferskt")
LOW_FAT_WORDS = ("lett", "light", "low fat", "lavt fettinnhold")


def normalize(text: str | None) -> str:
    """
    Normalize text for matching.

    Lowercases, folds Norwegian letters and common accents to ASCII, replaces
    separating punctuation with spaces and collapses whitespace.

    Examples:
        "Gilde Kjøttdeig 400g" -> "gilde kjoettdeig 400g"
        "Rømme (18%)" -> "roemme 18%"

    Args:
        text: Raw text, may be None

    Returns:
        Normalized text, empty string for empty input
    """
    if not text:
        return ""

    folded = str(text).lower().translate(_FOLD_TABLE)
    folded = _PUNCTUATION_RE.sub(" ", folded)
    return _WHITESPACE_RE.sub(" ", folded).strip()


def tokenize(text: str | None) -> list[str]:
    """
    Split text into normalized word tokens.

    Hyphens, dashes, underscores, slashes, plus signs and "×" also separate
    tokens, so "kylling-filet" gives ["kylling", "filet"].
    """
    normalized = normalize(text)
    if not normalized:
        return []

    return [token for token in _TOKEN_SEPARATOR_RE.sub(" ", normalized).split() if token]


def _contains_word(normalized: str, words: tuple[str, ...]) -> bool:
    padded = f" {normalized} "
    return any(f" {word} " in padded for word in words)


@dataclass
class OfferAttributes:
    """Product properties read from an offer title."""

    brand: str | None = None
    organic: bool = False
    lactose_free: bool = False
    frozen: bool = False
    fresh: bool = False
    low_fat: bool = False

    def to_dict(self) -> dict[str, str | bool | None]:
        """Convert to dictionary for serialization."""
        return {
            "brand": self.brand,
            "organic": self.organic,
            "lactoseFree": self.lactose_free,
            "frozen": self.frozen,
            "fresh": self.fresh,
            "lowFat": self.low_fat,
        }


def detect_brand(text: str | None) -> str | None:
    """
    Find a known brand in an offer title.

    The first title token that is a single-word brand wins; otherwise the
    first multi-word brand ("first price", "old el paso") found as a phrase.

    Returns:
        Normalized brand name, or None
    """
    for token in tokenize(text):
        if token in _SINGLE_WORD_BRANDS:
            return token

    normalized = normalize(text)
    for brand in _MULTI_WORD_BRANDS:
        if _contains_word(normalized, (brand,)):
            return brand

    return None


def parse_attributes(text: str | None) -> OfferAttributes:
    """Parse brand and product flags (organic, lactose free, ...) from a title."""
    if not text:
        return OfferAttributes()

    # Tokens joined back so "øko-kylling" still reads as "oeko kylling"
    words = " ".join(tokenize(text))

    return OfferAttributes(
        brand=detect_brand(text),
        organic=_contains_word(words, ORGANIC_WORDS),
        lactose_free=_contains_word(words, LACTOSE_FREE_WORDS),
        frozen=_contains_word(words, FROZEN_WORDS),
        fresh=_contains_word(words, FRESH_WORDS),
        low_fat=_contains_word(words, LOW_FAT_WORDS),
    )
