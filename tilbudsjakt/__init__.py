"""Tilbudsjakt - match shopping-list ingredients to Norwegian grocery offers."""

__version__ = "1.0.0"

from .categories import CategoryTagger
from .matcher import MatchResult, OfferMatcher
from .offers import Offer, OfferStore, offer_from_dict
from .optimizer import IngredientGroup, optimize_store_selection
from .service import DealFinder
from .synsets import Synset, SynsetRegistry
from .text import normalize, tokenize
from .units import calculate_unit_price, extract_price, parse_pack_size

__all__ = [
    "DealFinder",
    "OfferMatcher",
    "MatchResult",
    "IngredientGroup",
    "optimize_store_selection",
    "Offer",
    "OfferStore",
    "offer_from_dict",
    "Synset",
    "SynsetRegistry",
    "CategoryTagger",
    "normalize",
    "tokenize",
    "extract_price",
    "parse_pack_size",
    "calculate_unit_price",
]
