"""Shared fixtures for tilbudsjakt tests."""

import json

import pytest

from tilbudsjakt.matcher import OfferMatcher
from tilbudsjakt.meals import Meal, MealCatalog
from tilbudsjakt.offers import Offer, OfferStore
from tilbudsjakt.service import DealFinder
from tilbudsjakt.synsets import SynsetRegistry


@pytest.fixture
def kjottdeig_synset_data():
    """The kjøttdeig synset record used throughout the matching tests."""
    return {
        "canonical": "kjøttdeig",
        "synonyms": ["kjøttdeig", "kjøttfarse"],
        "brands": ["gilde"],
        "exclude": ["pølse"],
        "category": {"top": "Kjøtt", "mid": "Storfe", "leaf": "Kjøttdeig"},
    }


@pytest.fixture
def synset_records(kjottdeig_synset_data):
    """A small synset table."""
    return [
        kjottdeig_synset_data,
        {
            "canonical": "melk",
            "synonyms": ["melk", "lettmelk", "helmelk"],
            "exclude": ["melkesjokolade"],
            "brands": ["tine", "q"],
            "category": {"top": "Meieri", "mid": "Melk", "leaf": "Melk"},
            "maxPrice": 40,
        },
        {
            "canonical": "egg",
            "synonyms": ["egg", "frittgående egg"],
            "exclude": ["eggeplante", "påskeegg"],
            "category": "Meieri",
            "strictMatching": True,
        },
        {
            "canonical": "tacoskjell",
            "synonyms": ["tacoskjell", "taco shells"],
            "brands": ["old el paso"],
            "category": {"top": "Tørrvarer", "mid": "Meksikansk", "leaf": "Tortilla"},
        },
    ]


@pytest.fixture
def synsets_file(tmp_path, synset_records):
    """Write the synset table to a JSON file."""
    path = tmp_path / "synsets.json"
    path.write_text(json.dumps(synset_records, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def registry(synset_records):
    """Registry built from in-memory records."""
    return SynsetRegistry(synset_records)


@pytest.fixture
def matcher(registry):
    """OfferMatcher over the small synset table."""
    return OfferMatcher(registry)


@pytest.fixture
def sample_offers():
    """Canonical offers from a few stores."""
    return [
        Offer(title="Gilde Kjøttdeig 400g", store="Rema 1000", price=49.9),
        Offer(title="Kjøttdeig Pølse Mix", store="Kiwi", price=39.0),
        Offer(title="SVINEKJØTTDEIG 20%", store="Bunnpris", price=89.0),
        Offer(title="Tine Lettmelk 1l", store="Kiwi", price=22.5, unit="l", size=1.0),
        Offer(title="Freia Melkesjokolade 200g", store="Meny", price=35.0),
        Offer(title="Prior Egg 12 stk", store="Rema 1000", price=45.0),
        Offer(title="Eggeplante", store="Meny", price=19.9),
        Offer(
            title="COCA-COLA",
            store="Kiwi",
            price=99.0,
            description="Leskedrikk",
            quantity="6 × 1.5l",
            unit="l",
            size=1.5,
            pieces=6,
        ),
    ]


@pytest.fixture
def meal_catalog():
    """Two meals, one using ingredients without offers."""
    return MealCatalog(
        [
            Meal(
                name="Taco",
                ingredients=("kjøttdeig", "tacoskjell", "rømme"),
                category="middag",
            ),
            Meal(name="Pannekaker", ingredients=("melk", "egg", "hvetemel"), category="dessert"),
        ]
    )


@pytest.fixture
def finder(matcher, sample_offers, meal_catalog):
    """DealFinder over the sample offers and meals."""
    return DealFinder(matcher, OfferStore(sample_offers), meals=meal_catalog)
