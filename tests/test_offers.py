"""Tests for canonical offers and offer file loading."""

import json

import pytest

from tilbudsjakt.categories import CategoryTagger
from tilbudsjakt.offers import (
    UNKNOWN_STORE,
    UNKNOWN_TITLE,
    Offer,
    OfferLoadError,
    OfferStore,
    dedupe_offers,
    format_quantity,
    load_offers_dir,
    load_offers_file,
    normalize_store_name,
    offer_from_dict,
)


def write_offers(path, records):
    path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
    return path


# ============================================================================
# Raw Record Mapping
# ============================================================================


class TestOfferFromDict:
    """Tests for offer_from_dict function."""

    def test_flat_record(self):
        offer = offer_from_dict(
            {
                "title": "Tine Lettmelk",
                "store": "Kiwi",
                "price": "22,50",
                "quantity": "1l",
                "unit": "l",
                "size": 1,
                "hotspotId": 123,
            }
        )
        assert offer.title == "Tine Lettmelk"
        assert offer.store == "Kiwi"
        assert offer.price == pytest.approx(22.5)
        assert offer.quantity == "1l"
        assert offer.unit == "l"
        assert offer.size == 1.0
        assert offer.pieces == 1
        assert offer.hotspot_id == "123"

    def test_catalog_record(self):
        """Catalog hotspot records nest price, dealer and quantity."""
        offer = offer_from_dict(
            {
                "heading": "COCA-COLA",
                "description": "Flere varianter",
                "dealer": {"name": "Kiwi"},
                "pricing": {"price": 99, "pre_price": 129},
                "quantity": {
                    "unit": {"symbol": "l"},
                    "size": {"from": 1.5, "to": 1.5},
                    "pieces": {"from": 6, "to": 6},
                },
                "run_from": "2024-03-04",
                "run_till": "2024-03-10",
            }
        )
        assert offer.title == "COCA-COLA"
        assert offer.store == "Kiwi"
        assert offer.price == 99
        assert offer.original_price == 129
        assert offer.unit == "l"
        assert offer.size == 1.5
        assert offer.pieces == 6
        assert offer.quantity == "6 × 1.5l"
        assert offer.valid_from == "2024-03-04"
        assert offer.valid_to == "2024-03-10"

    def test_store_fallbacks(self):
        assert offer_from_dict({"title": "Melk"}, store="Meny").store == "Meny"
        assert offer_from_dict({"title": "Melk", "store": "Spar"}, store="Meny").store == "Spar"
        assert offer_from_dict({"title": "Melk"}).store == UNKNOWN_STORE

    def test_missing_title(self):
        assert offer_from_dict({}).title == UNKNOWN_TITLE

    def test_missing_or_zero_price(self):
        assert offer_from_dict({"title": "Melk"}).price is None
        assert offer_from_dict({"title": "Melk", "price": 0}).price is None
        assert offer_from_dict({"title": "Melk", "price": "gratis"}).price is None

    def test_price_text(self):
        assert offer_from_dict({"title": "Ost", "priceText": "89,-"}).price == 89

    def test_invalid_pieces_default_to_one(self):
        offer = offer_from_dict({"title": "Yoghurt", "unit": "g", "size": 125, "pieces": 0})
        assert offer.pieces == 1
        assert offer.quantity == "125g"

    def test_non_finite_numbers_ignored(self):
        raw = json.loads('{"title": "Melk", "price": 1e999, "size": 1e999, "pieces": 1e999}')
        offer = offer_from_dict(raw)
        assert offer.price is None
        assert offer.size is None
        assert offer.pieces == 1

    def test_fractional_pieces_default_to_one(self):
        assert offer_from_dict({"title": "Melk", "pieces": 0.5}).pieces == 1

    def test_tags_from_tagger(self):
        tagger = CategoryTagger([{"category": "meieri", "aliases": ["melk"]}])
        offer = offer_from_dict({"title": "Tine Lettmelk"}, tagger=tagger)
        assert offer.tags == ("meieri",)

    def test_to_dict(self):
        data = Offer(title="Melk", store="Kiwi", price=22.0, hotspot_id="h1").to_dict()
        assert data["title"] == "Melk"
        assert data["hotspotId"] == "h1"
        assert data["tags"] == []


class TestNormalizeStoreName:
    """Tests for normalize_store_name function."""

    def test_known_stores(self):
        assert normalize_store_name("rema_1000") == "Rema 1000"
        assert normalize_store_name("coop_extra") == "Coop Extra"
        assert normalize_store_name("KIWI") == "Kiwi"

    def test_unknown_store_title_cased(self):
        assert normalize_store_name("joker_nord") == "Joker Nord"


class TestFormatQuantity:
    """Tests for format_quantity function."""

    def test_multi_pack(self):
        assert format_quantity(1.5, "l", 6) == "6 × 1.5l"

    def test_single(self):
        assert format_quantity(160.0, "g", 1) == "160g"

    def test_missing(self):
        assert format_quantity(None, "", 1) == ""
        assert format_quantity(500.0, "", 1) == ""


# ============================================================================
# Deduplication
# ============================================================================


class TestDedupeOffers:
    """Tests for dedupe_offers function."""

    def test_same_hotspot_dropped(self):
        first = Offer(title="Melk", store="Kiwi", price=20.0, hotspot_id="h1")
        second = Offer(title="Melk (ny)", store="Kiwi", price=21.0, hotspot_id="h1")
        assert dedupe_offers([first, second]) == [first]

    def test_same_fields_dropped(self):
        first = Offer(title="Melk", store="Kiwi", price=20.0, unit="l")
        second = Offer(title="Melk", store="Kiwi", price=20.0, unit="l", description="ny")
        assert dedupe_offers([first, second]) == [first]

    def test_different_price_kept(self):
        offers = [
            Offer(title="Melk", store="Kiwi", price=20.0),
            Offer(title="Melk", store="Kiwi", price=19.0),
            Offer(title="Melk", store="Meny", price=20.0),
        ]
        assert dedupe_offers(offers) == offers


# ============================================================================
# File Loading
# ============================================================================


class TestLoadOffersFile:
    """Tests for load_offers_file function."""

    def test_store_from_file_name(self, tmp_path):
        path = write_offers(
            tmp_path / "rema_1000_offers.json",
            [{"title": "Gilde Kjøttdeig", "price": 49.9}, {"title": "Tine Melk", "price": 22}],
        )
        offers = load_offers_file(path)
        assert [o.title for o in offers] == ["Gilde Kjøttdeig", "Tine Melk"]
        assert {o.store for o in offers} == {"Rema 1000"}

    def test_non_object_records_skipped(self, tmp_path):
        path = write_offers(tmp_path / "kiwi_offers.json", [{"title": "Melk"}, "junk", 42])
        assert len(load_offers_file(path)) == 1

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "kiwi_offers.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(OfferLoadError):
            load_offers_file(path)

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "kiwi_offers.json"
        path.write_bytes(b'[{"title": "Melk\xff"}]')
        with pytest.raises(OfferLoadError):
            load_offers_file(path)

    def test_not_an_array(self, tmp_path):
        path = write_offers(tmp_path / "kiwi_offers.json", {"title": "Melk"})
        with pytest.raises(OfferLoadError):
            load_offers_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(OfferLoadError):
            load_offers_file(tmp_path / "meny_offers.json")


class TestLoadOffersDir:
    """Tests for load_offers_dir function."""

    def test_loads_all_stores(self, tmp_path):
        write_offers(tmp_path / "kiwi_offers.json", [{"title": "Melk", "price": 20}])
        write_offers(tmp_path / "meny_offers.json", [{"title": "Ost", "price": 89}])
        (tmp_path / "notes.json").write_text("[]", encoding="utf-8")

        offers = load_offers_dir(tmp_path)
        assert {(o.title, o.store) for o in offers} == {("Melk", "Kiwi"), ("Ost", "Meny")}

    def test_bad_file_skipped(self, tmp_path):
        write_offers(tmp_path / "kiwi_offers.json", [{"title": "Melk", "price": 20}])
        (tmp_path / "meny_offers.json").write_text("oops", encoding="utf-8")

        offers = load_offers_dir(tmp_path)
        assert [o.title for o in offers] == ["Melk"]

    def test_undecodable_file_skipped(self, tmp_path):
        write_offers(tmp_path / "meny_offers.json", [{"title": "Ost", "price": 89}])
        (tmp_path / "kiwi_offers.json").write_bytes(b'[{"title": "Melk\xff"}]')

        offers = load_offers_dir(tmp_path)
        assert [o.title for o in offers] == ["Ost"]

    def test_duplicates_removed(self, tmp_path):
        record = {"title": "Melk", "price": 20, "hotspotId": "h1"}
        write_offers(tmp_path / "kiwi_offers.json", [record, record])
        assert len(load_offers_dir(tmp_path)) == 1

    def test_missing_directory(self, tmp_path):
        assert load_offers_dir(tmp_path / "missing") == []


class TestOfferStore:
    """Tests for OfferStore class."""

    def test_snapshot(self, sample_offers):
        store = OfferStore(sample_offers)
        assert len(store) == len(sample_offers)
        assert store.offers == tuple(sample_offers)

    def test_replace_keeps_old_snapshot_intact(self, sample_offers):
        store = OfferStore(sample_offers)
        before = store.offers
        store.replace(sample_offers[:2])
        assert len(store) == 2
        assert len(before) == len(sample_offers)

    def test_from_directory(self, tmp_path):
        write_offers(tmp_path / "spar_offers.json", [{"title": "Brød", "price": 30}])
        store = OfferStore.from_directory(tmp_path)
        assert store.offers[0].store == "Spar"
