"""Tests for candidate scoring."""

import pytest

from tilbudsjakt.offers import Offer
from tilbudsjakt.scoring import (
    DISQUALIFIED_REASON,
    count_exclusions,
    count_hits,
    score_candidate,
)
from tilbudsjakt.synsets import Synset
from tilbudsjakt.text import normalize, tokenize


def hits_for(synonyms, title):
    return count_hits(synonyms, normalize(title), set(tokenize(title)))


@pytest.fixture
def kjottdeig(kjottdeig_synset_data):
    return Synset.from_dict(kjottdeig_synset_data)


class TestCountHits:
    """Tests for count_hits function."""

    def test_phrase_match(self):
        assert hits_for(["kjøttdeig", "kjøttfarse"], "Gilde Kjøttdeig 400g") == (2, True)

    def test_multi_word_tokens_out_of_order(self):
        """All tokens of a multi-word synonym present, but not as a phrase."""
        assert hits_for(["hakket kjøtt"], "Kjøtt, grovt hakket") == (1, False)

    def test_phrase_inside_compound_words(self):
        assert hits_for(["cola"], "COCA-COLA") == (2, True)
        assert hits_for(["kjøttdeig"], "SVINEKJØTTDEIG 20%") == (2, True)

    def test_single_token(self):
        """A synonym that only matches once separators are split off."""
        assert hits_for(["øko+"], "Øko Melk") == (1, False)

    def test_hits_accumulate(self):
        assert hits_for(["melk", "lettmelk"], "Tine Lettmelk") == (4, True)

    def test_no_hits(self):
        assert hits_for(["kjøttdeig"], "Tine Lettmelk") == (0, False)

    def test_empty_synonyms_skipped(self):
        assert hits_for(["", "  "], "Tine Lettmelk") == (0, False)


class TestCountExclusions:
    """Tests for count_exclusions function."""

    def test_counts_each_term(self):
        title = normalize("Kjøttdeig Pølse og Bacon Mix")
        assert count_exclusions(["pølse", "bacon", "salami"], title) == 2

    def test_none(self):
        assert count_exclusions(["pølse"], normalize("Gilde Kjøttdeig")) == 0
        assert count_exclusions([""], normalize("Gilde Kjøttdeig")) == 0


class TestScoreCandidate:
    """Tests for score_candidate function."""

    def test_exact_and_brand_match_clamped(self, kjottdeig):
        """0.35 × 2 + 0.25 + 0.20 is clamped to 1.0."""
        offer = Offer(title="Gilde Kjøttdeig 400g", price=49.9)
        result = score_candidate(kjottdeig, offer, 2, 0, True, True)
        assert result.score == 1.0
        assert result.reasons == ["2 synonym hits", "exact phrase match", "known brand"]

    def test_exclusion_without_strict_mode(self, kjottdeig):
        """One excluded term costs 0.25 but the offer is still scored."""
        offer = Offer(title="Kjøttdeig Pølse Mix", price=39.0)
        result = score_candidate(kjottdeig, offer, 2, 1, False, True)
        assert result.score == pytest.approx(0.7)
        assert "1 excluded terms (-0.25)" in result.reasons

    def test_exclusion_penalty_capped(self, kjottdeig):
        offer = Offer(title="x", price=10.0)
        result = score_candidate(kjottdeig, offer, 4, 5, False, False)
        assert result.score == pytest.approx(1.4 - 0.6)

    def test_strict_disqualification(self):
        """Strict synsets return exactly 0 on any excluded term, whatever the hits."""
        synset = Synset(
            canonical="egg", synonyms=("egg",), exclude=("eggeplante",), brands=("prior",),
            strict_matching=True,
        )
        result = score_candidate(synset, Offer(title="Prior Eggeplante"), 6, 1, True, True)
        assert result.score == 0
        assert result.reasons == [DISQUALIFIED_REASON]

    def test_price_penalty(self):
        synset = Synset(canonical="melk", synonyms=("melk",), max_price=40.0)
        offer = Offer(title="Melk", price=50.0)
        result = score_candidate(synset, offer, 2, 0, False, True)
        # (50 - 40) / 40 = 0.25
        assert result.score == pytest.approx(0.95 - 0.25)
        assert "price above ceiling (50 kr > 40 kr)" in result.reasons

    def test_price_penalty_capped(self):
        synset = Synset(canonical="melk", synonyms=("melk",), max_price=40.0)
        offer = Offer(title="Melk", price=400.0)
        result = score_candidate(synset, offer, 2, 0, False, True)
        assert result.score == pytest.approx(0.95 - 0.4)

    def test_missing_price_no_penalty(self):
        synset = Synset(canonical="melk", synonyms=("melk",), max_price=40.0)
        result = score_candidate(synset, Offer(title="Melk"), 1, 0, False, False)
        assert result.score == pytest.approx(0.35)
        assert result.reasons == ["1 synonym hits"]

    def test_base_reason(self, kjottdeig):
        result = score_candidate(kjottdeig, Offer(title="x"), 0, 0, False, False)
        assert result.score == 0
        assert result.reasons == ["base matching"]

    @pytest.mark.parametrize("hits", [0, 1, 2, 5, 20])
    @pytest.mark.parametrize("exclusions", [0, 1, 3])
    @pytest.mark.parametrize("price", [None, 10.0, 1000.0])
    def test_score_bounds(self, hits, exclusions, price):
        synset = Synset(canonical="melk", synonyms=("melk",), max_price=40.0)
        offer = Offer(title="Melk", price=price)
        result = score_candidate(synset, offer, hits, exclusions, True, hits > 0)
        assert 0 <= result.score <= 1
