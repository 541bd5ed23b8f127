"""Tests for Super Match side bet scoring."""

import pytest

from bjstats.cards import cards_from_string
from bjstats.supermatch import SuperMatchOutcome, classify, score_super_match


class TestClassify:
    """Tests for classifying the four dealt cards."""

    @pytest.mark.parametrize("cards,expected", [
        ("7S 7H 7D 7C", SuperMatchOutcome.FOUR_OF_A_KIND),
        ("7S 7H 7D 2C", SuperMatchOutcome.THREE_OF_A_KIND),
        ("7S 7H 2D 2C", SuperMatchOutcome.TWO_PAIR),
        ("7S 2H 7D 9C", SuperMatchOutcome.ONE_PAIR),
        ("7S 2H 9D KC", SuperMatchOutcome.NO_MATCH),
    ])
    def test_outcomes(self, cards, expected):
        """Each pattern maps to its outcome."""
        assert classify(cards_from_string(cards)) == expected

    def test_faces_do_not_match_each_other(self):
        """J, Q and K are different faces even though each counts 10."""
        assert classify(cards_from_string("JS QH KD 2C")) == SuperMatchOutcome.NO_MATCH
        assert classify(cards_from_string("KS KH QD 2C")) == SuperMatchOutcome.ONE_PAIR

    def test_suits_are_ignored(self):
        """Matching is on rank alone."""
        assert classify(cards_from_string("AS AS AH 3C")) == SuperMatchOutcome.THREE_OF_A_KIND

    @pytest.mark.parametrize("cards", ["7S 7H 7D", "7S 7H 7D 7C 2S"])
    def test_requires_four_cards(self, cards):
        """Only four cards can be scored."""
        with pytest.raises(ValueError):
            classify(cards_from_string(cards))


class TestScoring:
    """Tests for payouts."""

    @pytest.mark.parametrize("outcome,multiplier", [
        (SuperMatchOutcome.FOUR_OF_A_KIND, 50),
        (SuperMatchOutcome.THREE_OF_A_KIND, 5),
        (SuperMatchOutcome.TWO_PAIR, 7),
        (SuperMatchOutcome.ONE_PAIR, 1),
        (SuperMatchOutcome.NO_MATCH, 0),
    ])
    def test_multipliers(self, outcome, multiplier):
        """Payout table."""
        assert outcome.multiplier == multiplier

    def test_three_of_a_kind_returns_six_stakes(self):
        """A winning stake comes back with its winnings: 5 x (1 + 5)."""
        result = score_super_match(cards_from_string("7S 7H 7D 2C"), 5)
        assert result.outcome == SuperMatchOutcome.THREE_OF_A_KIND
        assert result.returned == 30

    def test_one_pair_doubles(self):
        """Even money returns twice the stake."""
        result = score_super_match(cards_from_string("7S 2H 7D 9C"), 5)
        assert result.returned == 10

    def test_miss_returns_nothing(self):
        """A losing side bet is gone."""
        result = score_super_match(cards_from_string("7S 2H 9D KC"), 5)
        assert result.returned == 0

    def test_outcome_str(self):
        """Readable outcome names."""
        assert str(SuperMatchOutcome.TWO_PAIR) == "Two Pair"
