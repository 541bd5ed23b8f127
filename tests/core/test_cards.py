"""Tests for Card and Shoe classes."""

from collections import Counter
from random import Random

import pytest

from bjstats.cards import Card, Rank, Shoe, Suit, cards_from_string, standard_deck
from bjstats.exceptions import InvariantViolation, ShoeExhausted


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
        """Test creating a card."""
        card = Card(Rank.ACE, Suit.SPADES)
        assert card.rank == Rank.ACE
        assert card.suit == Suit.SPADES

    def test_card_immutability(self):
        """Test that cards are immutable."""
        card = Card(Rank.ACE, Suit.SPADES)
        with pytest.raises(AttributeError):
            card.rank = Rank.KING

    def test_card_value(self):
        """Test card blackjack values."""
        assert Card(Rank.TWO, Suit.HEARTS).value == 2
        assert Card(Rank.TEN, Suit.HEARTS).value == 10
        assert Card(Rank.JACK, Suit.HEARTS).value == 10
        assert Card(Rank.QUEEN, Suit.HEARTS).value == 10
        assert Card(Rank.KING, Suit.HEARTS).value == 10
        assert Card(Rank.ACE, Suit.HEARTS).value == 11

    def test_face_value_keeps_faces_distinct(self):
        """Face value tells J, Q and K apart."""
        faces = {Card(rank, Suit.CLUBS).face_value for rank in (Rank.JACK, Rank.QUEEN, Rank.KING)}
        assert len(faces) == 3

    def test_card_is_ten_value(self):
        """Test ten-value detection."""
        assert Card(Rank.TEN, Suit.SPADES).is_ten_value
        assert Card(Rank.KING, Suit.SPADES).is_ten_value
        assert not Card(Rank.NINE, Suit.SPADES).is_ten_value
        assert not Card(Rank.ACE, Suit.SPADES).is_ten_value

    def test_card_from_string(self):
        """Test creating cards from strings."""
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("TD") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("kc") == Card(Rank.KING, Suit.CLUBS)

    def test_card_from_string_with_symbols(self):
        """Test creating cards from strings with suit symbols."""
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("K♥") == Card(Rank.KING, Suit.HEARTS)

    @pytest.mark.parametrize("text", ["", "A", "1S", "AX", "11H"])
    def test_card_from_string_rejects_garbage(self, text):
        """Unparseable card strings raise ValueError."""
        with pytest.raises(ValueError):
            Card.from_string(text)

    def test_card_str_round_trips(self):
        """str() output parses back to the same card."""
        for card in standard_deck():
            assert Card.from_string(str(card)) == card

    def test_cards_from_string(self):
        """Whitespace separated lists parse in order."""
        assert cards_from_string("8S 8H") == [
            Card(Rank.EIGHT, Suit.SPADES),
            Card(Rank.EIGHT, Suit.HEARTS),
        ]

    def test_red_suits(self):
        """Hearts and diamonds are red."""
        assert Suit.HEARTS.is_red and Suit.DIAMONDS.is_red
        assert not Suit.SPADES.is_red and not Suit.CLUBS.is_red


class TestShoe:
    """Tests for the Shoe class."""

    @pytest.mark.parametrize("num_decks", [6, 7, 8])
    def test_shoe_holds_every_card_once_per_deck(self, num_decks):
        """A fresh shoe is num_decks full decks."""
        shoe = Shoe(num_decks=num_decks, rng=Random(1))
        assert len(shoe) == num_decks * 52
        counts = Counter(shoe)
        assert len(counts) == 52
        assert set(counts.values()) == {num_decks}

    def test_cut_card_at_half(self, shoe):
        """The cut card sits at half the shoe."""
        assert shoe.cut_card_position == 156
        assert not shoe.needs_shuffle

    def test_needs_shuffle_at_cut_card(self, shoe):
        """The shoe asks for a reshuffle once remaining cards reach the cut card."""
        while shoe.cards_remaining > shoe.cut_card_position + 1:
            shoe.draw()
        assert not shoe.needs_shuffle
        shoe.draw()
        assert shoe.needs_shuffle

    def test_draw_reduces_remaining(self, shoe):
        """Drawing never refills the shoe."""
        before = shoe.cards_remaining
        card = shoe.draw()
        assert isinstance(card, Card)
        assert shoe.cards_remaining == before - 1

    def test_shuffle_rebuilds_full_shoe(self, shoe):
        """Reshuffling restores every card."""
        for _ in range(200):
            shoe.draw()
        shoe.shuffle()
        assert shoe.cards_remaining == 312
        assert not shoe.needs_shuffle

    def test_seeded_shoes_match(self):
        """Same seed, same order."""
        assert list(Shoe(rng=Random(7))) == list(Shoe(rng=Random(7)))

    def test_draw_from_empty_shoe_raises(self, shoe):
        """Drawing past the last card is an invariant violation."""
        shoe._cards.clear()
        with pytest.raises(ShoeExhausted) as exc_info:
            shoe.draw()
        assert isinstance(exc_info.value, InvariantViolation)
        assert isinstance(exc_info.value, IndexError)

    def test_invalid_decks(self):
        """A shoe needs at least one deck."""
        with pytest.raises(ValueError):
            Shoe(num_decks=0)

    def test_invalid_cut_fraction(self):
        """Cut fraction must be below one."""
        with pytest.raises(ValueError):
            Shoe(cut_fraction=1.0)
