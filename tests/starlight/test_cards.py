"""Tests for Card and the random card source."""

import pytest
from collections import Counter
from random import Random

from starlight.cards import Card, RandomCardSource, Rank, Suit


class TestCard:
    """Tests for the Card class."""

    def test_card_creation(self):
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

    def test_card_color(self):
        """Hearts and diamonds are red, clubs and spades black."""
        assert Card(Rank.TWO, Suit.HEARTS).is_red
        assert Card(Rank.TWO, Suit.DIAMONDS).is_red
        assert not Card(Rank.TWO, Suit.CLUBS).is_red
        assert not Card(Rank.TWO, Suit.SPADES).is_red
        assert Card(Rank.QUEEN, Suit.DIAMONDS).color == "red"
        assert Card(Rank.QUEEN, Suit.SPADES).color == "black"

    def test_card_display(self):
        assert Card(Rank.ACE, Suit.SPADES).display == "A♠"
        assert Card(Rank.TEN, Suit.HEARTS).display == "10♥"
        assert str(Card(Rank.KING, Suit.CLUBS)) == "K♣"

    def test_card_from_string(self):
        """Test creating cards from strings."""
        assert Card.from_string("AS") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("2H") == Card(Rank.TWO, Suit.HEARTS)
        assert Card.from_string("10D") == Card(Rank.TEN, Suit.DIAMONDS)
        assert Card.from_string("kc") == Card(Rank.KING, Suit.CLUBS)

    def test_card_from_string_with_symbols(self):
        assert Card.from_string("A♠") == Card(Rank.ACE, Suit.SPADES)
        assert Card.from_string("K♥") == Card(Rank.KING, Suit.HEARTS)

    @pytest.mark.parametrize("text", ["", "A", "1S", "AX", "11H"])
    def test_card_from_string_invalid(self, text):
        with pytest.raises(ValueError):
            Card.from_string(text)

    def test_card_hash(self):
        """Test that cards can be used in sets/dicts."""
        cards = {Card(Rank.ACE, Suit.SPADES), Card(Rank.ACE, Suit.SPADES)}
        assert len(cards) == 1


class TestRandomCardSource:
    """Tests for the infinite card source."""

    def test_draw_returns_card(self, card_source):
        assert isinstance(card_source.draw(), Card)

    def test_never_exhausts(self, card_source):
        """Far more draws than any finite shoe would allow."""
        cards = [card_source.draw() for _ in range(2000)]
        assert len(cards) == 2000

    def test_draws_with_replacement(self, card_source):
        """The same card can come up more than once in a 53-card run."""
        cards = [card_source.draw() for _ in range(500)]
        counts = Counter(cards)
        assert max(counts.values()) > 1

    def test_covers_all_ranks_and_suits(self, card_source):
        cards = [card_source.draw() for _ in range(2000)]
        assert {c.rank for c in cards} == set(Rank)
        assert {c.suit for c in cards} == set(Suit)

    def test_seeded_sources_repeat(self):
        a = RandomCardSource(rng=Random(7))
        b = RandomCardSource(rng=Random(7))
        assert [a.draw() for _ in range(20)] == [b.draw() for _ in range(20)]

    def test_default_source_draws(self):
        assert isinstance(RandomCardSource().draw(), Card)
