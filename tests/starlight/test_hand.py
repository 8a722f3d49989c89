"""Tests for hand scoring and comparison."""

from hypothesis import given, strategies as st

from starlight.cards import Rank
from starlight.hand import Hand, Outcome, compare, score

from conftest import cards_strategy, make_hand

NON_ACES = tuple(r for r in Rank if r != Rank.ACE)


class TestScore:
    """Tests for the score function."""

    def test_empty_scores_zero(self):
        assert score([]) == 0

    def test_face_cards_count_ten(self):
        assert score(make_hand("JS", "QH", "KC").cards) == 30

    def test_ace_king(self):
        assert score(make_hand("AS", "KH").cards) == 21

    def test_two_aces_and_nine(self):
        """One ace is demoted to 1."""
        assert score(make_hand("AS", "AH", "9C").cards) == 21

    def test_three_aces(self):
        assert score(make_hand("AS", "AH", "AC").cards) == 13

    def test_five_aces(self):
        """11 + 4 x 1."""
        assert score(make_hand("AS", "AH", "AC", "AD", "AS").cards) == 15

    def test_all_aces_demoted(self):
        assert score(make_hand("AS", "AH", "KC", "QD").cards) == 22

    @given(cards_strategy(ranks=NON_ACES))
    def test_no_aces_is_plain_sum(self, cards):
        assert score(cards) == sum(c.value for c in cards)

    @given(cards_strategy(), st.randoms(use_true_random=False))
    def test_order_independent(self, cards, random):
        shuffled = list(cards)
        random.shuffle(shuffled)
        assert score(shuffled) == score(cards)

    @given(cards_strategy(min_cards=1))
    def test_aces_only_demoted_when_needed(self, cards):
        """A score above 21 means every ace is already counted as 1."""
        total = score(cards)
        if total > 21:
            assert total == sum(1 if c.is_ace else c.value for c in cards)


class TestHand:
    """Tests for the Hand class."""

    def test_empty_hand(self, empty_hand):
        """Test empty hand properties."""
        assert len(empty_hand) == 0
        assert empty_hand.value == 0
        assert not empty_hand.is_soft
        assert not empty_hand.is_blackjack
        assert not empty_hand.is_busted

    def test_add_card(self, empty_hand):
        empty_hand.add_card(make_hand("10S").cards[0])
        assert len(empty_hand) == 1
        assert empty_hand.value == 10

    def test_hard_hand_value(self, hard_16_hand):
        assert hard_16_hand.value == 16
        assert not hard_16_hand.is_soft

    def test_soft_hand_value(self, soft_17_hand):
        assert soft_17_hand.value == 17
        assert soft_17_hand.is_soft

    def test_blackjack(self, blackjack_hand):
        assert blackjack_hand.is_blackjack
        assert blackjack_hand.value == 21

    def test_three_card_21_is_not_blackjack(self):
        hand = make_hand("7S", "7H", "7C")
        assert hand.value == 21
        assert not hand.is_blackjack

    def test_bust(self, bust_hand):
        assert bust_hand.is_busted
        assert bust_hand.value == 26

    def test_soft_to_hard_transition(self):
        """Test ace switching from 11 to 1."""
        hand = make_hand("AS")
        assert hand.value == 11
        assert hand.is_soft

        hand.add_card(make_hand("5H").cards[0])
        assert hand.value == 16
        assert hand.is_soft

        hand.add_card(make_hand("8C").cards[0])
        assert hand.value == 14
        assert not hand.is_soft

    def test_clear_hand(self, blackjack_hand):
        blackjack_hand.clear()
        assert len(blackjack_hand) == 0
        assert blackjack_hand.value == 0

    def test_str(self, soft_17_hand, bust_hand):
        assert str(soft_17_hand) == "A♠ 6♥ (soft 17)"
        assert str(bust_hand).endswith("(BUST)")


class TestCompare:
    """Tests for hand comparison."""

    def test_player_higher_wins(self):
        assert compare(make_hand("10S", "9H"), make_hand("10C", "8D")) == Outcome.WIN

    def test_dealer_higher_wins(self):
        assert compare(make_hand("10S", "7H"), make_hand("10C", "9D")) == Outcome.LOSS

    def test_equal_is_push(self):
        assert compare(make_hand("10S", "8H"), make_hand("10C", "8D")) == Outcome.PUSH

    def test_dealer_bust_player_wins(self):
        assert compare(make_hand("10S", "7H"), make_hand("10C", "6D", "KS")) == Outcome.WIN

    def test_player_bust_loses_even_if_dealer_busts(self):
        player = make_hand("10S", "6H", "KC")
        dealer = make_hand("10D", "6C", "QS")
        assert compare(player, dealer) == Outcome.LOSS

    def test_blackjack_pays_like_any_21(self):
        """Two-card 21 against a three-card 21 is a push."""
        assert compare(make_hand("AS", "KH"), make_hand("7C", "7D", "7S")) == Outcome.PUSH


def test_hand_is_append_only_sequence():
    hand = Hand()
    for text in ("2S", "3H", "4C"):
        hand.add_card(make_hand(text).cards[0])
    assert [str(c) for c in hand] == ["2♠", "3♥", "4♣"]
