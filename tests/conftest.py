"""Pytest fixtures for blackjack engine tests."""

import pytest
from random import Random

from core.cards import Shoe, parse_cards
from core.hand import Hand
from core.rules import TableRules
from core.wallet import Bankroll
from core.game import BlackjackTable


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return Random(42)


@pytest.fixture
def wallet():
    """A wallet holding 1000."""
    return Bankroll(1000)


@pytest.fixture
def table(wallet, rng):
    """A table with a randomly shuffled shoe."""
    return BlackjackTable(wallet=wallet, rng=rng)


@pytest.fixture
def stacked():
    """
    Factory for a table whose shoe deals the given cards first.

    Deal order is player, dealer up, player, dealer hole, then every
    later draw in the order the actions ask for cards.
    """

    def _make(
        text: str,
        balance: int = 1000,
        rules: TableRules | None = None,
        paced_dealer: bool = False,
    ) -> BlackjackTable:
        return BlackjackTable(
            wallet=Bankroll(balance),
            rules=rules,
            shoe=Shoe.stacked(parse_cards(text)),
            paced_dealer=paced_dealer,
        )

    return _make


@pytest.fixture
def empty_hand():
    """An empty player hand."""
    return Hand()


@pytest.fixture
def blackjack_hand():
    """A natural blackjack hand."""
    return Hand(cards=parse_cards("AS KH"))


@pytest.fixture
def soft_17_hand():
    """A soft 17 hand (A-6)."""
    return Hand(cards=parse_cards("AS 6H"))


@pytest.fixture
def hard_16_hand():
    """A hard 16 hand (10-6)."""
    return Hand(cards=parse_cards("10S 6H"))


@pytest.fixture
def pair_8s_hand():
    """A pair of 8s hand."""
    return Hand(cards=parse_cards("8C 8D"))


@pytest.fixture
def bust_hand():
    """A busted hand."""
    hand = Hand()
    for card in parse_cards("10S 6H KC"):
        hand.add_card(card)
    return hand
