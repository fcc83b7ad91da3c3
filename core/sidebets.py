"""Side-bet evaluation: Perfect Pairs and 21+3."""

from dataclasses import dataclass, field
from typing import Mapping, NamedTuple

from core.cards import Card, Rank
from core.rules import PERFECT_PAIRS_PAYOUTS, TWENTY_ONE_PLUS_3_PAYOUTS


class SideBetMatch(NamedTuple):
    """A paying combination and its multiplier (``type`` is None on no match)."""

    type: str | None
    payout: int


NO_MATCH = SideBetMatch(None, 0)

# Q-K-A is the only wrap-around straight
_WRAP_STRAIGHT = {Rank.ACE.index, Rank.QUEEN.index, Rank.KING.index}


def evaluate_perfect_pairs(
    cards: list[Card],
    payouts: Mapping[str, int] = PERFECT_PAIRS_PAYOUTS,
) -> SideBetMatch:
    """
    Score the player's first two cards.

    Perfect (same suit) beats Colored (same color) beats Mixed.
    """
    if len(cards) < 2:
        return NO_MATCH

    card1, card2 = cards[0], cards[1]
    if card1.rank != card2.rank:
        return NO_MATCH

    if card1.suit == card2.suit:
        return SideBetMatch("Perfect Pair", payouts["perfect"])

    if card1.suit.is_red == card2.suit.is_red:
        return SideBetMatch("Colored Pair", payouts["colored"])

    return SideBetMatch("Mixed Pair", payouts["mixed"])


def is_straight(cards: list[Card]) -> bool:
    """Three consecutive ranks in A..K order, or exactly A-Q-K."""
    ranks = sorted(card.rank.index for card in cards)
    if ranks[2] - ranks[1] == 1 and ranks[1] - ranks[0] == 1:
        return True
    return _WRAP_STRAIGHT.issubset(ranks)


def evaluate_21_plus_3(
    player_cards: list[Card],
    dealer_upcard: Card,
    payouts: Mapping[str, int] = TWENTY_ONE_PLUS_3_PAYOUTS,
) -> SideBetMatch:
    """Score the player's two cards together with the dealer's up-card."""
    if len(player_cards) < 2:
        return NO_MATCH

    three = [player_cards[0], player_cards[1], dealer_upcard]

    flush = len({card.suit for card in three}) == 1
    straight = is_straight(three)
    trips = len({card.rank for card in three}) == 1

    if trips and flush:
        return SideBetMatch("Suited Trips", payouts["suited_trips"])
    if straight and flush:
        return SideBetMatch("Straight Flush", payouts["straight_flush"])
    if trips:
        return SideBetMatch("Three of a Kind", payouts["three_of_a_kind"])
    if straight:
        return SideBetMatch("Straight", payouts["straight"])
    if flush:
        return SideBetMatch("Flush", payouts["flush"])

    return NO_MATCH


@dataclass
class SideBetOutcome:
    """Result of one side bet for a round."""

    won: bool = False
    payout: int = 0
    type: str | None = None

    @classmethod
    def settle(cls, stake: int, match: SideBetMatch) -> "SideBetOutcome":
        """Apply a stake to a match; ``payout`` is the profit, stake excluded."""
        if stake <= 0 or match.type is None:
            return cls()
        return cls(won=True, payout=stake * match.payout, type=match.type)

    def credit(self, stake: int) -> int:
        """Amount returned to the wallet: profit plus the original stake."""
        return self.payout + stake if self.won else 0


@dataclass
class SideBetResults:
    """Both side-bet outcomes for a round."""

    perfect_pairs: SideBetOutcome = field(default_factory=SideBetOutcome)
    twenty_one_plus_3: SideBetOutcome = field(default_factory=SideBetOutcome)

    @property
    def any_won(self) -> bool:
        """Check if either side bet paid."""
        return self.perfect_pairs.won or self.twenty_one_plus_3.won
