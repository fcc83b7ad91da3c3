"""Table rules and payout constants."""

from dataclasses import dataclass, field


PERFECT_PAIRS_PAYOUTS: dict[str, int] = {
    "mixed": 5,
    "colored": 10,
    "perfect": 30,
}

TWENTY_ONE_PLUS_3_PAYOUTS: dict[str, int] = {
    "flush": 5,
    "straight": 10,
    "three_of_a_kind": 30,
    "straight_flush": 40,
    "suited_trips": 100,
}


@dataclass(frozen=True)
class TableRules:
    """
    Blackjack table configuration.

    The house rules themselves are fixed (dealer hits soft 17, one card to
    split aces, no surrender or insurance); these are the numbers around them.
    """

    # Shoe configuration
    num_decks: int = 6
    reshuffle_threshold: float = 0.25

    # Hands and limits
    max_hands: int = 4
    max_main_bet: int = 10000

    # Natural pays 3:2, credited as floor(bet * 2.5) including the stake
    blackjack_return: float = 2.5

    # Flat reward when at least one hand wins
    crown_bonus: int = 10

    perfect_pairs_payouts: dict[str, int] = field(
        default_factory=lambda: dict(PERFECT_PAIRS_PAYOUTS)
    )
    twenty_one_plus_3_payouts: dict[str, int] = field(
        default_factory=lambda: dict(TWENTY_ONE_PLUS_3_PAYOUTS)
    )

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if not 0.0 <= self.reshuffle_threshold < 1.0:
            raise ValueError("reshuffle_threshold must be in [0, 1)")
        if self.max_hands < 1:
            raise ValueError("max_hands must be at least 1")
        if self.max_main_bet < 1:
            raise ValueError("max_main_bet must be at least 1")
        if self.blackjack_return < 2.0:
            raise ValueError("blackjack_return must be at least 2.0")
        if self.crown_bonus < 0:
            raise ValueError("crown_bonus cannot be negative")
