"""Settlement and payout calculation for a finished round."""

from dataclasses import dataclass, field
from enum import Enum

from core.cards import Card
from core.hand import Hand, hand_value


class HandOutcome(Enum):
    """Result of one player hand against the dealer."""

    WIN = "win"
    PUSH = "push"
    LOSE = "lose"
    BUST = "bust"


def format_amount(amount: int) -> str:
    """Abbreviate large amounts: 1500 -> '1.5K', 2000000 -> '2.0M'."""
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if amount >= 1000:
        return f"{amount / 1000:.1f}K"
    return str(amount)


def evaluate_hand(hand: Hand, dealer_cards: list[Card]) -> HandOutcome:
    """Compare one player hand against the final dealer cards."""
    if hand.is_busted:
        return HandOutcome.BUST

    dealer_value = hand_value(dealer_cards).value
    player_value = hand.value

    if dealer_value > 21 or player_value > dealer_value:
        return HandOutcome.WIN
    if player_value == dealer_value:
        return HandOutcome.PUSH
    return HandOutcome.LOSE


@dataclass(frozen=True)
class HandSettlement:
    """Payout for one hand. ``credit`` is what goes back to the wallet."""

    index: int
    outcome: HandOutcome
    bet: int

    @property
    def credit(self) -> int:
        """Stake plus profit on a win, stake on a push, nothing otherwise."""
        if self.outcome == HandOutcome.WIN:
            return self.bet * 2
        if self.outcome == HandOutcome.PUSH:
            return self.bet
        return 0

    @property
    def profit(self) -> int:
        """Winnings on top of the stake."""
        return self.bet if self.outcome == HandOutcome.WIN else 0

    @property
    def line(self) -> str:
        """Human-readable result line, numbered from 1."""
        label = f"Hand {self.index + 1}"
        if self.outcome == HandOutcome.WIN:
            return f"{label}: Win {self.bet}"
        if self.outcome == HandOutcome.PUSH:
            return f"{label}: Push"
        if self.outcome == HandOutcome.BUST:
            return f"{label}: Busted"
        return f"{label}: Lose"


@dataclass(frozen=True)
class RoundSettlement:
    """Aggregate of every hand's settlement against one dealer hand."""

    hands: list[HandSettlement] = field(default_factory=list)
    dealer_value: int = 0

    @property
    def dealer_busted(self) -> bool:
        """Check if the dealer went over 21."""
        return self.dealer_value > 21

    @property
    def total_credit(self) -> int:
        """Total amount returned to the wallet."""
        return sum(h.credit for h in self.hands)

    @property
    def total_bet(self) -> int:
        """Total amount staked on the main hands, doubles included."""
        return sum(h.bet for h in self.hands)

    @property
    def total_winnings(self) -> int:
        """Profit of the winning hands."""
        return sum(h.profit for h in self.hands)

    @property
    def net(self) -> int:
        """Net change to the wallet over the main hands."""
        return self.total_credit - self.total_bet

    @property
    def hands_won(self) -> int:
        """Number of winning hands."""
        return sum(1 for h in self.hands if h.outcome == HandOutcome.WIN)

    @property
    def all_busted(self) -> bool:
        """Check if every hand busted."""
        return bool(self.hands) and all(h.outcome == HandOutcome.BUST for h in self.hands)

    @property
    def is_push(self) -> bool:
        """Check if every hand pushed."""
        return bool(self.hands) and all(h.outcome == HandOutcome.PUSH for h in self.hands)

    @property
    def won(self) -> bool:
        """Check if the round made a profit on any hand."""
        return self.total_winnings > 0

    @property
    def placement(self) -> int:
        """1 for a win or a push, 2 for a loss."""
        return 1 if self.won or self.is_push else 2

    @property
    def lines(self) -> list[str]:
        """Result line for every hand."""
        return [h.line for h in self.hands]

    @property
    def message(self) -> str:
        """Round-level result message."""
        if self.all_busted:
            return "Busted!"
        if self.dealer_busted:
            if self.total_winnings > 0:
                return f"Dealer Busts! +{format_amount(self.total_winnings)}"
            return "Dealer Busts!"
        if self.total_winnings > 0:
            return f"You Win {format_amount(self.total_winnings)}!"
        if self.is_push:
            return "Push!"
        return "Dealer Wins"


def settle_hands(hands: list[Hand], dealer_cards: list[Card]) -> RoundSettlement:
    """
    Settle every player hand against the dealer.

    Busted hands always lose. Otherwise a dealer bust or a higher total
    pays ``2 x bet``, an equal total refunds ``bet`` and a lower total
    forfeits the stake.
    """
    return RoundSettlement(
        hands=[
            HandSettlement(index=i, outcome=evaluate_hand(hand, dealer_cards), bet=hand.bet)
            for i, hand in enumerate(hands)
        ],
        dealer_value=hand_value(dealer_cards).value,
    )
