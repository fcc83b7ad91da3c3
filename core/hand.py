"""Hand evaluation for blackjack."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, NamedTuple

from core.cards import Card


class HandValue(NamedTuple):
    """Best total of a hand and whether an ace still counts as 11."""

    value: int
    is_soft: bool


def card_values(card: Card) -> list[int]:
    """Return the possible point values of a card."""
    if card.is_ace:
        return [1, 11]
    if card.is_ten_value:
        return [10]
    return [card.rank.value]


def hand_value(cards: Iterable[Card]) -> HandValue:
    """
    Calculate the best value of the face-up cards.

    Every ace starts at 11 and is demoted to 1 while the total is over 21.
    Face-down cards are skipped entirely, so a dealer hand with its hole
    card hidden reports only the up-card.
    """
    total = 0
    aces = 0

    for card in cards:
        if not card.face_up:
            continue
        if card.is_ace:
            aces += 1
            total += 11
        else:
            total += card_values(card)[0]

    while total > 21 and aces > 0:
        total -= 10
        aces -= 1

    return HandValue(total, aces > 0 and total <= 21)


def is_blackjack(cards: list[Card]) -> bool:
    """Check for a natural: exactly two cards totaling 21."""
    return len(cards) == 2 and hand_value(cards).value == 21


def is_busted(cards: Iterable[Card]) -> bool:
    """Check if the hand is over 21."""
    return hand_value(cards).value > 21


def display_value(cards: Iterable[Card]) -> str:
    """Render the total, as ``"hard / soft"`` when an ace counts as 11."""
    value, soft = hand_value(cards)
    if soft:
        return f"{value - 10} / {value}"
    return str(value)


@dataclass
class Hand:
    """A player hand with its wager and play flags."""

    cards: list[Card] = field(default_factory=list)
    bet: int = 0
    is_doubled: bool = False
    is_stood: bool = False
    is_busted: bool = False
    is_blackjack: bool = False

    def add_card(self, card: Card) -> None:
        """Add a card to the hand and refresh the bust flag."""
        self.cards.append(card)
        self.is_busted = is_busted(self.cards)

    @property
    def value(self) -> int:
        """Return the best hand value."""
        return hand_value(self.cards).value

    @property
    def is_soft(self) -> bool:
        """Check if an ace is counted as 11."""
        return hand_value(self.cards).is_soft

    @property
    def display(self) -> str:
        """Return the display string of the total."""
        return display_value(self.cards)

    @property
    def is_terminal(self) -> bool:
        """Check if the hand takes no more actions."""
        return self.is_stood or self.is_busted

    @property
    def is_pair(self) -> bool:
        """Check if the hand is two cards of the same rank."""
        return (
            len(self.cards) == 2
            and self.cards[0].rank == self.cards[1].rank
        )

    def __len__(self) -> int:
        return len(self.cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self.cards)

    def __str__(self) -> str:
        label = "BUST" if self.is_busted else "BLACKJACK" if self.is_blackjack else self.display
        return " ".join(str(card) for card in self.cards) + f" ({label})"

    def __repr__(self) -> str:
        return f"Hand({self.cards!r}, value={self.value}, bet={self.bet})"
