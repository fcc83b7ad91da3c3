"""Cards and the multi-deck shoe they are dealt from."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from itertools import count
from random import Random
from typing import Iterator

logger = logging.getLogger(__name__)

SUIT_SYMBOLS = {"hearts": "♥", "diamonds": "♦", "clubs": "♣", "spades": "♠"}
FACE_LETTERS = {1: "A", 11: "J", 12: "Q", 13: "K"}


class Suit(Enum):
    """The four suits; values are the names renderers receive."""

    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    def __str__(self) -> str:
        return SUIT_SYMBOLS[self.value]

    @property
    def is_red(self) -> bool:
        """Hearts and diamonds."""
        return self in (Suit.HEARTS, Suit.DIAMONDS)


class Rank(Enum):
    """Ranks in A, 2..10, J, Q, K order; the value is the position plus one."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def __str__(self) -> str:
        return FACE_LETTERS.get(self.value, str(self.value))

    @property
    def index(self) -> int:
        """Position of the rank in A..K order (A = 0, K = 12)."""
        return self.value - 1

    @property
    def is_ace(self) -> bool:
        return self is Rank.ACE

    @property
    def is_ten_value(self) -> bool:
        """10, J, Q and K all count ten."""
        return self.value >= 10


# Lookup tables for Card.from_string: "A", "2".."10", "T", "J", "Q", "K"
# and the suit's initial or symbol.
_RANKS_BY_TOKEN = {str(rank): rank for rank in Rank} | {"T": Rank.TEN}
_SUITS_BY_TOKEN = {suit.value[0].upper(): suit for suit in Suit} | {
    str(suit): suit for suit in Suit
}


@dataclass(frozen=True, slots=True)
class Card:
    """
    Immutable playing card.

    Equality compares rank and suit only. ``card_id`` tells apart physical
    cards of a multi-deck shoe that share rank and suit.
    """

    rank: Rank
    suit: Suit
    face_up: bool = field(default=True, compare=False)
    card_id: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}" if self.face_up else "??"

    def __repr__(self) -> str:
        return f"Card({self.rank.name}, {self.suit.name}, id={self.card_id})"

    @property
    def is_ace(self) -> bool:
        return self.rank.is_ace

    @property
    def is_ten_value(self) -> bool:
        return self.rank.is_ten_value

    def flipped(self, face_up: bool = True) -> "Card":
        """Return the same physical card turned face up (or down)."""
        return replace(self, face_up=face_up)

    @classmethod
    def from_string(cls, text: str) -> "Card":
        """Parse '10H', 'Kd', 'TS' or 'A♠': rank token then suit letter or symbol."""
        token = text.strip().upper()
        rank = _RANKS_BY_TOKEN.get(token[:-1])
        suit = _SUITS_BY_TOKEN.get(token[-1:])
        if rank is None or suit is None:
            raise ValueError(f"Invalid card: {text!r}")
        return cls(rank, suit)


def parse_cards(text: str) -> list[Card]:
    """Parse whitespace-separated cards: 'AS 10H Kd'."""
    return [Card.from_string(token) for token in text.split()]


class ShoeExhaustedError(IndexError):
    """Raised when a card is requested from a shoe with no cards left."""


def ordered_decks(num_decks: int, ids: Iterator[int] | None = None) -> list[Card]:
    """Build ``num_decks`` unshuffled 52-card decks, suit by suit."""
    ids = ids or count(1)
    return [
        Card(rank, suit, card_id=next(ids))
        for _ in range(num_decks)
        for suit in Suit
        for rank in Rank
    ]


def fisher_yates(cards: list[Card], rng: Random) -> list[Card]:
    """Return a uniformly shuffled copy of ``cards``."""
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def create_shoe(
    num_decks: int,
    rng: Random | None = None,
    ids: Iterator[int] | None = None,
) -> list[Card]:
    """Concatenate ``num_decks`` ordered decks and shuffle them."""
    return fisher_yates(ordered_decks(num_decks, ids), rng or Random())


class Shoe:
    """A multi-deck shoe dealt from the front, reshuffled when running low."""

    def __init__(
        self,
        num_decks: int = 6,
        reshuffle_threshold: float = 0.25,
        rng: Random | None = None,
    ) -> None:
        """
        Initialize and shuffle a shoe.

        Args:
            num_decks: Number of decks in the shoe
            reshuffle_threshold: Fraction of a full shoe below which the
                shoe is rebuilt before the next draw (0.0-1.0)
            rng: Random number generator for shuffling
        """
        if num_decks < 1:
            raise ValueError("Shoe must have at least 1 deck")
        if not 0.0 <= reshuffle_threshold < 1.0:
            raise ValueError("Reshuffle threshold must be in [0, 1)")

        self._num_decks = num_decks
        self._reshuffle_threshold = reshuffle_threshold
        self._rng = rng or Random()
        self._ids = count(1)
        self._cards: list[Card] = []
        self._shuffles = 0
        self.shuffle()

    @classmethod
    def stacked(cls, cards: list[Card], num_decks: int = 6) -> "Shoe":
        """
        Build a shoe that deals ``cards`` first, in order.

        The stacked cards sit in front of a freshly shuffled full shoe so
        the reshuffle threshold is not reached while they are dealt.
        """
        shoe = cls(num_decks=num_decks, rng=Random(0))
        front = [
            replace(card, card_id=next(shoe._ids)) for card in cards
        ]
        shoe._cards = front + shoe._cards
        return shoe

    def shuffle(self) -> None:
        """Replace the contents with a freshly shuffled full shoe."""
        self._cards = create_shoe(self._num_decks, self._rng, self._ids)
        self._shuffles += 1
        logger.debug("Shuffled %d-deck shoe (%d cards)", self._num_decks, len(self._cards))

    @property
    def needs_shuffle(self) -> bool:
        """Check if the shoe has fallen below the reshuffle threshold."""
        return len(self._cards) < self.total_cards * self._reshuffle_threshold

    def reshuffle_if_needed(self) -> bool:
        """Reshuffle when below the threshold. Returns True if it did."""
        if not self.needs_shuffle:
            return False
        logger.info("Reshuffling shoe with %d cards left", len(self._cards))
        self.shuffle()
        return True

    def draw(self, face_up: bool = True) -> Card:
        """Remove and return the front card, stamped with ``face_up``."""
        self.reshuffle_if_needed()
        if not self._cards:
            raise ShoeExhaustedError("Cannot draw from empty shoe")
        card = self._cards.pop(0)
        return card if card.face_up == face_up else card.flipped(face_up)

    @property
    def cards_remaining(self) -> int:
        """Return the number of cards remaining."""
        return len(self._cards)

    @property
    def total_cards(self) -> int:
        """Return the total number of cards in a full shoe."""
        return self._num_decks * 52

    @property
    def num_decks(self) -> int:
        """Return the number of decks in the shoe."""
        return self._num_decks

    @property
    def reshuffle_threshold(self) -> float:
        """Return the configured reshuffle threshold."""
        return self._reshuffle_threshold

    @property
    def shuffle_count(self) -> int:
        """Return how many times the shoe has been (re)built."""
        return self._shuffles

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards)
