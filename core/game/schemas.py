"""Pydantic payloads handed to the presentation and match-history layers."""

from datetime import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from core.cards import Card
from core.hand import Hand, display_value, hand_value
from core.sidebets import SideBetOutcome


class CardView(BaseModel):
    """Card representation; rank and suit are masked while face down."""

    model_config = ConfigDict(frozen=True)

    card_id: int
    rank: str | None
    suit: str | None
    face_up: bool

    @classmethod
    def from_card(cls, card: Card) -> "CardView":
        """Build a view of a card, hiding a face-down card's identity."""
        if not card.face_up:
            return cls(card_id=card.card_id, rank=None, suit=None, face_up=False)
        return cls(
            card_id=card.card_id,
            rank=str(card.rank),
            suit=card.suit.value,
            face_up=True,
        )


class HandView(BaseModel):
    """Hand representation."""

    cards: list[CardView]
    value: int
    display: str
    is_soft: bool
    bet: int = 0
    is_doubled: bool = False
    is_stood: bool = False
    is_busted: bool = False
    is_blackjack: bool = False

    @classmethod
    def from_hand(cls, hand: Hand) -> "HandView":
        """Build a view of a player hand."""
        return cls(
            cards=[CardView.from_card(c) for c in hand.cards],
            value=hand.value,
            display=hand.display,
            is_soft=hand.is_soft,
            bet=hand.bet,
            is_doubled=hand.is_doubled,
            is_stood=hand.is_stood,
            is_busted=hand.is_busted,
            is_blackjack=hand.is_blackjack,
        )

    @classmethod
    def from_dealer(cls, cards: list[Card]) -> "HandView":
        """Build a view of the dealer's cards; only face-up cards count."""
        value = hand_value(cards)
        return cls(
            cards=[CardView.from_card(c) for c in cards],
            value=value.value,
            display=display_value(cards),
            is_soft=value.is_soft,
            is_busted=value.value > 21,
        )


class SideBetView(BaseModel):
    """One side-bet outcome."""

    won: bool
    payout: int
    type: str | None

    @classmethod
    def from_outcome(cls, outcome: SideBetOutcome) -> "SideBetView":
        return cls(won=outcome.won, payout=outcome.payout, type=outcome.type)


class TableSnapshot(BaseModel):
    """Everything a renderer needs to draw the table."""

    phase: str
    balance: int
    main_bet: int
    perfect_pairs_bet: int
    twenty_one_plus_3_bet: int
    player_hands: list[HandView]
    current_hand_index: int
    dealer: HandView
    perfect_pairs: SideBetView | None = None
    twenty_one_plus_3: SideBetView | None = None
    result_message: str = ""
    result_lines: list[str] = Field(default_factory=list)
    total_winnings: int = 0
    cards_remaining: int
    can_deal: bool
    can_hit: bool
    can_stand: bool
    can_double: bool
    can_split: bool


class MatchResult(BaseModel):
    """Settlement summary persisted by the match-history collaborator."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"blackjack-{uuid4().hex}")
    game_name: str = "Blackjack"
    game_mode: str = "Standard"
    won: bool
    money_delta: int
    placement: Literal[1, 2]
    crowns: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)
