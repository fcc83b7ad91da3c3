"""Core blackjack engine - 100% UI-agnostic."""

from core.cards import Card, Rank, Shoe, ShoeExhaustedError, Suit
from core.hand import Hand, HandValue, hand_value
from core.rules import TableRules
from core.wallet import Bankroll, Wallet

__all__ = [
    "Card",
    "Rank",
    "Shoe",
    "ShoeExhaustedError",
    "Suit",
    "Hand",
    "HandValue",
    "hand_value",
    "TableRules",
    "Bankroll",
    "Wallet",
]
