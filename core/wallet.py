"""Wallet capability consumed by the engine."""

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Wallet(Protocol):
    """
    Currency holder the table debits and credits.

    ``spend`` must either apply the full amount and return True, or change
    nothing and return False.
    """

    @property
    def balance(self) -> int: ...

    def spend(self, amount: int) -> bool: ...

    def add(self, amount: int) -> None: ...


class Bankroll:
    """In-memory wallet."""

    def __init__(self, balance: int = 1000) -> None:
        if balance < 0:
            raise ValueError("Balance cannot be negative")
        self._balance = balance

    @property
    def balance(self) -> int:
        """Return the current balance."""
        return self._balance

    def spend(self, amount: int) -> bool:
        """Debit ``amount`` if it is covered by the balance."""
        if amount < 0:
            raise ValueError("Cannot spend a negative amount")
        if amount > self._balance:
            logger.debug("Refused debit of %d with balance %d", amount, self._balance)
            return False
        self._balance -= amount
        return True

    def add(self, amount: int) -> None:
        """Credit ``amount``."""
        if amount < 0:
            raise ValueError("Cannot add a negative amount")
        self._balance += amount

    def __repr__(self) -> str:
        return f"Bankroll(balance={self._balance})"
