"""Configuration management with environment variable support."""

import os
from dataclasses import dataclass, field
from random import Random

from core.game.engine import BlackjackTable
from core.game.pacing import DealerPacer, DealerTiming
from core.rules import TableRules
from core.wallet import Bankroll


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


@dataclass(frozen=True)
class TableConfig:
    """Table configuration."""

    num_decks: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_NUM_DECKS", "6"))
    )
    reshuffle_threshold: float = field(
        default_factory=lambda: _env_float("BLACKJACK_RESHUFFLE_THRESHOLD", "0.25")
    )
    max_main_bet: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_MAX_MAIN_BET", "10000"))
    )
    crown_bonus: int = 10

    def to_rules(self) -> TableRules:
        """Build the engine rule set; invalid values raise ValueError."""
        return TableRules(
            num_decks=self.num_decks,
            reshuffle_threshold=self.reshuffle_threshold,
            max_main_bet=self.max_main_bet,
            crown_bonus=self.crown_bonus,
        )


@dataclass(frozen=True)
class PacingConfig:
    """Animation pacing, in seconds."""

    reveal_delay: float = field(
        default_factory=lambda: _env_float("BLACKJACK_DEALER_REVEAL_DELAY", "0.6")
    )
    draw_delay: float = field(
        default_factory=lambda: _env_float("BLACKJACK_DEALER_DRAW_DELAY", "0.5")
    )
    settle_delay: float = field(
        default_factory=lambda: _env_float("BLACKJACK_SETTLE_DELAY", "0.4")
    )

    def __post_init__(self) -> None:
        """Reject negative pauses."""
        for name in ("reveal_delay", "draw_delay", "settle_delay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")

    def dealer_timing(self) -> DealerTiming:
        """Timing used by the DealerPacer."""
        return DealerTiming(
            reveal_delay=self.reveal_delay,
            draw_delay=self.draw_delay,
            settle_delay=self.settle_delay,
        )


@dataclass(frozen=True)
class EconomyConfig:
    """Wallet defaults for a fresh player."""

    starting_balance: int = field(
        default_factory=lambda: int(os.getenv("BLACKJACK_STARTING_BALANCE", "1000"))
    )


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    table: TableConfig = field(default_factory=TableConfig)
    pacing: PacingConfig = field(default_factory=PacingConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)


# Global configuration instance
config = AppConfig()


def create_table(
    app_config: AppConfig | None = None,
    rng: Random | None = None,
    paced: bool = False,
) -> tuple[BlackjackTable, DealerPacer | None]:
    """
    Build a table with a fresh bankroll from configuration.

    Args:
        app_config: Configuration to use (the module-level config if None)
        rng: Random number generator for the shoe
        paced: Attach a DealerPacer so the dealer turn plays out with pauses;
            requires a running event loop

    Returns:
        The table and its pacer, or None when not paced

    Raises:
        RuntimeError: If paced is set outside a running event loop
    """
    app_config = app_config or config
    table = BlackjackTable(
        wallet=Bankroll(app_config.economy.starting_balance),
        rules=app_config.table.to_rules(),
        rng=rng,
        paced_dealer=paced,
    )
    pacer = DealerPacer(table, app_config.pacing.dealer_timing()) if paced else None
    return table, pacer
