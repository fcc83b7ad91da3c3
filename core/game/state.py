"""Round phase enumeration."""

from enum import Enum, auto


class GamePhase(Enum):
    """
    Round state machine phases.

    Flow: BETTING → DEALING → PLAYER_TURN → DEALER_TURN → SETTLEMENT → GAME_OVER
    """

    # Chips are being placed
    BETTING = auto()

    # Initial four cards, side bets and naturals
    DEALING = auto()

    # Player acts on each hand in turn
    PLAYER_TURN = auto()

    # Dealer reveals and draws
    DEALER_TURN = auto()

    # Hands compared and paid
    SETTLEMENT = auto()

    # Round finished, waiting for new_round()
    GAME_OVER = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Round flow; new_round() may also return to BETTING from any phase
_ROUND_FLOW: dict[GamePhase, list[GamePhase]] = {
    GamePhase.BETTING: [GamePhase.DEALING],
    GamePhase.DEALING: [GamePhase.PLAYER_TURN, GamePhase.GAME_OVER],  # GAME_OVER on a natural
    GamePhase.PLAYER_TURN: [GamePhase.DEALER_TURN, GamePhase.SETTLEMENT],  # SETTLEMENT if all bust
    GamePhase.DEALER_TURN: [GamePhase.SETTLEMENT],
    GamePhase.SETTLEMENT: [GamePhase.GAME_OVER],
    GamePhase.GAME_OVER: [],
}

VALID_TRANSITIONS: dict[GamePhase, list[GamePhase]] = {
    phase: targets + [GamePhase.BETTING] for phase, targets in _ROUND_FLOW.items()
}


def is_valid_transition(from_phase: GamePhase, to_phase: GamePhase) -> bool:
    """
    Check if a phase transition is valid.

    Args:
        from_phase: Current phase
        to_phase: Desired phase

    Returns:
        True if the transition is allowed
    """
    return to_phase in VALID_TRANSITIONS.get(from_phase, [])
