"""Blackjack table engine with state machine."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from math import floor
from random import Random
from typing import Callable

from transitions import Machine

from core.cards import Card, Shoe
from core.hand import Hand, hand_value, is_blackjack
from core.rules import TableRules
from core.sidebets import (
    SideBetOutcome,
    SideBetResults,
    evaluate_21_plus_3,
    evaluate_perfect_pairs,
)
from core.wallet import Wallet
from core.game.events import EventEmitter, EventType, GameEvent
from core.game.schemas import HandView, MatchResult, SideBetView, TableSnapshot
from core.game.settlement import HandOutcome, RoundSettlement, settle_hands
from core.game.state import GamePhase

logger = logging.getLogger(__name__)


class BetZone(Enum):
    """Wager buckets on the felt."""

    MAIN = "main"
    PERFECT_PAIRS = "perfectPairs"
    TWENTY_ONE_PLUS_3 = "21+3"


@dataclass
class Round:
    """State of the round in progress, including the shoe it deals from."""

    shoe: Shoe
    round_id: int = 0
    player_hands: list[Hand] = field(default_factory=list)
    dealer_cards: list[Card] = field(default_factory=list)
    current_hand_index: int = 0
    main_bet: int = 0
    perfect_pairs_bet: int = 0
    twenty_one_plus_3_bet: int = 0
    side_bet_results: SideBetResults | None = None
    result_message: str = ""
    result_lines: list[str] = field(default_factory=list)
    total_winnings: int = 0

    @property
    def total_bet(self) -> int:
        """Sum of the three stakes on the felt."""
        return self.main_bet + self.perfect_pairs_bet + self.twenty_one_plus_3_bet

    @property
    def current_hand(self) -> Hand | None:
        """Get the hand being played."""
        if 0 <= self.current_hand_index < len(self.player_hands):
            return self.player_hands[self.current_hand_index]
        return None

    @property
    def dealer_upcard(self) -> Card | None:
        """Get the dealer's first card."""
        return self.dealer_cards[0] if self.dealer_cards else None


class BlackjackTable:
    """
    Single-seat blackjack table driven by a state machine.

    UI-agnostic: the presentation layer calls the action methods, reads the
    selectors and listens to events. Money moves only through the injected
    wallet. Illegal actions change nothing and return False.
    """

    # State machine states
    STATES = [p.name.lower() for p in GamePhase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "start_deal", "source": "betting", "dest": "dealing"},
        {"trigger": "deal_complete", "source": "dealing", "dest": "player_turn"},
        {"trigger": "natural", "source": "dealing", "dest": "game_over"},
        {"trigger": "player_done", "source": "player_turn", "dest": "dealer_turn"},
        {"trigger": "all_busted", "source": "player_turn", "dest": "settlement"},
        {"trigger": "dealer_done", "source": "dealer_turn", "dest": "settlement"},
        {"trigger": "settled", "source": "settlement", "dest": "game_over"},
        {"trigger": "reset_round", "source": "*", "dest": "betting"},
    ]

    def __init__(
        self,
        wallet: Wallet,
        rules: TableRules | None = None,
        rng: Random | None = None,
        shoe: Shoe | None = None,
        paced_dealer: bool = False,
    ) -> None:
        """
        Initialize a table.

        Args:
            wallet: Currency holder debited for bets and credited with payouts
            rules: Table rules (uses defaults if not provided)
            rng: Random number generator for reproducible shuffles
            shoe: Pre-built shoe, mainly for scripted games
            paced_dealer: If True the dealer turn is left for a DealerPacer
                to play step by step; otherwise it is played immediately
        """
        self.rules = rules or TableRules()
        self.wallet = wallet
        self.paced_dealer = paced_dealer
        self.events = EventEmitter()
        self.round = Round(
            shoe=shoe
            or Shoe(
                num_decks=self.rules.num_decks,
                reshuffle_threshold=self.rules.reshuffle_threshold,
                rng=rng,
            )
        )
        self.last_match_result: MatchResult | None = None
        self._last_bets: tuple[int, int, int] = (0, 0, 0)
        self._reset_hooks: list[Callable[[], None]] = []

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="betting",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def phase(self) -> GamePhase:
        """Get current phase as enum."""
        return GamePhase[self._machine_state.upper()]  # type: ignore

    @property
    def shoe(self) -> Shoe:
        """The shoe the table deals from."""
        return self.round.shoe

    @property
    def round_id(self) -> int:
        """Counter identifying the current round; bumped by new_round()."""
        return self.round.round_id

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> Callable[[], None]:
        """Subscribe to table events; returns a callable that unsubscribes."""
        return self.events.subscribe(handler, event_type)

    def on_reset(self, hook: Callable[[], None]) -> None:
        """Register a callback run by new_round() before state is cleared."""
        self._reset_hooks.append(hook)

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    def place_bet(self, zone: BetZone | str, amount: int) -> bool:
        """
        Add chips to one of the three wager buckets.

        The sum of all buckets may never exceed the wallet balance.
        """
        if self.phase != GamePhase.BETTING:
            return self._reject("Cannot bet in current phase")

        try:
            zone = BetZone(zone)
        except ValueError:
            return self._reject(f"Unknown bet zone: {zone}")

        if amount <= 0:
            return self._reject("Bet amount must be positive")

        if self.round.total_bet + amount > self.wallet.balance:
            return self._insufficient(self.round.total_bet + amount)

        if zone == BetZone.MAIN:
            self.round.main_bet += amount
        elif zone == BetZone.PERFECT_PAIRS:
            self.round.perfect_pairs_bet += amount
        else:
            self.round.twenty_one_plus_3_bet += amount

        self.events.emit_new(EventType.BET_PLACED, zone=zone.value, amount=amount)
        return True

    def clear_bets(self) -> bool:
        """Take all chips back off the felt."""
        if self.phase != GamePhase.BETTING:
            return self._reject("Cannot clear bets in current phase")
        self._set_bets(0, 0, 0)
        self.events.emit_new(EventType.BETS_CLEARED)
        return True

    def rebet(self) -> bool:
        """Repeat the previous round's stakes if they are still affordable."""
        if self.phase != GamePhase.BETTING:
            return self._reject("Cannot rebet in current phase")
        total = sum(self._last_bets)
        if total == 0:
            return self._reject("No previous bet")
        if total > self.wallet.balance:
            return self._insufficient(total)
        self._set_bets(*self._last_bets)
        self.events.emit_new(EventType.BET_PLACED, zone="rebet", amount=total)
        return True

    def max_bet(self) -> bool:
        """Put the whole balance, up to the table maximum, on the main bet."""
        if self.phase != GamePhase.BETTING:
            return self._reject("Cannot bet in current phase")
        amount = min(self.wallet.balance, self.rules.max_main_bet)
        if amount <= 0:
            return self._insufficient(1)
        self._set_bets(amount, 0, 0)
        self.events.emit_new(EventType.BET_PLACED, zone=BetZone.MAIN.value, amount=amount)
        return True

    def _set_bets(self, main: int, perfect_pairs: int, twenty_one_plus_3: int) -> None:
        self.round.main_bet = main
        self.round.perfect_pairs_bet = perfect_pairs
        self.round.twenty_one_plus_3_bet = twenty_one_plus_3

    # ------------------------------------------------------------------
    # Dealing
    # ------------------------------------------------------------------

    def deal(self) -> bool:
        """
        Debit the stakes and deal the opening four cards.

        Side bets are settled right away, then naturals: a dealer showing a
        ten or an ace peeks at the hole card. Any natural ends the round.
        """
        if not self.can_deal:
            if self.phase == GamePhase.BETTING and self.round.main_bet > 0:
                return self._insufficient(self.round.total_bet)
            return self._reject("Cannot deal without a main bet")

        rnd = self.round
        if not self.wallet.spend(rnd.total_bet):
            return self._insufficient(rnd.total_bet)

        self._last_bets = (rnd.main_bet, rnd.perfect_pairs_bet, rnd.twenty_one_plus_3_bet)
        self.start_deal()

        player1 = self._draw()
        dealer1 = self._draw()
        player2 = self._draw()
        dealer2 = self._draw(face_up=False)

        hand = Hand(cards=[player1, player2], bet=rnd.main_bet)
        rnd.player_hands = [hand]
        rnd.dealer_cards = [dealer1, dealer2]
        rnd.current_hand_index = 0

        for card, owner in ((player1, "player"), (dealer1, "dealer"), (player2, "player"), (dealer2, "dealer")):
            self.events.emit_new(EventType.CARD_DEALT, card=str(card), hand=owner)
        self.events.emit_new(
            EventType.ROUND_STARTED,
            round_id=rnd.round_id,
            main_bet=rnd.main_bet,
            perfect_pairs_bet=rnd.perfect_pairs_bet,
            twenty_one_plus_3_bet=rnd.twenty_one_plus_3_bet,
        )

        self._settle_side_bets(hand.cards, dealer1)

        if self._resolve_naturals(hand, dealer1, dealer2):
            return True

        self.deal_complete()
        return True

    def _draw(self, face_up: bool = True) -> Card:
        """Draw from the shoe, announcing a reshuffle if the draw caused one."""
        shuffles = self.shoe.shuffle_count
        card = self.shoe.draw(face_up=face_up)
        if self.shoe.shuffle_count != shuffles:
            self.events.emit_new(EventType.SHOE_SHUFFLED)
        return card

    def _settle_side_bets(self, player_cards: list[Card], upcard: Card) -> None:
        """Score and pay Perfect Pairs and 21+3 from the opening cards."""
        rnd = self.round
        results = SideBetResults(
            perfect_pairs=SideBetOutcome.settle(
                rnd.perfect_pairs_bet,
                evaluate_perfect_pairs(player_cards, self.rules.perfect_pairs_payouts),
            ),
            twenty_one_plus_3=SideBetOutcome.settle(
                rnd.twenty_one_plus_3_bet,
                evaluate_21_plus_3(player_cards, upcard, self.rules.twenty_one_plus_3_payouts),
            ),
        )
        rnd.side_bet_results = results

        for name, stake, outcome in (
            ("perfect_pairs", rnd.perfect_pairs_bet, results.perfect_pairs),
            ("twenty_one_plus_3", rnd.twenty_one_plus_3_bet, results.twenty_one_plus_3),
        ):
            if stake <= 0:
                continue
            if outcome.won:
                self.wallet.add(outcome.credit(stake))
                self.events.emit_new(
                    EventType.SIDE_BET_WON,
                    bet=name,
                    type=outcome.type,
                    payout=outcome.payout,
                )
            else:
                self.events.emit_new(EventType.SIDE_BET_LOST, bet=name, amount=stake)

    def _resolve_naturals(self, hand: Hand, upcard: Card, hole: Card) -> bool:
        """Settle the round on the spot if either side has blackjack."""
        rnd = self.round
        player_bj = is_blackjack(hand.cards)
        hand.is_blackjack = player_bj
        if player_bj:
            self.events.emit_new(EventType.PLAYER_BLACKJACK)

        if upcard.is_ace or upcard.is_ten_value:
            if is_blackjack([upcard, hole.flipped()]):
                self._reveal_dealer()
                self.events.emit_new(EventType.DEALER_BLACKJACK)
                if player_bj:
                    self.wallet.add(rnd.main_bet)
                    rnd.result_message = "Push - Both Blackjack!"
                    self.events.emit_new(EventType.PUSH, hand_index=0)
                    self._finish_natural(won=False, money_delta=0, placement=1)
                else:
                    rnd.result_message = "Dealer Blackjack!"
                    self.events.emit_new(EventType.PLAYER_LOSES, hand_index=0, amount=rnd.main_bet)
                    self._finish_natural(won=False, money_delta=-rnd.main_bet, placement=2)
                return True

        if player_bj:
            self._reveal_dealer()
            payout = floor(rnd.main_bet * self.rules.blackjack_return)
            self.wallet.add(payout)
            rnd.total_winnings = payout - rnd.main_bet
            rnd.result_message = "Blackjack! 3:2 Payout!"
            self.events.emit_new(EventType.PLAYER_WINS, hand_index=0, amount=rnd.total_winnings)
            self._finish_natural(won=True, money_delta=rnd.total_winnings, placement=1)
            return True

        return False

    def _finish_natural(self, won: bool, money_delta: int, placement: int) -> None:
        self.natural()
        self._publish_result(
            MatchResult(won=won, money_delta=money_delta, placement=placement)
        )

    # ------------------------------------------------------------------
    # Player actions
    # ------------------------------------------------------------------

    def hit(self) -> bool:
        """Draw one card into the active hand."""
        hand = self.round.current_hand
        if hand is None or not self.can_hit:
            return self._reject("Cannot hit")

        hand.add_card(self._draw())
        self.events.emit_new(
            EventType.PLAYER_HIT,
            hand_index=self.round.current_hand_index,
            hand_value=hand.value,
        )
        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_index=self.round.current_hand_index)

        self._advance()
        return True

    def stand(self) -> bool:
        """Keep the active hand as it is."""
        hand = self.round.current_hand
        if hand is None or not self.can_stand:
            return self._reject("Cannot stand")

        hand.is_stood = True
        self.events.emit_new(
            EventType.PLAYER_STAND,
            hand_index=self.round.current_hand_index,
            hand_value=hand.value,
        )
        self._advance()
        return True

    def double_down(self) -> bool:
        """Match the bet, take exactly one card and stand."""
        hand = self.round.current_hand
        if not self.can_hit or hand is None or len(hand.cards) != 2:
            return self._reject("Cannot double")

        if hand.bet > self.wallet.balance or not self.wallet.spend(hand.bet):
            return self._insufficient(hand.bet)

        hand.add_card(self._draw())
        hand.bet *= 2
        hand.is_doubled = True
        hand.is_stood = True

        self.events.emit_new(
            EventType.PLAYER_DOUBLE,
            hand_index=self.round.current_hand_index,
            hand_value=hand.value,
            new_bet=hand.bet,
        )
        if hand.is_busted:
            self.events.emit_new(EventType.PLAYER_BUSTS, hand_index=self.round.current_hand_index)

        self._advance()
        return True

    def split(self) -> bool:
        """
        Split a pair into two hands, each completed with one new card.

        Split aces get their one card and stand.
        """
        hand = self.round.current_hand
        if not self.can_hit or hand is None or not hand.is_pair:
            return self._reject("Cannot split")
        if len(self.round.player_hands) >= self.rules.max_hands:
            return self._reject("Max splits reached")
        if hand.bet > self.wallet.balance or not self.wallet.spend(hand.bet):
            return self._insufficient(hand.bet)

        aces = hand.cards[0].is_ace
        card1 = self._draw()
        card2 = self._draw()

        first = Hand(cards=[hand.cards[0], card1], bet=hand.bet, is_stood=aces)
        second = Hand(cards=[hand.cards[1], card2], bet=hand.bet, is_stood=aces)

        index = self.round.current_hand_index
        self.round.player_hands[index:index + 1] = [first, second]

        self.events.emit_new(
            EventType.PLAYER_SPLIT,
            hand_index=index,
            hand1_value=first.value,
            hand2_value=second.value,
            aces=aces,
        )
        self._advance()
        return True

    def _advance(self) -> None:
        """Move past finished hands; end the player turn after the last one."""
        rnd = self.round
        while rnd.current_hand is not None and rnd.current_hand.is_terminal:
            if rnd.current_hand_index < len(rnd.player_hands) - 1:
                rnd.current_hand_index += 1
            else:
                self._end_player_turn()
                return

    def _end_player_turn(self) -> None:
        if all(h.is_busted for h in self.round.player_hands):
            self.all_busted()
            self._reveal_dealer()
            self._settle()
            return

        self.player_done()
        self.events.emit_new(EventType.DEALER_TURN_STARTED, round_id=self.round_id)
        if not self.paced_dealer:
            self.play_dealer()

    # ------------------------------------------------------------------
    # Dealer
    # ------------------------------------------------------------------

    def _reveal_dealer(self) -> bool:
        """Turn every dealer card face up. Returns True if one was hidden."""
        if self.dealer_revealed:
            return False
        self.round.dealer_cards = [c.flipped(True) for c in self.round.dealer_cards]
        return True

    def reveal_hole_card(self) -> bool:
        """Dealer turn step: show the hole card."""
        if self.phase != GamePhase.DEALER_TURN:
            return False
        if self._reveal_dealer():
            self.events.emit_new(
                EventType.DEALER_REVEALS,
                card=str(self.round.dealer_cards[-1]),
                hand_value=hand_value(self.round.dealer_cards).value,
            )
        return True

    @property
    def dealer_revealed(self) -> bool:
        """Check if every dealer card is face up."""
        return all(c.face_up for c in self.round.dealer_cards)

    @property
    def dealer_should_draw(self) -> bool:
        """Dealer draws to 16 and on soft 17, stands on hard 17 and above."""
        if self.phase != GamePhase.DEALER_TURN or not self.dealer_revealed:
            return False
        value, soft = hand_value(self.round.dealer_cards)
        return value <= 16 or (value == 17 and soft)

    def dealer_draw(self) -> Card | None:
        """Dealer turn step: draw one card if the dealer rules call for it."""
        if not self.dealer_should_draw:
            return None
        card = self._draw()
        self.round.dealer_cards.append(card)
        self.events.emit_new(
            EventType.DEALER_HITS,
            card=str(card),
            hand_value=hand_value(self.round.dealer_cards).value,
        )
        return card

    def finish_dealer_turn(self) -> bool:
        """Dealer turn step: stop drawing and settle the round."""
        if self.phase != GamePhase.DEALER_TURN or not self.dealer_revealed:
            return False
        if self.dealer_should_draw:
            return False

        value = hand_value(self.round.dealer_cards).value
        if value > 21:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=value)

        self.dealer_done()
        self._settle()
        return True

    def play_dealer(self) -> bool:
        """Play the whole dealer turn without pauses."""
        if self.phase != GamePhase.DEALER_TURN:
            return False
        self.reveal_hole_card()
        while self.dealer_draw() is not None:
            pass
        return self.finish_dealer_turn()

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def _settle(self) -> RoundSettlement:
        """Pay every hand, award crowns and close the round."""
        rnd = self.round
        settlement = settle_hands(rnd.player_hands, rnd.dealer_cards)

        for result in settlement.hands:
            if result.credit:
                self.wallet.add(result.credit)
            if result.outcome == HandOutcome.WIN:
                self.events.emit_new(EventType.PLAYER_WINS, hand_index=result.index, amount=result.profit)
            elif result.outcome == HandOutcome.PUSH:
                self.events.emit_new(EventType.PUSH, hand_index=result.index)
            else:
                self.events.emit_new(EventType.PLAYER_LOSES, hand_index=result.index, amount=result.bet)

        crowns = 0
        if settlement.hands_won > 0 and self.rules.crown_bonus:
            crowns = self.rules.crown_bonus
            self.events.emit_new(EventType.CROWNS_AWARDED, amount=crowns)

        rnd.total_winnings = settlement.total_winnings
        rnd.result_message = settlement.message
        rnd.result_lines = settlement.lines

        logger.info(
            "Round %d settled: %s (net %+d)", rnd.round_id, settlement.message, settlement.net
        )

        self.settled()
        self._publish_result(
            MatchResult(
                won=settlement.won,
                money_delta=settlement.net,
                placement=settlement.placement,
                crowns=crowns,
            )
        )
        return settlement

    def _publish_result(self, result: MatchResult) -> None:
        self.last_match_result = result
        self.events.emit_new(
            EventType.ROUND_ENDED,
            round_id=self.round_id,
            message=self.round.result_message,
            match=result,
            balance=self.wallet.balance,
        )

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def new_round(self) -> bool:
        """
        Abandon or close the current round and return to betting.

        Pending paced dealer steps are cancelled first. Stakes of an
        unfinished round are forfeited.
        """
        for hook in list(self._reset_hooks):
            hook()

        old = self.round
        self.round = Round(shoe=old.shoe, round_id=old.round_id + 1)
        if self.shoe.reshuffle_if_needed():
            self.events.emit_new(EventType.SHOE_SHUFFLED)

        self.reset_round()
        self.events.emit_new(EventType.ROUND_RESET, round_id=self.round_id)
        return True

    # ------------------------------------------------------------------
    # Rejections
    # ------------------------------------------------------------------

    def _reject(self, message: str) -> bool:
        logger.debug("Rejected action in %s: %s", self.phase, message)
        self.events.emit_new(
            EventType.INVALID_ACTION,
            message=message,
            phase=self.phase.name,
        )
        return False

    def _insufficient(self, required: int) -> bool:
        logger.debug("Insufficient funds: need %d, have %d", required, self.wallet.balance)
        self.events.emit_new(
            EventType.INSUFFICIENT_FUNDS,
            required=required,
            available=self.wallet.balance,
        )
        return False

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    @property
    def current_hand(self) -> Hand | None:
        """Get the hand being played."""
        return self.round.current_hand

    @property
    def player_hands(self) -> list[Hand]:
        """Get all player hands."""
        return self.round.player_hands

    @property
    def dealer_cards(self) -> list[Card]:
        """Get the dealer's cards, hole card face down until revealed."""
        return self.round.dealer_cards

    @property
    def result_message(self) -> str:
        """Get the round-level result message."""
        return self.round.result_message

    @property
    def result_lines(self) -> list[str]:
        """Get the per-hand result lines of a settled round."""
        return list(self.round.result_lines)

    @property
    def side_bet_results(self) -> SideBetResults | None:
        """Get the side-bet outcomes of the current round."""
        return self.round.side_bet_results

    @property
    def can_deal(self) -> bool:
        """Check if dealing is allowed."""
        return (
            self.phase == GamePhase.BETTING
            and self.round.main_bet > 0
            and self.round.total_bet <= self.wallet.balance
        )

    @property
    def can_hit(self) -> bool:
        """Check if hitting is allowed."""
        if self.phase != GamePhase.PLAYER_TURN:
            return False
        hand = self.round.current_hand
        return hand is not None and not hand.is_terminal

    @property
    def can_stand(self) -> bool:
        """Check if standing is allowed."""
        return self.can_hit

    @property
    def can_double(self) -> bool:
        """Check if doubling is allowed."""
        hand = self.round.current_hand
        if hand is None or not self.can_hit:
            return False
        return len(hand.cards) == 2 and hand.bet <= self.wallet.balance

    @property
    def can_split(self) -> bool:
        """Check if splitting is allowed."""
        hand = self.round.current_hand
        if hand is None or not self.can_hit:
            return False
        return (
            hand.is_pair
            and hand.bet <= self.wallet.balance
            and len(self.round.player_hands) < self.rules.max_hands
        )

    def snapshot(self) -> TableSnapshot:
        """Build a read-only view of the table for rendering."""
        rnd = self.round
        side = rnd.side_bet_results
        return TableSnapshot(
            phase=self._machine_state,
            balance=self.wallet.balance,
            main_bet=rnd.main_bet,
            perfect_pairs_bet=rnd.perfect_pairs_bet,
            twenty_one_plus_3_bet=rnd.twenty_one_plus_3_bet,
            player_hands=[HandView.from_hand(h) for h in rnd.player_hands],
            current_hand_index=rnd.current_hand_index,
            dealer=HandView.from_dealer(rnd.dealer_cards),
            perfect_pairs=SideBetView.from_outcome(side.perfect_pairs) if side else None,
            twenty_one_plus_3=SideBetView.from_outcome(side.twenty_one_plus_3) if side else None,
            result_message=rnd.result_message,
            result_lines=list(rnd.result_lines),
            total_winnings=rnd.total_winnings,
            cards_remaining=self.shoe.cards_remaining,
            can_deal=self.can_deal,
            can_hit=self.can_hit,
            can_stand=self.can_stand,
            can_double=self.can_double,
            can_split=self.can_split,
        )
