"""Tests for the table state machine."""

from core.rules import TableRules
from core.game import BetZone, EventType, GamePhase


def hand_texts(table) -> list[list[str]]:
    return [[str(c) for c in h.cards] for h in table.player_hands]


class TestBetting:
    """Tests for placing and clearing bets."""

    def test_place_bets(self, table):
        assert table.place_bet(BetZone.MAIN, 100)
        assert table.place_bet("perfectPairs", 25)
        assert table.place_bet("21+3", 5)
        assert table.round.total_bet == 130
        assert table.wallet.balance == 1000  # nothing debited before deal

    def test_bets_limited_by_balance(self, stacked):
        table = stacked("", balance=100)
        assert table.place_bet("main", 60)
        assert not table.place_bet("perfectPairs", 50)
        assert table.round.perfect_pairs_bet == 0
        assert table.events.of_type(EventType.INSUFFICIENT_FUNDS)

    def test_unknown_zone(self, table):
        assert not table.place_bet("insurance", 10)
        assert table.round.total_bet == 0
        assert table.events.of_type(EventType.INVALID_ACTION)

    def test_non_positive_amount(self, table):
        assert not table.place_bet("main", 0)
        assert not table.place_bet("main", -5)

    def test_clear_bets(self, table):
        table.place_bet("main", 100)
        table.place_bet("21+3", 10)
        assert table.clear_bets()
        assert table.round.total_bet == 0

    def test_max_bet(self, table):
        table.place_bet("perfectPairs", 10)
        assert table.max_bet()
        assert table.round.main_bet == 1000
        assert table.round.perfect_pairs_bet == 0

    def test_max_bet_capped_by_table(self, stacked):
        table = stacked("", rules=TableRules(max_main_bet=500))
        assert table.max_bet()
        assert table.round.main_bet == 500

    def test_rebet_needs_previous_round(self, table):
        assert not table.rebet()

    def test_rebet_restores_stakes(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 50)
        table.place_bet("perfectPairs", 5)
        table.deal()
        table.stand()
        table.new_round()
        assert table.rebet()
        assert (table.round.main_bet, table.round.perfect_pairs_bet) == (50, 5)

    def test_cannot_bet_mid_round(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.deal()
        assert not table.place_bet("main", 10)
        assert not table.clear_bets()


class TestDeal:
    """Tests for the opening deal."""

    def test_deal_requires_main_bet(self, table):
        table.place_bet("perfectPairs", 10)
        assert not table.deal()
        assert table.phase == GamePhase.BETTING
        assert table.player_hands == []

    def test_deal_debits_all_stakes_once(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.place_bet("perfectPairs", 10)
        table.place_bet("21+3", 10)
        assert table.deal()
        assert table.wallet.balance == 880

    def test_unaffordable_deal_draws_nothing(self, stacked):
        table = stacked("10S 6H 9D 10C", balance=200)
        table.place_bet("main", 200)
        table.wallet.spend(150)  # balance drops after betting
        remaining = table.shoe.cards_remaining
        assert not table.can_deal
        assert not table.deal()
        assert table.phase == GamePhase.BETTING
        assert table.shoe.cards_remaining == remaining
        assert table.wallet.balance == 50

    def test_deal_order_and_hole_card(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.deal()
        assert hand_texts(table) == [["10♠", "9♦"]]
        assert [c.face_up for c in table.dealer_cards] == [True, False]
        assert table.snapshot().dealer.value == 6
        assert table.phase == GamePhase.PLAYER_TURN

    def test_cards_in_play_have_distinct_ids(self, table):
        table.place_bet("main", 10)
        table.deal()
        in_play = [c for h in table.player_hands for c in h.cards] + table.dealer_cards
        assert len({c.card_id for c in in_play}) == len(in_play)

    def test_side_bets_paid_at_deal(self, stacked):
        """Perfect pair and suited trips on the opening cards."""
        table = stacked("8H 8H 8H 5C")
        table.place_bet("main", 100)
        table.place_bet("perfectPairs", 10)
        table.place_bet("21+3", 10)
        table.deal()
        results = table.side_bet_results
        assert results.perfect_pairs.type == "Perfect Pair"
        assert results.perfect_pairs.payout == 300
        assert results.twenty_one_plus_3.type == "Suited Trips"
        assert results.twenty_one_plus_3.payout == 1000
        assert table.wallet.balance == 880 + 310 + 1010
        assert table.phase == GamePhase.PLAYER_TURN

    def test_losing_side_bets(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.place_bet("perfectPairs", 10)
        table.deal()
        assert not table.side_bet_results.perfect_pairs.won
        assert table.wallet.balance == 890
        assert table.events.of_type(EventType.SIDE_BET_LOST)


class TestNaturals:
    """Tests for blackjack at the deal."""

    def test_player_blackjack_pays_3_to_2(self, stacked):
        table = stacked("AS 5H KD 9C")
        table.place_bet("main", 100)
        table.deal()
        assert table.phase == GamePhase.GAME_OVER
        assert table.wallet.balance == 1150
        assert table.result_message == "Blackjack! 3:2 Payout!"
        assert table.player_hands[0].is_blackjack
        assert all(c.face_up for c in table.dealer_cards)
        result = table.last_match_result
        assert result.won and result.money_delta == 150 and result.placement == 1

    def test_blackjack_payout_rounds_down(self, stacked):
        table = stacked("AS 5H KD 9C")
        table.place_bet("main", 15)
        table.deal()
        assert table.wallet.balance == 1000 - 15 + 37

    def test_dealer_blackjack(self, stacked):
        table = stacked("10S AH 9D KC")
        table.place_bet("main", 100)
        table.deal()
        assert table.phase == GamePhase.GAME_OVER
        assert table.wallet.balance == 900
        assert table.result_message == "Dealer Blackjack!"
        assert all(c.face_up for c in table.dealer_cards)
        assert table.last_match_result.money_delta == -100
        assert table.last_match_result.placement == 2

    def test_dealer_blackjack_ten_up(self, stacked):
        table = stacked("10S KH 9D AC")
        table.place_bet("main", 100)
        table.deal()
        assert table.result_message == "Dealer Blackjack!"

    def test_both_blackjack_push(self, stacked):
        table = stacked("AS KH QD AC")
        table.place_bet("main", 100)
        table.deal()
        assert table.phase == GamePhase.GAME_OVER
        assert table.wallet.balance == 1000
        assert table.result_message == "Push - Both Blackjack!"
        assert table.last_match_result.money_delta == 0
        assert table.last_match_result.placement == 1

    def test_no_peek_without_ten_or_ace(self, stacked):
        table = stacked("10S 6H 9D AC")
        table.place_bet("main", 100)
        table.deal()
        assert table.phase == GamePhase.PLAYER_TURN
        assert not table.dealer_cards[1].face_up

    def test_side_bets_paid_before_dealer_blackjack(self, stacked):
        table = stacked("9S AH 9S KC")
        table.place_bet("main", 100)
        table.place_bet("perfectPairs", 10)
        table.deal()
        assert table.result_message == "Dealer Blackjack!"
        assert table.wallet.balance == 890 + 310


class TestPlayerActions:
    """Tests for hit, stand, double and split."""

    def test_hit(self, stacked):
        table = stacked("10S 6H 2D 10C 5H")
        table.place_bet("main", 100)
        table.deal()
        assert table.hit()
        assert table.current_hand.value == 17
        assert table.phase == GamePhase.PLAYER_TURN

    def test_hit_to_21_does_not_stand(self, stacked):
        table = stacked("10S 6H 2D 10C 9H")
        table.place_bet("main", 100)
        table.deal()
        table.hit()
        assert table.current_hand.value == 21
        assert table.can_hit

    def test_bust_settles_without_dealer_draw(self, stacked):
        table = stacked("10S 6H 6D 10C KH")
        table.place_bet("main", 100)
        table.deal()
        table.hit()
        assert table.phase == GamePhase.GAME_OVER
        assert table.result_message == "Busted!"
        assert len(table.dealer_cards) == 2
        assert all(c.face_up for c in table.dealer_cards)
        assert table.wallet.balance == 900
        assert not table.last_match_result.won

    def test_stand_plays_dealer(self, stacked):
        table = stacked("10S 6H 9D 10C 2H")
        table.place_bet("main", 100)
        table.deal()
        assert table.stand()
        assert table.phase == GamePhase.GAME_OVER
        assert table.result_message == "You Win 100!"
        assert table.wallet.balance == 1100

    def test_win_awards_crowns(self, stacked):
        table = stacked("10S 7H 9D 10C")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        crowns = table.events.of_type(EventType.CROWNS_AWARDED)
        assert [e.data["amount"] for e in crowns] == [10]
        assert table.last_match_result.crowns == 10

    def test_loss_awards_no_crowns(self, stacked):
        table = stacked("10S 10H 7D 10C")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        assert table.result_message == "Dealer Wins"
        assert not table.events.of_type(EventType.CROWNS_AWARDED)

    def test_double_down(self, stacked):
        table = stacked("6S 9H 5D 10C KH")
        table.place_bet("main", 100)
        table.deal()
        assert table.can_double
        assert table.double_down()
        hand = table.player_hands[0]
        assert hand.bet == 200
        assert hand.is_doubled and hand.is_stood
        assert len(hand.cards) == 3
        # 21 against dealer 19
        assert table.wallet.balance == 1000 - 200 + 400

    def test_double_needs_two_cards(self, stacked):
        table = stacked("2S 9H 3D 10C 4H")
        table.place_bet("main", 100)
        table.deal()
        table.hit()
        assert not table.can_double
        assert not table.double_down()
        assert table.player_hands[0].bet == 100

    def test_double_needs_funds(self, stacked):
        table = stacked("6S 9H 5D 10C KH", balance=150)
        table.place_bet("main", 100)
        table.deal()
        assert not table.can_double
        assert not table.double_down()
        assert table.wallet.balance == 50
        assert len(table.player_hands[0].cards) == 2
        assert table.events.of_type(EventType.INSUFFICIENT_FUNDS)

    def test_split_pair(self, stacked):
        table = stacked("8C 6H 8D 10C 3S 2H")
        table.place_bet("main", 100)
        table.deal()
        assert table.can_split
        assert table.split()
        assert hand_texts(table) == [["8♣", "3♠"], ["8♦", "2♥"]]
        assert [h.bet for h in table.player_hands] == [100, 100]
        assert table.wallet.balance == 800
        assert table.round.current_hand_index == 0

    def test_split_refused_without_funds(self, stacked):
        table = stacked("8C 6H 8D 10C 3S 2H", balance=150)
        table.place_bet("main", 100)
        table.deal()
        assert not table.can_split
        assert not table.split()
        assert hand_texts(table) == [["8♣", "8♦"]]
        assert table.wallet.balance == 50

    def test_split_needs_equal_ranks(self, stacked):
        table = stacked("10S 6H KD 10C")
        table.place_bet("main", 100)
        table.deal()
        assert not table.can_split
        assert not table.split()
        assert len(table.player_hands) == 1

    def test_split_aces_get_one_card_and_stand(self, stacked):
        table = stacked("AS 6H AD 10C 9C KH 10D")
        table.place_bet("main", 100)
        table.deal()
        table.split()
        assert all(len(h.cards) == 2 and h.is_stood for h in table.player_hands)
        assert not table.player_hands[1].is_blackjack
        # dealer 16 draws 10 and busts, both hands win even money
        assert table.phase == GamePhase.GAME_OVER
        assert table.wallet.balance == 1000 - 200 + 400

    def test_split_limited_to_four_hands(self, stacked):
        table = stacked("8S 6H 8D 10C 8C 8H 8S 2C 3D 4D")
        table.place_bet("main", 100)
        table.deal()
        table.split()
        table.split()
        table.split()
        assert len(table.player_hands) == 4
        table.stand()
        table.stand()
        table.stand()
        assert table.current_hand.is_pair
        assert not table.can_split
        assert not table.split()
        assert len(table.player_hands) == 4

    def test_action_flags_false_without_hands(self, table):
        assert table.current_hand is None
        assert not table.can_hit
        assert not table.can_stand
        assert not table.can_double
        assert not table.can_split

    def test_illegal_actions_are_no_ops(self, table):
        assert not table.hit()
        assert not table.stand()
        assert not table.double_down()
        assert not table.split()
        assert table.phase == GamePhase.BETTING
        assert len(table.events.of_type(EventType.INVALID_ACTION)) == 4

    def test_no_actions_after_game_over(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        balance = table.wallet.balance
        assert not table.hit()
        assert not table.stand()
        assert table.wallet.balance == balance


class TestDealer:
    """Tests for dealer play."""

    def test_dealer_hits_soft_17(self, stacked):
        table = stacked("10S AH 9D 6C 2C")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        assert len(table.dealer_cards) == 3
        assert table.result_message == "Push!"
        assert table.wallet.balance == 1000

    def test_dealer_stands_hard_17(self, stacked):
        table = stacked("10S 10H 9D 7C 2C")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        assert len(table.dealer_cards) == 2
        assert table.wallet.balance == 1100

    def test_dealer_bust(self, stacked):
        table = stacked("10S 6H 8D 10C KH")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        assert table.result_message == "Dealer Busts! +100"


class TestEndToEnd:
    """Full rounds."""

    def test_split_double_scenario(self, stacked):
        """9-9 against a 5: split, double the first hand into a bust, stand 19, dealer 20."""
        table = stacked("9S 5H 9D 10C 3C 10H KS 5D")
        table.place_bet("main", 100)
        table.deal()
        assert table.can_split
        table.split()
        assert table.double_down()
        assert table.player_hands[0].is_busted
        assert table.round.current_hand_index == 1
        assert table.current_hand.value == 19
        table.stand()

        assert table.phase == GamePhase.GAME_OVER
        assert table.snapshot().dealer.value == 20
        assert table.wallet.balance == 700
        assert table.last_match_result.money_delta == -300
        assert table.last_match_result.placement == 2
        assert table.result_lines == ["Hand 1: Busted", "Hand 2: Lose"]

    def test_round_ended_event_carries_match(self, stacked):
        table = stacked("10S 6H 9D 10C")
        seen = []
        table.subscribe(seen.append, EventType.ROUND_ENDED)
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        assert len(seen) == 1
        assert seen[0].data["match"] == table.last_match_result

    def test_result_lines_selector(self, stacked):
        table = stacked("10S 7H 9D 10C 8D 8S 9C 10H")
        table.place_bet("main", 100)
        assert table.result_lines == []
        table.deal()
        table.stand()
        assert table.result_lines == ["Hand 1: Win 100"]

        table.result_lines.append("tampered")
        assert table.result_lines == ["Hand 1: Win 100"]
        assert table.snapshot().result_lines == table.result_lines

        table.new_round()
        assert table.result_lines == []

    def test_new_round_resets(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.deal()
        table.stand()
        round_id = table.round_id
        assert table.new_round()
        assert table.phase == GamePhase.BETTING
        assert table.round_id == round_id + 1
        assert table.player_hands == []
        assert table.dealer_cards == []
        assert table.result_message == ""
        assert table.side_bet_results is None

    def test_many_random_rounds_complete(self, table):
        """Seeded rounds always reach game over and never overdraw."""
        for _ in range(200):
            if table.wallet.balance < 10:
                break
            table.place_bet("main", 10)
            table.deal()
            while table.can_hit:
                if table.current_hand.value < 17:
                    table.hit()
                else:
                    table.stand()
            assert table.phase == GamePhase.GAME_OVER
            table.new_round()
        assert table.wallet.balance >= 0

    def test_snapshot_masks_hole_card(self, stacked):
        table = stacked("10S 6H 9D 10C")
        table.place_bet("main", 100)
        table.deal()
        snap = table.snapshot()
        assert snap.phase == "player_turn"
        assert snap.dealer.cards[1].rank is None
        assert snap.player_hands[0].value == 19
        assert snap.can_hit and snap.can_stand and snap.can_double
        assert not snap.can_split
        assert snap.balance == 900
