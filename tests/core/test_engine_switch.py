"""Tests for the Switch variant: two hands, Super Match and switching."""

import pytest

from bjstats.game import EventType, Phase
from bjstats.supermatch import SuperMatchOutcome
from tests.conftest import rig_shoe


def events_of(table, event_type):
    return [e for e in table.events.history if e.event_type == event_type]


@pytest.fixture
def switch_table(make_table):
    """A started Switch table with one human and no AI players."""
    table = make_table(variant="switch")
    table.start_game()
    return table


class TestSuperMatchPhase:
    """Side bet offers before the deal."""

    def test_bet_covers_two_hands(self, switch_table):
        """The 10 coin bet becomes two hands of 5 and opens Super Match."""
        assert switch_table.place_bet()
        player = switch_table.players[0]
        assert player.coins == 90
        assert [h.bet for h in player.hands] == [5, 5]
        assert switch_table.phase == Phase.SUPER_MATCH
        assert switch_table.can_super_match
        assert events_of(switch_table, EventType.SUPER_MATCH_OFFERED)

    def test_take_super_match(self, switch_table):
        """Taking the side bet costs 5 and deals the cards."""
        switch_table.place_bet()
        assert switch_table.place_super_match_bet()
        player = switch_table.players[0]
        assert player.coins == 85
        assert player.super_match_bet == 5
        assert switch_table.phase == Phase.SWITCH
        assert all(len(h.cards) == 2 for h in player.hands)
        assert len(switch_table.dealer.hand.cards) == 2

    def test_skip_super_match(self, switch_table):
        """Declining keeps the coins."""
        switch_table.place_bet()
        assert switch_table.skip_super_match_bet()
        assert switch_table.players[0].coins == 90
        assert switch_table.players[0].super_match_bet == 0
        assert switch_table.phase == Phase.SWITCH

    def test_short_stack_is_not_offered(self, switch_table):
        """Players who cannot cover the side bet skip straight past it."""
        switch_table.players[0].coins = 12
        switch_table.place_bet()
        assert switch_table.players[0].coins == 2
        assert switch_table.phase == Phase.SWITCH
        assert not events_of(switch_table, EventType.SUPER_MATCH_OFFERED)

    def test_super_match_outside_offer(self, switch_table):
        """The side bet can only be taken when offered."""
        assert not switch_table.place_super_match_bet()
        assert switch_table.phase == Phase.BETTING

    def test_three_of_a_kind_pays_at_result(self, switch_table):
        """7-7-7-2 on the deal returns 5 x (1 + 5) = 30 when the round settles."""
        # Hand 1: 7S 7H; hand 2: 7D 2C; dealer 10C 8D
        rig_shoe(switch_table.shoe, "7S 7H 7D 2C 10C 8D")
        switch_table.place_bet()
        switch_table.place_super_match_bet()
        player = switch_table.players[0]
        assert player.super_match_result.outcome == SuperMatchOutcome.THREE_OF_A_KIND
        assert player.coins == 85

        switch_table.keep_hands()
        switch_table.stand()
        switch_table.stand()

        assert switch_table.phase == Phase.RESULT
        # Both hands (14 and 9) lose to 18; the side bet returns 30
        assert player.coins == 115
        replay = switch_table.last_replay.player(1)
        assert replay.super_match_outcome == "Three Of A Kind"
        assert replay.super_match_returned == 30
        assert replay.coin_delta == 15

    def test_scored_on_cards_as_dealt(self, switch_table):
        """Switching afterwards does not change the side bet."""
        rig_shoe(switch_table.shoe, "7S 2H 7D 9C 10C 8D")
        switch_table.place_bet()
        switch_table.place_super_match_bet()
        switch_table.choose_switch()
        assert switch_table.players[0].super_match_result.outcome == SuperMatchOutcome.ONE_PAIR


class TestSwitchPhase:
    """Swapping second cards."""

    def test_choose_switch_swaps_second_cards(self, switch_table):
        """Hand 1 and hand 2 trade their second cards."""
        rig_shoe(switch_table.shoe, "10S 4H 7D KC 10C 8D")
        switch_table.place_bet()
        switch_table.skip_super_match_bet()
        assert switch_table.can_switch
        assert switch_table.choose_switch()

        first, second = switch_table.players[0].hands
        assert [str(c) for c in first.cards] == ["10♠", "K♣"]
        assert [str(c) for c in second.cards] == ["7♦", "4♥"]
        assert switch_table.phase == Phase.PLAYING
        assert events_of(switch_table, EventType.HANDS_SWITCHED)

    def test_keep_hands(self, switch_table):
        """Keeping leaves the deal untouched."""
        rig_shoe(switch_table.shoe, "10S 4H 7D KC 10C 8D")
        switch_table.place_bet()
        switch_table.skip_super_match_bet()
        assert switch_table.keep_hands()

        first, second = switch_table.players[0].hands
        assert first.value == 14 and second.value == 17
        assert events_of(switch_table, EventType.HANDS_KEPT)

    def test_switch_only_in_switch_phase(self, switch_table):
        """Switching is rejected outside its phase."""
        switch_table.place_bet()
        assert not switch_table.choose_switch()
        assert switch_table.phase == Phase.SUPER_MATCH


class TestSwitchPlay:
    """Playing two hands."""

    def _to_playing(self, table, cards):
        rig_shoe(table.shoe, cards)
        table.place_bet()
        table.skip_super_match_bet()
        table.keep_hands()

    def test_stand_moves_to_second_hand(self, switch_table):
        """Standing on hand 1 keeps the turn with the same player."""
        self._to_playing(switch_table, "10S 8H 10D 7C 10C 9D")
        player = switch_table.players[0]
        assert player.active_hand_index == 0
        switch_table.stand()
        assert player.active_hand_index == 1
        assert switch_table.current_player is player
        assert switch_table.phase == Phase.PLAYING

    def test_bust_on_first_hand_moves_on(self, switch_table):
        """A bust on hand 1 moves to hand 2."""
        self._to_playing(switch_table, "10S 6H 10D 7C 10C 9D KH")
        switch_table.hit()
        player = switch_table.players[0]
        assert player.hands[0].is_busted
        assert player.active_hand_index == 1

    def test_split_disabled(self, switch_table):
        """Pairs cannot be split in Switch."""
        self._to_playing(switch_table, "8S 8H 10D 7C 10C 9D")
        assert not switch_table.can_split
        assert not switch_table.split()
        assert len(switch_table.players[0].hands) == 2

    def test_double_costs_hand_stake(self, switch_table):
        """Doubling one Switch hand costs 5."""
        self._to_playing(switch_table, "6S 5H 10D 7C 10C 9D 9S")
        player = switch_table.players[0]
        assert switch_table.double_down()
        assert player.coins == 85
        assert player.hands[0].bet == 10
        assert player.active_hand_index == 1

    def test_full_round_settles_each_hand(self, switch_table):
        """Each hand is settled on its own."""
        # Hand 1: 10-10 (20); hand 2: 10-6 (16); dealer 10-8 (18)
        self._to_playing(switch_table, "10S 10H 10D 6C 10C 8D")
        switch_table.stand()
        switch_table.stand()
        assert switch_table.phase == Phase.RESULT
        # 90 + 10 for the winning hand
        assert switch_table.players[0].coins == 100
        outcomes = [h.outcome for h in switch_table.last_replay.player(1).hands]
        assert outcomes == ["win", "lose"]


class TestSwitchAI:
    """AI seats in the Switch variant."""

    def test_ai_takes_super_match_and_decides_switch(self, make_table):
        """AIs bet the side bet when affordable and log their switch choice."""
        table = make_table(variant="switch", human_players=0, ai_players=1)
        table.start_game()
        table.place_bet()

        assert table.phase in (Phase.RESULT, Phase.SETUP)
        replay = table.last_replay.player(1)
        assert replay.super_match_bet == 5
        kinds = [d["kind"] for d in replay.decisions]
        assert kinds[0] == "super_match"
        assert kinds[1] == "switch"
