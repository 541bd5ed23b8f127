"""Table engine: the round state machine."""

import functools
import logging
import threading
import time
from collections import deque
from random import Random
from typing import Callable

from transitions import Machine

from bjstats.cards import Card, Shoe
from bjstats.game.events import EventEmitter, EventType, GameEvent
from bjstats.game.players import Dealer, Decision, Player, PlayerKind
from bjstats.game.replay import HandReplay, PlayerReplay, RoundReplay
from bjstats.game.scheduler import Scheduler, Step, SyncScheduler
from bjstats.game.snapshot import CardView, DealerView, HandView, PlayerView, TableSnapshot
from bjstats.game.state import Phase
from bjstats.hand import Hand, settle_hand
from bjstats.persistence import PersistenceBridge
from bjstats.rules import TableConfig
from bjstats.statistics.probability import HeuristicEstimator, ProbabilityEstimator
from bjstats.strategy.basic import Action, AIPolicy, Capabilities
from bjstats.supermatch import score_super_match

logger = logging.getLogger(__name__)

CUT_CARD_FRACTION = 0.5
DEALER_STANDS_ON = 17


def _synchronized(method):
    """Serialize access to the table across callers."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


class BlackjackTable:
    """
    Multi-seat blackjack table using a state machine.

    Humans drive the table through the public commands; AI turns, dealer
    draws and the reshuffle pause are scheduled by the table itself. A
    command that is not allowed right now (wrong phase, wrong turn, not
    enough coins) returns False, emits an event and leaves the state alone.
    """

    # State machine states
    STATES = [p.name.lower() for p in Phase]

    # State machine transitions
    TRANSITIONS = [
        {"trigger": "open_betting", "source": "setup", "dest": "betting"},
        {"trigger": "offer_super_match", "source": "betting", "dest": "super_match"},
        {"trigger": "offer_switch", "source": "super_match", "dest": "switch"},
        {"trigger": "begin_play", "source": ["betting", "switch"], "dest": "playing"},
        {"trigger": "dealer_turn", "source": "playing", "dest": "dealer"},
        {"trigger": "settle", "source": "dealer", "dest": "result"},
        {"trigger": "new_round", "source": "result", "dest": "betting"},
        {"trigger": "return_to_setup", "source": "*", "dest": "setup"},
    ]

    def __init__(
        self,
        config: TableConfig | None = None,
        *,
        scheduler: Scheduler | None = None,
        estimator: ProbabilityEstimator | None = None,
        policy: AIPolicy | None = None,
        persistence: PersistenceBridge | None = None,
        rng: Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize a table in the setup phase.

        Args:
            config: Variant, decks, seats and pacing
            scheduler: Runs delayed steps (defaults to running them immediately)
            estimator: Win probability display
            policy: Decision maker for AI seats
            persistence: Bankroll and lockout storage
            rng: Random number generator for shuffling
            clock: Returns the current time in epoch seconds
        """
        self.config = config or TableConfig()
        self.rules = self.config.rules
        self.scheduler = scheduler or SyncScheduler()
        self.estimator = estimator or HeuristicEstimator()
        self.policy = policy or AIPolicy()
        self.persistence = persistence or PersistenceBridge(
            coins_ttl=self.config.coins_ttl_seconds
        )
        self._rng = rng or Random()
        self._clock = clock

        self.shoe: Shoe | None = None
        self.players: list[Player] = self._seat_players()
        self.dealer = Dealer()
        self.current_player_index: int | None = None
        self.round_number = 0
        self.replays: deque[RoundReplay] = deque(maxlen=self.config.replay_history)
        self.events = EventEmitter()

        self._lock = threading.RLock()
        self._epoch = 0
        self._dealing = False

        # Initialize state machine
        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="setup",
            auto_transitions=False,
            model_attribute="_machine_state",
            after_state_change="_on_phase_changed",
        )

    @property
    def phase(self) -> Phase:
        """Get current phase as enum."""
        return Phase[self._machine_state.upper()]  # type: ignore[attr-defined]

    @property
    def current_player(self) -> Player | None:
        """The player whose decision the table is waiting for."""
        if self.current_player_index is None:
            return None
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def last_replay(self) -> RoundReplay | None:
        """Replay of the most recently settled round."""
        return self.replays[-1] if self.replays else None

    def player(self, player_id: int) -> Player | None:
        """Look up a seat by player id."""
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def subscribe(
        self,
        handler: Callable[[GameEvent], None],
        event_type: EventType | None = None,
    ) -> None:
        """Subscribe to game events."""
        self.events.subscribe(handler, event_type)

    def _seat_players(self) -> list[Player]:
        seats: list[Player] = []
        for n in range(1, self.config.human_players + 1):
            seats.append(
                Player(
                    id=len(seats) + 1,
                    kind=PlayerKind.HUMAN,
                    name=f"Player {n}",
                    coins=self.rules.starting_coins,
                )
            )
        for n in range(1, self.config.ai_players + 1):
            seats.append(
                Player(
                    id=len(seats) + 1,
                    kind=PlayerKind.AI,
                    name=f"AI {n}",
                    coins=self.rules.starting_coins,
                )
            )
        return seats

    def _on_phase_changed(self) -> None:
        self.events.emit_new(EventType.PHASE_CHANGED, phase=self.phase.name)

    def _reject(self, message: str, event_type: EventType = EventType.INVALID_ACTION, **data) -> bool:
        self.events.emit_new(event_type, message=message, phase=self.phase.name, **data)
        return False

    def _schedule(self, delay: float, step: Step) -> None:
        """Schedule a step that is dropped if the table is reset meanwhile."""
        epoch = self._epoch

        def run() -> None:
            with self._lock:
                if epoch != self._epoch:
                    return
                step()

        self.scheduler.call_later(delay, run)

    def _draw(self) -> Card:
        assert self.shoe is not None
        return self.shoe.draw()

    # Setup

    @_synchronized
    def start_game(self) -> bool:
        """Build a fresh shoe, restore saved bankrolls and open betting."""
        if self.phase != Phase.SETUP:
            return self._reject("Game already started")
        if not self.rules.playable:
            return self._reject(f"The {self.rules.variant} variant is not available")

        now = self._clock()
        self.shoe = Shoe(
            num_decks=self.config.num_decks,
            cut_fraction=CUT_CARD_FRACTION,
            rng=self._rng,
        )
        self.events.emit_new(
            EventType.SHOE_SHUFFLED,
            cards=self.shoe.cards_remaining,
            cut_card_position=self.shoe.cut_card_position,
        )

        self._restore_bankrolls(now)
        for player in self.players:
            player.reset_round()
        self.dealer.reset()
        self.current_player_index = None

        self.events.emit_new(
            EventType.GAME_STARTED,
            variant=self.rules.variant.value,
            num_decks=self.config.num_decks,
            players=[p.name for p in self.players],
        )
        logger.info(
            "Started %s table with %d decks and %d seats",
            self.rules.variant,
            self.config.num_decks,
            len(self.players),
        )
        self.open_betting()
        return True

    def _restore_bankrolls(self, now: float) -> None:
        saved = self.persistence.load_coins(self.rules.variant, now) or {}
        locks = self.persistence.load_locks(self.rules.variant, now)
        for player in self.players:
            player.coins = saved.get(player.id, self.rules.starting_coins)
            player.locked_until = locks.get(player.id)
            # The lockout ran out while no table was open
            if player.coins == 0 and player.locked_until is None:
                player.coins = self.rules.starting_coins
                self.events.emit_new(
                    EventType.PLAYER_UNLOCKED, player_id=player.id, coins=player.coins
                )

    def _save_bankrolls(self, now: float) -> None:
        self.persistence.save_coins(
            self.rules.variant,
            {p.id: p.coins for p in self.players},
            now,
        )

    # Betting

    @_synchronized
    def place_bet(self) -> bool:
        """Every unlocked player who can cover the bet unit wagers it."""
        if self.phase != Phase.BETTING or self._dealing:
            return self._reject("Cannot bet in current phase")

        now = self._clock()
        self._release_expired_locks(now)

        for player in self.players:
            player.reset_round()

        bettors = [
            p for p in self.players if not p.locked and p.coins >= self.rules.bet_unit
        ]
        if not bettors:
            return self._reject(
                "No player can cover the bet",
                EventType.INSUFFICIENT_FUNDS,
                required=self.rules.bet_unit,
            )

        for player in bettors:
            player.coins -= self.rules.bet_unit
            player.hands = [
                Hand(bet=self.rules.hand_stake) for _ in range(self.rules.hands_per_player)
            ]
            self.events.emit_new(
                EventType.BET_PLACED,
                player_id=player.id,
                amount=self.rules.bet_unit,
                coins=player.coins,
            )
        self._save_bankrolls(now)

        self.round_number += 1
        self.events.emit_new(
            EventType.ROUND_STARTED,
            round_number=self.round_number,
            players=[p.id for p in bettors],
        )

        if self.rules.super_match:
            self.offer_super_match()
            self._advance_super_match()
        else:
            self._deal_round()
        return True

    def _release_expired_locks(self, now: float) -> None:
        released = [p for p in self.players if p.is_unlockable(now)]
        if not released:
            return
        for player in released:
            player.locked_until = None
            if player.coins == 0:
                player.coins = self.rules.starting_coins
            self.events.emit_new(EventType.PLAYER_UNLOCKED, player_id=player.id, coins=player.coins)
        self.persistence.save_locks(
            self.rules.variant,
            {p.id: p.locked_until for p in self.players if p.locked_until is not None},
        )
        self._save_bankrolls(now)

    # Super Match

    def _advance_super_match(self) -> None:
        cost = self.rules.super_match_cost
        for index, player in enumerate(self.players):
            if not player.in_round or player.super_match_decided:
                continue
            if player.coins < cost:
                player.super_match_decided = True
                continue
            self.current_player_index = index
            self.events.emit_new(EventType.SUPER_MATCH_OFFERED, player_id=player.id, cost=cost)
            if player.is_ai:
                self._schedule(self.config.ai_delay, self._ai_super_match)
            return

        self.current_player_index = None
        self._deal_round()

    def _ai_super_match(self) -> None:
        player = self.current_player
        if self.phase != Phase.SUPER_MATCH or player is None or not player.is_ai:
            return
        take = self.policy.decide_super_match(player.coins, self.rules.super_match_cost)
        self._apply_super_match(player, take)

    def _apply_super_match(self, player: Player, take: bool) -> None:
        player.super_match_decided = True
        if take:
            cost = self.rules.super_match_cost
            player.coins -= cost
            player.super_match_bet = cost
            self.events.emit_new(
                EventType.SUPER_MATCH_TAKEN,
                player_id=player.id,
                amount=cost,
                coins=player.coins,
            )
        else:
            self.events.emit_new(EventType.SUPER_MATCH_DECLINED, player_id=player.id)
        player.decisions.append(Decision(kind="super_match", action="bet" if take else "skip"))
        self._advance_super_match()

    def _human_turn(self, phase: Phase) -> Player | None:
        """The current player if it is a human's turn in ``phase``."""
        if self.phase != phase or self._dealing:
            return None
        player = self.current_player
        if player is None or player.is_ai or not player.in_round:
            return None
        return player

    @_synchronized
    def place_super_match_bet(self) -> bool:
        """The human whose turn it is takes the Super Match side bet."""
        player = self._human_turn(Phase.SUPER_MATCH)
        if player is None:
            return self._reject("No Super Match offer for a human player")
        if player.coins < self.rules.super_match_cost:
            return self._reject(
                "Not enough coins for Super Match",
                EventType.INSUFFICIENT_FUNDS,
                required=self.rules.super_match_cost,
                available=player.coins,
            )
        self._apply_super_match(player, True)
        return True

    @_synchronized
    def skip_super_match_bet(self) -> bool:
        """The human whose turn it is declines the Super Match side bet."""
        player = self._human_turn(Phase.SUPER_MATCH)
        if player is None:
            return self._reject("No Super Match offer for a human player")
        self._apply_super_match(player, False)
        return True

    # Dealing

    def _deal_round(self) -> None:
        """Deal the opening cards, reshuffling first if the cut card was reached."""
        assert self.shoe is not None
        if self.shoe.needs_shuffle:
            self.shoe.shuffle()
            self.events.emit_new(
                EventType.SHOE_SHUFFLED,
                cards=self.shoe.cards_remaining,
                cut_card_position=self.shoe.cut_card_position,
                reason="cut card",
            )
            self._dealing = True
            self._schedule(self.config.reshuffle_delay, self._deal_initial_cards)
            return
        self._deal_initial_cards()

    def _deal_initial_cards(self) -> None:
        self._dealing = False
        self.dealer.reset()

        for player in self.players:
            if not player.in_round:
                continue
            for hand_index, hand in enumerate(player.hands):
                for _ in range(2):
                    card = self._draw()
                    hand.add_card(card)
                    self.events.emit_new(
                        EventType.CARD_DEALT,
                        player_id=player.id,
                        hand_index=hand_index,
                        card=str(card),
                        hand_value=hand.value,
                    )

        for face_up in (True, False):
            card = self._draw()
            self.dealer.hand.add_card(card)
            self.events.emit_new(
                EventType.CARD_DEALT,
                player_id=None,
                card=str(card) if face_up else "??",
            )

        if self.rules.super_match:
            self._score_super_match()

        if self.rules.switch_phase:
            self.offer_switch()
            self._advance_switch()
        else:
            self.begin_play()
            self._start_turns()

    def _score_super_match(self) -> None:
        """Score side bets on the four cards as dealt, before any switching."""
        for player in self.players:
            if not player.in_round or not player.super_match_bet:
                continue
            result = score_super_match(player.dealt_cards, player.super_match_bet)
            player.super_match_result = result
            self.events.emit_new(
                EventType.SUPER_MATCH_RESOLVED,
                player_id=player.id,
                outcome=str(result.outcome),
                multiplier=result.outcome.multiplier,
                returned=result.returned,
            )

    # Switch

    def _advance_switch(self) -> None:
        for index, player in enumerate(self.players):
            if not player.in_round or player.switch_decided:
                continue
            self.current_player_index = index
            self.events.emit_new(EventType.SWITCH_OFFERED, player_id=player.id)
            if player.is_ai:
                self._schedule(self.config.ai_delay, self._ai_switch)
            return

        self.begin_play()
        self._start_turns()

    def _ai_switch(self) -> None:
        player = self.current_player
        if self.phase != Phase.SWITCH or player is None or not player.is_ai:
            return
        first, second = player.hands[0], player.hands[1]
        self._apply_switch(player, self.policy.decide_switch(first.cards, second.cards))

    def _apply_switch(self, player: Player, swap: bool) -> None:
        first, second = player.hands[0], player.hands[1]
        if swap:
            first.cards[1], second.cards[1] = second.cards[1], first.cards[1]
            self.events.emit_new(
                EventType.HANDS_SWITCHED,
                player_id=player.id,
                hands=[[str(c) for c in first.cards], [str(c) for c in second.cards]],
                values=[first.value, second.value],
            )
        else:
            self.events.emit_new(EventType.HANDS_KEPT, player_id=player.id)
        player.switch_decided = True
        player.decisions.append(Decision(kind="switch", action="switch" if swap else "keep"))
        self._advance_switch()

    @_synchronized
    def choose_switch(self) -> bool:
        """Swap the second cards of the current human's two hands."""
        player = self._human_turn(Phase.SWITCH)
        if player is None:
            return self._reject("No switch decision pending for a human player")
        self._apply_switch(player, True)
        return True

    @_synchronized
    def keep_hands(self) -> bool:
        """Keep the current human's hands as dealt."""
        player = self._human_turn(Phase.SWITCH)
        if player is None:
            return self._reject("No switch decision pending for a human player")
        self._apply_switch(player, False)
        return True

    # Playing

    def _start_turns(self) -> None:
        self.current_player_index = -1
        self._advance_player()

    def _advance_player(self) -> None:
        """Move to the next seat with a hand, or to the dealer."""
        start = (self.current_player_index if self.current_player_index is not None else -1) + 1
        for index in range(start, len(self.players)):
            player = self.players[index]
            if not player.in_round:
                continue
            self.current_player_index = index
            player.active_hand_index = 0
            self._start_hand(player)
            return

        self.current_player_index = None
        self._play_dealer()

    def _start_hand(self, player: Player) -> None:
        self.events.emit_new(
            EventType.TURN_STARTED,
            player_id=player.id,
            hand_index=player.active_hand_index,
        )
        if player.is_ai:
            self._schedule(self.config.ai_delay, self._ai_play)

    def _ai_play(self) -> None:
        player = self.current_player
        if self.phase != Phase.PLAYING or player is None or not player.is_ai:
            return
        hand = player.active_hand
        upcard = self.dealer.upcard
        if hand is None or upcard is None:
            return
        action = self.policy.decide(hand, upcard, self._capabilities(player))
        self._apply_action(player, action)

    def _capabilities(self, player: Player) -> Capabilities:
        return Capabilities(
            can_double=self._may_double(player),
            can_split=self._may_split(player),
        )

    def _may_hit(self, player: Player) -> bool:
        hand = player.active_hand
        return hand is not None and not hand.is_finished and not hand.is_busted

    def _may_double(self, player: Player) -> bool:
        hand = player.active_hand
        return (
            self._may_hit(player)
            and len(hand.cards) == 2
            and not hand.is_doubled
            and player.coins >= self.rules.hand_stake
        )

    def _may_split(self, player: Player) -> bool:
        hand = player.active_hand
        return (
            self.rules.split_allowed
            and self._may_hit(player)
            and player.split_count == 0
            and player.active_hand_index == 0
            and len(player.hands) == 1
            and hand.is_pair
            and player.coins >= self.rules.bet_unit
        )

    def _record_decision(self, player: Player, hand: Hand, action: Action) -> None:
        upcard = self.dealer.upcard
        probabilities = {}
        if upcard is not None:
            probabilities = {
                a.value: pct for a, pct in self.estimator.estimate_all(hand, upcard).items()
            }
        player.decisions.append(
            Decision(
                kind="play",
                action=action.value,
                hand_index=player.active_hand_index,
                cards=[str(c) for c in hand.cards],
                hand_total=hand.value,
                dealer_upcard=str(upcard) if upcard else None,
                probabilities=probabilities,
            )
        )

    def _apply_action(self, player: Player, action: Action) -> bool:
        """Apply an action for the current player, human or AI."""
        hand = player.active_hand
        if hand is None or not self._may_hit(player):
            return self._reject("Hand is already finished")

        if action == Action.DOUBLE and not self._may_double(player):
            if player.coins < self.rules.hand_stake:
                return self._reject(
                    "Not enough coins to double",
                    EventType.INSUFFICIENT_FUNDS,
                    required=self.rules.hand_stake,
                    available=player.coins,
                )
            return self._reject("Cannot double")
        if action == Action.SPLIT and not self._may_split(player):
            if self.rules.split_allowed and hand.is_pair and player.coins < self.rules.bet_unit:
                return self._reject(
                    "Not enough coins to split",
                    EventType.INSUFFICIENT_FUNDS,
                    required=self.rules.bet_unit,
                    available=player.coins,
                )
            return self._reject("Cannot split")

        self._record_decision(player, hand, action)

        if action == Action.HIT:
            card = self._draw()
            hand.add_card(card)
            self.events.emit_new(
                EventType.PLAYER_HIT,
                player_id=player.id,
                hand_index=player.active_hand_index,
                card=str(card),
                hand_value=hand.value,
            )
            if hand.is_busted:
                self.events.emit_new(
                    EventType.PLAYER_BUSTS,
                    player_id=player.id,
                    hand_index=player.active_hand_index,
                )
                self._finish_hand(player)
            elif player.is_ai:
                self._schedule(self.config.ai_delay, self._ai_play)

        elif action == Action.STAND:
            self.events.emit_new(
                EventType.PLAYER_STAND,
                player_id=player.id,
                hand_index=player.active_hand_index,
                hand_value=hand.value,
            )
            self._finish_hand(player)

        elif action == Action.DOUBLE:
            cost = self.rules.hand_stake
            player.coins -= cost
            hand.bet += cost
            hand.is_doubled = True
            card = self._draw()
            hand.add_card(card)
            self.events.emit_new(
                EventType.PLAYER_DOUBLE,
                player_id=player.id,
                hand_index=player.active_hand_index,
                card=str(card),
                hand_value=hand.value,
                new_bet=hand.bet,
            )
            if hand.is_busted:
                self.events.emit_new(
                    EventType.PLAYER_BUSTS,
                    player_id=player.id,
                    hand_index=player.active_hand_index,
                )
            self._finish_hand(player)

        elif action == Action.SPLIT:
            cost = self.rules.bet_unit
            player.coins -= cost
            player.split_count += 1
            second = Hand(cards=[hand.cards.pop()], bet=cost, is_split_hand=True)
            hand.is_split_hand = True
            player.hands.append(second)
            hand.add_card(self._draw())
            second.add_card(self._draw())
            self.events.emit_new(
                EventType.PLAYER_SPLIT,
                player_id=player.id,
                hands=[[str(c) for c in hand.cards], [str(c) for c in second.cards]],
                values=[hand.value, second.value],
                coins=player.coins,
            )
            if player.is_ai:
                self._schedule(self.config.ai_delay, self._ai_play)

        return True

    def _finish_hand(self, player: Player) -> None:
        """End the active hand; move to the player's next hand or the next seat."""
        hand = player.active_hand
        if hand is not None:
            hand.is_finished = True
        if player.active_hand_index + 1 < len(player.hands):
            player.active_hand_index += 1
            self._start_hand(player)
            return
        self._advance_player()

    @_synchronized
    def player_action(self, action: Action | str) -> bool:
        """
        Apply a human action (hit, stand, double or split).

        Returns:
            True if the action was applied
        """
        try:
            action = Action(action)
        except ValueError:
            return self._reject(f"Unknown action: {action}")
        player = self._human_turn(Phase.PLAYING)
        if player is None:
            return self._reject("Not a human player's turn")
        return self._apply_action(player, action)

    def hit(self) -> bool:
        """Human hits (takes another card)."""
        return self.player_action(Action.HIT)

    def stand(self) -> bool:
        """Human stands on the active hand."""
        return self.player_action(Action.STAND)

    def double_down(self) -> bool:
        """Human doubles the active hand."""
        return self.player_action(Action.DOUBLE)

    def split(self) -> bool:
        """Human splits the original pair."""
        return self.player_action(Action.SPLIT)

    # Dealer

    def _play_dealer(self) -> None:
        self.dealer_turn()
        self.dealer.revealed = True
        hole = self.dealer.hand.cards[1] if len(self.dealer.hand.cards) > 1 else None
        self.events.emit_new(
            EventType.DEALER_REVEALS,
            card=str(hole) if hole else None,
            hand_value=self.dealer.hand.value,
        )
        self._schedule(self.config.dealer_delay, self._dealer_step)

    def _dealer_step(self) -> None:
        """One dealer draw per tick until reaching 17 or more."""
        if self.phase != Phase.DEALER:
            return
        hand = self.dealer.hand
        if hand.value < DEALER_STANDS_ON:
            card = self._draw()
            hand.add_card(card)
            self.events.emit_new(EventType.DEALER_HITS, card=str(card), hand_value=hand.value)
            self._schedule(self.config.dealer_delay, self._dealer_step)
            return

        if hand.is_busted:
            self.events.emit_new(EventType.DEALER_BUSTS, hand_value=hand.value)
        else:
            self.events.emit_new(EventType.DEALER_STANDS, hand_value=hand.value)
        self._resolve_round()

    # Result

    def _resolve_round(self) -> None:
        """Pay out every hand and side bet, apply lockouts, capture the replay."""
        self.settle()
        now = self._clock()
        dealer_total = self.dealer.hand.value

        player_replays: list[PlayerReplay] = []
        for player in self.players:
            if not player.in_round:
                continue

            hand_replays: list[HandReplay] = []
            returned_total = 0
            for index, hand in enumerate(player.hands):
                returned = settle_hand(hand, dealer_total)
                returned_total += returned
                outcome = self._outcome(hand, returned)
                event_type = {
                    "win": EventType.PLAYER_WINS,
                    "push": EventType.PUSH,
                }.get(outcome, EventType.PLAYER_LOSES)
                self.events.emit_new(
                    event_type,
                    player_id=player.id,
                    hand_index=index,
                    bet=hand.bet,
                    returned=returned,
                )
                hand_replays.append(
                    HandReplay(
                        cards=[str(c) for c in hand.cards],
                        total=hand.value,
                        bet=hand.bet,
                        outcome=outcome,
                        returned=returned,
                        doubled=hand.is_doubled,
                        split=hand.is_split_hand,
                    )
                )

            side = player.super_match_result
            side_returned = side.returned if side else 0
            player.coins += returned_total + side_returned
            self.events.emit_new(
                EventType.BET_RESOLVED,
                player_id=player.id,
                returned=returned_total,
                super_match_returned=side_returned,
                coins=player.coins,
            )

            if player.coins == 0:
                player.locked_until = now + self.config.lockout_seconds
                self.persistence.lock_player(self.rules.variant, player.id, player.locked_until, now)
                self.events.emit_new(
                    EventType.PLAYER_LOCKED,
                    player_id=player.id,
                    until=player.locked_until,
                )

            player_replays.append(
                PlayerReplay(
                    player_id=player.id,
                    name=player.name,
                    kind=player.kind.value,
                    hands=hand_replays,
                    decisions=[d.to_dict() for d in player.decisions],
                    coins_before=player.coins_at_round_start,
                    coins_after=player.coins,
                    super_match_bet=player.super_match_bet,
                    super_match_outcome=str(side.outcome) if side else None,
                    super_match_returned=side_returned,
                    locked=player.locked,
                )
            )

        ai_players = [p for p in self.players if p.is_ai]
        bankrolls_reset = bool(ai_players) and all(p.coins == 0 for p in ai_players)

        replay = RoundReplay(
            round_number=self.round_number,
            variant=self.rules.variant.value,
            dealer_cards=[str(c) for c in self.dealer.hand.cards],
            dealer_total=dealer_total,
            players=player_replays,
            bankrolls_reset=bankrolls_reset,
        )
        self.replays.append(replay)
        self.events.emit_new(
            EventType.ROUND_ENDED,
            round_number=self.round_number,
            dealer_total=dealer_total,
            deltas={r.player_id: r.coin_delta for r in player_replays},
        )
        logger.info(
            "Round %d settled: dealer %d, deltas %s",
            self.round_number,
            dealer_total,
            {r.name: r.coin_delta for r in player_replays},
        )

        if bankrolls_reset:
            self._reset_bankrolls(now)
            return
        self._save_bankrolls(now)

    @staticmethod
    def _outcome(hand: Hand, returned: int) -> str:
        if hand.is_busted:
            return "bust"
        if returned > hand.bet:
            return "win"
        if returned == hand.bet:
            return "push"
        return "lose"

    def _reset_bankrolls(self, now: float) -> None:
        """Every AI is broke: restore all bankrolls, clear lockouts, back to setup."""
        for player in self.players:
            player.coins = self.rules.starting_coins
            player.locked_until = None
        self.persistence.clear_locks(self.rules.variant)
        self._save_bankrolls(now)
        self.events.emit_new(
            EventType.BANKROLLS_RESET,
            coins=self.rules.starting_coins,
        )
        logger.info("All AI players are out of coins; bankrolls restored")
        self._discard_round()
        self.return_to_setup()

    # Round boundaries

    @_synchronized
    def next_round(self) -> bool:
        """Clear the table, keep coins and open betting again."""
        if self.phase != Phase.RESULT:
            return self._reject("Round is not finished")

        for player in self.players:
            player.reset_round()
        self.dealer.reset()
        self.current_player_index = None

        assert self.shoe is not None
        if self.shoe.needs_shuffle:
            logger.debug("Cut card reached; the shoe is reshuffled before the next deal")

        self.new_round()
        if self.config.auto_bet:
            self.place_bet()
        return True

    @_synchronized
    def reset_to_setup(self) -> bool:
        """
        Abandon the current round and return to setup.

        Wagers of an unfinished round are refunded; bankrolls are kept.
        """
        self._epoch += 1
        self.scheduler.cancel_all()

        in_round = self._dealing or self.phase in (
            Phase.SUPER_MATCH, Phase.SWITCH, Phase.PLAYING, Phase.DEALER
        )
        if in_round:
            for player in self.players:
                player.coins = player.coins_at_round_start
            self._save_bankrolls(self._clock())

        self._discard_round()
        self.shoe = None
        self.return_to_setup()
        self.events.emit_new(EventType.GAME_RESET)
        return True

    def _discard_round(self) -> None:
        self._dealing = False
        for player in self.players:
            player.reset_round()
        self.dealer.reset()
        self.current_player_index = None

    # Queries

    @property
    def can_hit(self) -> bool:
        """Check if the human whose turn it is may hit."""
        player = self._human_turn(Phase.PLAYING)
        return player is not None and self._may_hit(player)

    @property
    def can_stand(self) -> bool:
        """Check if the human whose turn it is may stand."""
        return self.can_hit

    @property
    def can_double(self) -> bool:
        """Check if the human whose turn it is may double."""
        player = self._human_turn(Phase.PLAYING)
        return player is not None and self._may_double(player)

    @property
    def can_split(self) -> bool:
        """Check if the human whose turn it is may split."""
        player = self._human_turn(Phase.PLAYING)
        return player is not None and self._may_split(player)

    @property
    def can_super_match(self) -> bool:
        """Check if a human is being offered an affordable Super Match bet."""
        player = self._human_turn(Phase.SUPER_MATCH)
        return player is not None and player.coins >= self.rules.super_match_cost

    @property
    def can_switch(self) -> bool:
        """Check if a human is deciding whether to switch."""
        return self._human_turn(Phase.SWITCH) is not None

    def probabilities(self, player: Player | None = None) -> dict[Action, int] | None:
        """Displayed win percentages for a player's active hand."""
        player = player or self.current_player
        if player is None or self.phase != Phase.PLAYING:
            return None
        hand = player.active_hand
        upcard = self.dealer.upcard
        if hand is None or upcard is None or hand.is_finished:
            return None
        return self.estimator.estimate_all(hand, upcard)

    @_synchronized
    def snapshot(self) -> TableSnapshot:
        """Read-only view of the table."""
        dealer_cards = [CardView.from_card(c) for c in self.dealer.visible_cards]
        if not self.dealer.revealed and len(self.dealer.hand.cards) > 1:
            dealer_cards.append(CardView.face_down())
        dealer_value: int | None = None
        if self.dealer.revealed:
            dealer_value = self.dealer.hand.value
        elif self.dealer.upcard is not None:
            dealer_value = self.dealer.upcard.value

        current = self.current_player
        players = []
        for player in self.players:
            probabilities = None
            if player is current:
                estimates = self.probabilities(player)
                if estimates is not None:
                    probabilities = {a.value: pct for a, pct in estimates.items()}
            players.append(
                PlayerView(
                    id=player.id,
                    kind=player.kind.value,
                    name=player.name,
                    coins=player.coins,
                    locked=player.locked,
                    locked_until=player.locked_until,
                    hands=[self._hand_view(h) for h in player.hands],
                    active_hand_index=player.active_hand_index,
                    split_count=player.split_count,
                    super_match_bet=player.super_match_bet,
                    probabilities=probabilities,
                )
            )

        return TableSnapshot(
            phase=self.phase.name,
            variant=self.rules.variant.value,
            round_number=self.round_number,
            shoe_remaining=self.shoe.cards_remaining if self.shoe else 0,
            cut_card_position=self.shoe.cut_card_position if self.shoe else 0,
            current_player_index=self.current_player_index,
            current_player_id=current.id if current else None,
            dealer=DealerView(
                cards=dealer_cards,
                value=dealer_value,
                revealed=self.dealer.revealed,
            ),
            players=players,
            can_hit=self.can_hit,
            can_stand=self.can_stand,
            can_double=self.can_double,
            can_split=self.can_split,
            can_super_match=self.can_super_match,
            can_switch=self.can_switch,
        )

    @staticmethod
    def _hand_view(hand: Hand) -> HandView:
        return HandView(
            cards=[CardView.from_card(c) for c in hand.cards],
            value=hand.value,
            bet=hand.bet,
            is_soft=hand.is_soft,
            is_busted=hand.is_busted,
            is_doubled=hand.is_doubled,
            is_split_hand=hand.is_split_hand,
            is_finished=hand.is_finished,
        )
