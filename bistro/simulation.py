"""KitchenSim — deterministic, headless-compatible restaurant simulation.

All gameplay constants are imported from ``config``.  The simulation has no
pygame dependency and is safe to import in headless / test contexts.
"""
from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, List, Optional

from config import (
    BURN_AFTER_READY_MS,
    BURNED_CLEAR_HYGIENE_PENALTY,
    CLEAN_HYGIENE_GAIN,
    DAY_DURATION_SECONDS,
    EVENT_LOG_SIZE,
    EXPIRED_ORDER_HYGIENE_PENALTY,
    EXPIRED_ORDER_MONEY_PENALTY,
    HYGIENE_DECAY_PER_TICK,
    MAX_ACTIVE_ORDERS,
    NEW_DAY_HYGIENE_BONUS,
    ORDER_SPAWN_CHANCE,
    PATIENCE_DECAY_PER_TICK,
    PLAYERS,
    SECOND_MS,
    SERVE_SCORE_BASE,
    STATION_COUNT,
    TICK_RATE_MS,
    WRONG_SERVE_HYGIENE_PENALTY,
    WRONG_SERVE_MONEY_PENALTY,
)
from bistro.actions import Action, ActionType
from bistro.audio import AudioSink, NullAudio, SoundCue
from bistro.economy import (
    calculate_tip,
    credit,
    met_daily_target,
    next_daily_target,
    penalize,
    restore_hygiene,
)
from bistro.entities import (
    GameMode,
    GamePhase,
    GameState,
    Order,
    OrderStatus,
    Station,
    StationState,
    new_stations,
)
from bistro.orders import OrderGenerator
from bistro.storage import MemorySaveStore, SaveData, SaveStore
from recipe_catalog import get_recipe

logger = logging.getLogger(__name__)

Broadcaster = Callable[[Dict[str, Any]], None]


class KitchenSim:
    """Tick-based kitchen simulation.

    Player input enters through :meth:`apply_action`; time enters through
    :meth:`advance` (or :meth:`tick` for a single step).  Nothing else mutates
    ``state``, ``stations``, ``orders`` or ``selections``.  A sim in CLIENT mode
    never mutates itself; it only adopts snapshots from the host.
    """

    def __init__(
        self,
        seed: int = 7,
        *,
        audio: Optional[AudioSink] = None,
        store: Optional[SaveStore] = None,
        burn_after_ms: Optional[int] = BURN_AFTER_READY_MS,
    ) -> None:
        self.rng = random.Random(seed)
        self.order_generator = OrderGenerator(self.rng)
        self.audio: AudioSink = audio if audio is not None else NullAudio()
        self.store: SaveStore = store if store is not None else MemorySaveStore()
        self.burn_after_ms = burn_after_ms
        self.broadcaster: Optional[Broadcaster] = None

        self.state = GameState()
        self.stations: List[Station] = new_stations()
        self.orders: List[Order] = []
        self.selections: Dict[str, Optional[int]] = {player: None for player in PLAYERS}

        self.clock_ms: int = 0
        self.tick_accumulator_ms: float = 0.0
        self.second_timer_ms: int = 0
        self.event_log: List[str] = []

        self._handlers: Dict[ActionType, Callable[[Action], bool]] = {
            ActionType.START_DAY: self._start_day,
            ActionType.NEXT_DAY_CONFIRM: self._next_day,
            ActionType.CLICK_STATION: self._click_station,
            ActionType.SELECT_RECIPE: self._select_recipe,
            ActionType.KEY_PRESS: self._key_press,
            ActionType.SERVE: self._serve,
            ActionType.CLEAN: self._clean,
        }
        self._log_event("Kitchen initialized")

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "gameState": self.state.to_dict(),
            "stations": [station.to_dict() for station in self.stations],
            "orders": [order.to_dict() for order in self.orders],
            "selections": dict(self.selections),
        }

    def adopt_snapshot(self, payload: Dict[str, Any], game_mode: Optional[GameMode] = None) -> None:
        """Replace all local state with ``payload``.  No merging.

        The snapshot's own game mode is never adopted: the sim switches to
        ``game_mode`` when given, otherwise it keeps its current mode.
        """
        local_mode = game_mode if game_mode is not None else self.state.game_mode

        raw_state = payload.get("gameState")
        self.state = GameState.from_dict(raw_state if isinstance(raw_state, dict) else {})
        self.state.game_mode = local_mode

        raw_stations = payload.get("stations")
        if not isinstance(raw_stations, list):
            raw_stations = []
        self.stations = []
        for idx in range(STATION_COUNT):
            raw_station = raw_stations[idx] if idx < len(raw_stations) else None
            self.stations.append(Station.from_dict(raw_station if isinstance(raw_station, dict) else {}, idx))

        raw_orders = payload.get("orders")
        if not isinstance(raw_orders, list):
            raw_orders = []
        self.orders = []
        for raw_order in raw_orders:
            if not isinstance(raw_order, dict):
                continue
            order = Order.from_dict(raw_order)
            if order is not None:
                self.orders.append(order)

        raw_selections = payload.get("selections")
        if not isinstance(raw_selections, dict):
            raw_selections = {}
        self.selections = {player: self._coerce_station_id(raw_selections.get(player)) for player in PLAYERS}

    @staticmethod
    def _coerce_station_id(value: Any) -> Optional[int]:
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value if 0 <= value < STATION_COUNT else None

    def _log_event(self, message: str) -> None:
        self.event_log.append(message)
        self.event_log = self.event_log[-EVENT_LOG_SIZE:]
        logger.info(message)

    def _cue(self, cue: SoundCue) -> None:
        try:
            self.audio.play(cue)
        except Exception:
            logger.exception("Audio sink failed on cue %s", cue.value)

    def _broadcast(self) -> None:
        if self.state.game_mode == GameMode.HOST and self.broadcaster is not None:
            self.broadcaster(self.snapshot())

    # ------------------------------------------------------------------
    # Game lifecycle
    # ------------------------------------------------------------------

    def new_solo_game(self) -> None:
        self.store.clear()
        self.state = GameState(phase=GamePhase.PRE_DAY, game_mode=GameMode.SOLO)
        self._reset_floor()
        self.store.save(SaveData.from_state(self.state))
        self._log_event("New solo game started")

    def continue_game(self) -> bool:
        data = self.store.load()
        if data is None:
            return False
        self.state = GameState(
            money=data.money,
            hygiene=data.hygiene,
            score=data.score,
            day=data.day,
            daily_target=data.daily_target,
            time_remaining=DAY_DURATION_SECONDS,
            phase=GamePhase.PRE_DAY,
            game_mode=GameMode.SOLO,
        )
        self._reset_floor()
        self._log_event(f"Continuing from day {data.day}")
        return True

    def start_host_game(self) -> None:
        self.state = GameState(phase=GamePhase.PRE_DAY, game_mode=GameMode.HOST)
        self._reset_floor()
        self._log_event("Hosting co-op game")
        self._broadcast()

    def enter_client_mode(self) -> None:
        self.state = GameState(phase=GamePhase.PRE_DAY, game_mode=GameMode.CLIENT)
        self._reset_floor()
        self._log_event("Joined co-op game")

    def _reset_floor(self) -> None:
        self.orders = []
        for station in self.stations:
            station.clear()
        self.selections = {player: None for player in PLAYERS}
        self.tick_accumulator_ms = 0.0
        self.second_timer_ms = 0

    def _set_phase(self, phase: GamePhase) -> None:
        previous = self.state.phase
        if previous == phase:
            return
        self.state.phase = phase
        if previous == GamePhase.SERVICE:
            self.tick_accumulator_ms = 0.0
            self._cue(SoundCue.AMBIENCE_STOP)
        logger.info("Day %d: %s -> %s", self.state.day, previous.value, phase.value)

    def _game_over(self, reason: str) -> None:
        self._set_phase(GamePhase.GAME_OVER)
        if self.state.game_mode == GameMode.SOLO:
            self.store.clear()
        self._log_event(f"Game over: {reason}")

    @property
    def is_running(self) -> bool:
        return self.state.phase == GamePhase.SERVICE and self.state.game_mode != GameMode.CLIENT

    # ------------------------------------------------------------------
    # Action processing
    # ------------------------------------------------------------------

    def apply_action(self, action: Action) -> bool:
        """Validate and apply one action.  Returns True when state changed.

        Actions that do not fit the current phase or station state are
        ignored; they never raise.
        """
        if self.state.game_mode == GameMode.CLIENT:
            return False
        if action.type not in (ActionType.START_DAY, ActionType.NEXT_DAY_CONFIRM):
            if self.state.phase != GamePhase.SERVICE:
                return False

        changed = self._handlers[action.type](action)
        logger.debug("%s by %s -> %s", action.type.value, action.player, "applied" if changed else "ignored")
        if changed:
            self._broadcast()
        return changed

    def _station(self, station_id: Optional[int]) -> Optional[Station]:
        if station_id is None or not 0 <= station_id < len(self.stations):
            return None
        return self.stations[station_id]

    def active_station(self, player: str) -> Optional[Station]:
        return self._station(self.selections.get(player))

    def _start_day(self, action: Action) -> bool:
        if self.state.phase != GamePhase.PRE_DAY:
            return False
        self._reset_floor()
        self.state.time_remaining = DAY_DURATION_SECONDS
        self._set_phase(GamePhase.SERVICE)
        self._cue(SoundCue.POP)
        self._cue(SoundCue.AMBIENCE_START)
        self._log_event(f"Day {self.state.day} service started (target ${self.state.daily_target})")
        return True

    def _next_day(self, action: Action) -> bool:
        if self.state.phase != GamePhase.EOD_REPORT:
            return False
        finished_day = self.state.day
        self.state.day += 1
        self.state.daily_target = next_daily_target(self.state.daily_target, finished_day)
        self.state.time_remaining = DAY_DURATION_SECONDS
        restore_hygiene(self.state, NEW_DAY_HYGIENE_BONUS)
        self._set_phase(GamePhase.PRE_DAY)
        if self.state.game_mode == GameMode.SOLO:
            self.store.save(SaveData.from_state(self.state))
        self._cue(SoundCue.POP)
        self._log_event(f"Day {self.state.day} ahead (target ${self.state.daily_target})")
        return True

    def _click_station(self, action: Action) -> bool:
        station = self._station(action.station_id)
        if station is None:
            return False
        if station.state == StationState.BURNED:
            station.clear()
            penalize(self.state, hygiene=BURNED_CLEAR_HYGIENE_PENALTY)
            self._cue(SoundCue.TRASH)
            self._log_event(f"Station {station.id + 1} scraped clean")
            return True
        current = self.selections.get(action.player)
        self.selections[action.player] = None if current == station.id else station.id
        self._cue(SoundCue.POP)
        return True

    def _select_recipe(self, action: Action) -> bool:
        station = self.active_station(action.player)
        if station is None or station.state != StationState.EMPTY:
            return False
        recipe = get_recipe(action.recipe_id)
        if recipe is None:
            return False
        station.state = StationState.PREPPING
        station.current_recipe_id = recipe.key
        station.prep_sequence = []
        station.cook_progress = 0.0
        self._cue(SoundCue.KEY_ACCEPTED)
        return True

    def _key_press(self, action: Action) -> bool:
        station = self.active_station(action.player)
        if station is None or station.state != StationState.PREPPING:
            return False
        recipe = get_recipe(station.current_recipe_id)
        if recipe is None or len(station.prep_sequence) >= len(recipe.ingredients):
            return False

        key = (action.key or "").upper()
        expected = recipe.ingredients[len(station.prep_sequence)]
        if key != expected:
            self._cue(SoundCue.KEY_REJECTED)
            return False

        station.prep_sequence.append(key)
        self._cue(SoundCue.KEY_ACCEPTED)
        if len(station.prep_sequence) == len(recipe.ingredients):
            station.state = StationState.COOKING
            station.cook_progress = 0.0
            self._cue(SoundCue.COOK_START)
        return True

    def _serve(self, action: Action) -> bool:
        station = self._station(action.station_id)
        if station is None or station.state != StationState.READY or not station.current_recipe_id:
            return False

        recipe = get_recipe(station.current_recipe_id)
        order = next((o for o in self.orders if o.recipe_id == station.current_recipe_id), None)
        if order is not None and recipe is not None:
            tip = calculate_tip(order.patience, recipe.price)
            order.status = OrderStatus.SERVED
            self.orders.remove(order)
            credit(self.state, recipe.price + tip, SERVE_SCORE_BASE + tip)
            self._cue(SoundCue.CASH)
            self._log_event(f"Served {recipe.display_name} (+${recipe.price + tip})")
        else:
            penalize(self.state, money=WRONG_SERVE_MONEY_PENALTY, hygiene=WRONG_SERVE_HYGIENE_PENALTY)
            self._cue(SoundCue.ERROR)
            self._log_event("Nobody ordered that: dish wasted")
        station.clear()
        return True

    def _clean(self, action: Action) -> bool:
        restore_hygiene(self.state, CLEAN_HYGIENE_GAIN)
        self._cue(SoundCue.POP)
        return True

    # ------------------------------------------------------------------
    # Main tick
    # ------------------------------------------------------------------

    def advance(self, delta_ms: float) -> int:
        """Run every whole tick that ``delta_ms`` of wall time covers.

        Leftover time carries to the next call while service continues and is
        dropped the moment service ends.  Returns the number of ticks run.
        """
        if not self.is_running:
            self.tick_accumulator_ms = 0.0
            return 0
        self.tick_accumulator_ms += max(0.0, delta_ms)
        ticks = 0
        while self.tick_accumulator_ms >= TICK_RATE_MS:
            self.tick_accumulator_ms -= TICK_RATE_MS
            self.tick()
            ticks += 1
            if not self.is_running:
                self.tick_accumulator_ms = 0.0
                break
        return ticks

    def tick(self) -> None:
        if not self.is_running:
            return
        self.clock_ms += TICK_RATE_MS

        self._maybe_spawn_order()
        self._update_stations()
        self._update_orders()
        self._update_hygiene()
        if self.state.phase == GamePhase.SERVICE:
            self._update_clock()

        self._broadcast()

    def _maybe_spawn_order(self) -> None:
        if self.rng.random() >= ORDER_SPAWN_CHANCE:
            return
        if len(self.orders) >= MAX_ACTIVE_ORDERS:
            return
        taken = {order.id for order in self.orders}
        self.orders.append(self.order_generator.generate(self.clock_ms, taken))
        self._cue(SoundCue.POP)

    def _update_stations(self) -> None:
        for station in self.stations:
            state = station.state
            if state == StationState.COOKING:
                self._cook(station)
            elif state == StationState.READY:
                self._hold_ready(station)
            elif state in (StationState.EMPTY, StationState.PREPPING, StationState.BURNED):
                continue
            else:
                raise ValueError(f"unknown station state {state!r}")

    def _cook(self, station: Station) -> None:
        recipe = get_recipe(station.current_recipe_id)
        if recipe is None:
            return
        progress = station.cook_progress + 100.0 / (recipe.prep_time_ms / TICK_RATE_MS)
        if progress >= 100.0:
            station.state = StationState.READY
            station.cook_progress = 100.0
            station.ready_elapsed_ms = 0
            self._cue(SoundCue.ORDER_UP)
        else:
            station.cook_progress = progress

    def _hold_ready(self, station: Station) -> None:
        if self.burn_after_ms is None:
            return
        station.ready_elapsed_ms += TICK_RATE_MS
        if station.ready_elapsed_ms >= self.burn_after_ms:
            station.state = StationState.BURNED
            station.current_recipe_id = None
            station.prep_sequence = []
            self._cue(SoundCue.TRASH)
            self._log_event(f"Station {station.id + 1} burned its dish")

    def _update_orders(self) -> None:
        waiting: List[Order] = []
        expired = 0
        for order in self.orders:
            order.patience -= PATIENCE_DECAY_PER_TICK
            if order.patience > 0:
                waiting.append(order)
            else:
                order.patience = 0.0
                order.status = OrderStatus.EXPIRED
                expired += 1
        self.orders = waiting

        if expired:
            penalize(
                self.state,
                money=EXPIRED_ORDER_MONEY_PENALTY * expired,
                hygiene=EXPIRED_ORDER_HYGIENE_PENALTY * expired,
            )
            self._cue(SoundCue.ERROR)
            self._log_event(f"{expired} customer(s) walked out")

    def _update_hygiene(self) -> None:
        hygiene = self.state.hygiene - HYGIENE_DECAY_PER_TICK
        if hygiene <= 0:
            self.state.hygiene = 0.0
            self._game_over("the health inspector closed the kitchen")
        else:
            self.state.hygiene = hygiene

    def _update_clock(self) -> None:
        self.second_timer_ms += TICK_RATE_MS
        if self.second_timer_ms < SECOND_MS:
            return
        self.second_timer_ms -= SECOND_MS
        self.state.time_remaining = max(0, self.state.time_remaining - 1)
        if self.state.time_remaining == 0:
            self._end_of_day()

    def _end_of_day(self) -> None:
        self._cue(SoundCue.CASH)
        if met_daily_target(self.state):
            self._set_phase(GamePhase.EOD_REPORT)
            self._log_event(f"Day {self.state.day} closed with ${self.state.money}")
        else:
            self._game_over(f"bankrupt (${self.state.money} of ${self.state.daily_target})")
