"""Tests for player actions: wire parsing and how the simulation applies them."""
from __future__ import annotations

import unittest
from unittest import mock

from config import GUEST_PLAYER, HOST_PLAYER
from bistro import Action, ActionType, GameMode, GamePhase, KitchenSim, Order, StationState
from bistro.audio import RecordingAudio, SoundCue


def _service_sim() -> KitchenSim:
    sim = KitchenSim(seed=3, audio=RecordingAudio())
    sim.new_solo_game()
    sim.apply_action(Action.start_day())
    return sim


def _make_ready(sim: KitchenSim, station_id: int, recipe_id: str) -> None:
    station = sim.stations[station_id]
    station.state = StationState.READY
    station.current_recipe_id = recipe_id
    station.cook_progress = 100.0


class TestActionWireForm(unittest.TestCase):
    def test_round_trip_keeps_fields(self):
        action = Action.click_station(2)
        self.assertEqual({"type": "CLICK_STATION", "stationId": 2}, action.to_dict())
        self.assertEqual(action, Action.from_dict(action.to_dict()))

    def test_player_comes_from_the_receiver(self):
        raw = {"type": "CLEAN", "player": "host"}
        self.assertEqual(GUEST_PLAYER, Action.from_dict(raw, player=GUEST_PLAYER).player)

    def test_malformed_actions_are_rejected(self):
        self.assertIsNone(Action.from_dict("CLEAN"))
        self.assertIsNone(Action.from_dict({"type": "DANCE"}))
        self.assertIsNone(Action.from_dict({"type": "SERVE"}))
        self.assertIsNone(Action.from_dict({"type": "SERVE", "stationId": True}))
        self.assertIsNone(Action.from_dict({"type": "SELECT_RECIPE", "recipeId": 4}))
        self.assertIsNone(Action.from_dict({"type": "KEY_PRESS", "key": "PQ"}))
        self.assertIsNone(Action.from_dict({"type": "CLEAN"}, player="stranger"))

    def test_every_action_type_has_a_handler(self):
        sim = KitchenSim()
        self.assertEqual(set(ActionType), set(sim._handlers))


class TestPhaseGating(unittest.TestCase):
    def test_service_actions_are_ignored_before_service(self):
        sim = KitchenSim()
        sim.new_solo_game()
        for action in (Action.click_station(0), Action.select_recipe("salada"), Action.key_press("A"),
                       Action.serve(0), Action.clean()):
            self.assertFalse(sim.apply_action(action))
        self.assertEqual({HOST_PLAYER: None, GUEST_PLAYER: None}, sim.selections)

    def test_start_day_only_from_pre_day(self):
        sim = KitchenSim()
        self.assertFalse(sim.apply_action(Action.start_day()))
        sim.new_solo_game()
        self.assertTrue(sim.apply_action(Action.start_day()))
        self.assertEqual(GamePhase.SERVICE, sim.state.phase)
        self.assertFalse(sim.apply_action(Action.start_day()))

    def test_client_applies_nothing(self):
        sim = KitchenSim()
        sim.enter_client_mode()
        self.assertFalse(sim.apply_action(Action.start_day()))
        self.assertEqual(GamePhase.PRE_DAY, sim.state.phase)


class TestNextDay(unittest.TestCase):
    def test_next_day_advances_and_saves(self):
        sim = _service_sim()
        sim.state.money = 150
        sim.state.hygiene = 70.0
        sim.state.phase = GamePhase.EOD_REPORT

        self.assertTrue(sim.apply_action(Action.next_day()))

        self.assertEqual(GamePhase.PRE_DAY, sim.state.phase)
        self.assertEqual(2, sim.state.day)
        self.assertEqual(240, sim.state.daily_target)
        self.assertEqual(90.0, sim.state.hygiene)
        self.assertEqual(150, sim.state.money)
        saved = sim.store.load()
        self.assertEqual(2, saved.day)
        self.assertEqual(240, saved.daily_target)

    def test_next_day_only_from_report(self):
        sim = _service_sim()
        self.assertFalse(sim.apply_action(Action.next_day()))
        self.assertEqual(1, sim.state.day)

    def test_hygiene_bonus_is_capped(self):
        sim = _service_sim()
        sim.state.hygiene = 95.0
        sim.state.phase = GamePhase.EOD_REPORT
        sim.apply_action(Action.next_day())
        self.assertEqual(100.0, sim.state.hygiene)


class TestClickStation(unittest.TestCase):
    def setUp(self):
        self.sim = _service_sim()

    def test_click_toggles_selection(self):
        self.assertTrue(self.sim.apply_action(Action.click_station(1)))
        self.assertEqual(1, self.sim.selections[HOST_PLAYER])
        self.sim.apply_action(Action.click_station(1))
        self.assertIsNone(self.sim.selections[HOST_PLAYER])
        self.sim.apply_action(Action.click_station(0))
        self.sim.apply_action(Action.click_station(2))
        self.assertEqual(2, self.sim.selections[HOST_PLAYER])

    def test_out_of_range_station_is_ignored(self):
        self.assertFalse(self.sim.apply_action(Action.click_station(3)))
        self.assertFalse(self.sim.apply_action(Action.click_station(-1)))

    def test_players_select_independently(self):
        self.sim.apply_action(Action.click_station(0))
        self.sim.apply_action(Action.click_station(2).as_player(GUEST_PLAYER))
        self.assertEqual({HOST_PLAYER: 0, GUEST_PLAYER: 2}, self.sim.selections)

    def test_burned_station_is_scraped_with_hygiene_cost(self):
        station = self.sim.stations[1]
        station.state = StationState.BURNED
        self.assertTrue(self.sim.apply_action(Action.click_station(1)))
        self.assertEqual(StationState.EMPTY, station.state)
        self.assertEqual(90.0, self.sim.state.hygiene)
        self.assertIsNone(self.sim.selections[HOST_PLAYER])
        self.assertEqual(1, self.sim.audio.count(SoundCue.TRASH))


class TestPrepping(unittest.TestCase):
    def setUp(self):
        self.sim = _service_sim()
        self.sim.apply_action(Action.click_station(0))

    def test_select_recipe_needs_an_empty_active_station(self):
        self.assertTrue(self.sim.apply_action(Action.select_recipe("salada")))
        station = self.sim.stations[0]
        self.assertEqual(StationState.PREPPING, station.state)
        self.assertEqual("salada", station.current_recipe_id)
        self.assertEqual([], station.prep_sequence)
        self.assertFalse(self.sim.apply_action(Action.select_recipe("bauru")))
        self.assertEqual("salada", station.current_recipe_id)

    def test_select_recipe_without_selection_is_ignored(self):
        self.sim.apply_action(Action.click_station(0))
        self.assertFalse(self.sim.apply_action(Action.select_recipe("salada")))

    def test_unknown_recipe_is_ignored(self):
        self.assertFalse(self.sim.apply_action(Action.select_recipe("feijoada")))
        self.assertEqual(StationState.EMPTY, self.sim.stations[0].state)

    def test_correct_keys_start_cooking(self):
        self.sim.apply_action(Action.select_recipe("salada"))
        for key in "at":
            self.assertTrue(self.sim.apply_action(Action.key_press(key)))
        station = self.sim.stations[0]
        self.assertEqual(["A", "T"], station.prep_sequence)
        self.assertEqual(StationState.PREPPING, station.state)
        self.sim.apply_action(Action.key_press("Q"))
        self.assertEqual(StationState.COOKING, station.state)
        self.assertEqual(0.0, station.cook_progress)
        self.assertEqual(1, self.sim.audio.count(SoundCue.COOK_START))

    def test_wrong_key_changes_nothing(self):
        self.sim.apply_action(Action.select_recipe("hamburguer"))
        self.sim.apply_action(Action.key_press("P"))
        self.assertFalse(self.sim.apply_action(Action.key_press("Q")))
        self.assertEqual(["P"], self.sim.stations[0].prep_sequence)
        self.assertEqual(1, self.sim.audio.count(SoundCue.KEY_REJECTED))

    def test_keys_go_to_the_players_own_station(self):
        self.sim.apply_action(Action.select_recipe("salada"))
        self.sim.apply_action(Action.click_station(1).as_player(GUEST_PLAYER))
        self.sim.apply_action(Action.select_recipe("bauru").as_player(GUEST_PLAYER))
        self.sim.apply_action(Action.key_press("P").as_player(GUEST_PLAYER))
        self.sim.apply_action(Action.key_press("A"))
        self.assertEqual(["A"], self.sim.stations[0].prep_sequence)
        self.assertEqual(["P"], self.sim.stations[1].prep_sequence)

    def test_keys_ignored_once_cooking(self):
        self.sim.apply_action(Action.select_recipe("salada"))
        for key in "ATQ":
            self.sim.apply_action(Action.key_press(key))
        self.assertFalse(self.sim.apply_action(Action.key_press("A")))
        self.assertEqual(["A", "T", "Q"], self.sim.stations[0].prep_sequence)


class TestServe(unittest.TestCase):
    def setUp(self):
        self.sim = _service_sim()

    def test_two_burgers_with_good_patience(self):
        self.sim.orders = [
            Order(id="o1", recipe_id="hamburguer", patience=80.0),
            Order(id="o2", recipe_id="hamburguer", patience=60.0),
        ]
        _make_ready(self.sim, 0, "hamburguer")
        _make_ready(self.sim, 1, "hamburguer")

        self.assertTrue(self.sim.apply_action(Action.serve(0)))
        self.assertTrue(self.sim.apply_action(Action.serve(1)))

        self.assertEqual(62, self.sim.state.money)
        self.assertEqual(32, self.sim.state.score)
        self.assertEqual([], self.sim.orders)
        self.assertEqual(StationState.EMPTY, self.sim.stations[0].state)
        self.assertEqual(2, self.sim.audio.count(SoundCue.CASH))

    def test_serve_takes_the_oldest_matching_order(self):
        self.sim.orders = [
            Order(id="salad", recipe_id="salada", patience=90.0),
            Order(id="first", recipe_id="bauru", patience=30.0),
            Order(id="second", recipe_id="bauru", patience=90.0),
        ]
        _make_ready(self.sim, 2, "bauru")
        self.sim.apply_action(Action.serve(2))
        self.assertEqual(["salad", "second"], [o.id for o in self.sim.orders])
        self.assertEqual(22, self.sim.state.money)

    def test_unordered_dish_is_penalised(self):
        self.sim.state.money = 12
        self.sim.orders = [Order(id="o1", recipe_id="salada")]
        _make_ready(self.sim, 0, "carbonara")

        self.assertTrue(self.sim.apply_action(Action.serve(0)))

        self.assertEqual(7, self.sim.state.money)
        self.assertEqual(95.0, self.sim.state.hygiene)
        self.assertEqual(StationState.EMPTY, self.sim.stations[0].state)
        self.assertEqual(["o1"], [o.id for o in self.sim.orders])

    def test_serve_needs_a_ready_station(self):
        self.sim.stations[0].state = StationState.COOKING
        self.sim.stations[0].current_recipe_id = "salada"
        self.assertFalse(self.sim.apply_action(Action.serve(0)))
        self.assertFalse(self.sim.apply_action(Action.serve(1)))
        self.assertFalse(self.sim.apply_action(Action.serve(7)))


class TestClean(unittest.TestCase):
    def test_clean_restores_hygiene_up_to_max(self):
        sim = _service_sim()
        sim.state.hygiene = 50.0
        sim.apply_action(Action.clean())
        self.assertEqual(70.0, sim.state.hygiene)
        sim.state.hygiene = 95.0
        sim.apply_action(Action.clean())
        self.assertEqual(100.0, sim.state.hygiene)


class TestBroadcast(unittest.TestCase):
    def test_host_broadcasts_only_applied_actions(self):
        sim = KitchenSim()
        sim.broadcaster = mock.Mock()
        sim.start_host_game()
        self.assertEqual(GameMode.HOST, sim.state.game_mode)
        sim.broadcaster.reset_mock()

        sim.apply_action(Action.clean())
        sim.broadcaster.assert_not_called()
        sim.apply_action(Action.start_day())
        sim.broadcaster.assert_called_once()
        self.assertEqual("SERVICE", sim.broadcaster.call_args[0][0]["gameState"]["phase"])

    def test_solo_never_broadcasts(self):
        sim = _service_sim()
        sim.broadcaster = mock.Mock()
        sim.apply_action(Action.clean())
        sim.tick()
        sim.broadcaster.assert_not_called()
