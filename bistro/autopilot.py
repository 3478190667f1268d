"""A simple chef bot for headless runs.

The bot only reads the simulation and submits actions through
:meth:`KitchenSim.apply_action`, exactly like a human player would.
"""
from __future__ import annotations

from typing import Callable, List, Optional

from config import HOST_PLAYER
from bistro.actions import Action
from bistro.entities import GamePhase, StationState
from bistro.simulation import KitchenSim
from recipe_catalog import get_recipe

CLEAN_BELOW_HYGIENE = 45.0


class AutoChef:
    def __init__(
        self,
        sim: KitchenSim,
        player: str = HOST_PLAYER,
        submit: Optional[Callable[[Action], object]] = None,
    ) -> None:
        self.sim = sim
        self.player = player
        self.submit = submit if submit is not None else sim.apply_action

    def _act(self, action: Action) -> None:
        self.submit(action.as_player(self.player))

    def _claimed_recipes(self) -> List[str]:
        return [
            station.current_recipe_id
            for station in self.sim.stations
            if station.current_recipe_id is not None
        ]

    def _unclaimed_order_recipe(self) -> Optional[str]:
        claimed = self._claimed_recipes()
        for order in self.sim.orders:
            if order.recipe_id in claimed:
                claimed.remove(order.recipe_id)
                continue
            return order.recipe_id
        return None

    def step(self) -> None:
        """Take every action that makes sense right now."""
        if self.sim.state.phase != GamePhase.SERVICE:
            return

        if self.sim.state.hygiene < CLEAN_BELOW_HYGIENE:
            self._act(Action.clean())

        for station in self.sim.stations:
            if station.state == StationState.READY:
                if any(o.recipe_id == station.current_recipe_id for o in self.sim.orders):
                    self._act(Action.serve(station.id))
            elif station.state == StationState.BURNED:
                self._act(Action.click_station(station.id))

        recipe_id = self._unclaimed_order_recipe()
        if recipe_id is None:
            return
        station = next((s for s in self.sim.stations if s.state == StationState.EMPTY), None)
        if station is None:
            # Every station busy: bin a dish nobody is waiting for.
            stale = next((s for s in self.sim.stations if s.state == StationState.READY), None)
            if stale is not None:
                self._act(Action.serve(stale.id))
            return
        if self.sim.selections.get(self.player) != station.id:
            self._act(Action.click_station(station.id))
        self._act(Action.select_recipe(recipe_id))
        recipe = get_recipe(recipe_id)
        if recipe is None:
            return
        for key in recipe.ingredients:
            self._act(Action.key_press(key))
