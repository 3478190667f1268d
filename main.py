from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

from config import GUEST_PLAYER, HOST_PLAYER, INGREDIENT_KEYS, INGREDIENTS, SAVE_FILE, STATION_COUNT, TICK_RATE_MS
from bistro.actions import Action
from bistro.audio import LoggingAudio, RecordingAudio, SoundCue
from bistro.autopilot import AutoChef
from bistro.entities import GameMode, GamePhase, StationState
from bistro.replication import ClientSession, HostSession, LoopbackHub, LoopbackTransport
from bistro.simulation import KitchenSim
from bistro.storage import SaveStore
from recipe_catalog import RECIPES, get_recipe

logger = logging.getLogger("bistro.main")

WINDOW_W = 960
WINDOW_H = 640

# pygame key name → what it does
STATION_KEYS: Dict[str, int] = {str(i + 1): i for i in range(STATION_COUNT)}
RECIPE_KEYS: Dict[str, str] = {f"f{i + 1}": key for i, key in enumerate(RECIPES)}
SERVE_KEY = "return"
CLEAN_KEY = "h"
CONFIRM_KEY = "space"


def action_for_key(name: str, sim: KitchenSim, player: str = HOST_PLAYER) -> Optional[Action]:
    """Translate a pygame key name into an action, or ``None``."""
    phase = sim.state.phase
    if name == CONFIRM_KEY:
        if phase == GamePhase.PRE_DAY:
            return Action.start_day()
        if phase == GamePhase.EOD_REPORT:
            return Action.next_day()
        return None
    if phase != GamePhase.SERVICE:
        return None
    if name in STATION_KEYS:
        return Action.click_station(STATION_KEYS[name])
    if name in RECIPE_KEYS:
        return Action.select_recipe(RECIPE_KEYS[name])
    if name == SERVE_KEY:
        station_id = sim.selections.get(player)
        return Action.serve(station_id) if station_id is not None else None
    if name == CLEAN_KEY:
        return Action.clean()
    if len(name) == 1 and name.upper() in INGREDIENT_KEYS:
        return Action.key_press(name.upper())
    return None


def start_game(sim: KitchenSim, load_save: bool) -> None:
    if load_save and sim.continue_game():
        return
    if load_save:
        logger.warning("No usable save found; starting a new game")
    sim.new_solo_game()


class LocalCoop:
    """Host and guest sessions joined over an in-process loopback link.

    The guest is an :class:`AutoChef` that only reads the client mirror and
    only acts through ``client.emit``; the host applies its actions in
    :meth:`step`, between ticks.
    """

    def __init__(self, sim: KitchenSim, seed: int) -> None:
        hub = LoopbackHub(seed)
        self.host = HostSession(sim, LoopbackTransport(hub))
        self.client = ClientSession(KitchenSim(seed=seed + 1), LoopbackTransport(hub))
        self.guest = AutoChef(self.client.sim, player=GUEST_PLAYER, submit=self.client.emit)
        self.guest_actions = 0

    @property
    def status(self) -> str:
        return self.host.status

    def connect(self) -> None:
        room = self.host.open()
        if room is None:
            raise RuntimeError(self.host.status)
        if not self.client.join(room):
            raise RuntimeError(self.client.status)

    def step(self) -> None:
        self.guest.step()
        self.guest_actions += self.host.pump()

    def close(self) -> None:
        self.client.close()
        self.host.close()


def run_headless(
    days: int,
    seed: int,
    load_save: bool,
    save_file: Path = SAVE_FILE,
    coop: bool = False,
) -> KitchenSim:
    audio = RecordingAudio()
    sim = KitchenSim(seed=seed, audio=audio, store=SaveStore(save_file))
    session: Optional[LocalCoop] = None
    if coop:
        if load_save:
            logger.warning("--continue is ignored in co-op games")
        session = LocalCoop(sim, seed)
        session.connect()
    else:
        start_game(sim, load_save)
    chef = AutoChef(sim)

    for _ in range(days):
        sim.apply_action(Action.start_day())
        while sim.is_running:
            if session is not None:
                session.step()
            chef.step()
            sim.advance(TICK_RATE_MS)
        if sim.state.phase != GamePhase.EOD_REPORT:
            break
        sim.apply_action(Action.next_day())

    print(
        f"headless_done day={sim.state.day} phase={sim.state.phase.value} "
        f"kpi[hyg={sim.state.hygiene:.1f},orders={len(sim.orders)}]"
        f" economy[cash=${sim.state.money},target=${sim.state.daily_target},score={sim.state.score}]"
        f" service[served={audio.count(SoundCue.CASH)},errors={audio.count(SoundCue.ERROR)}]"
        f" mode={sim.state.game_mode.value}"
    )
    if session is not None:
        mirror = session.client.sim.state
        print(
            f"coop_done status={session.status!r} guest_actions={session.guest_actions}"
            f" mirror[day={mirror.day},phase={mirror.phase.value},cash=${mirror.money}]"
        )
        session.close()
    return sim


class GameUI:
    def __init__(self, sim: KitchenSim, coop: Optional[LocalCoop] = None):
        if pygame is None:
            raise RuntimeError("pygame is required for graphical mode. Relaunch with --headless.")
        pygame.init()
        if not pygame.display.get_init():
            raise RuntimeError("Display subsystem is unavailable. Relaunch with --headless.")
        try:
            self.screen = pygame.display.set_mode((WINDOW_W, WINDOW_H))
        except pygame.error as exc:
            raise RuntimeError(f"Could not open a window ({exc}). Relaunch with --headless.") from exc
        pygame.display.set_caption("Pixel Bistro")
        self.sim = sim
        self.coop = coop
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("arial", 22)
        self.small = pygame.font.SysFont("arial", 17)
        self.running = True

        self.palette = {
            "bg": (28, 22, 18),
            "panel": (44, 36, 30),
            "text": (240, 232, 220),
            "muted": (180, 166, 150),
            "accent": (245, 166, 35),
            "ready": (106, 212, 148),
            "burned": (214, 82, 72),
        }

    def handle_input(self) -> None:
        for ev in pygame.event.get():
            if ev.type == pygame.QUIT:
                self.running = False
            if ev.type != pygame.KEYDOWN:
                continue
            name = pygame.key.name(ev.key)
            if name == "escape":
                self.running = False
                continue
            if name == CONFIRM_KEY and self.sim.state.phase == GamePhase.GAME_OVER:
                if self.sim.state.game_mode == GameMode.HOST:
                    self.sim.start_host_game()
                else:
                    self.sim.new_solo_game()
                continue
            action = action_for_key(name, self.sim)
            if action is not None:
                self.sim.apply_action(action)

    def _blit_lines(self, lines: List[Tuple[str, Tuple[int, int, int]]], x: int, y: int) -> int:
        for text, color in lines:
            self.screen.blit(self.small.render(text, True, color), (x, y))
            y += 22
        return y

    def _station_lines(self) -> List[Tuple[str, Tuple[int, int, int]]]:
        lines = []
        active = self.sim.selections.get(HOST_PLAYER)
        for station in self.sim.stations:
            marker = ">" if station.id == active else " "
            recipe = get_recipe(station.current_recipe_id)
            label = recipe.display_name if recipe else "-"
            color = self.palette["text"]
            if station.state == StationState.PREPPING and recipe:
                detail = f"{''.join(station.prep_sequence)} / {''.join(recipe.ingredients)}"
            elif station.state == StationState.COOKING:
                detail = f"{station.cook_progress:5.1f}%"
            elif station.state == StationState.READY:
                detail, color = "ORDER UP", self.palette["ready"]
            elif station.state == StationState.BURNED:
                detail, color = "burned: click to scrape", self.palette["burned"]
            else:
                detail = ""
            lines.append((f"{marker} [{station.id + 1}] {station.state.value:<9} {label} {detail}", color))
        return lines

    def draw(self) -> None:
        state = self.sim.state
        self.screen.fill(self.palette["bg"])
        header = (
            f"Day {state.day}  {state.time_remaining // 60}:{state.time_remaining % 60:02d}  "
            f"Cash ${state.money} / ${state.daily_target}  Score {state.score}  "
            f"Hygiene {state.hygiene:5.1f}%  [{state.phase.value}]"
        )
        self.screen.blit(self.font.render(header, True, self.palette["accent"]), (16, 14))
        if self.coop is not None:
            self.screen.blit(self.small.render(self.coop.status, True, self.palette["muted"]), (WINDOW_W - 260, 40))

        orders = [
            (f"{get_recipe(o.recipe_id).display_name:<22} patience {o.patience:5.1f}", self.palette["text"])
            for o in self.sim.orders
            if get_recipe(o.recipe_id) is not None
        ] or [("No customers waiting", self.palette["muted"])]
        y = self._blit_lines([("Orders", self.palette["accent"])] + orders, 16, 56)
        y = self._blit_lines([("Stations", self.palette["accent"])] + self._station_lines(), 16, y + 12)

        menu = [
            (f"F{i + 1} {recipe.display_name}: {''.join(recipe.ingredients)}", self.palette["muted"])
            for i, recipe in enumerate(RECIPES.values())
        ]
        keys = ", ".join(f"{k}={v}" for k, v in INGREDIENTS.items())
        help_lines = menu + [
            (f"Ingredients: {keys}", self.palette["muted"]),
            ("1-3 select station, Enter serve, H clean, Space start/continue, Esc quit", self.palette["muted"]),
        ]
        y = self._blit_lines(help_lines, 16, y + 12)
        self._blit_lines([(event, self.palette["muted"]) for event in self.sim.event_log[-4:]], 16, y + 12)
        pygame.display.flip()

    def run(self) -> None:
        while self.running:
            dt = self.clock.tick(60)
            self.handle_input()
            if self.coop is not None:
                self.coop.step()
            self.sim.advance(dt)
            self.draw()
        if self.coop is not None:
            self.coop.close()
        pygame.quit()


def main() -> None:
    parser = argparse.ArgumentParser(description="Pixel Bistro kitchen game")
    parser.add_argument("--headless", action="store_true", help="let the autopilot chef play without graphics")
    parser.add_argument("--days", type=int, default=1, help="headless days to play")
    parser.add_argument("--seed", type=int, default=7, help="random seed")
    parser.add_argument("--coop", action="store_true", help="host a co-op game with a bot guest over a local link")
    parser.add_argument("--continue", dest="load", action="store_true", help="continue the saved solo game")
    parser.add_argument("--save-file", type=Path, default=SAVE_FILE, help="solo save location")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.headless:
        run_headless(args.days, args.seed, args.load, args.save_file, coop=args.coop)
        return

    sim = KitchenSim(seed=args.seed, audio=LoggingAudio(), store=SaveStore(args.save_file))
    try:
        ui = GameUI(sim)
        if args.coop:
            ui.coop = LocalCoop(sim, args.seed)
            ui.coop.connect()
    except RuntimeError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        sys.exit(1)
    if not args.coop:
        start_game(sim, args.load)
    ui.run()


if __name__ == "__main__":
    main()
