"""Host-authoritative co-op over a peer link.

The host runs the only live :class:`KitchenSim`.  It sends a full snapshot
(``SYNC_STATE``) after every tick and every applied action.  The client never
simulates: it forwards its inputs as ``CLIENT_ACTION`` messages and overwrites
its local state with whatever snapshot arrived last.

Messages are plain dicts, ``{"type": ..., "payload": {...}}``, so any
transport that can move JSON can carry them.
"""
from __future__ import annotations

import json
import logging
import random
import string
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional

from config import GUEST_PLAYER
from bistro.actions import Action
from bistro.entities import GameMode
from bistro.simulation import KitchenSim

logger = logging.getLogger(__name__)

GAME_START = "GAME_START"
SYNC_STATE = "SYNC_STATE"
CLIENT_ACTION = "CLIENT_ACTION"
MESSAGE_TYPES = {GAME_START, SYNC_STATE, CLIENT_ACTION}

Message = Dict[str, Any]
DataHandler = Callable[[Message], None]
ConnectHandler = Callable[[], None]


class TransportError(Exception):
    """Raised by a transport when it cannot open, connect or send."""


def game_start_message() -> Message:
    return {"type": GAME_START, "payload": {}}


def sync_state_message(snapshot: Dict[str, Any]) -> Message:
    return {"type": SYNC_STATE, "payload": snapshot}


def client_action_message(action: Action) -> Message:
    return {"type": CLIENT_ACTION, "payload": {"action": action.to_dict()}}


def parse_message(raw: Any) -> Optional[Message]:
    if not isinstance(raw, dict):
        return None
    if raw.get("type") not in MESSAGE_TYPES:
        return None
    payload = raw.get("payload", {})
    if not isinstance(payload, dict):
        return None
    return {"type": raw["type"], "payload": payload}


class Transport(ABC):
    """Peer link contract.  Implementations raise :class:`TransportError`."""

    @abstractmethod
    def initialize(self) -> str:
        """Open the local endpoint and return its id."""

    @abstractmethod
    def connect_to_host(self, host_id: str) -> None:
        pass

    @abstractmethod
    def send(self, message: Message) -> None:
        pass

    @abstractmethod
    def on_data(self, handler: DataHandler) -> None:
        pass

    @abstractmethod
    def on_connect(self, handler: ConnectHandler) -> None:
        pass

    @abstractmethod
    def cleanup(self) -> None:
        pass


class LoopbackHub:
    """Registry that lets loopback transports in one process find each other."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self.rng = random.Random(seed)
        self.peers: Dict[str, "LoopbackTransport"] = {}

    def register(self, transport: "LoopbackTransport") -> str:
        while True:
            peer_id = "".join(self.rng.choices(string.ascii_uppercase + string.digits, k=4))
            if peer_id not in self.peers:
                self.peers[peer_id] = transport
                return peer_id

    def unregister(self, peer_id: str) -> None:
        self.peers.pop(peer_id, None)


class LoopbackTransport(Transport):
    """In-process transport.  Delivery is synchronous; every message is
    JSON round-tripped so the two sides never share objects."""

    def __init__(self, hub: LoopbackHub) -> None:
        self.hub = hub
        self.peer_id: str = ""
        self.remote: Optional["LoopbackTransport"] = None
        self._on_data: Optional[DataHandler] = None
        self._on_connect: Optional[ConnectHandler] = None

    @property
    def is_open(self) -> bool:
        return self.remote is not None

    def initialize(self) -> str:
        if not self.peer_id:
            self.peer_id = self.hub.register(self)
        return self.peer_id

    def connect_to_host(self, host_id: str) -> None:
        if not self.peer_id:
            raise TransportError("transport not initialized")
        host = self.hub.peers.get(host_id.upper())
        if host is None or host is self:
            raise TransportError(f"no host with id {host_id!r}")
        self.remote = host
        host.remote = self
        host._opened()
        self._opened()

    def _opened(self) -> None:
        if self._on_connect is not None:
            self._on_connect()

    def send(self, message: Message) -> None:
        if self.remote is None:
            raise TransportError("not connected")
        self.remote._receive(json.loads(json.dumps(message)))

    def _receive(self, message: Message) -> None:
        if self._on_data is not None:
            self._on_data(message)

    def on_data(self, handler: DataHandler) -> None:
        self._on_data = handler

    def on_connect(self, handler: ConnectHandler) -> None:
        self._on_connect = handler

    def cleanup(self) -> None:
        remote, self.remote = self.remote, None
        if remote is not None:
            remote.remote = None
        if self.peer_id:
            self.hub.unregister(self.peer_id)
            self.peer_id = ""


class HostSession:
    """Authoritative side of a co-op game."""

    def __init__(self, sim: KitchenSim, transport: Transport) -> None:
        self.sim = sim
        self.transport = transport
        self.status = ""
        self.room_id = ""
        self.connected = False
        self.pending: Deque[Action] = deque()

    def open(self) -> Optional[str]:
        self.status = "Creating room..."
        try:
            self.room_id = self.transport.initialize()
        except (TransportError, OSError) as exc:
            logger.warning("Could not create room: %s", exc)
            self.status = "Could not create room."
            return None
        self.transport.on_connect(self._on_connect)
        self.transport.on_data(self._on_data)
        self.sim.broadcaster = self.broadcast
        self.status = f"Room {self.room_id}: waiting for player 2..."
        return self.room_id

    def _on_connect(self) -> None:
        self.connected = True
        self.status = "Player 2 connected!"
        logger.info("Guest joined room %s", self.room_id)
        self._send(game_start_message())
        self.sim.start_host_game()

    def _on_data(self, raw: Any) -> None:
        message = parse_message(raw)
        if message is None or message["type"] != CLIENT_ACTION:
            logger.warning("Host ignored message: %r", raw)
            return
        action = Action.from_dict(message["payload"].get("action"), player=GUEST_PLAYER)
        if action is None:
            logger.warning("Host ignored malformed action: %r", message["payload"])
            return
        self.pending.append(action)

    def pump(self) -> int:
        """Apply queued guest actions.  Call between ticks, never during one."""
        applied = 0
        while self.pending:
            self.sim.apply_action(self.pending.popleft())
            applied += 1
        return applied

    def broadcast(self, snapshot: Dict[str, Any]) -> None:
        if self.connected:
            self._send(sync_state_message(snapshot))

    def _send(self, message: Message) -> None:
        try:
            self.transport.send(message)
        except (TransportError, OSError) as exc:
            logger.warning("Host send failed: %s", exc)
            self.connected = False
            self.status = "Connection to player 2 lost."

    def close(self) -> None:
        self.sim.broadcaster = None
        self.connected = False
        self.transport.cleanup()


class ClientSession:
    """Mirror side of a co-op game.

    Delivery order is not trusted: any snapshot switches the sim to CLIENT
    mode, and a GAME_START that arrives after a snapshot leaves it alone.
    """

    def __init__(self, sim: KitchenSim, transport: Transport) -> None:
        self.sim = sim
        self.transport = transport
        self.status = ""
        self.connected = False
        self.started = False
        self.synced = False

    def join(self, host_id: str) -> bool:
        if not host_id:
            return False
        self.status = "Connecting..."
        self.transport.on_connect(self._on_connect)
        self.transport.on_data(self._on_data)
        try:
            self.transport.initialize()
            self.transport.connect_to_host(host_id)
        except (TransportError, OSError) as exc:
            logger.warning("Could not join %s: %s", host_id, exc)
            self.status = "Could not connect."
            return False
        return True

    def _on_connect(self) -> None:
        self.connected = True
        self.status = "Connected to host! Waiting for start..."

    def _on_data(self, raw: Any) -> None:
        message = parse_message(raw)
        if message is None:
            logger.warning("Client ignored message: %r", raw)
            return
        if message["type"] == GAME_START:
            self.started = True
            if not self.synced:
                self.sim.enter_client_mode()
        elif message["type"] == SYNC_STATE:
            self.started = True
            self.synced = True
            self.sim.adopt_snapshot(message["payload"], game_mode=GameMode.CLIENT)
        else:
            logger.warning("Client ignored %s message", message["type"])

    def emit(self, action: Action) -> bool:
        if not self.connected:
            return False
        try:
            self.transport.send(client_action_message(action))
        except (TransportError, OSError) as exc:
            logger.warning("Client send failed: %s", exc)
            self.connected = False
            self.status = "Connection to host lost."
            return False
        return True

    def close(self) -> None:
        self.connected = False
        self.transport.cleanup()
