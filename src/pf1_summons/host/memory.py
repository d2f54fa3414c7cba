"""In-memory host for isolated runs and tests.

Implements every collaborator protocol with plain dictionaries. Async
operations complete immediately but keep the async interface, and the
time-moving helpers (``MemoryClock.advance``, ``MemoryCombat.next_turn``,
``InMemoryHost.end_combat``) fire the same hooks a real host would.
Not thread-safe; use one instance per test or session.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from pf1_summons.core.exceptions import CatalogError, PlacementCancelledError
from pf1_summons.core.logging import get_logger
from pf1_summons.host.protocols import HookHandler
from pf1_summons.models import (
    ActorDocument,
    ChatCard,
    Combatant,
    HookEvent,
    IndexEntry,
    ItemDocument,
    PackInfo,
    PlacementRequest,
    SummonDeleteControl,
    TokenDocument,
    new_id,
)


logger = get_logger(__name__)


# =============================================================================
# Documents
# =============================================================================


class MemoryActorStore:
    """World actors plus their flags.

    Attributes:
        fail_flag_writes_for: Owner ids whose flag writes raise, for
            exercising per-owner failure isolation.
    """

    def __init__(self) -> None:
        self._actors: dict[str, ActorDocument] = {}
        self._flags: dict[str, dict[str, Any]] = defaultdict(dict)
        self.fail_flag_writes_for: set[str] = set()

    def add(self, actor: ActorDocument) -> ActorDocument:
        """Seed an actor synchronously."""
        self._actors[actor.id] = actor
        return actor

    def get(self, actor_id: str) -> ActorDocument | None:
        return self._actors.get(actor_id)

    def contents(self) -> list[ActorDocument]:
        return list(self._actors.values())

    async def create(self, actor: ActorDocument) -> ActorDocument:
        created = actor.model_copy(deep=True)
        if created.id in self._actors:
            created.id = new_id()
        self._actors[created.id] = created
        return created

    async def update(self, actor: ActorDocument) -> ActorDocument:
        if actor.id not in self._actors:
            raise KeyError(f"Actor {actor.id} does not exist")
        self._actors[actor.id] = actor
        return actor

    async def delete(self, actor_id: str) -> None:
        if self._actors.pop(actor_id, None) is None:
            raise KeyError(f"Actor {actor_id} does not exist")
        self._flags.pop(actor_id, None)

    def get_flag(self, owner_id: str, key: str) -> Any | None:
        value = self._flags.get(owner_id, {}).get(key)
        return copy.deepcopy(value)

    async def set_flag(self, owner_id: str, key: str, value: Any) -> None:
        if owner_id in self.fail_flag_writes_for:
            raise RuntimeError(f"Flag write rejected for {owner_id}")
        self._flags[owner_id][key] = copy.deepcopy(value)


class MemoryFolderStore:
    """Actor folders by name."""

    def __init__(self) -> None:
        self.folders: dict[str, str] = {}

    async def get_or_create(self, name: str) -> str:
        if name not in self.folders:
            self.folders[name] = new_id()
        return self.folders[name]


class MemoryCatalog:
    """Compendium packs holding actors and items."""

    def __init__(self) -> None:
        self._packs: dict[str, PackInfo] = {}
        self._actors: dict[str, dict[str, ActorDocument]] = {}
        self._items: dict[str, dict[str, ItemDocument]] = {}

    def add_pack(
        self,
        pack: PackInfo,
        *,
        actors: list[ActorDocument] | None = None,
        items: list[ItemDocument] | None = None,
    ) -> None:
        """Seed a pack with documents."""
        self._packs[pack.id] = pack
        self._actors[pack.id] = {a.id: a for a in actors or []}
        self._items[pack.id] = {i.id: i for i in items or []}

    def packs(self) -> list[PackInfo]:
        return list(self._packs.values())

    async def index(self, pack_id: str) -> list[IndexEntry]:
        if pack_id not in self._packs:
            raise CatalogError("Pack not found", pack_id=pack_id)
        docs: list[ActorDocument | ItemDocument] = [
            *self._actors[pack_id].values(),
            *self._items[pack_id].values(),
        ]
        return [IndexEntry(id=d.id, name=d.name) for d in docs]

    async def get_actor(self, pack_id: str, entry_id: str) -> ActorDocument:
        try:
            return self._actors[pack_id][entry_id].model_copy(deep=True)
        except KeyError as exc:
            raise CatalogError(
                "Actor not found in pack",
                pack_id=pack_id,
                details={"entry_id": entry_id},
            ) from exc

    async def get_item(self, pack_id: str, entry_id: str) -> ItemDocument:
        try:
            return self._items[pack_id][entry_id].model_copy(deep=True)
        except KeyError as exc:
            raise CatalogError(
                "Item not found in pack",
                pack_id=pack_id,
                details={"entry_id": entry_id},
            ) from exc


# =============================================================================
# Scene & Placement
# =============================================================================


class MemoryScene:
    """Tokens on one scene.

    Attributes:
        reject_batch_delete: Make ``delete_tokens`` raise, forcing callers
            onto per-token deletion.
    """

    def __init__(self, actors: MemoryActorStore, *, scene_id: str = "scene") -> None:
        self._id = scene_id
        self._actors = actors
        self._tokens: dict[str, TokenDocument] = {}
        self.controlled: set[str] = set()
        self.owned: set[str] = set()
        self.reject_batch_delete = False

    @property
    def id(self) -> str | None:
        return self._id

    def add_token(self, token: TokenDocument) -> TokenDocument:
        """Place a token synchronously."""
        self._tokens[token.id] = token
        return token

    def place_actor(self, actor: ActorDocument, *, x: float = 0.0, y: float = 0.0) -> TokenDocument:
        """Place a token for ``actor`` using its prototype token."""
        return self.add_token(
            TokenDocument(
                actor_id=actor.id,
                name=actor.prototype_token.name or actor.name,
                disposition=actor.prototype_token.disposition,
                x=x,
                y=y,
            )
        )

    def _resolved(self, token: TokenDocument) -> TokenDocument:
        actor = self._actors.get(token.actor_id) if token.actor_id else None
        return token.model_copy(update={"defeated": bool(actor and actor.is_dead)})

    def tokens(self) -> list[TokenDocument]:
        return [self._resolved(t) for t in self._tokens.values()]

    def get_token(self, token_id: str) -> TokenDocument | None:
        token = self._tokens.get(token_id)
        return self._resolved(token) if token else None

    def controlled_tokens(self) -> list[TokenDocument]:
        return [self._resolved(t) for t in self._tokens.values() if t.id in self.controlled]

    def owned_tokens(self) -> list[TokenDocument]:
        return [self._resolved(t) for t in self._tokens.values() if t.id in self.owned]

    async def delete_tokens(self, token_ids: list[str]) -> None:
        if self.reject_batch_delete:
            raise RuntimeError("Batch token deletion rejected")
        for token_id in token_ids:
            await self.delete_token(token_id)

    async def delete_token(self, token_id: str) -> None:
        self._tokens.pop(token_id, None)


class ScriptedPlacement:
    """Placement tool that confirms picks without user interaction.

    Attributes:
        requests: Every placement request received.
        cancel_on: Zero-based call numbers that raise PlacementCancelledError.
        silent_on: Call numbers that place a token but report no ids.
    """

    def __init__(self, scene: MemoryScene) -> None:
        self._scene = scene
        self.requests: list[PlacementRequest] = []
        self.cancel_on: set[int] = set()
        self.silent_on: set[int] = set()

    async def place(self, request: PlacementRequest) -> list[str]:
        call = len(self.requests)
        self.requests.append(request)
        if call in self.cancel_on:
            raise PlacementCancelledError("Placement cancelled", details={"call": call})
        token = self._scene.place_actor(
            request.actor,
            x=request.origin.x + 5.0 * (call + 1),
            y=request.origin.y,
        )
        return [] if call in self.silent_on else [token.id]


# =============================================================================
# Turn Order
# =============================================================================


class MemoryCombat:
    """A turn-order session.

    Attributes:
        fail_updates_for: Combatant ids whose updates raise.
    """

    def __init__(self, hooks: MemoryHookBus, *, combat_id: str | None = None) -> None:
        self._id = combat_id or new_id()
        self._hooks = hooks
        self._combatants: dict[str, Combatant] = {}
        self._order: list[str] = []
        self._round = 1
        self._turn: int | None = 0
        self.fail_updates_for: set[str] = set()

    @property
    def id(self) -> str:
        return self._id

    @property
    def round(self) -> int:
        return self._round

    @property
    def turn(self) -> int | None:
        return self._turn

    def combatants(self) -> list[Combatant]:
        return list(self._combatants.values())

    def turns(self) -> list[Combatant]:
        return [self._combatants[cid] for cid in self._order if cid in self._combatants]

    def current(self) -> Combatant | None:
        """The combatant whose turn it is."""
        turns = self.turns()
        if self._turn is None or not 0 <= self._turn < len(turns):
            return None
        return turns[self._turn]

    def add(self, combatant: Combatant) -> Combatant:
        """Seed an entry synchronously; call ``sort`` afterwards."""
        self._combatants[combatant.id] = combatant
        self._order.append(combatant.id)
        return combatant

    def sort(self) -> None:
        """Order entries by initiative, highest first, keeping the active entry."""
        current = self.current()
        ordered = sorted(
            self._combatants.values(),
            key=lambda c: (
                c.initiative is None,
                -(c.initiative or 0.0),
                c.name,
                c.id,
            ),
        )
        self._order = [c.id for c in ordered]
        if current is not None and current.id in self._order:
            self._turn = self._order.index(current.id)
        elif self._order:
            self._turn = min(self._turn or 0, len(self._order) - 1)

    async def create_combatants(self, data: list[Combatant]) -> list[Combatant]:
        created = []
        for combatant in data:
            stored = combatant.model_copy(deep=True)
            if stored.id in self._combatants:
                stored.id = new_id()
            self.add(stored)
            created.append(stored)
        return created

    async def update_combatant(self, combatant_id: str, **changes: Any) -> Combatant:
        if combatant_id in self.fail_updates_for:
            raise RuntimeError(f"Update rejected for combatant {combatant_id}")
        combatant = self._combatants[combatant_id]
        for name, value in changes.items():
            setattr(combatant, name, value)
        return combatant

    async def delete_combatants(self, combatant_ids: list[str]) -> None:
        current = self.current()
        for combatant_id in combatant_ids:
            self._combatants.pop(combatant_id, None)
        self._order = [cid for cid in self._order if cid in self._combatants]
        if current is not None and current.id in self._order:
            self._turn = self._order.index(current.id)
        elif not self._order:
            self._turn = None
        else:
            self._turn = min(self._turn or 0, len(self._order) - 1)

    async def setup_turns(self) -> None:
        self.sort()

    async def set_turn(self, index: int) -> None:
        self._turn = index
        await self._hooks.emit(HookEvent.UPDATE_COMBAT, self, {"turn"})

    async def next_turn(self) -> None:
        """Advance the turn pointer, rolling over into the next round."""
        changed = {"turn"}
        next_turn = (self._turn or 0) + 1
        if next_turn >= len(self._order):
            next_turn = 0
            self._round += 1
            changed.add("round")
        self._turn = next_turn
        await self._hooks.emit(HookEvent.UPDATE_COMBAT, self, changed)

    async def next_round(self) -> None:
        """Jump to the first turn of the next round."""
        self._round += 1
        self._turn = 0
        await self._hooks.emit(HookEvent.UPDATE_COMBAT, self, {"round", "turn"})


# =============================================================================
# Chat, Notifications, Hooks, Clock, User
# =============================================================================


class MemoryNotifications:
    """Collects banners as (level, message) pairs."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def of_level(self, level: str) -> list[str]:
        """Messages posted at one level."""
        return [m for lvl, m in self.messages if lvl == level]


class MemoryChat:
    """Collects posted chat cards."""

    def __init__(self) -> None:
        self.cards: list[ChatCard] = []

    async def post(self, card: ChatCard) -> str:
        self.cards.append(card)
        return new_id()

    def titled(self, title: str) -> list[ChatCard]:
        """Cards with the given header."""
        return [c for c in self.cards if c.title == title]


class MemoryHookBus:
    """Sequential async event dispatch."""

    def __init__(self) -> None:
        self._handlers: dict[HookEvent, dict[int, HookHandler]] = defaultdict(dict)
        self._next_id = 1

    def on(self, event: HookEvent, handler: HookHandler) -> int:
        handler_id = self._next_id
        self._next_id += 1
        self._handlers[event][handler_id] = handler
        return handler_id

    def off(self, event: HookEvent, handler_id: int) -> None:
        self._handlers[event].pop(handler_id, None)

    def count(self, event: HookEvent) -> int:
        """Number of handlers registered for an event."""
        return len(self._handlers[event])

    async def emit(self, event: HookEvent, *args: Any) -> None:
        """Run every handler for ``event`` one after another."""
        for handler in list(self._handlers[event].values()):
            await handler(*args)


class MemoryClock:
    """World clock that fires the time hook when advanced."""

    def __init__(self, hooks: MemoryHookBus, *, world_time: float = 0.0) -> None:
        self._hooks = hooks
        self._world_time = world_time

    @property
    def world_time(self) -> float:
        return self._world_time

    async def advance(self, seconds: float) -> None:
        """Move the clock forward and notify listeners."""
        self._world_time += seconds
        await self._hooks.emit(HookEvent.UPDATE_WORLD_TIME, self._world_time, seconds)


@dataclass
class MemoryUser:
    """The acting user."""

    id: str = field(default_factory=new_id)
    is_gm: bool = True
    character_id: str | None = None


# =============================================================================
# Aggregate
# =============================================================================


class InMemoryHost:
    """Every collaborator wired together.

    Example:
        >>> host = InMemoryHost()
        >>> wizard = host.actors.add(ActorDocument(name="Ezren"))
        >>> host.scene.place_actor(wizard)
    """

    def __init__(self, *, world_time: float = 0.0, is_gm: bool = True) -> None:
        self.hooks = MemoryHookBus()
        self.actors = MemoryActorStore()
        self.flags = self.actors
        self.folders = MemoryFolderStore()
        self.catalog = MemoryCatalog()
        self.scene = MemoryScene(self.actors)
        self.placement = ScriptedPlacement(self.scene)
        self.notifications = MemoryNotifications()
        self.chat = MemoryChat()
        self.clock = MemoryClock(self.hooks, world_time=world_time)
        self.user = MemoryUser(is_gm=is_gm)
        self._combat: MemoryCombat | None = None

    def active_combat(self) -> MemoryCombat | None:
        return self._combat

    def start_combat(self, *, combat_id: str | None = None) -> MemoryCombat:
        """Begin a turn-order session at round 1."""
        self._combat = MemoryCombat(self.hooks, combat_id=combat_id)
        logger.debug("Combat started", combat_id=self._combat.id)
        return self._combat

    async def end_combat(self) -> None:
        """Delete the active session and fire the end-of-combat hook."""
        combat = self._combat
        if combat is None:
            return
        self._combat = None
        await self.hooks.emit(HookEvent.DELETE_COMBAT, combat)

    async def activate_control(self, control: SummonDeleteControl) -> None:
        """Simulate a user clicking a chat card control."""
        await self.hooks.emit(HookEvent.ACTIVATE_DELETE_CONTROL, control)


__all__ = [
    "MemoryActorStore",
    "MemoryFolderStore",
    "MemoryCatalog",
    "MemoryScene",
    "ScriptedPlacement",
    "MemoryCombat",
    "MemoryNotifications",
    "MemoryChat",
    "MemoryHookBus",
    "MemoryClock",
    "MemoryUser",
    "InMemoryHost",
]
